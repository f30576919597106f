"""
Exceptions raised by the projection engine.

Degenerate geometry is reported through ``ProjectionStatus`` on result
types and never through these exceptions.
"""


class ProjectionError(Exception):
    """Base class for projection engine errors."""


class InvalidConfiguration(ProjectionError, ValueError):
    """Configuration rejected at configure time (unknown mode, resolution <= 0)."""


class UnsupportedMode(ProjectionError, ValueError):
    """Dispatch reached a projection mode with no registered strategy."""


class NearSingularMatrix(ProjectionError, ArithmeticError):
    """Matrix inversion refused because |pseudo-determinant| < singularity threshold.

    Attributes
    ----------
    determinant : float
        The pseudo-determinant that failed the check.
    threshold : float
        The singularity threshold it was compared against.
    """

    def __init__(self, determinant: float, threshold: float):
        self.determinant = determinant
        self.threshold = threshold
        super().__init__(
            f"Matrix is near-singular and cannot be inverted with precision: "
            f"|det|={abs(determinant):.3e} < threshold={threshold:.3e}"
        )
