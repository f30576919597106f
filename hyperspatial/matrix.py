"""
Non-Euclidean Projection Matrix.

A 6x6 real matrix with two scalars, the curvature factor and the
singularity threshold. Multiplication carries a small element-wise
nonlinearity, and inversion is a cofactor-style approximation guarded by
a pseudo-determinant (the diagonal product), not a general-purpose
linear-algebra inverse.

Matrix Construction
-------------------
``build_projection_matrix`` starts from a fixed coefficient table,
optionally modulates it by a reference point and the curvature at that
point, and adds one closed-form term per projection mode.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence
import numpy as np
from numpy.typing import NDArray

from common.constants import ProjectionConstants
from common.logging_config import get_logger
from common.types import HypervectorPoint
from hyperspatial.configuration import ProjectionConfig, ProjectionMode
from hyperspatial.exceptions import NearSingularMatrix, UnsupportedMode
from hyperspatial.field_cache import FieldCache

logger = get_logger(__name__)

TENSOR_DIMENSIONS = ProjectionConstants.TENSOR_DIMENSIONS

_I, _J = np.meshgrid(
    np.arange(TENSOR_DIMENSIONS, dtype=np.float64),
    np.arange(TENSOR_DIMENSIONS, dtype=np.float64),
    indexing="ij",
)


def _base_tensor_coefficients() -> NDArray[np.float64]:
    """T_ij = 0.1 sin(i) cos(j) + 0.05 exp(-ij/10)."""
    table = 0.1 * np.sin(_I) * np.cos(_J) + 0.05 * np.exp(-(_I * _J) / 10)
    table.setflags(write=False)
    return table


TENSOR_COEFFICIENTS: NDArray[np.float64] = _base_tensor_coefficients()


@dataclass(frozen=True, eq=False)
class NonEuclideanMatrix:
    """Immutable 6x6 projection matrix.

    Attributes
    ----------
    elements : ndarray
        Shape (6, 6), stored read-only.
    curvature_factor : float
        Strength of the multiplication nonlinearity; inverted by ``invert``.
    singularity_threshold : float
        Minimum |pseudo-determinant| accepted by ``invert``.
    """
    elements: NDArray[np.float64]
    curvature_factor: float = 1.0
    singularity_threshold: float = ProjectionConstants.SINGULARITY_THRESHOLD

    def __post_init__(self):
        elements = np.array(self.elements, dtype=np.float64)
        if elements.shape != (TENSOR_DIMENSIONS, TENSOR_DIMENSIONS):
            raise ValueError(
                f"Matrix must be {TENSOR_DIMENSIONS}x{TENSOR_DIMENSIONS}, got {elements.shape}"
            )
        elements.setflags(write=False)
        object.__setattr__(self, "elements", elements)

    @classmethod
    def identity(cls, curvature_factor: float = 1.0) -> "NonEuclideanMatrix":
        return cls(np.eye(TENSOR_DIMENSIONS), curvature_factor)

    def multiply(self, vector: Sequence[float]) -> NDArray[np.float64]:
        """Apply the matrix to a 6-vector.

        Notes
        -----
        r_i = Σ_j e_ij v_j (1 + 0.01 κ sin(e_ij)), κ the curvature factor.
        """
        v = np.asarray(vector, dtype=np.float64)
        if v.shape != (TENSOR_DIMENSIONS,):
            raise ValueError("Vector dimension must match tensor dimensions")

        weighted = self.elements * (1.0 + np.sin(self.elements) * self.curvature_factor * 0.01)
        return weighted @ v

    def transpose(self) -> "NonEuclideanMatrix":
        return NonEuclideanMatrix(self.elements.T, self.curvature_factor, self.singularity_threshold)

    def pseudo_determinant(self) -> float:
        """Product of the diagonal times the curvature factor."""
        return float(np.prod(np.diag(self.elements)) * self.curvature_factor)

    def invert(self) -> "NonEuclideanMatrix":
        """Approximate inverse.

        Entry (i, j) is the shifted cofactor (-1)^(i+j) e_{(i+1)%6,(j+1)%6}
        divided by the pseudo-determinant, then damped by
        cosh((i - j)/6) / exp(|e_ij| * threshold).

        Raises
        ------
        NearSingularMatrix
            If |pseudo-determinant| < singularity threshold.
        """
        determinant = self.pseudo_determinant()
        if abs(determinant) < self.singularity_threshold:
            logger.debug(f"Pseudo-determinant {determinant:.3e} below threshold {self.singularity_threshold}")
            raise NearSingularMatrix(determinant, self.singularity_threshold)

        signs = np.where((_I + _J) % 2 == 0, 1.0, -1.0)
        shifted = np.roll(self.elements, shift=(-1, -1), axis=(0, 1))
        cofactors = signs * shifted * (1.0 / determinant)

        correction = (np.cosh((_I - _J) / TENSOR_DIMENSIONS)
                      / np.exp(np.abs(self.elements) * self.singularity_threshold))

        return NonEuclideanMatrix(
            cofactors * correction,
            1.0 / self.curvature_factor,
            self.singularity_threshold,
        )


# Mode-specific additive terms, evaluated on the (i, j) index grids.
MODE_TERMS: Dict[ProjectionMode, Callable[[NDArray, NDArray], NDArray]] = {
    ProjectionMode.HYPER_MERCATOR:
        lambda i, j: 0.2 * (i == j),
    ProjectionMode.QUANTUM_GNOMONIC:
        lambda i, j: 0.3 * np.sqrt(i * i + j * j) / TENSOR_DIMENSIONS,
    ProjectionMode.RELATIVITY_ADAPTED_LAMBERT:
        lambda i, j: 0.1 * np.abs(i - j) / TENSOR_DIMENSIONS,
    ProjectionMode.TENSOR_AZIMUTHAL:
        lambda i, j: 0.25 * (i + j) / (2 * TENSOR_DIMENSIONS),
    ProjectionMode.HEISENBERG_STEREOGRAPHIC:
        lambda i, j: 0.15 * np.exp(-(i - j) * (i - j) / 10),
    ProjectionMode.HILBERT_SPACE_EQUIDISTANT:
        lambda i, j: 0.2 * np.sin(i * j / 5),
}


def curvature_factor_for(config: ProjectionConfig) -> float:
    """Curvature factor of the mode's matrix."""
    mode = config.mode
    if mode in (ProjectionMode.QUANTUM_GNOMONIC, ProjectionMode.TENSOR_AZIMUTHAL):
        return 1.5
    if mode is ProjectionMode.RELATIVITY_ADAPTED_LAMBERT:
        return 2.0 if config.relativistic else 1.2
    if mode is ProjectionMode.HEISENBERG_STEREOGRAPHIC:
        return 0.8
    return 1.0


def build_projection_matrix(
    config: ProjectionConfig,
    cache: FieldCache,
    reference: Optional[HypervectorPoint] = None
) -> NonEuclideanMatrix:
    """Build the projection matrix of the configured mode.

    Parameters
    ----------
    config : ProjectionConfig
        Configuration snapshot; selects the mode term and curvature factor.
    cache : FieldCache
        Source of the curvature at the reference point.
    reference : HypervectorPoint, optional
        Modulates entry (i, j) by 1 + 0.1 r_i r_j and the diagonal by
        1 + 0.01 K(reference).

    Returns
    -------
    NonEuclideanMatrix
        Fresh matrix, safe to share read-only across batch workers.
    """
    try:
        mode_term = MODE_TERMS[config.mode]
    except KeyError:
        raise UnsupportedMode(f"Unsupported projection mode: {config.mode}") from None

    values = np.array(TENSOR_COEFFICIENTS)

    if reference is not None:
        r = reference.components
        values *= 1.0 + 0.1 * np.outer(r, r)

        curvature = cache.curvature(reference.longitude, reference.latitude)
        values *= 1.0 + curvature * np.eye(TENSOR_DIMENSIONS) * 0.01

    values += mode_term(_I, _J)

    return NonEuclideanMatrix(values, curvature_factor_for(config))
