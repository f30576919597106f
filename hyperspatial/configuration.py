"""
Projection Engine Configuration.

The engine's configuration is an immutable snapshot. ``configure`` on the
engine builds a new snapshot with ``with_updates`` and swaps it in; every
projection call reads the snapshot once, so a call never sees a
half-applied change.
"""

from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from common.constants import ProjectionConstants
from hyperspatial.exceptions import InvalidConfiguration


class ProjectionMode(Enum):
    """The six projection algorithms, by their external code."""

    HYPER_MERCATOR = "HYPER_MERCATOR"
    QUANTUM_GNOMONIC = "QUANTUM_GNOMONIC"
    RELATIVITY_ADAPTED_LAMBERT = "RELATIVITY_ADAPTED_LAMBERT"
    TENSOR_AZIMUTHAL = "TENSOR_AZIMUTHAL"
    HEISENBERG_STEREOGRAPHIC = "HEISENBERG_STEREOGRAPHIC"
    HILBERT_SPACE_EQUIDISTANT = "HILBERT_SPACE_EQUIDISTANT"

    @classmethod
    def from_code(cls, code: Union[str, "ProjectionMode"]) -> "ProjectionMode":
        """Resolve a mode from its code string.

        Raises
        ------
        InvalidConfiguration
            If ``code`` is not one of the six supported codes.
        """
        if isinstance(code, cls):
            return code
        try:
            return cls(code)
        except ValueError:
            supported = ", ".join(m.value for m in cls)
            raise InvalidConfiguration(
                f"Unsupported projection mode: {code!r}. Supported: {supported}"
            ) from None


SUPPORTED_PROJECTION_CODES = tuple(m.value for m in ProjectionMode)


@dataclass(frozen=True)
class ProjectionConfig:
    """Configuration snapshot of the projection engine.

    Attributes
    ----------
    mode : ProjectionMode
        Active projection algorithm. Code strings are accepted and resolved.
    quantum_correction : bool
        Enables the stochastic/harmonic correction terms.
    tensor_resolution : float
        Field resolution in degrees, must be > 0.
    relativistic : bool
        Enables the Lorentz-like and gravitational correction terms.
    parallel_processing : bool
        Allows large batches to fan out over a thread pool.
    seed : int
        Seed of the engine's random source.
    parallel_threshold : int
        Batches strictly larger than this fan out when parallel processing is on.
    max_workers : int, optional
        Thread pool size; None uses the executor default.
    """
    mode: ProjectionMode = ProjectionMode.HYPER_MERCATOR
    quantum_correction: bool = True
    tensor_resolution: float = 0.001
    relativistic: bool = False
    parallel_processing: bool = True
    seed: int = 42
    parallel_threshold: int = ProjectionConstants.DEFAULT_PARALLEL_THRESHOLD
    max_workers: Optional[int] = None

    def __post_init__(self):
        """Resolve the mode code and validate numeric fields."""
        object.__setattr__(self, "mode", ProjectionMode.from_code(self.mode))
        if not self.tensor_resolution > 0:
            raise InvalidConfiguration(
                f"Tensor resolution must be positive, got {self.tensor_resolution}"
            )
        if self.parallel_threshold < 0:
            raise InvalidConfiguration(
                f"Parallel threshold must be non-negative, got {self.parallel_threshold}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidConfiguration(
                f"max_workers must be at least 1, got {self.max_workers}"
            )

    def with_updates(self, **changes: Any) -> "ProjectionConfig":
        """Return a validated copy with ``changes`` applied; None values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict view, suitable for hashing and logging."""
        data = asdict(self)
        data["mode"] = self.mode.value
        return data
