"""
Type Definitions for the Hyperspatial Projection Engine.

This module defines the value types that cross module boundaries: the
6-dimensional hypervector point, the status attached to projection
results, and the result records returned by the detailed entry points.

Design Rationale
----------------
Degenerate geometry (a gnomonic point at the tangent point or its
antipode, a Lambert inverse outside the unit disk, a singular projection
matrix) is not an error. It produces a defined fallback value, and the
fallback is reported as an explicit status on the result instead of
being hidden in control flow.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import ProjectionConstants


TENSOR_DIMENSIONS = ProjectionConstants.TENSOR_DIMENSIONS


@dataclass(frozen=True)
class HypervectorPoint:
    """A geographic point embedded in the 6-dimensional projection space.

    Attributes
    ----------
    longitude : float
        Longitude in DEGREES. Not range-restricted.
    latitude : float
        Latitude in DEGREES. Not range-restricted.
    altitude : float, optional
        Height above the WGS84 ellipsoid in METERS.
    temporal_offset : float, optional
        Temporal coordinate. Only read by the relativistic correction terms.
    uncertainty_radius : float, optional
        Derived uncertainty radius in METERS, always >= 0.
    dimensional_components : Tuple[float, ...]
        Exactly 6 components:
        0-2 unit-sphere embedding, 3 normalized altitude,
        4-5 harmonic terms of position (5 also of time).

    Notes
    -----
    - Unlike ``GeoCoordinate``-style types elsewhere, angles are kept in
      degrees because that is what callers pass in and what comes back out.
    - Points are immutable and compare (and hash) on every field, the
      components element-wise.
    """
    longitude: float
    latitude: float
    altitude: float = 0.0
    temporal_offset: float = 0.0
    uncertainty_radius: float = 0.0
    dimensional_components: Tuple[float, ...] = (0.0,) * TENSOR_DIMENSIONS

    def __post_init__(self):
        """Validate and normalize the component vector."""
        components = tuple(float(c) for c in self.dimensional_components)
        if len(components) != TENSOR_DIMENSIONS:
            raise ValueError(
                f"Hypervector points carry exactly {TENSOR_DIMENSIONS} components, "
                f"got {len(components)}"
            )
        if self.uncertainty_radius < 0:
            raise ValueError(
                f"Uncertainty radius {self.uncertainty_radius} must be non-negative"
            )
        object.__setattr__(self, "dimensional_components", components)

    @property
    def components(self) -> NDArray[np.float64]:
        """Fresh float64 array of the dimensional components."""
        return np.array(self.dimensional_components, dtype=np.float64)

    def to_radians(self) -> Tuple[float, float]:
        """Return (longitude_rad, latitude_rad)."""
        return np.radians(self.longitude), np.radians(self.latitude)


class ProjectionStatus(Enum):
    """Outcome of a forward or inverse projection."""

    OK = auto()
    """Regular evaluation of the strategy formula."""

    ANTIPODAL_FALLBACK = auto()
    """Gnomonic point at the tangent point or its antipode; raw components returned."""

    OUTSIDE_DOMAIN = auto()
    """Lambert inverse radius at or beyond the unit circle; (0, 0) returned."""

    SINGULAR_FALLBACK = auto()
    """Projection matrix near-singular; iterative inversion used instead."""

    NOT_CONVERGED = auto()
    """Iterative inversion exhausted its budget above tolerance."""

    @property
    def is_degenerate(self) -> bool:
        """Whether the value is a sentinel rather than a regular evaluation."""
        return self in (ProjectionStatus.ANTIPODAL_FALLBACK, ProjectionStatus.OUTSIDE_DOMAIN)


@dataclass(frozen=True, eq=False)
class ForwardResult:
    """6-dimensional output of a forward strategy.

    Attributes
    ----------
    vector : ndarray
        Transformed hyperspace vector, shape (6,).
    status : ProjectionStatus
        ``OK`` or ``ANTIPODAL_FALLBACK``.
    """
    vector: NDArray[np.float64]
    status: ProjectionStatus = ProjectionStatus.OK


@dataclass(frozen=True)
class ScreenPoint:
    """Planar display coordinates produced by a forward projection."""
    x: float
    y: float
    status: ProjectionStatus = ProjectionStatus.OK

    def as_tuple(self) -> Tuple[float, float]:
        return self.x, self.y


@dataclass(frozen=True)
class GeoSolution:
    """Geographic coordinates recovered by an inverse projection.

    Attributes
    ----------
    longitude : float
        Longitude in DEGREES.
    latitude : float
        Latitude in DEGREES.
    status : ProjectionStatus
        Outcome of the inversion.
    iterations : int, optional
        Iterations spent, for the iterative strategies.
    residual : float, optional
        Final planar error magnitude, for the iterative strategies.
    """
    longitude: float
    latitude: float
    status: ProjectionStatus = ProjectionStatus.OK
    iterations: Optional[int] = None
    residual: Optional[float] = None

    def as_tuple(self) -> Tuple[float, float]:
        return self.longitude, self.latitude


@dataclass(frozen=True)
class GridBounds:
    """Longitude/latitude rectangle in DEGREES."""
    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @property
    def lon_extent(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def lat_extent(self) -> float:
        return self.max_lat - self.min_lat


# Type aliases for array and tuple types
HyperVector = NDArray[np.float64]  # Shape: (6,)
TensorMatrix = NDArray[np.float64]  # Shape: (6, 6)
PlanarCoordinate = Tuple[float, float]  # (x, y) screen units
LonLat = Tuple[float, float]  # (longitude, latitude) degrees
