"""
Physical and Engine Constants for Hyperspatial Projection.

This module provides the constants used by the projection engine, each
with its uncertainty bound and source. Geodetic constants are SI and
traceable to authoritative sources; engine constants are tuning values
of the projection model and carry the model as their source.

References
----------
- WGS84 parameters: NIMA TR8350.2, Third Edition, 2000
- Speed of light: SI definition (BIPM, 2019)
"""

from dataclasses import dataclass
from typing import Final
import numpy as np


@dataclass(frozen=True)
class Constant:
    """A constant with uncertainty and provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    uncertainty : float
        The standard uncertainty (1-sigma) of the constant.
    unit : str
        The unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    uncertainty: float
    unit: str
    source: str
    description: str


class PhysicalConstants:
    """Registry of geodetic and physical constants.

    Earth Geometry (WGS84)
    ----------------------
    The WGS84 ellipsoid defines the embedding of every hypervector point,
    the curvature field and the great-circle part of the distance metric.

    Correction Terms
    ----------------
    The gravitational and light-speed values only scale the configurable
    relativistic correction terms. They are not used to simulate physics.
    """

    # =========================================================================
    # WGS84 Ellipsoid Parameters
    # Reference: NIMA TR8350.2, Third Edition, 2000
    # =========================================================================

    EARTH_SEMI_MAJOR_AXIS: Final[Constant] = Constant(
        value=6_378_137.0,
        uncertainty=0.0,  # Defined exactly
        unit="m",
        source="WGS84, NIMA TR8350.2",
        description="Semi-major axis (equatorial radius) of WGS84 ellipsoid"
    )

    EARTH_ECCENTRICITY_SQUARED: Final[Constant] = Constant(
        value=0.00669437999014,
        uncertainty=1e-14,
        unit="dimensionless",
        source="WGS84, NIMA TR8350.2 (derived)",
        description="First eccentricity squared: e² = (a² - b²) / a²"
    )

    # =========================================================================
    # Correction-term scales
    # =========================================================================

    EARTH_SCHWARZSCHILD_RADIUS: Final[Constant] = Constant(
        value=8.87e-27,
        uncertainty=0.0,
        unit="m",
        source="Projection model",
        description="Scale of the gravitational correction term Rs / (a + h)"
    )

    SPEED_OF_LIGHT: Final[Constant] = Constant(
        value=299_792_458.0,
        uncertainty=0.0,  # Defined exactly
        unit="m/s",
        source="SI definition (BIPM, 2019)",
        description="Speed of light in vacuum, scales the temporal distance term"
    )

    LORENTZ_REFERENCE_SPEED: Final[Constant] = Constant(
        value=3e8,
        uncertainty=0.0,
        unit="1/[t]",
        source="Projection model",
        description="Divisor turning a temporal offset into the beta of the Lorentz term"
    )

    # =========================================================================
    # Curvature helpers
    # =========================================================================

    @staticmethod
    def prime_vertical_radius(latitude_rad: float) -> float:
        """Radius of curvature in the prime vertical, N(φ).

        Parameters
        ----------
        latitude_rad : float
            Geodetic latitude in radians.

        Returns
        -------
        float
            N in meters.

        Notes
        -----
        N = a / sqrt(1 - e² sin²φ)
        """
        a = PhysicalConstants.EARTH_SEMI_MAJOR_AXIS.value
        e2 = PhysicalConstants.EARTH_ECCENTRICITY_SQUARED.value
        sin_lat = np.sin(latitude_rad)
        return a / np.sqrt(1 - e2 * sin_lat * sin_lat)

    @staticmethod
    def equatorial_meridian_radius() -> float:
        """Meridian radius of curvature at the equator, a(1 - e²), in meters."""
        a = PhysicalConstants.EARTH_SEMI_MAJOR_AXIS.value
        e2 = PhysicalConstants.EARTH_ECCENTRICITY_SQUARED.value
        return a * (1 - e2)


class ProjectionConstants:
    """Tuning constants of the hyperspatial projection model."""

    TENSOR_DIMENSIONS: Final[int] = 6

    # Convergence threshold shared by the degenerate-geometry guards and
    # the iterative inverse.
    GEODESIC_PRECISION: Final[float] = 1e-12

    MAX_ITERATIONS: Final[int] = 50

    QUANTUM_CORRECTION_FACTOR: Final[Constant] = Constant(
        value=1.618033988749895,
        uncertainty=0.0,
        unit="dimensionless",
        source="Golden ratio (1 + sqrt 5) / 2",
        description="Amplitude multiplier of every quantum correction term"
    )

    SINGULARITY_THRESHOLD: Final[float] = 0.01

    # Floor of the uncertainty radius (m). The linear altitude term reaches
    # zero at -1000 m and the stereographic noise divides by the radius.
    MIN_UNCERTAINTY_RADIUS: Final[float] = 1e-12

    # Fixed planar rescale of the analytic Mercator inverse.
    MERCATOR_INVERSE_SCALE: Final[float] = 2.0

    # Approximate inverse of the Lorentz contraction in the Lambert inverse.
    LAMBERT_RELATIVISTIC_RESCALE: Final[float] = 1.01

    BETA_CEILING: Final[float] = 0.99

    DEFAULT_PARALLEL_THRESHOLD: Final[int] = 100

    # Default gnomonic centre when no reference point is supplied: the north pole.
    DEFAULT_GNOMONIC_CENTER: Final[tuple] = (0.0, 90.0)
