"""
Hypervector Point Construction.

Converts raw geographic input into the 6-dimensional representation used
by every projection strategy.

Component Layout
----------------
0-2 : unit-sphere embedding (cosφ cosλ, cosφ sinλ, sinφ)
3   : altitude normalized by the WGS84 semi-major axis
4   : harmonic oscillation of position (and altitude)
5   : wave term of position and temporal offset, plus one uniform draw
      from the random source when quantum correction is enabled

With quantum correction enabled every component also receives a small
deterministic harmonic jitter.
"""

from typing import Optional
import numpy as np

from common.constants import PhysicalConstants, ProjectionConstants
from common.types import HypervectorPoint
from hyperspatial.random_source import RandomSource

TENSOR_DIMENSIONS = ProjectionConstants.TENSOR_DIMENSIONS
GOLDEN_RATIO = ProjectionConstants.QUANTUM_CORRECTION_FACTOR.value
SEMI_MAJOR_AXIS = PhysicalConstants.EARTH_SEMI_MAJOR_AXIS.value


def quantum_jitter(dimension: int, lon_rad: float, lat_rad: float) -> float:
    """Deterministic harmonic jitter for one dimension.

    Wavelength shrinks and amplitude decays with the dimension index:
    (1 / sqrt(d + 1)) * sin(10 d (λ + φ) (d + 1)).
    """
    wavelength = 1.0 / (dimension + 1.0)
    phase = 10 * dimension * (lon_rad + lat_rad)
    amplitude = 1.0 / np.sqrt(dimension + 1.0)
    return amplitude * np.sin(phase / wavelength)


def harmonic_oscillation(longitude: float, latitude: float, altitude: float) -> float:
    """Component 4: sum of four position harmonics, the last scaled by altitude in km."""
    lon = np.radians(longitude)
    lat = np.radians(latitude)

    return (0.2 * np.sin(3 * lon) * np.cos(2 * lat)
            + 0.3 * np.cos(5 * lon) * np.sin(4 * lat)
            + 0.1 * np.sin(7 * lon + 3 * lat)
            + 0.05 * (altitude / 1000.0) * np.sin(11 * lon - 5 * lat))


def wave_function_collapse(
    longitude: float,
    latitude: float,
    temporal_offset: float,
    rng: Optional[RandomSource] = None
) -> float:
    """Component 5: spatial wave plus temporal wave plus an optional random term.

    Parameters
    ----------
    longitude, latitude : float
        Location in degrees.
    temporal_offset : float
        Temporal coordinate.
    rng : RandomSource, optional
        When given, one uniform draw adds (U - 0.5) * golden ratio * 0.02.
    """
    lon = np.radians(longitude)
    lat = np.radians(latitude)

    space_part = np.sin(5 * lon) * np.cos(3 * lat) * 0.3
    time_part = np.sin(temporal_offset / 10.0) * 0.1
    random_part = 0.0
    if rng is not None:
        random_part = (rng.uniform() - 0.5) * GOLDEN_RATIO * 0.02

    return space_part + time_part + random_part


def uncertainty_radius(
    lon_rad: float,
    lat_rad: float,
    altitude: float,
    quantum_correction: bool,
    relativistic: bool
) -> float:
    """Uncertainty radius in meters.

    Notes
    -----
    Base 1e-9 m growing linearly per km of altitude, a position-dependent
    quantum term, and a multiplicative gravitational-potential term.
    Floored at 1e-12 m, which the linear term would cross near -1000 m.
    """
    uncertainty = 1e-9
    uncertainty *= (1.0 + altitude / 1000.0)

    if quantum_correction:
        uncertainty += 1e-10 * abs(np.sin(10 * lon_rad) * np.cos(12 * lat_rad))

    if relativistic:
        potential = (PhysicalConstants.EARTH_SCHWARZSCHILD_RADIUS.value
                     / (SEMI_MAJOR_AXIS + altitude))
        uncertainty *= (1.0 + 1e3 * potential)

    return float(max(uncertainty, ProjectionConstants.MIN_UNCERTAINTY_RADIUS))


def create_hypervector_point(
    longitude: float,
    latitude: float,
    altitude: float = 0.0,
    temporal_offset: float = 0.0,
    quantum_correction: bool = False,
    relativistic: bool = False,
    rng: Optional[RandomSource] = None
) -> HypervectorPoint:
    """Build a hypervector point from geographic input.

    Parameters
    ----------
    longitude, latitude : float
        Degrees, not range-restricted.
    altitude : float
        Meters above the ellipsoid.
    temporal_offset : float
        Temporal coordinate.
    quantum_correction : bool
        Adds the jitter terms and the random draw of component 5.
    relativistic : bool
        Adds the gravitational term to the uncertainty radius.
    rng : RandomSource, optional
        Required when ``quantum_correction`` is True.

    Returns
    -------
    HypervectorPoint
        Immutable point owned by the caller.
    """
    if quantum_correction and rng is None:
        raise ValueError("A random source is required when quantum correction is enabled")

    lon_rad = np.radians(longitude)
    lat_rad = np.radians(latitude)

    components = np.zeros(TENSOR_DIMENSIONS)
    components[0] = np.cos(lat_rad) * np.cos(lon_rad)
    components[1] = np.cos(lat_rad) * np.sin(lon_rad)
    components[2] = np.sin(lat_rad)
    components[3] = altitude / SEMI_MAJOR_AXIS
    components[4] = harmonic_oscillation(longitude, latitude, altitude)
    components[5] = wave_function_collapse(
        longitude, latitude, temporal_offset, rng if quantum_correction else None
    )

    if quantum_correction:
        for i in range(TENSOR_DIMENSIONS):
            components[i] += quantum_jitter(i, lon_rad, lat_rad) * GOLDEN_RATIO * 1e-6

    return HypervectorPoint(
        longitude=longitude,
        latitude=latitude,
        altitude=altitude,
        temporal_offset=temporal_offset,
        uncertainty_radius=uncertainty_radius(
            lon_rad, lat_rad, altitude, quantum_correction, relativistic
        ),
        dimensional_components=tuple(components),
    )
