"""
Tensor Field and Curvature Memoization.

Two deterministic per-location quantities are expensive enough, and
queried often enough (matrix building, adaptive grids, iterative
inversion), to be cached:

- the tensor field, a 6-vector function of (longitude, latitude) used by
  the azimuthal strategy;
- the curvature scalar, the mean curvature of the WGS84 ellipsoid with a
  small harmonic variation, scaled to order one.

Entries are keyed by the exact (longitude, latitude) pair in degrees and
never expire. ``clear()`` is called by the engine on every configuration
change.
"""

import threading
from typing import Dict, Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import PhysicalConstants, ProjectionConstants
from common.logging_config import get_logger

logger = get_logger(__name__)

TENSOR_DIMENSIONS = ProjectionConstants.TENSOR_DIMENSIONS


def tensor_field_vector(longitude: float, latitude: float) -> NDArray[np.float64]:
    """Evaluate the tensor field at a location.

    Parameters
    ----------
    longitude, latitude : float
        Location in degrees.

    Returns
    -------
    ndarray
        Shape (6,). Components 0-2 are the unit-sphere embedding,
        3-5 low-order spherical harmonics.
    """
    lon = np.radians(longitude)
    lat = np.radians(latitude)

    return np.array([
        np.cos(lat) * np.cos(lon),
        np.cos(lat) * np.sin(lon),
        np.sin(lat),
        0.5 * np.sin(2 * lon) * np.cos(3 * lat),
        0.3 * np.cos(3 * lon) * np.sin(2 * lat),
        0.2 * np.sin(5 * lon) * np.sin(4 * lat),
    ], dtype=np.float64)


def spacetime_curvature(longitude: float, latitude: float) -> float:
    """Evaluate the curvature scalar at a location.

    Parameters
    ----------
    longitude, latitude : float
        Location in degrees.

    Returns
    -------
    float
        Dimensionless curvature, about 1.57 everywhere.

    Notes
    -----
    K = ((1/M0 + 1/N(φ)) / 2 + 1e-8 sin(5λ) cos(3φ)) * 1e7

    where M0 = a(1 - e²) is the meridian radius at the equator and N is
    the prime vertical radius. M0 is held at its equatorial value.
    """
    lon = np.radians(longitude)
    lat = np.radians(latitude)

    meridional = PhysicalConstants.equatorial_meridian_radius()
    prime_vertical = PhysicalConstants.prime_vertical_radius(lat)

    curvature = (1 / meridional + 1 / prime_vertical) / 2
    curvature += 1e-8 * (np.sin(5 * lon) * np.cos(3 * lat))

    return float(curvature * 1e7)


class FieldCache:
    """Insert-if-absent caches for the tensor field and curvature scalar.

    Thread Safety
    -------------
    Both maps are guarded by one lock. Values are computed outside the
    lock; when two callers race on a key the first stored value wins,
    which is harmless because the functions are deterministic.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tensor: Dict[Tuple[float, float], NDArray[np.float64]] = {}
        self._curvature: Dict[Tuple[float, float], float] = {}

    def tensor_field(self, longitude: float, latitude: float) -> NDArray[np.float64]:
        """Cached ``tensor_field_vector``; the returned array is read-only."""
        key = (float(longitude), float(latitude))
        with self._lock:
            cached = self._tensor.get(key)
        if cached is not None:
            return cached

        value = tensor_field_vector(longitude, latitude)
        value.setflags(write=False)
        with self._lock:
            return self._tensor.setdefault(key, value)

    def curvature(self, longitude: float, latitude: float) -> float:
        """Cached ``spacetime_curvature``."""
        key = (float(longitude), float(latitude))
        with self._lock:
            cached = self._curvature.get(key)
        if cached is not None:
            return cached

        value = spacetime_curvature(longitude, latitude)
        with self._lock:
            return self._curvature.setdefault(key, value)

    def clear(self) -> None:
        """Drop every entry of both caches."""
        with self._lock:
            tensor_entries = len(self._tensor)
            curvature_entries = len(self._curvature)
            self._tensor.clear()
            self._curvature.clear()
        logger.debug(
            f"Cleared field caches ({tensor_entries} tensor, {curvature_entries} curvature entries)"
        )

    def sizes(self) -> Dict[str, int]:
        """Entry counts, keyed 'tensor' and 'curvature'."""
        with self._lock:
            return {"tensor": len(self._tensor), "curvature": len(self._curvature)}
