"""
Hypergrid Generation.

Regular longitude/latitude lattices over a rectangle, optionally
stretched by the local curvature scalar.
"""

from typing import Callable, List, Optional, Union
import numpy as np
import pint

from common.logging_config import get_logger
from common.types import GridBounds, LonLat
from common.units import as_magnitude, validate_units
from hyperspatial.field_cache import spacetime_curvature

logger = get_logger(__name__)


def grid_steps(extent: float, resolution: float) -> int:
    """Number of lattice positions along one axis, at least 2."""
    return max(2, int(np.ceil(extent / resolution)))


def adaptive_spacing_factor(curvature: float) -> float:
    """s = 1 + 0.1 sin(0.1 K)."""
    return float(1.0 + 0.1 * np.sin(curvature * 0.1))


@validate_units({'base_resolution': 'degree'})
def generate_hypergrid(
    min_lon: float,
    max_lon: float,
    min_lat: float,
    max_lat: float,
    base_resolution: Union[float, pint.Quantity] = 1.0,
    adaptive: bool = True,
    curvature: Optional[Callable[[float, float], float]] = None
) -> List[LonLat]:
    """Generate a lattice of (longitude, latitude) points.

    Parameters
    ----------
    min_lon, max_lon, min_lat, max_lat : float
        Bounding rectangle in degrees.
    base_resolution : float or pint.Quantity
        Nominal spacing, degrees if bare.
    adaptive : bool
        Stretch each position by the spacing factor of the curvature at
        its regular lattice position.
    curvature : callable, optional
        (lon, lat) -> curvature scalar. Defaults to ``spacetime_curvature``;
        the engine passes its cached variant.

    Returns
    -------
    List[Tuple[float, float]]
        lon_steps * lat_steps points, longitude index outer, latitude inner.

    Raises
    ------
    ValueError
        If ``base_resolution`` is not positive.

    Notes
    -----
    Regular position: min + Δ * i / (steps - 1). Adaptive position:
    min + Δ * i * s / (steps - 1). Since s is about 1.016 everywhere,
    adaptive grids overshoot the rectangle's max edge slightly.
    """
    resolution = as_magnitude(base_resolution, 'degree')
    if resolution <= 0:
        raise ValueError(f"Grid resolution {resolution} must be positive")

    if curvature is None:
        curvature = spacetime_curvature

    bounds = GridBounds(min_lon, max_lon, min_lat, max_lat)
    lon_steps = grid_steps(bounds.lon_extent, resolution)
    lat_steps = grid_steps(bounds.lat_extent, resolution)

    points: List[LonLat] = []
    for i in range(lon_steps):
        for j in range(lat_steps):
            lon = bounds.min_lon + bounds.lon_extent * i / (lon_steps - 1)
            lat = bounds.min_lat + bounds.lat_extent * j / (lat_steps - 1)

            if adaptive:
                spacing = adaptive_spacing_factor(curvature(lon, lat))
                lon = bounds.min_lon + bounds.lon_extent * i * spacing / (lon_steps - 1)
                lat = bounds.min_lat + bounds.lat_extent * j * spacing / (lat_steps - 1)

            points.append((lon, lat))

    logger.debug(
        f"Generated {'adaptive' if adaptive else 'regular'} hypergrid of "
        f"{lon_steps}x{lat_steps} points"
    )
    return points
