"""
Hyperspatial Distance and Point-Field Warping.

Distances combine an ordinary surface distance with small synthetic
contributions from the higher dimensions of the hypervector space.

Distance Model
--------------
1. Haversine central angle on the sphere of radius a (WGS84 semi-major
   axis), combined in quadrature with the altitude difference.
2. Euclidean norm of the differences of components 3-5, scaled by a * 1e-6.
3. With the relativistic flag, |Δt| * c * 1e-12.

The metric is a display-space heuristic on a sphere, not a geodesic.

Warping
-------
``warp_point_field`` pushes points near a center outward along the
initial great-circle bearing from the center, with an exponential
falloff in angular distance.
"""

from typing import List, Sequence, Tuple, Union
import numpy as np
import pint

from common.constants import PhysicalConstants
from common.logging_config import get_logger
from common.types import HypervectorPoint, LonLat
from common.units import as_magnitude, validate_units

logger = get_logger(__name__)

SEMI_MAJOR_AXIS = PhysicalConstants.EARTH_SEMI_MAJOR_AXIS.value
SPEED_OF_LIGHT = PhysicalConstants.SPEED_OF_LIGHT.value

# Points whose falloff drops below this are returned unchanged.
WARP_FALLOFF_CUTOFF = 0.01


def haversine_central_angle(
    lon1: float,
    lat1: float,
    lon2: float,
    lat2: float
) -> float:
    """Central angle between two points on the unit sphere.

    Parameters
    ----------
    lon1, lat1, lon2, lat2 : float
        Coordinates in degrees.

    Returns
    -------
    float
        Angle in radians, in [0, π].
    """
    delta_lon = np.radians(lon2 - lon1)
    delta_lat = np.radians(lat2 - lat1)

    a = (np.sin(delta_lat / 2) ** 2
         + np.cos(np.radians(lat1)) * np.cos(np.radians(lat2)) * np.sin(delta_lon / 2) ** 2)
    return float(2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a)))


def initial_bearing(
    from_lon: float,
    from_lat: float,
    to_lon: float,
    to_lat: float
) -> float:
    """Initial great-circle bearing in radians, clockwise from north."""
    delta_lon = np.radians(to_lon - from_lon)
    phi1 = np.radians(from_lat)
    phi2 = np.radians(to_lat)

    return float(np.arctan2(
        np.sin(delta_lon) * np.cos(phi2),
        np.cos(phi1) * np.sin(phi2) - np.sin(phi1) * np.cos(phi2) * np.cos(delta_lon)
    ))


def hyperspatial_distance(
    point1: HypervectorPoint,
    point2: HypervectorPoint,
    relativistic: bool = False
) -> float:
    """Distance between two hypervector points.

    Parameters
    ----------
    point1, point2 : HypervectorPoint
        Points to compare.
    relativistic : bool
        Include the temporal term.

    Returns
    -------
    float
        Non-negative distance, in meters plus the synthetic terms.

    Examples
    --------
    >>> from hyperspatial.hypervector import create_hypervector_point
    >>> p = create_hypervector_point(10.0, 20.0)
    >>> hyperspatial_distance(p, p)
    0.0
    """
    angle = haversine_central_angle(
        point1.longitude, point1.latitude, point2.longitude, point2.latitude
    )
    spherical = SEMI_MAJOR_AXIS * angle
    delta_h = point2.altitude - point1.altitude
    ordinary = np.hypot(spherical, delta_h)

    delta = point2.components[3:] - point1.components[3:]
    higher = np.sqrt(np.sum(delta * delta))

    temporal = 0.0
    if relativistic:
        temporal = abs(point2.temporal_offset - point1.temporal_offset) * SPEED_OF_LIGHT

    return float(ordinary + higher * SEMI_MAJOR_AXIS * 1e-6 + temporal * 1e-12)


@validate_units({'falloff_radius': 'degree'})
def warp_point_field(
    points: Sequence[LonLat],
    center_lon: float,
    center_lat: float,
    intensity: float = 1.0,
    falloff_radius: Union[float, pint.Quantity] = 10.0
) -> List[LonLat]:
    """Displace points away from a center.

    Parameters
    ----------
    points : Sequence[Tuple[float, float]]
        (longitude, latitude) pairs in degrees.
    center_lon, center_lat : float
        Center of the warp in degrees.
    intensity : float
        Peak displacement in degrees.
    falloff_radius : float or pint.Quantity
        e-folding angular distance of the displacement, degrees if bare.

    Returns
    -------
    List[Tuple[float, float]]
        Warped points, in input order.

    Raises
    ------
    ValueError
        If ``falloff_radius`` is not positive.

    Notes
    -----
    A point at angular distance d receives warp = intensity * exp(-d / R)
    along the bearing θ from the center: Δλ = warp sinθ / cosφ,
    Δφ = warp cosθ. Points with exp(-d / R) < 0.01 are unchanged. The
    center itself has an undefined bearing (θ = 0) and moves north.

    Only coordinates are read, no hypervector points are built, so the
    warp never draws from the random source even with quantum correction
    on. Later jittered calls see the same draw sequence with or without
    an intervening warp.
    """
    radius = as_magnitude(falloff_radius, 'degree')
    if radius <= 0:
        raise ValueError(f"Falloff radius {radius} must be positive")

    warped: List[Tuple[float, float]] = []
    moved = 0
    for lon, lat in points:
        distance_deg = np.degrees(haversine_central_angle(center_lon, center_lat, lon, lat))
        falloff = np.exp(-distance_deg / radius)

        if falloff < WARP_FALLOFF_CUTOFF:
            warped.append((lon, lat))
            continue

        warp = intensity * falloff
        bearing = initial_bearing(center_lon, center_lat, lon, lat)

        warped.append((
            float(lon + warp * np.sin(bearing) / np.cos(np.radians(lat))),
            float(lat + warp * np.cos(bearing)),
        ))
        moved += 1

    logger.debug(f"Warped {moved} of {len(warped)} points around ({center_lon}, {center_lat})")
    return warped
