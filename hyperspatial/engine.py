"""
Hyperspatial Vector Projection Engine.

The public facade of the package. One engine owns a configuration
snapshot, a field cache, a random source and an audit trail, and exposes
forward, batch and inverse projection plus the distance, warp and grid
utilities.

Call Discipline
---------------
Every public call reads the configuration snapshot once, at its start,
and builds a ``ProjectionContext`` from it. ``configure`` replaces the
snapshot, clears the field cache and reseeds (when the seed changed)
under the engine lock, so a call never mixes two configurations.

Example Usage
-------------
>>> engine = HyperspatialVectorProjection()
>>> config = engine.configure(mode="QUANTUM_GNOMONIC", quantum_correction=False)
>>> reference = engine.create_point(0.0, 90.0)
>>> x, y = engine.project_to_screen(10.0, 45.0, reference=reference)
"""

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
import threading
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
import pint

from common.constants import ProjectionConstants
from common.logging_config import AuditLogger, SessionMetadata, get_logger
from common.types import (
    GeoSolution,
    HypervectorPoint,
    LonLat,
    PlanarCoordinate,
    ScreenPoint,
)
from common.units import Q_, validate_units
from hyperspatial import distance_calculations, grids
from hyperspatial.configuration import ProjectionConfig, ProjectionMode
from hyperspatial.field_cache import FieldCache
from hyperspatial.matrix import build_projection_matrix
from hyperspatial.projections import (
    ProjectionContext,
    extract_planar_coordinates,
    projection_for,
    screen_scale_for,
    transform_with_matrix,
)
from hyperspatial.random_source import RandomSource

Coordinate = Union[Tuple[float, float], Tuple[float, float, float]]


class HyperspatialVectorProjection:
    """Projection engine facade.

    Parameters
    ----------
    config : ProjectionConfig, optional
        Initial configuration; defaults to ``ProjectionConfig()``.
    rng : RandomSource, optional
        Random source; defaults to one seeded with ``config.seed``.
    audit : AuditLogger, optional
        Audit trail; defaults to a private one.
    cache : FieldCache, optional
        Field cache; defaults to a private one.

    Thread Safety
    -------------
    All methods may be called concurrently. Jittered results depend on
    the order of random draws, so concurrent callers sharing one engine
    with quantum correction on get non-reproducible output.
    """

    def __init__(
        self,
        config: Optional[ProjectionConfig] = None,
        rng: Optional[RandomSource] = None,
        audit: Optional[AuditLogger] = None,
        cache: Optional[FieldCache] = None
    ):
        self._lock = threading.RLock()
        self._config = config if config is not None else ProjectionConfig()
        self._rng = rng if rng is not None else RandomSource(self._config.seed)
        self._audit = audit if audit is not None else AuditLogger("HyperspatialAudit")
        self._cache = cache if cache is not None else FieldCache()
        self._logger = get_logger("HyperspatialVectorProjection")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> ProjectionConfig:
        """Current configuration snapshot."""
        with self._lock:
            return self._config

    @property
    def audit(self) -> AuditLogger:
        return self._audit

    @property
    def rng(self) -> RandomSource:
        return self._rng

    def configure(
        self,
        mode: Optional[Union[str, ProjectionMode]] = None,
        quantum_correction: Optional[bool] = None,
        tensor_resolution: Optional[float] = None,
        relativistic: Optional[bool] = None,
        parallel_processing: Optional[bool] = None,
        seed: Optional[int] = None
    ) -> ProjectionConfig:
        """Update the configuration. Omitted arguments keep their values.

        Raises
        ------
        InvalidConfiguration
            On an unknown mode code or a non-positive tensor resolution.
            The previous configuration stays in effect.

        Returns
        -------
        ProjectionConfig
            The new snapshot.
        """
        with self._lock:
            previous = self._config
            updated = previous.with_updates(
                mode=mode,
                quantum_correction=quantum_correction,
                tensor_resolution=tensor_resolution,
                relativistic=relativistic,
                parallel_processing=parallel_processing,
                seed=seed,
            )

            self._config = updated
            if updated.seed != previous.seed:
                self._rng.reseed(updated.seed)
            self._cache.clear()

        self._logger.info(
            f"Configured {updated.mode.value} "
            f"(quantum={updated.quantum_correction}, relativistic={updated.relativistic}, "
            f"parallel={updated.parallel_processing}, seed={updated.seed})"
        )
        return updated

    @contextmanager
    def session(self, session_id: str) -> Iterator[SessionMetadata]:
        """Audit session tagged with the current configuration hash."""
        with self._audit.session_context(session_id, self.config.to_dict()) as metadata:
            yield metadata

    def _context(self) -> ProjectionContext:
        return ProjectionContext(
            config=self.config,
            cache=self._cache,
            rng=self._rng,
            audit=self._audit,
        )

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    def create_point(
        self,
        longitude: float,
        latitude: float,
        altitude: float = 0.0,
        temporal_offset: float = 0.0
    ) -> HypervectorPoint:
        """Build a hypervector point under the current configuration.

        With quantum correction on this advances the random source by one
        draw.
        """
        return self._context().create_point(longitude, latitude, altitude, temporal_offset)

    # ------------------------------------------------------------------
    # Forward projection
    # ------------------------------------------------------------------

    def project_to_screen_detailed(
        self,
        longitude: float,
        latitude: float,
        altitude: float = 0.0,
        temporal_offset: float = 0.0,
        reference: Optional[HypervectorPoint] = None
    ) -> ScreenPoint:
        """Project a geographic point, keeping the strategy status."""
        strategy = projection_for(self._context())
        return strategy.project(longitude, latitude, altitude, temporal_offset, reference)

    def project_to_screen(
        self,
        longitude: float,
        latitude: float,
        altitude: float = 0.0,
        temporal_offset: float = 0.0,
        reference: Optional[HypervectorPoint] = None
    ) -> PlanarCoordinate:
        """Project a geographic point to planar display coordinates.

        Parameters
        ----------
        longitude, latitude : float
            Degrees, not range-restricted.
        altitude : float
            Meters above the ellipsoid.
        temporal_offset : float
            Temporal coordinate.
        reference : HypervectorPoint, optional
            Reference point (gnomonic center, matrix modulation, basis warp).

        Returns
        -------
        Tuple[float, float]
            (x, y). Degenerate inputs return the documented sentinel values.
        """
        return self.project_to_screen_detailed(
            longitude, latitude, altitude, temporal_offset, reference
        ).as_tuple()

    def batch_project(
        self,
        coordinates: Sequence[Coordinate],
        temporal_offset: float = 0.0,
        reference: Optional[HypervectorPoint] = None
    ) -> List[PlanarCoordinate]:
        """Project many points with one shared projection matrix.

        Parameters
        ----------
        coordinates : Sequence of (lon, lat) or (lon, lat, alt)
            Input points; altitude defaults to 0.
        temporal_offset : float
            Temporal coordinate applied to every point.
        reference : HypervectorPoint, optional
            Reference point for the matrix.

        Returns
        -------
        List[Tuple[float, float]]
            Planar coordinates in input order.

        Notes
        -----
        Each point's components are multiplied by the mode matrix and
        reduced to planar coordinates. This bypasses the per-mode forward
        strategies, so batch results differ from ``project_to_screen``
        for every mode.
        """
        context = self._context()
        config = context.config
        matrix = build_projection_matrix(config, context.cache, reference)
        screen_scale = screen_scale_for(config.mode)

        def project_one(coordinate: Coordinate) -> PlanarCoordinate:
            longitude, latitude, altitude = _unpack(coordinate)
            point = context.create_point(longitude, latitude, altitude, temporal_offset)
            return extract_planar_coordinates(transform_with_matrix(point, matrix), screen_scale)

        if config.parallel_processing and len(coordinates) > config.parallel_threshold:
            self._logger.info(
                f"Fanning out batch of {len(coordinates)} points ({config.mode.value})"
            )
            with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
                return list(executor.map(project_one, coordinates))

        return [project_one(coordinate) for coordinate in coordinates]

    # ------------------------------------------------------------------
    # Inverse projection
    # ------------------------------------------------------------------

    def unproject_from_screen_detailed(
        self,
        x: float,
        y: float,
        reference: Optional[HypervectorPoint] = None,
        iterations: int = ProjectionConstants.MAX_ITERATIONS
    ) -> GeoSolution:
        """Invert planar coordinates, keeping status and convergence data."""
        if iterations < 0:
            raise ValueError(f"Iteration budget must be non-negative, got {iterations}")

        strategy = projection_for(self._context())
        return strategy.inverse(x, y, reference, iterations)

    def unproject_from_screen(
        self,
        x: float,
        y: float,
        reference: Optional[HypervectorPoint] = None,
        iterations: int = ProjectionConstants.MAX_ITERATIONS
    ) -> LonLat:
        """Recover (longitude, latitude) in degrees from planar coordinates.

        Parameters
        ----------
        x, y : float
            Planar display coordinates.
        reference : HypervectorPoint, optional
            Reference point used by the forward projection.
        iterations : int
            Budget of the iterative strategies.

        Returns
        -------
        Tuple[float, float]
            (longitude, latitude). The Lambert inverse returns (0, 0)
            outside the unit disk.
        """
        return self.unproject_from_screen_detailed(x, y, reference, iterations).as_tuple()

    # ------------------------------------------------------------------
    # Distance, warp, grid
    # ------------------------------------------------------------------

    def hyperspatial_distance(self, point1: HypervectorPoint, point2: HypervectorPoint) -> float:
        """Distance in meters plus the synthetic higher-dimensional terms."""
        return distance_calculations.hyperspatial_distance(
            point1, point2, relativistic=self.config.relativistic
        )

    @validate_units({'return': 'meter'})
    def hyperspatial_distance_quantity(
        self,
        point1: HypervectorPoint,
        point2: HypervectorPoint
    ) -> pint.Quantity:
        """``hyperspatial_distance`` as a pint quantity in meters."""
        return Q_(self.hyperspatial_distance(point1, point2), 'meter')

    def warp_point_field(
        self,
        points: Sequence[LonLat],
        center_lon: float,
        center_lat: float,
        intensity: float = 1.0,
        falloff_radius: Union[float, pint.Quantity] = 10.0
    ) -> List[LonLat]:
        """Displace points away from a center; see ``distance_calculations.warp_point_field``.

        Does not advance the random source.
        """
        return distance_calculations.warp_point_field(
            points, center_lon, center_lat, intensity, falloff_radius
        )

    def generate_hypergrid(
        self,
        min_lon: float,
        max_lon: float,
        min_lat: float,
        max_lat: float,
        base_resolution: Union[float, pint.Quantity] = 1.0,
        adaptive: bool = True
    ) -> List[LonLat]:
        """Lattice over a rectangle; adaptive grids use the cached curvature."""
        return grids.generate_hypergrid(
            min_lon, max_lon, min_lat, max_lat,
            base_resolution=base_resolution,
            adaptive=adaptive,
            curvature=self._cache.curvature,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def curvature(self, longitude: float, latitude: float) -> float:
        """Cached curvature scalar at a location."""
        return self._cache.curvature(longitude, latitude)

    def tensor_field(self, longitude: float, latitude: float) -> NDArray[np.float64]:
        """Cached tensor field at a location (read-only array)."""
        return self._cache.tensor_field(longitude, latitude)

    def cache_sizes(self) -> Dict[str, int]:
        """Entry counts of the field caches."""
        return self._cache.sizes()


def _unpack(coordinate: Coordinate) -> Tuple[float, float, float]:
    if len(coordinate) == 3:
        return coordinate[0], coordinate[1], coordinate[2]
    if len(coordinate) == 2:
        return coordinate[0], coordinate[1], 0.0
    raise ValueError(
        f"Coordinates are (lon, lat) or (lon, lat, alt), got {len(coordinate)} values"
    )
