"""
Hyperspatial Projection Strategies.

This module provides the six projection algorithms of the engine. Each
is a ``HyperspatialProjection`` with a forward map (hypervector point to
6-dimensional result vector) and an inverse map (planar coordinates back
to longitude/latitude). A shared planar extractor reduces forward
vectors to display coordinates.

Strategies
----------
HYPER_MERCATOR              Mercator, then the mode matrix
QUANTUM_GNOMONIC            Gnomonic about a reference point (default north pole)
RELATIVITY_ADAPTED_LAMBERT  Equatorial orthographic-style x = cosφ sinλ, y = sinφ
TENSOR_AZIMUTHAL            Tensor-field contraction with ellipsoidal flattening
HEISENBERG_STEREOGRAPHIC    Stereographic from the north pole
HILBERT_SPACE_EQUIDISTANT   Projection onto a random orthonormal basis

Inverse Methods
---------------
Closed form for Mercator, gnomonic, Lambert and stereographic; iterative
refinement for the azimuthal strategy; approximate matrix inversion for
the Hilbert strategy, falling back to iterative refinement when the
matrix is near-singular.

Degenerate Geometry
-------------------
Gnomonic points at the tangent point or its antipode return the raw
components, and the Lambert inverse returns (0, 0) outside the unit
disk. Both are regular return values with a status, recorded on the
audit trail.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper 1395.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Type
import numpy as np
from numpy.typing import NDArray

from common.constants import PhysicalConstants, ProjectionConstants
from common.logging_config import AuditLogger, get_logger
from common.types import (
    ForwardResult,
    GeoSolution,
    HypervectorPoint,
    ProjectionStatus,
    ScreenPoint,
)
from hyperspatial.configuration import ProjectionConfig, ProjectionMode
from hyperspatial.exceptions import NearSingularMatrix, UnsupportedMode
from hyperspatial.field_cache import FieldCache
from hyperspatial.hypervector import create_hypervector_point, quantum_jitter
from hyperspatial.matrix import (
    NonEuclideanMatrix,
    TENSOR_COEFFICIENTS,
    build_projection_matrix,
)
from hyperspatial.random_source import RandomSource

logger = get_logger(__name__)

TENSOR_DIMENSIONS = ProjectionConstants.TENSOR_DIMENSIONS
PRECISION = ProjectionConstants.GEODESIC_PRECISION
GOLDEN_RATIO = ProjectionConstants.QUANTUM_CORRECTION_FACTOR.value
SEMI_MAJOR_AXIS = PhysicalConstants.EARTH_SEMI_MAJOR_AXIS.value
SCHWARZSCHILD_RADIUS = PhysicalConstants.EARTH_SCHWARZSCHILD_RADIUS.value


# =============================================================================
# Closed-form kernels on the unit sphere (degrees in, unit-sphere units out)
# =============================================================================

def mercator_xy(longitude: float, latitude: float) -> Tuple[float, float]:
    """x = λ, y = ln tan(π/4 + φ/2)."""
    lon = np.radians(longitude)
    lat = np.radians(latitude)
    return lon, np.log(np.tan(np.pi / 4 + lat / 2))


def gnomonic_xy(
    longitude: float,
    latitude: float,
    center_lon: float,
    center_lat: float
) -> Tuple[float, float, float]:
    """Gnomonic projection about a center.

    Returns
    -------
    Tuple[float, float, float]
        (x, y, cos_c) where cos_c is the cosine of the angular distance
        to the center. x and y are meaningless when |cos_c| is ~1 or 0.
    """
    lon = np.radians(longitude)
    lat = np.radians(latitude)
    lon0 = np.radians(center_lon)
    lat0 = np.radians(center_lat)

    cos_c = np.sin(lat0) * np.sin(lat) + np.cos(lat0) * np.cos(lat) * np.cos(lon - lon0)
    k = 1.0 / cos_c

    x = k * np.cos(lat) * np.sin(lon - lon0)
    y = k * (np.cos(lat0) * np.sin(lat) - np.sin(lat0) * np.cos(lat) * np.cos(lon - lon0))
    return x, y, cos_c


def lambert_xy(longitude: float, latitude: float) -> Tuple[float, float]:
    """x = cosφ sinλ, y = sinφ."""
    lon = np.radians(longitude)
    lat = np.radians(latitude)
    return np.cos(lat) * np.sin(lon), np.sin(lat)


def stereographic_xy(longitude: float, latitude: float) -> Tuple[float, float]:
    """Stereographic from the north pole: k = 2 / (1 + sinφ)."""
    lon = np.radians(longitude)
    lat = np.radians(latitude)
    k = 2.0 / (1.0 + np.sin(lat))
    return k * np.cos(lat) * np.sin(lon), k * np.cos(lat) * np.cos(lon)


# =============================================================================
# Shared helpers
# =============================================================================

def extract_planar_coordinates(
    vector: NDArray[np.float64],
    screen_scale: float
) -> Tuple[float, float]:
    """Reduce a 6-dimensional result vector to planar display coordinates.

    Notes
    -----
    x = v0, y = v1, both scaled by (1 + 0.01 v2); then
    x += 0.001 v3 sin(v4), y += 0.001 v3 cos(v4); finally both scaled by
    the mode's screen scale.
    """
    x = vector[0]
    y = vector[1]

    if TENSOR_DIMENSIONS > 3:
        z_factor = 1.0 + 0.01 * vector[2]
        x *= z_factor
        y *= z_factor

        x += 0.001 * vector[3] * np.sin(vector[4])
        y += 0.001 * vector[3] * np.cos(vector[4])

    return float(x * screen_scale), float(y * screen_scale)


def transform_with_matrix(
    point: HypervectorPoint,
    matrix: NonEuclideanMatrix
) -> NDArray[np.float64]:
    """Apply a projection matrix directly to a point's components."""
    return matrix.multiply(point.dimensional_components)


def orthonormalize_rows(basis: NDArray[np.float64]) -> NDArray[np.float64]:
    """Gram-Schmidt over rows: normalize row i, remove it from every later row."""
    basis = np.array(basis, dtype=np.float64)
    for i in range(basis.shape[0]):
        basis[i] /= np.linalg.norm(basis[i])
        later = basis[i + 1:]
        later -= np.outer(later @ basis[i], basis[i])
    return basis


@dataclass(frozen=True)
class ProjectionContext:
    """Everything a strategy reads during one call.

    Attributes
    ----------
    config : ProjectionConfig
        Snapshot taken once at the start of the call.
    cache : FieldCache
        Tensor-field and curvature memoization.
    rng : RandomSource
        Source of every random draw.
    audit : AuditLogger
        Trail of degenerate geometry and iterative convergence.
    """
    config: ProjectionConfig
    cache: FieldCache
    rng: RandomSource
    audit: AuditLogger

    def create_point(
        self,
        longitude: float,
        latitude: float,
        altitude: float = 0.0,
        temporal_offset: float = 0.0
    ) -> HypervectorPoint:
        return create_hypervector_point(
            longitude,
            latitude,
            altitude,
            temporal_offset,
            quantum_correction=self.config.quantum_correction,
            relativistic=self.config.relativistic,
            rng=self.rng,
        )


# =============================================================================
# Strategy interface
# =============================================================================

class HyperspatialProjection(ABC):
    """Abstract base class of the six projection strategies.

    Parameters
    ----------
    context : ProjectionContext
        Configuration snapshot and collaborators for this call.
    """

    mode: ProjectionMode
    screen_scale: float

    def __init__(self, context: ProjectionContext):
        self.context = context

    @property
    def config(self) -> ProjectionConfig:
        return self.context.config

    @property
    def name(self) -> str:
        return self.mode.value

    @abstractmethod
    def forward(
        self,
        point: HypervectorPoint,
        reference: Optional[HypervectorPoint] = None
    ) -> ForwardResult:
        """Map a point to its 6-dimensional result vector."""

    @abstractmethod
    def inverse(
        self,
        x: float,
        y: float,
        reference: Optional[HypervectorPoint] = None,
        iterations: int = ProjectionConstants.MAX_ITERATIONS
    ) -> GeoSolution:
        """Map planar coordinates back to geographic coordinates (degrees)."""

    def project(
        self,
        longitude: float,
        latitude: float,
        altitude: float = 0.0,
        temporal_offset: float = 0.0,
        reference: Optional[HypervectorPoint] = None
    ) -> ScreenPoint:
        """Full forward path: point construction, strategy, planar extraction."""
        point = self.context.create_point(longitude, latitude, altitude, temporal_offset)
        result = self.forward(point, reference)

        if result.status.is_degenerate:
            self.context.audit.log_degenerate_geometry(
                strategy=self.name,
                kind=result.status.name,
                inputs={"longitude": longitude, "latitude": latitude},
            )

        x, y = extract_planar_coordinates(result.vector, self.screen_scale)
        return ScreenPoint(x, y, result.status)

    def _iterative_inverse(
        self,
        x: float,
        y: float,
        reference: Optional[HypervectorPoint],
        iterations: int
    ) -> GeoSolution:
        """Refine a guess by re-projecting it with this strategy.

        Starts at the reference point (or the origin) and steps the guess
        by the planar error times a step of 1 / (1 + i/5). Latitude is
        clamped to [-90, 90] and longitude wrapped to [-180, 180).
        """
        lon = reference.longitude if reference is not None else 0.0
        lat = reference.latitude if reference is not None else 0.0

        residual = float("inf")
        spent = 0
        for i in range(iterations):
            projected = self.project(lon, lat, reference=reference)

            error_x = x - projected.x
            error_y = y - projected.y
            residual = float(np.hypot(error_x, error_y))
            spent = i + 1

            if residual < PRECISION:
                break

            step = 1.0 / (1 + i / 5.0)
            lon += error_x * step
            lat += error_y * step

            lat = min(max(lat, -90.0), 90.0)
            lon = (lon + 180) % 360 - 180

        logger.debug(f"{self.name}: inverse stopped after {spent} iterations, residual {residual:.3e}")

        self.context.audit.log_convergence(
            strategy=self.name,
            residual=residual,
            tolerance=PRECISION,
            iterations=spent,
        )

        status = ProjectionStatus.OK if residual < PRECISION else ProjectionStatus.NOT_CONVERGED
        return GeoSolution(lon, lat, status, iterations=spent, residual=residual)

    def _jittered(self, lon_deg: float, lat_deg: float, uncertainty: float) -> GeoSolution:
        """Closed-form inverse result, with Gaussian jitter if quantum correction is on."""
        if self.config.quantum_correction:
            lon_deg = lon_deg + self.context.rng.gaussian() * uncertainty
            lat_deg = lat_deg + self.context.rng.gaussian() * uncertainty
        return GeoSolution(float(lon_deg), float(lat_deg))


# =============================================================================
# Strategies
# =============================================================================

class HyperMercator(HyperspatialProjection):
    """Mercator projection passed through the mode matrix.

    The forward vector is (λ, ln tan(π/4 + φ/2), h/a, warped components
    3-5), multiplied by the HYPER_MERCATOR matrix. The inverse is the
    analytic Mercator inverse with a fixed rescale of 2, and does not
    undo the matrix.
    """

    mode = ProjectionMode.HYPER_MERCATOR
    screen_scale = 0.5

    def forward(self, point, reference=None):
        lon_rad, lat_rad = point.to_radians()
        x, y = mercator_xy(point.longitude, point.latitude)

        result = np.zeros(TENSOR_DIMENSIONS)
        result[0] = x
        result[1] = y
        result[2] = point.altitude / SEMI_MAJOR_AXIS

        warp = 1.0 + 0.01 * np.sin(10 * lon_rad) * np.cos(8 * lat_rad)
        result[3:] = point.components[3:] * warp

        matrix = build_projection_matrix(self.config, self.context.cache, reference)
        return ForwardResult(matrix.multiply(result))

    def inverse(self, x, y, reference=None, iterations=ProjectionConstants.MAX_ITERATIONS):
        scale = ProjectionConstants.MERCATOR_INVERSE_SCALE
        scaled_x = x * scale
        scaled_y = y * scale

        lon = np.degrees(scaled_x)
        lat = np.degrees(2 * np.arctan(np.exp(scaled_y)) - np.pi / 2)
        return GeoSolution(float(lon), float(lat))


class QuantumGnomonic(HyperspatialProjection):
    """Gnomonic projection about the reference point (default: north pole, λ0 = 0)."""

    mode = ProjectionMode.QUANTUM_GNOMONIC
    screen_scale = 0.3

    @staticmethod
    def _center(reference: Optional[HypervectorPoint]) -> Tuple[float, float]:
        if reference is None:
            return ProjectionConstants.DEFAULT_GNOMONIC_CENTER
        return reference.longitude, reference.latitude

    def forward(self, point, reference=None):
        center_lon, center_lat = self._center(reference)
        x, y, cos_c = gnomonic_xy(point.longitude, point.latitude, center_lon, center_lat)

        if abs(cos_c) > 1.0 - PRECISION:
            return ForwardResult(point.components, ProjectionStatus.ANTIPODAL_FALLBACK)

        result = point.components
        result[0] = x
        result[1] = y

        if self.config.quantum_correction:
            lon_rad, lat_rad = point.to_radians()
            for i in range(2, TENSOR_DIMENSIONS):
                result[i] += quantum_jitter(i, lon_rad, lat_rad) * GOLDEN_RATIO * 1e-3

        return ForwardResult(result)

    def inverse(self, x, y, reference=None, iterations=ProjectionConstants.MAX_ITERATIONS):
        scale = 1.0 / self.screen_scale
        scaled_x = x * scale
        scaled_y = y * scale

        center_lon, center_lat = self._center(reference)
        ref_lon = np.radians(center_lon)
        ref_lat = np.radians(center_lat)

        rho = np.hypot(scaled_x, scaled_y)
        c = np.arctan(rho)

        if rho < PRECISION:
            lat = ref_lat
            lon = ref_lon
        else:
            lat = np.arcsin(np.cos(c) * np.sin(ref_lat)
                            + (scaled_y * np.sin(c) * np.cos(ref_lat)) / rho)
            if abs(np.cos(ref_lat)) < PRECISION:
                lon = ref_lon + np.arctan2(scaled_x, -scaled_y)
            else:
                lon = ref_lon + np.arctan2(
                    scaled_x * np.sin(c),
                    rho * np.cos(ref_lat) * np.cos(c) - scaled_y * np.sin(ref_lat) * np.sin(c)
                )

        return self._jittered(np.degrees(lon), np.degrees(lat), 1e-6 * GOLDEN_RATIO)


class RelativisticLambert(HyperspatialProjection):
    """x = cosφ sinλ, y = sinφ with optional Lorentz-like corrections.

    Relativistic mode treats the temporal offset as a speed: β = min(0.99,
    t / 3e8). Spatial dims contract by γ, dim 3 dilates by γ, and x, y
    take a gravitational factor 1 - Rs / (a + h).
    """

    mode = ProjectionMode.RELATIVITY_ADAPTED_LAMBERT
    screen_scale = 0.4

    def forward(self, point, reference=None):
        x, y = lambert_xy(point.longitude, point.latitude)

        result = point.components
        result[0] = x
        result[1] = y

        if self.config.relativistic:
            beta = min(ProjectionConstants.BETA_CEILING,
                       point.temporal_offset / PhysicalConstants.LORENTZ_REFERENCE_SPEED.value)
            gamma = 1.0 / np.sqrt(1.0 - beta * beta)

            result[:2] /= gamma
            result[3] *= gamma

            g_factor = 1.0 - (SCHWARZSCHILD_RADIUS / (SEMI_MAJOR_AXIS + point.altitude))
            result[:2] *= g_factor

        return ForwardResult(result)

    def inverse(self, x, y, reference=None, iterations=ProjectionConstants.MAX_ITERATIONS):
        scale = 1.0 / self.screen_scale
        corrected_x = x * scale
        corrected_y = y * scale

        if self.config.relativistic:
            corrected_x *= ProjectionConstants.LAMBERT_RELATIVISTIC_RESCALE
            corrected_y *= ProjectionConstants.LAMBERT_RELATIVISTIC_RESCALE

        rho = np.hypot(corrected_x, corrected_y)

        if rho > 1.0 - PRECISION:
            self.context.audit.log_degenerate_geometry(
                strategy=self.name,
                kind=ProjectionStatus.OUTSIDE_DOMAIN.name,
                inputs={"x": x, "y": y},
                context={"rho": float(rho)},
            )
            return GeoSolution(0.0, 0.0, ProjectionStatus.OUTSIDE_DOMAIN)

        lat = np.arcsin(corrected_y)
        if abs(corrected_y) > 1.0 - PRECISION:
            lon = 0.0
        else:
            lon = np.arctan2(corrected_x, np.cos(lat))

        return GeoSolution(float(np.degrees(lon)), float(np.degrees(lat)))


class TensorAzimuthal(HyperspatialProjection):
    """Contraction of the tensor field against the base coefficient table.

    r_i = Σ_j T_ij F_j(λ, φ) c_j, then r0 and r1 scaled by the ellipsoidal
    flattening sqrt(1 - e² sin²φ). Inverted iteratively.
    """

    mode = ProjectionMode.TENSOR_AZIMUTHAL
    screen_scale = 0.45

    def forward(self, point, reference=None):
        tensor = self.context.cache.tensor_field(point.longitude, point.latitude)

        result = TENSOR_COEFFICIENTS @ (tensor * point.components)

        e2 = PhysicalConstants.EARTH_ECCENTRICITY_SQUARED.value
        sin_lat = np.sin(np.radians(point.latitude))
        correction = np.sqrt(1.0 - e2 * sin_lat * sin_lat)

        result[0] *= correction
        result[1] *= correction

        return ForwardResult(result)

    def inverse(self, x, y, reference=None, iterations=ProjectionConstants.MAX_ITERATIONS):
        return self._iterative_inverse(x, y, reference, iterations)


class HeisenbergStereographic(HyperspatialProjection):
    """Stereographic projection from the north pole with uncertainty noise.

    With quantum correction, every dimension receives Gaussian noise of
    standard deviation golden ratio / (2 * uncertainty radius) * 1e-8.
    """

    mode = ProjectionMode.HEISENBERG_STEREOGRAPHIC
    screen_scale = 0.35

    def forward(self, point, reference=None):
        x, y = stereographic_xy(point.longitude, point.latitude)

        result = point.components
        result[0] = x
        result[1] = y

        if self.config.quantum_correction:
            momentum_uncertainty = GOLDEN_RATIO / (2 * np.float64(point.uncertainty_radius))
            result += self.context.rng.gaussians(TENSOR_DIMENSIONS) * momentum_uncertainty * 1e-8

        return ForwardResult(result)

    def inverse(self, x, y, reference=None, iterations=ProjectionConstants.MAX_ITERATIONS):
        scale = 1.0 / self.screen_scale
        scaled_x = x * scale
        scaled_y = y * scale

        rho = np.sqrt(scaled_x * scaled_x + scaled_y * scaled_y)
        with np.errstate(divide="ignore"):
            c = 2 * np.arctan(1 / rho)

        lat = np.arcsin(np.cos(c))
        lon = np.arctan2(scaled_x, -scaled_y)

        return self._jittered(np.degrees(lon), np.degrees(lat), 1e-7 * GOLDEN_RATIO)


class HilbertSpaceEquidistant(HyperspatialProjection):
    """Projection onto a random orthonormal basis.

    The basis is drawn fresh from the random source on every forward
    call (36 standard-normal draws), whatever the quantum flag. A
    reference point warps the basis before a second orthonormalization.
    """

    mode = ProjectionMode.HILBERT_SPACE_EQUIDISTANT
    screen_scale = 0.5

    def orthogonal_basis(self, reference: Optional[HypervectorPoint] = None) -> NDArray[np.float64]:
        basis = orthonormalize_rows(
            self.context.rng.gaussians((TENSOR_DIMENSIONS, TENSOR_DIMENSIONS))
        )

        if reference is not None:
            r = reference.components
            basis *= 1.0 + 0.05 * np.outer(r, np.sin(r))
            basis = orthonormalize_rows(basis)

        return basis

    def forward(self, point, reference=None):
        basis = self.orthogonal_basis(reference)
        result = basis @ point.components

        curvature = self.context.cache.curvature(point.longitude, point.latitude)
        result *= 1.0 + 0.01 * curvature * np.sin(np.arange(TENSOR_DIMENSIONS))

        return ForwardResult(result)

    def inverse(self, x, y, reference=None, iterations=ProjectionConstants.MAX_ITERATIONS):
        matrix = build_projection_matrix(self.config, self.context.cache, reference)

        try:
            inverse_matrix = matrix.invert()
        except NearSingularMatrix as e:
            self.context.audit.log_degenerate_geometry(
                strategy=self.name,
                kind=ProjectionStatus.SINGULAR_FALLBACK.name,
                inputs={"x": x, "y": y},
                context={"determinant": e.determinant, "threshold": e.threshold},
            )
            solution = self._iterative_inverse(x, y, reference, iterations)
            return GeoSolution(
                solution.longitude,
                solution.latitude,
                ProjectionStatus.SINGULAR_FALLBACK,
                iterations=solution.iterations,
                residual=solution.residual,
            )

        scale = 1.0 / self.screen_scale
        vector = np.zeros(TENSOR_DIMENSIONS)
        vector[0] = x * scale
        vector[1] = y * scale

        unprojected = inverse_matrix.multiply(vector)

        r = np.linalg.norm(unprojected[:3])
        lat_rad = np.arcsin(unprojected[2] / r)
        lon_rad = np.arctan2(unprojected[1], unprojected[0])

        return GeoSolution(float(np.degrees(lon_rad)), float(np.degrees(lat_rad)))


# =============================================================================
# Registry
# =============================================================================

PROJECTIONS: Dict[ProjectionMode, Type[HyperspatialProjection]] = {
    cls.mode: cls
    for cls in (
        HyperMercator,
        QuantumGnomonic,
        RelativisticLambert,
        TensorAzimuthal,
        HeisenbergStereographic,
        HilbertSpaceEquidistant,
    )
}


def projection_for(context: ProjectionContext) -> HyperspatialProjection:
    """Instantiate the strategy of the context's configured mode.

    Raises
    ------
    UnsupportedMode
        If no strategy is registered for the mode.
    """
    try:
        cls = PROJECTIONS[context.config.mode]
    except KeyError:
        raise UnsupportedMode(f"Unsupported projection mode: {context.config.mode}") from None
    return cls(context)


def screen_scale_for(mode: ProjectionMode) -> float:
    """Fixed planar scale of a mode."""
    try:
        return PROJECTIONS[mode].screen_scale
    except KeyError:
        raise UnsupportedMode(f"Unsupported projection mode: {mode}") from None
