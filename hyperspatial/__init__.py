"""
Hyperspatial Vector Projection Engine.

Projects geographic coordinates (longitude, latitude, altitude, temporal
offset) through a 6-dimensional intermediate representation onto planar
display coordinates, and back.

This package provides:
- The engine facade and its configuration
- Six forward/inverse projection strategies
- The non-Euclidean projection matrix
- Hyperspatial distance, point-field warping and hypergrids
"""

from hyperspatial.exceptions import (
    ProjectionError,
    InvalidConfiguration,
    UnsupportedMode,
    NearSingularMatrix,
)

from hyperspatial.configuration import (
    ProjectionMode,
    ProjectionConfig,
    SUPPORTED_PROJECTION_CODES,
)

from hyperspatial.random_source import RandomSource
from hyperspatial.field_cache import FieldCache, spacetime_curvature, tensor_field_vector
from hyperspatial.hypervector import create_hypervector_point
from hyperspatial.matrix import NonEuclideanMatrix, build_projection_matrix

from hyperspatial.projections import (
    HyperspatialProjection,
    HyperMercator,
    QuantumGnomonic,
    RelativisticLambert,
    TensorAzimuthal,
    HeisenbergStereographic,
    HilbertSpaceEquidistant,
    ProjectionContext,
    PROJECTIONS,
    extract_planar_coordinates,
)

from hyperspatial.distance_calculations import hyperspatial_distance, warp_point_field
from hyperspatial.grids import generate_hypergrid
from hyperspatial.engine import HyperspatialVectorProjection

__all__ = [
    # Errors
    "ProjectionError",
    "InvalidConfiguration",
    "UnsupportedMode",
    "NearSingularMatrix",
    # Configuration
    "ProjectionMode",
    "ProjectionConfig",
    "SUPPORTED_PROJECTION_CODES",
    # Building blocks
    "RandomSource",
    "FieldCache",
    "spacetime_curvature",
    "tensor_field_vector",
    "create_hypervector_point",
    "NonEuclideanMatrix",
    "build_projection_matrix",
    # Strategies
    "HyperspatialProjection",
    "HyperMercator",
    "QuantumGnomonic",
    "RelativisticLambert",
    "TensorAzimuthal",
    "HeisenbergStereographic",
    "HilbertSpaceEquidistant",
    "ProjectionContext",
    "PROJECTIONS",
    "extract_planar_coordinates",
    # Utilities
    "hyperspatial_distance",
    "warp_point_field",
    "generate_hypergrid",
    # Engine
    "HyperspatialVectorProjection",
]
