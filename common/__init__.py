"""
Common utilities and infrastructure for the Hyperspatial Projection Engine.

This package provides foundational components used across all modules:
- Geodetic and engine constants with provenance
- Unit registry and dimensional checks
- Value and result types
- Logging and audit trail infrastructure
"""

from common.constants import PhysicalConstants, ProjectionConstants
from common.units import ureg, Q_, validate_units, as_magnitude
from common.types import (
    HypervectorPoint,
    ProjectionStatus,
    ForwardResult,
    ScreenPoint,
    GeoSolution,
    GridBounds,
)
from common.logging_config import get_logger, AuditLogger

__all__ = [
    "PhysicalConstants",
    "ProjectionConstants",
    "ureg",
    "Q_",
    "validate_units",
    "as_magnitude",
    "HypervectorPoint",
    "ProjectionStatus",
    "ForwardResult",
    "ScreenPoint",
    "GeoSolution",
    "GridBounds",
    "get_logger",
    "AuditLogger",
]
