"""Shared fixtures: deterministic engines and a private audit trail."""

import pytest

from common.logging_config import AuditLogger
from hyperspatial import HyperspatialVectorProjection, ProjectionConfig, RandomSource


@pytest.fixture
def audit():
    return AuditLogger("test_audit")


@pytest.fixture
def make_engine(audit):
    """Factory for engines with quantum correction off unless asked for."""
    def _make(rng=None, **overrides):
        overrides.setdefault("quantum_correction", False)
        return HyperspatialVectorProjection(
            ProjectionConfig(**overrides), rng=rng, audit=audit
        )
    return _make


@pytest.fixture
def engine(make_engine):
    """HYPER_MERCATOR engine on the deterministic path."""
    return make_engine()


@pytest.fixture
def seeded_rng():
    return RandomSource(42)
