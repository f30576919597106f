"""
Tests for the six projection strategies.

Validates:
    1. Closed-form forward values and exact inverse cases per mode
    2. Degenerate geometry sentinels and their audit records
    3. Iterative and singular-fallback inversion
    4. Random draw accounting of the stochastic strategies
    5. Forward result vectors recomputed term by term
"""

import numpy as np
import pytest

from common.types import HypervectorPoint, ProjectionStatus
from hyperspatial import (
    PROJECTIONS,
    FieldCache,
    HyperspatialProjection,
    ProjectionConfig,
    ProjectionContext,
    ProjectionMode,
    RandomSource,
    UnsupportedMode,
    extract_planar_coordinates,
)
from hyperspatial.projections import orthonormalize_rows


SCREEN_SCALES = {
    ProjectionMode.HYPER_MERCATOR: 0.5,
    ProjectionMode.QUANTUM_GNOMONIC: 0.3,
    ProjectionMode.RELATIVITY_ADAPTED_LAMBERT: 0.4,
    ProjectionMode.TENSOR_AZIMUTHAL: 0.45,
    ProjectionMode.HEISENBERG_STEREOGRAPHIC: 0.35,
    ProjectionMode.HILBERT_SPACE_EQUIDISTANT: 0.5,
}


class TestRegistry:

    def test_every_mode_registered(self):
        assert set(PROJECTIONS) == set(ProjectionMode)
        for mode, cls in PROJECTIONS.items():
            assert issubclass(cls, HyperspatialProjection)
            assert cls.mode is mode

    def test_screen_scales(self):
        for mode, scale in SCREEN_SCALES.items():
            assert PROJECTIONS[mode].screen_scale == scale

    def test_unregistered_mode_raises(self, make_engine, monkeypatch):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        monkeypatch.delitem(PROJECTIONS, ProjectionMode.TENSOR_AZIMUTHAL)
        with pytest.raises(UnsupportedMode):
            engine.project_to_screen(1.0, 2.0)
        with pytest.raises(UnsupportedMode):
            engine.batch_project([(1.0, 2.0)])


class TestPlanarExtraction:

    def test_plain(self):
        assert extract_planar_coordinates(np.array([1.0, 2.0, 0, 0, 0, 0]), 0.5) == (0.5, 1.0)

    def test_depth_scaling(self):
        x, y = extract_planar_coordinates(np.array([1.0, 2.0, 100.0, 0, 0, 0]), 1.0)
        assert (x, y) == pytest.approx((2.0, 4.0))

    def test_higher_dimension_offset(self):
        x, y = extract_planar_coordinates(np.array([0.0, 0.0, 0.0, 1000.0, np.pi / 2, 0]), 1.0)
        assert x == pytest.approx(1.0)
        assert y == pytest.approx(0.0, abs=1e-12)


class TestHyperMercator:

    def test_origin_maps_to_origin(self, engine):
        x, y = engine.project_to_screen(0.0, 0.0, 0.0)
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(0.0, abs=1e-12)

    def test_inverse_is_analytic_mercator(self, engine):
        x = 0.5 * np.radians(30.0)
        y = 0.5 * np.log(np.tan(np.pi / 4 + np.radians(45.0) / 2))
        lon, lat = engine.unproject_from_screen(x, y)
        assert lon == pytest.approx(30.0, abs=1e-9)
        assert lat == pytest.approx(45.0, abs=1e-9)

    def test_northern_points_map_north(self, engine):
        _, y_north = engine.project_to_screen(0.0, 30.0)
        _, y_south = engine.project_to_screen(0.0, -30.0)
        assert y_north > 0 > y_south


class TestQuantumGnomonic:

    def test_reference_point_is_degenerate(self, make_engine, audit):
        engine = make_engine(mode="QUANTUM_GNOMONIC")
        reference = engine.create_point(0.0, 90.0)

        result = engine.project_to_screen_detailed(0.0, 90.0, reference=reference)

        assert result.status is ProjectionStatus.ANTIPODAL_FALLBACK
        assert result.x == pytest.approx(0.0, abs=1e-9)
        summary = audit.get_session_summary()
        assert summary["degenerate_counts_by_kind"] == {"ANTIPODAL_FALLBACK": 1}

    def test_antipode_is_degenerate(self, make_engine):
        engine = make_engine(mode="QUANTUM_GNOMONIC")
        result = engine.project_to_screen_detailed(0.0, -90.0)
        assert result.status is ProjectionStatus.ANTIPODAL_FALLBACK

    def test_regular_point(self, make_engine):
        engine = make_engine(mode="QUANTUM_GNOMONIC")
        result = engine.project_to_screen_detailed(30.0, 45.0)
        assert result.status is ProjectionStatus.OK
        assert np.isfinite(result.x) and np.isfinite(result.y)

    def test_inverse_recovers_longitude(self, make_engine):
        engine = make_engine(mode="QUANTUM_GNOMONIC")
        x, y = engine.project_to_screen(30.0, 45.0)
        lon, lat = engine.unproject_from_screen(x, y)
        assert lon == pytest.approx(30.0, abs=1e-9)
        assert lat == pytest.approx(45.0, abs=1.0)

    def test_inverse_at_origin_returns_reference(self, make_engine):
        engine = make_engine(mode="QUANTUM_GNOMONIC")
        reference = engine.create_point(15.0, 50.0)
        lon, lat = engine.unproject_from_screen(0.0, 0.0, reference=reference)
        assert (lon, lat) == pytest.approx((15.0, 50.0))

    def test_quantum_inverse_draws_two_gaussians(self, make_engine):
        rng = RandomSource(11)
        engine = make_engine(mode="QUANTUM_GNOMONIC", quantum_correction=True, rng=rng)
        engine.unproject_from_screen(0.1, 0.1)

        expected = RandomSource(11)
        expected.gaussian()
        expected.gaussian()
        assert rng.gaussian() == expected.gaussian()


class TestRelativisticLambert:

    def test_forward(self, make_engine):
        engine = make_engine(mode="RELATIVITY_ADAPTED_LAMBERT")
        x, y = engine.project_to_screen(30.0, 0.0)
        assert x == pytest.approx(0.2)
        assert y == pytest.approx(0.0, abs=1e-12)

    def test_lorentz_contraction(self, make_engine):
        engine = make_engine(mode="RELATIVITY_ADAPTED_LAMBERT", relativistic=True)
        x, _ = engine.project_to_screen(30.0, 0.0, temporal_offset=1.5e8)
        gamma = 1.0 / np.sqrt(1.0 - 0.25)
        assert x == pytest.approx(0.2 / gamma, rel=1e-9)

    def test_inverse_outside_unit_disk(self, make_engine, audit):
        engine = make_engine(mode="RELATIVITY_ADAPTED_LAMBERT")
        solution = engine.unproject_from_screen_detailed(0.4, 0.0)

        assert solution.as_tuple() == (0.0, 0.0)
        assert solution.status is ProjectionStatus.OUTSIDE_DOMAIN
        assert audit.get_session_summary()["degenerate_counts_by_kind"] == {"OUTSIDE_DOMAIN": 1}

    def test_inverse_on_meridian(self, make_engine):
        engine = make_engine(mode="RELATIVITY_ADAPTED_LAMBERT")
        lon, lat = engine.unproject_from_screen(0.0, 0.4 * np.sin(np.radians(30.0)))
        assert lon == pytest.approx(0.0, abs=1e-12)
        assert lat == pytest.approx(30.0)

    def test_relativistic_inverse_rescales(self, make_engine):
        engine = make_engine(mode="RELATIVITY_ADAPTED_LAMBERT", relativistic=True)
        solution = engine.unproject_from_screen_detailed(0.0, 0.398)
        assert solution.status is ProjectionStatus.OUTSIDE_DOMAIN


class TestTensorAzimuthal:

    def test_round_trip_from_reference(self, make_engine, audit):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        reference = engine.create_point(20.0, 10.0)
        x, y = engine.project_to_screen(20.0, 10.0, reference=reference)

        solution = engine.unproject_from_screen_detailed(x, y, reference=reference)

        assert solution.as_tuple() == (20.0, 10.0)
        assert solution.status is ProjectionStatus.OK
        assert solution.iterations == 1
        assert solution.residual == 0.0
        summary = audit.get_session_summary()
        assert summary["iterative_inversions"] == 1
        assert summary["converged_inversions"] == 1

    def test_exhausted_budget(self, make_engine, audit):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        x, y = engine.project_to_screen(20.0, 10.0)

        solution = engine.unproject_from_screen_detailed(x, y, iterations=1)

        assert solution.status is ProjectionStatus.NOT_CONVERGED
        assert solution.iterations == 1
        assert solution.residual > 0
        assert audit.get_session_summary()["converged_inversions"] == 0

    def test_zero_budget_returns_start(self, make_engine):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        solution = engine.unproject_from_screen_detailed(0.1, 0.1, iterations=0)
        assert solution.as_tuple() == (0.0, 0.0)
        assert solution.status is ProjectionStatus.NOT_CONVERGED

    def test_negative_budget_rejected(self, make_engine):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        with pytest.raises(ValueError):
            engine.unproject_from_screen(0.1, 0.1, iterations=-1)

    def test_guess_stays_in_range(self, make_engine):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        lon, lat = engine.unproject_from_screen(5.0, 5.0, iterations=10)
        assert -180.0 <= lon < 180.0
        assert -90.0 <= lat <= 90.0

    def test_tensor_field_cached(self, make_engine):
        engine = make_engine(mode="TENSOR_AZIMUTHAL")
        engine.project_to_screen(20.0, 10.0)
        assert engine.cache_sizes()["tensor"] == 1


class TestHeisenbergStereographic:

    def test_forward_at_origin(self, make_engine):
        engine = make_engine(mode="HEISENBERG_STEREOGRAPHIC")
        x, y = engine.project_to_screen(0.0, 0.0)
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(0.7)

    def test_inverse_on_unit_circle(self, make_engine):
        engine = make_engine(mode="HEISENBERG_STEREOGRAPHIC")
        lon, lat = engine.unproject_from_screen(0.0, -0.35)
        assert lon == pytest.approx(0.0, abs=1e-9)
        assert lat == pytest.approx(0.0, abs=1e-9)

    def test_quantum_forward_draws_six_gaussians(self, make_engine):
        rng = RandomSource(9)
        engine = make_engine(mode="HEISENBERG_STEREOGRAPHIC", quantum_correction=True, rng=rng)
        engine.project_to_screen(10.0, 10.0)

        expected = RandomSource(9)
        expected.uniform()
        expected.gaussians(6)
        assert rng.uniform() == expected.uniform()

    def test_quantum_reproducible(self, make_engine):
        a = make_engine(mode="HEISENBERG_STEREOGRAPHIC", quantum_correction=True, rng=RandomSource(5))
        b = make_engine(mode="HEISENBERG_STEREOGRAPHIC", quantum_correction=True, rng=RandomSource(5))
        assert a.project_to_screen(10.0, 10.0) == b.project_to_screen(10.0, 10.0)

    @pytest.mark.parametrize("altitude", [-1000.0, -2000.0, -10000.0])
    def test_quantum_forward_finite_below_sea_level(self, make_engine, altitude):
        engine = make_engine(mode="HEISENBERG_STEREOGRAPHIC", quantum_correction=True)
        x, y = engine.project_to_screen(10.0, 20.0, altitude)
        assert np.isfinite(x)
        assert np.isfinite(y)


class TestHilbertSpaceEquidistant:

    def test_orthonormal_rows(self):
        basis = orthonormalize_rows(np.random.default_rng(0).standard_normal((6, 6)))
        np.testing.assert_allclose(basis @ basis.T, np.eye(6), atol=1e-12)

    def test_forward_draws_basis_without_quantum(self, make_engine):
        rng = RandomSource(5)
        engine = make_engine(mode="HILBERT_SPACE_EQUIDISTANT", rng=rng)
        engine.project_to_screen(10.0, 20.0)

        expected = RandomSource(5)
        expected.gaussians((6, 6))
        assert rng.gaussian() == expected.gaussian()

    def test_same_seed_reproduces(self, make_engine):
        a = make_engine(mode="HILBERT_SPACE_EQUIDISTANT", rng=RandomSource(5))
        b = make_engine(mode="HILBERT_SPACE_EQUIDISTANT", rng=RandomSource(5))
        reference = a.create_point(0.0, 0.0)
        assert (a.project_to_screen(10.0, 20.0, reference=reference)
                == b.project_to_screen(10.0, 20.0, reference=reference))

    def test_inverse_falls_back_to_iteration(self, make_engine, audit):
        engine = make_engine(mode="HILBERT_SPACE_EQUIDISTANT")
        solution = engine.unproject_from_screen_detailed(0.1, 0.1, iterations=3)

        assert solution.status is ProjectionStatus.SINGULAR_FALLBACK
        assert solution.iterations is not None
        summary = audit.get_session_summary()
        assert summary["degenerate_counts_by_kind"] == {"SINGULAR_FALLBACK": 1}
        assert summary["iterative_inversions"] == 1


SEMI_MAJOR_AXIS = 6378137.0
ECCENTRICITY_SQUARED = 0.00669437999014
GOLDEN_RATIO = (1 + np.sqrt(5)) / 2
COMPONENTS = (0.3, -0.2, 0.5, 0.1, 0.4, -0.6)


def _strategy(audit, mode, rng=None, **overrides):
    overrides.setdefault("quantum_correction", False)
    config = ProjectionConfig(mode=mode, **overrides)
    context = ProjectionContext(
        config=config,
        cache=FieldCache(),
        rng=rng if rng is not None else RandomSource(42),
        audit=audit,
    )
    return PROJECTIONS[config.mode](context)


def _point(lon=30.0, lat=45.0, altitude=1500.0, temporal_offset=0.0):
    return HypervectorPoint(lon, lat, altitude, temporal_offset, dimensional_components=COMPONENTS)


def _mode_matrix(mode_term, curvature_factor):
    i, j = np.meshgrid(np.arange(6.0), np.arange(6.0), indexing="ij")
    table = 0.1 * np.sin(i) * np.cos(j) + 0.05 * np.exp(-i * j / 10) + mode_term(i, j)
    return table * (1 + 0.01 * curvature_factor * np.sin(table))


def _curvature(lon, lat):
    lam, phi = np.radians(lon), np.radians(lat)
    meridional = SEMI_MAJOR_AXIS * (1 - ECCENTRICITY_SQUARED)
    prime_vertical = SEMI_MAJOR_AXIS / np.sqrt(1 - ECCENTRICITY_SQUARED * np.sin(phi) ** 2)
    return ((1 / meridional + 1 / prime_vertical) / 2 + 1e-8 * np.sin(5 * lam) * np.cos(3 * phi)) * 1e7


class TestForwardVectors:
    """Strategy outputs recomputed term by term from the projection formulas."""

    def _mercator_vector(self, lon, lat, altitude, components):
        lam, phi = np.radians(lon), np.radians(lat)
        warp = 1 + 0.01 * np.sin(10 * lam) * np.cos(8 * phi)
        vector = np.array([
            lam,
            np.log(np.tan(np.pi / 4 + phi / 2)),
            altitude / SEMI_MAJOR_AXIS,
            *(np.asarray(components[3:]) * warp),
        ])
        return _mode_matrix(lambda i, j: 0.2 * (i == j), 1.0) @ vector

    def test_hyper_mercator_matrix_product(self, audit):
        result = _strategy(audit, "HYPER_MERCATOR").forward(_point())
        np.testing.assert_allclose(
            result.vector, self._mercator_vector(30.0, 45.0, 1500.0, COMPONENTS),
            rtol=1e-12, atol=1e-15,
        )

    def test_hyper_mercator_screen(self, engine):
        point = engine.create_point(30.0, 45.0, 1500.0)
        v = self._mercator_vector(30.0, 45.0, 1500.0, point.dimensional_components)

        depth = 1 + 0.01 * v[2]
        expected_x = (v[0] * depth + 0.001 * v[3] * np.sin(v[4])) * 0.5
        expected_y = (v[1] * depth + 0.001 * v[3] * np.cos(v[4])) * 0.5

        x, y = engine.project_to_screen(30.0, 45.0, 1500.0)
        assert x == pytest.approx(expected_x, rel=1e-12)
        assert y == pytest.approx(expected_y, rel=1e-12)

    def test_gnomonic_quantum_jitter(self, audit):
        lam, phi = np.radians(30.0), np.radians(45.0)
        result = _strategy(audit, "QUANTUM_GNOMONIC", quantum_correction=True).forward(_point())

        expected = np.array(COMPONENTS)
        expected[0] = np.cos(phi) * np.sin(lam) / np.sin(phi)
        expected[1] = -np.cos(phi) * np.cos(lam) / np.sin(phi)
        for d in range(2, 6):
            jitter = np.sin(10 * d * (lam + phi) * (d + 1)) / np.sqrt(d + 1)
            expected[d] += jitter * GOLDEN_RATIO * 1e-3

        assert result.status is ProjectionStatus.OK
        np.testing.assert_allclose(result.vector, expected, rtol=1e-12, atol=1e-15)

    def test_gnomonic_without_quantum_copies_components(self, audit):
        result = _strategy(audit, "QUANTUM_GNOMONIC").forward(_point())
        np.testing.assert_array_equal(result.vector[2:], COMPONENTS[2:])

    def test_lambert_lorentz_dilation(self, audit):
        lam, phi = np.radians(30.0), np.radians(45.0)
        gamma = 1 / np.sqrt(1 - 0.5 ** 2)
        strategy = _strategy(audit, "RELATIVITY_ADAPTED_LAMBERT", relativistic=True)

        result = strategy.forward(_point(temporal_offset=1.5e8))

        expected = np.array(COMPONENTS)
        expected[0] = np.cos(phi) * np.sin(lam) / gamma
        expected[1] = np.sin(phi) / gamma
        expected[3] *= gamma
        np.testing.assert_allclose(result.vector, expected, rtol=1e-12)

    def test_lambert_beta_ceiling(self, audit):
        strategy = _strategy(audit, "RELATIVITY_ADAPTED_LAMBERT", relativistic=True)
        result = strategy.forward(_point(temporal_offset=1e9))
        assert result.vector[3] == pytest.approx(COMPONENTS[3] / np.sqrt(1 - 0.99 ** 2))

    def test_lambert_gravitational_factor(self, audit, monkeypatch):
        # Rs / (a + h) is far below double precision at the real radius.
        monkeypatch.setattr(
            "hyperspatial.projections.SCHWARZSCHILD_RADIUS", 0.25 * (SEMI_MAJOR_AXIS + 1500.0)
        )
        lam, phi = np.radians(30.0), np.radians(45.0)
        strategy = _strategy(audit, "RELATIVITY_ADAPTED_LAMBERT", relativistic=True)

        result = strategy.forward(_point())

        assert result.vector[0] == pytest.approx(0.75 * np.cos(phi) * np.sin(lam), rel=1e-12)
        assert result.vector[1] == pytest.approx(0.75 * np.sin(phi), rel=1e-12)
        assert result.vector[3] == pytest.approx(COMPONENTS[3])

    def test_tensor_contraction(self, audit):
        lam, phi = np.radians(30.0), np.radians(45.0)
        field = np.array([
            np.cos(phi) * np.cos(lam),
            np.cos(phi) * np.sin(lam),
            np.sin(phi),
            0.5 * np.sin(2 * lam) * np.cos(3 * phi),
            0.3 * np.cos(3 * lam) * np.sin(2 * phi),
            0.2 * np.sin(5 * lam) * np.sin(4 * phi),
        ])
        i, j = np.meshgrid(np.arange(6.0), np.arange(6.0), indexing="ij")
        table = 0.1 * np.sin(i) * np.cos(j) + 0.05 * np.exp(-i * j / 10)

        expected = np.array([
            sum(field[k] * COMPONENTS[k] * table[row, k] for k in range(6)) for row in range(6)
        ])
        expected[:2] *= np.sqrt(1 - ECCENTRICITY_SQUARED * np.sin(phi) ** 2)

        result = _strategy(audit, "TENSOR_AZIMUTHAL").forward(_point())
        np.testing.assert_allclose(result.vector, expected, rtol=1e-12, atol=1e-15)

    def test_hilbert_curvature_scaling(self, audit):
        draws = RandomSource(5).gaussians((6, 6))
        q, r = np.linalg.qr(draws.T)
        basis = (q * np.sign(np.diag(r))).T

        curvature = _curvature(30.0, 45.0)
        expected = (basis @ np.array(COMPONENTS)) * (1 + 0.01 * curvature * np.sin(np.arange(6)))

        result = _strategy(audit, "HILBERT_SPACE_EQUIDISTANT", rng=RandomSource(5)).forward(_point())
        np.testing.assert_allclose(result.vector, expected, rtol=1e-9, atol=1e-12)
