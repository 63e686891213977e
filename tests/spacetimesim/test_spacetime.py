"""
Unit tests for spacetimesim/spacetime.py

Tests spacetime points, massive objects and the Schwarzschild metric proxy.
"""

import math

import pytest
import numpy as np
from spacetimesim.spacetime import (
    SpacetimePoint, MassiveObject, MetricTensor,
    schwarzschild_radius, effective_radius, schwarzschild_diagonal
)
from spacetimesim.contracts import InvalidConfigurationError


G = 6.67430e-11
C = 299792458.0
EARTH_MASS = 5.972e24


class TestSpacetimePoint:
    """Tests for SpacetimePoint value semantics"""

    def test_equal_coordinates_compare_equal(self):
        """Two distinct instances with the same coordinates are equal"""
        a = SpacetimePoint(1.0, 2.0, 3.0, 4.0)
        b = SpacetimePoint(1.0, 2.0, 3.0, 4.0)
        assert a == b
        assert a is not b
        assert hash(a) == hash(b)

    def test_usable_as_dict_key(self):
        """Lookup by an equal point finds the entry"""
        table = {SpacetimePoint(0.5, 0.0, 0.0, 0.0): "here"}
        assert table[SpacetimePoint(0.5, 0.0, 0.0, 0.0)] == "here"

    def test_different_time_differs(self):
        """Time coordinate participates in equality"""
        assert SpacetimePoint(0, 0, 0, 0) != SpacetimePoint(0, 0, 0, 1)

    def test_immutable(self):
        """Coordinates cannot be reassigned"""
        point = SpacetimePoint(0.0, 0.0, 0.0, 0.0)
        with pytest.raises(AttributeError):
            point.x = 1.0

    def test_distance_ignores_time(self):
        """Distance is spatial only"""
        a = SpacetimePoint(0.0, 0.0, 0.0, 0.0)
        b = SpacetimePoint(3.0, 4.0, 0.0, 100.0)
        assert a.distance_to(b) == pytest.approx(5.0)

    def test_spatial_and_array(self):
        """Conversions to numpy"""
        point = SpacetimePoint(1.0, 2.0, 3.0, 4.0)
        assert np.array_equal(point.spatial(), [1.0, 2.0, 3.0])
        assert np.array_equal(point.as_array(), [1.0, 2.0, 3.0, 4.0])

    def test_shifted_returns_new_point(self):
        """shifted() leaves the receiver untouched"""
        point = SpacetimePoint(1.0, 1.0, 1.0, 0.0)
        moved = point.shifted(dx=1.0, dt=0.5)
        assert moved == SpacetimePoint(2.0, 1.0, 1.0, 0.5)
        assert point == SpacetimePoint(1.0, 1.0, 1.0, 0.0)

    def test_from_spatial(self):
        """Construction from a 3-sequence"""
        point = SpacetimePoint.from_spatial([1, 2, 3], t=7)
        assert point == SpacetimePoint(1.0, 2.0, 3.0, 7.0)


class TestMassiveObject:
    """Tests for MassiveObject validation"""

    def test_creation(self):
        """Valid object keeps its fields"""
        obj = MassiveObject("Earth", EARTH_MASS, SpacetimePoint(1, 2, 3, 0), (0.1, 0.0, 0.0))
        assert obj.name == "Earth"
        assert obj.mass == EARTH_MASS
        assert isinstance(obj.velocity, np.ndarray)
        assert np.array_equal(obj.velocity, [0.1, 0.0, 0.0])

    def test_default_velocity_is_zero(self):
        """Velocity defaults to rest"""
        obj = MassiveObject("Rock", 1.0, SpacetimePoint(0, 0, 0, 0))
        assert np.array_equal(obj.velocity, np.zeros(3))

    @pytest.mark.parametrize("mass", [0.0, -1.0, float("nan"), float("inf")])
    def test_non_positive_mass_rejected(self, mass):
        """Mass must be positive and finite"""
        with pytest.raises(InvalidConfigurationError):
            MassiveObject("Bad", mass, SpacetimePoint(0, 0, 0, 0))

    def test_bad_velocity_shape_rejected(self):
        """Velocity must be a 3-vector"""
        with pytest.raises(InvalidConfigurationError):
            MassiveObject("Bad", 1.0, SpacetimePoint(0, 0, 0, 0), (1.0, 2.0))

    def test_position_must_be_point(self):
        """Position must be a SpacetimePoint"""
        with pytest.raises(InvalidConfigurationError):
            MassiveObject("Bad", 1.0, (0, 0, 0, 0))

    def test_names_need_not_be_unique(self):
        """Objects with the same name are still distinct"""
        a = MassiveObject("Twin", 1.0, SpacetimePoint(0, 0, 0, 0))
        b = MassiveObject("Twin", 1.0, SpacetimePoint(0, 0, 0, 0))
        assert a != b

    @pytest.mark.parametrize("mass", [-1.0, 0.0, float("inf"), "heavy"])
    def test_check_mass_after_edit(self, mass):
        """check_mass() catches a mass assigned after construction"""
        obj = MassiveObject("Edited", EARTH_MASS, SpacetimePoint(0, 0, 0, 0))
        obj.check_mass()
        obj.mass = mass
        with pytest.raises(InvalidConfigurationError):
            obj.check_mass()

    def test_schwarzschild_radius(self):
        """Object rs matches the module function"""
        obj = MassiveObject("Earth", EARTH_MASS, SpacetimePoint(0, 0, 0, 0))
        assert obj.schwarzschild_radius() == schwarzschild_radius(EARTH_MASS)


class TestSchwarzschildRadius:
    """Tests for rs = 2GM/c^2"""

    def test_earth(self):
        """Earth's Schwarzschild radius is about 8.87 mm"""
        rs = schwarzschild_radius(EARTH_MASS, G, C)
        assert rs == pytest.approx(2 * G * EARTH_MASS / C ** 2)
        assert rs == pytest.approx(8.87e-3, rel=1e-2)

    def test_scales_with_g(self):
        """rs is linear in G"""
        assert schwarzschild_radius(1.0, 2 * G, C) == pytest.approx(2 * schwarzschild_radius(1.0, G, C))


class TestEffectiveRadius:
    """Tests for the horizon clamp"""

    def test_outside_unchanged(self):
        """r > rs is used as-is"""
        assert effective_radius(5.0, 1.0) == 5.0

    @pytest.mark.parametrize("r", [0.0, 0.5, 1.0])
    def test_inside_clamped(self, r):
        """r <= rs becomes exactly 1.01 * rs"""
        assert effective_radius(r, 1.0) == 1.01 * 1.0

    def test_array_input(self):
        """Clamp applies elementwise"""
        out = effective_radius(np.array([0.0, 2.0, 3.0]), 2.0)
        assert np.allclose(out, [2.02, 2.02, 3.0])

    def test_custom_clamp_factor(self):
        """Clamp factor is configurable"""
        assert effective_radius(0.0, 2.0, clamp_factor=1.5) == 3.0


class TestMetricTensor:
    """Tests for MetricTensor"""

    def test_default_is_minkowski(self):
        """Default tensor is diag(-1, 1, 1, 1)"""
        tensor = MetricTensor()
        assert tensor.is_minkowski()
        assert np.array_equal(tensor.components, np.diag([-1.0, 1.0, 1.0, 1.0]))
        assert tensor == MetricTensor.minkowski()

    def test_indexing(self):
        """tensor[mu, nu] reads components"""
        tensor = MetricTensor()
        assert tensor[0, 0] == -1.0
        assert tensor[1, 1] == 1.0
        assert tensor[0, 1] == 0.0

    def test_components_are_copies(self):
        """Mutating the returned array does not affect the tensor"""
        tensor = MetricTensor()
        comps = tensor.components
        comps[0, 0] = 42.0
        assert tensor[0, 0] == -1.0

    def test_rejects_wrong_shape(self):
        """Only 4x4 arrays are accepted"""
        with pytest.raises(InvalidConfigurationError):
            MetricTensor(np.eye(3))

    def test_schwarzschild_formulas(self):
        """Diagonal matches the closed-form weak-field proxy"""
        rs = 2.0
        mass = rs * C ** 2 / (2 * G)
        r = 10.0
        tensor = MetricTensor.schwarzschild(r, mass, G, C)

        f = 1 - rs / r
        assert tensor[0, 0] == pytest.approx(-f)
        assert tensor[1, 1] == pytest.approx(1 / f)
        assert tensor[2, 2] == pytest.approx(r ** 2)
        assert tensor[3, 3] == pytest.approx(r ** 2)

    def test_off_diagonal_zero(self):
        """No frame dragging: off-diagonal terms stay zero"""
        tensor = MetricTensor.schwarzschild(10.0, EARTH_MASS, G, C)
        comps = tensor.components
        assert np.array_equal(comps - np.diag(np.diag(comps)), np.zeros((4, 4)))

    def test_far_field_approaches_flat(self):
        """For r >> rs the diagonal approaches (-1, 1, r^2, r^2)"""
        for r in [1.0e3, 1.0e6, 1.0e9]:
            tensor = MetricTensor.schwarzschild(r, EARTH_MASS, G, C)
            assert tensor[0, 0] == pytest.approx(-1.0, abs=1e-4)
            assert tensor[1, 1] == pytest.approx(1.0, abs=1e-4)
            assert tensor[2, 2] == pytest.approx(r ** 2)
            assert tensor[3, 3] == pytest.approx(r ** 2)

        near = MetricTensor.schwarzschild(1.0e3, EARTH_MASS, G, C)
        far = MetricTensor.schwarzschild(1.0e9, EARTH_MASS, G, C)
        assert abs(far[0, 0] + 1.0) < abs(near[0, 0] + 1.0)

    @pytest.mark.parametrize("fraction", [0.0, 0.25, 0.999, 1.0])
    def test_horizon_clamp(self, fraction):
        """r <= rs uses 1.01 * rs and stays finite"""
        rs = 3.0
        mass = rs * C ** 2 / (2 * G)
        rs_actual = schwarzschild_radius(mass, G, C)
        tensor = MetricTensor.schwarzschild(fraction * rs_actual, mass, G, C)

        expected_g00 = -(1 - 1 / 1.01)
        assert tensor[0, 0] == pytest.approx(expected_g00, rel=1e-9)
        assert tensor[1, 1] == pytest.approx(1 / (1 - 1 / 1.01), rel=1e-9)
        assert tensor[2, 2] == pytest.approx((1.01 * rs_actual) ** 2, rel=1e-12)
        assert np.all(np.isfinite(tensor.components))

    def test_zero_g_zero_radius_is_finite(self):
        """rs == 0 and r == 0 gives the flat limit, not NaN"""
        tensor = MetricTensor.schwarzschild(0.0, EARTH_MASS, 0.0, C)
        assert tensor[0, 0] == -1.0
        assert tensor[1, 1] == 1.0
        assert tensor[2, 2] == 0.0
        assert np.all(np.isfinite(tensor.components))

    def test_pure_function(self):
        """Same inputs give equal tensors"""
        a = MetricTensor.schwarzschild(12.5, EARTH_MASS, G, C)
        b = MetricTensor.schwarzschild(12.5, EARTH_MASS, G, C)
        assert a == b
        assert hash(a) == hash(b)

    def test_vectorised_diagonal_matches_scalar(self):
        """Array path agrees with the scalar tensor"""
        rs = schwarzschild_radius(EARTH_MASS, G, C)
        r = np.array([0.0, 1.0, 10.0])
        g00, g11, g22, g33 = schwarzschild_diagonal(r, rs)
        for idx, radius in enumerate(r):
            tensor = MetricTensor.schwarzschild(float(radius), EARTH_MASS, G, C)
            assert g00[idx] == pytest.approx(tensor[0, 0])
            assert g11[idx] == pytest.approx(tensor[1, 1])
            assert g22[idx] == pytest.approx(tensor[2, 2])
            assert g33[idx] == pytest.approx(tensor[3, 3])
            assert math.isfinite(g11[idx])
