"""Tests for height, slope and growth probability fields."""

import numpy as np
import pytest

from vegetation.config import ConfigurationError
from vegetation.landscape import (
    Landscape,
    compute_growth_probability,
    compute_slope,
    fractal_landscape,
    neutral_growth_probability,
    normalize_height,
)


@pytest.fixture
def rough_height():
    """Random field with plenty of interior gradient."""
    return np.random.default_rng(7).random((12, 9))


class TestNormalizeHeight:
    """Test min-max normalization of height fields."""

    def test_rescales_to_unit_interval(self):
        height = np.array([[-2.0, 0.0], [2.0, 6.0]])
        normalized = normalize_height(height)
        assert normalized.min() == 0.0
        assert normalized.max() == 1.0
        assert normalized[0, 1] == pytest.approx(0.25)

    def test_field_in_unit_interval_kept(self):
        height = np.full((4, 4), 0.5)
        assert np.array_equal(normalize_height(height), height)

    def test_constant_field_outside_unit_interval_becomes_zero(self):
        normalized = normalize_height(np.full((3, 5), 7.0))
        assert np.all(normalized == 0.0)

    def test_rejects_bad_input(self):
        with pytest.raises(ValueError):
            normalize_height(np.zeros(5))
        with pytest.raises(ValueError):
            normalize_height(np.array([[0.0, np.nan]]))


class TestComputeSlope:
    """Test the finite-difference slope field."""

    def test_border_cells_are_zero(self, rough_height):
        slope = compute_slope(rough_height)
        assert np.all(slope[0, :] == 0.0)
        assert np.all(slope[-1, :] == 0.0)
        assert np.all(slope[:, 0] == 0.0)
        assert np.all(slope[:, -1] == 0.0)

    def test_values_in_unit_interval(self, rough_height):
        slope = compute_slope(rough_height)
        assert slope.shape == rough_height.shape
        assert slope.min() == 0.0
        assert slope.max() == pytest.approx(1.0)

    def test_flat_field_has_zero_slope(self):
        assert np.all(compute_slope(np.full((6, 6), 0.5)) == 0.0)

    @pytest.mark.parametrize("shape", [(1, 1), (2, 10), (10, 2), (1, 5)])
    def test_small_grids_have_no_interior(self, shape):
        assert np.all(compute_slope(np.random.default_rng(0).random(shape)) == 0.0)

    def test_central_differences(self):
        """A plane rising along columns gives uniform interior slope before rescaling."""
        height = np.tile(np.arange(5, dtype=float), (4, 1))
        slope = compute_slope(height)
        # Interior magnitude is constant, so rescaling maps it to 1 and the border to 0
        assert np.all(slope[1:-1, 1:-1] == 1.0)

    def test_steepest_cell_gets_one(self):
        height = np.zeros((5, 5))
        height[2, 3] = 1.0
        slope = compute_slope(height)
        # Interior cells adjacent to the bump share the largest gradient (0.5 before rescaling)
        assert slope[2, 2] == pytest.approx(1.0)
        assert slope[1, 3] == pytest.approx(1.0)
        assert slope[3, 3] == pytest.approx(1.0)
        assert slope[2, 3] == 0.0


class TestGrowthProbability:
    """Test the terrain-weighted colonization probability."""

    def test_uniform_half_height(self):
        """Flat terrain at 0.5 gives base_growth * 0.5**alpha_elev everywhere."""
        height = np.full((6, 6), 0.5)
        slope = compute_slope(height)
        prob = compute_growth_probability(height, slope, 0.8, alpha_elev=2.0, alpha_slope=3.0)
        assert np.allclose(prob, 0.8 * 0.5 ** 2.0)

    def test_formula(self):
        height = np.array([[0.0, 0.25], [0.5, 1.0]])
        slope = np.array([[0.0, 0.5], [0.1, 0.0]])
        prob = compute_growth_probability(height, slope, 0.5, alpha_elev=1.0, alpha_slope=2.0)
        expected = 0.5 * (1 - height) * (1 - slope) ** 2
        assert np.allclose(prob, expected)

    def test_zero_exponents_disable_terrain(self, rough_height):
        slope = compute_slope(rough_height)
        prob = compute_growth_probability(rough_height, slope, 0.3, alpha_elev=0.0, alpha_slope=0.0)
        assert np.allclose(prob, 0.3)

    @pytest.mark.parametrize("base_growth", [0.0, 0.5, 1.0])
    @pytest.mark.parametrize("alpha", [0.0, 0.3, 1.0, 7.5])
    def test_values_stay_in_unit_interval(self, rough_height, base_growth, alpha):
        slope = compute_slope(rough_height)
        prob = compute_growth_probability(rough_height, slope, base_growth, alpha, alpha)
        assert prob.min() >= 0.0
        assert prob.max() <= 1.0

    def test_invalid_parameters(self, rough_height):
        slope = compute_slope(rough_height)
        with pytest.raises(ConfigurationError):
            compute_growth_probability(rough_height, slope, 1.2)
        with pytest.raises(ConfigurationError):
            compute_growth_probability(rough_height, slope, 0.5, alpha_elev=-1.0)
        with pytest.raises(ValueError):
            compute_growth_probability(rough_height, slope[:-1], 0.5)

    def test_neutral_probability(self):
        prob = neutral_growth_probability((3, 4), 0.2)
        assert prob.shape == (3, 4)
        assert np.all(prob == 0.2)


class TestLandscape:
    """Test the Landscape container."""

    def test_derives_slope_and_freezes_arrays(self, rough_height):
        landscape = Landscape(rough_height * 10 - 3)
        assert landscape.shape == rough_height.shape
        assert landscape.height.min() == 0.0 and landscape.height.max() == 1.0
        assert np.array_equal(landscape.slope, compute_slope(landscape.height))
        with pytest.raises(ValueError):
            landscape.height[0, 0] = 0.5

    def test_from_noise_reproducible(self):
        a = Landscape.from_noise((20, 30), rng=np.random.default_rng(5))
        b = Landscape.from_noise((20, 30), rng=np.random.default_rng(5))
        assert np.array_equal(a.height, b.height)
        assert a.height.min() == 0.0
        assert a.height.max() == pytest.approx(1.0)

    def test_probability_helpers(self, rough_height):
        landscape = Landscape(rough_height)
        assert np.all(landscape.neutral_probability(0.1) == 0.1)
        prob = landscape.growth_probability(0.1)
        assert prob.max() <= 0.1

    def test_fractal_landscape(self):
        terrain = fractal_landscape((16, 16), rng=np.random.default_rng(1))
        assert terrain.shape == (16, 16)
        assert terrain.min() == 0.0
        assert terrain.max() == pytest.approx(1.0)
