"""Tests for replicate runs, parameter sweeps and model comparison."""

import numpy as np
import pytest

from vegetation.config import ConfigurationError, SimulationConfig
from vegetation.landscape import Landscape
from vegetation.sweep import ReplicateRunner, compare_models, sensitivity_sweep


@pytest.fixture
def sweep_config():
    return SimulationConfig(num_iterations=10, n_rows=12, n_cols=12, init_n=10, base_growth=0.4, seed=21)


class TestReplicateRunner:
    """Test repeated runs on a shared landscape."""

    def test_collects_every_run(self, sweep_config):
        collector = ReplicateRunner(sweep_config, 4).run()
        assert len(collector) == 4
        assert all(series.size == 11 for series in collector.series)

    def test_replicates_use_distinct_streams(self, sweep_config):
        collector = ReplicateRunner(sweep_config, 3).run()
        assert not all(np.array_equal(collector.series[0], s) for s in collector.series[1:])

    def test_reproducible(self, sweep_config):
        a = ReplicateRunner(sweep_config, 3).summarize()
        b = ReplicateRunner(sweep_config, 3).summarize()
        assert a.final_cover_mean == b.final_cover_mean
        assert np.array_equal(a.mean_cover_series, b.mean_cover_series)
        assert a.lower <= a.final_cover_mean <= a.upper

    def test_single_run_summary(self, sweep_config):
        point = ReplicateRunner(sweep_config, 1).summarize("only")
        assert point.value == "only"
        assert point.lower == point.final_cover_mean == point.upper

    def test_shared_landscape(self, sweep_config):
        landscape = Landscape.from_config(sweep_config, np.random.default_rng(0))
        runner = ReplicateRunner(sweep_config, 2, landscape=landscape)
        assert runner.landscape is landscape

    def test_invalid(self, sweep_config):
        with pytest.raises(ConfigurationError):
            ReplicateRunner(sweep_config, 0)
        with pytest.raises(ConfigurationError):
            ReplicateRunner(sweep_config, 2, model="other")


class TestSensitivitySweep:
    """Test one-parameter sensitivity sweeps."""

    def test_death_sweep(self, sweep_config):
        config = sweep_config.replace(base_growth=0.0)
        points = sensitivity_sweep(config, "death_prob", [0.0, 1.0], n_runs=2)
        assert [p.value for p in points] == [0.0, 1.0]
        assert points[0].final_cover_mean == pytest.approx(10 / 144)
        assert points[1].final_cover_mean == 0.0

    def test_zero_growth_keeps_initial_cover(self, sweep_config):
        points = sensitivity_sweep(sweep_config.replace(death_prob=0.0), "base_growth", [0.0], n_runs=2)
        assert points[0].final_cover_mean == pytest.approx(10 / 144)
        assert np.allclose(points[0].mean_cover_series, 10 / 144)

    def test_rejects_bad_sweeps(self, sweep_config):
        with pytest.raises(ConfigurationError):
            sensitivity_sweep(sweep_config, "nonsense", [1])
        with pytest.raises(ConfigurationError):
            sensitivity_sweep(sweep_config, "octaves", [1, 2])
        with pytest.raises(ConfigurationError):
            sensitivity_sweep(sweep_config, "base_growth", [0.1, 2.0])
        with pytest.raises(ConfigurationError):
            sensitivity_sweep(sweep_config, "base_growth", [])


class TestCompareModels:
    """Test the neutral vs weighted comparison."""

    def test_comparison(self, sweep_config):
        comparison = compare_models(sweep_config, n_runs=2)
        assert comparison.neutral.value == "neutral"
        assert comparison.weighted.value == "weighted"
        assert comparison.difference == pytest.approx(
            comparison.weighted.final_cover_mean - comparison.neutral.final_cover_mean
        )

    def test_no_dynamics_no_difference(self, sweep_config):
        """Without growth or death both models keep the initial cover."""
        config = sweep_config.replace(death_prob=0.0, base_growth=0.0)
        comparison = compare_models(config, n_runs=2)
        assert comparison.neutral.final_cover_mean == pytest.approx(10 / 144)
        assert comparison.difference == pytest.approx(0.0)
