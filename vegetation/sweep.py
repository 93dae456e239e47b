from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import structlog

from .config import check_int, ConfigurationError, SimulationConfig
from .data_collector import CoverCollector
from .landscape import Landscape
from .runner import MODELS, SimulationRunner

logger = structlog.get_logger()

# Fields that change the generated terrain
TERRAIN_FIELDS = ("n_rows", "n_cols", "frequency", "octaves", "seed")


@dataclass(frozen=True)
class SweepPoint:
    """Final-cover summary for one parameter value across replicate runs."""
    value: object
    final_cover_mean: float
    lower: float
    upper: float
    mean_cover_series: np.ndarray


@dataclass(frozen=True)
class ModelComparison:
    """Neutral and terrain-weighted outcomes on the same landscape."""
    neutral: SweepPoint
    weighted: SweepPoint

    @property
    def difference(self) -> float:
        """Weighted minus neutral mean final cover."""
        return self.weighted.final_cover_mean - self.neutral.final_cover_mean


class ReplicateRunner:
    """Run repeated stochastic simulations of one configuration.

    The landscape is generated once and shared so replicates only differ in
    their colonization draws. Each replicate gets its own child stream spawned
    from the runner's generator.
    """

    def __init__(
        self,
        config: SimulationConfig,
        n_runs: int,
        model: str = "weighted",
        landscape: Optional[Landscape] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Create a replicate runner.

        If rng is not provided, a new generator is created from config.seed.
        """
        self.n_runs = check_int("n_runs", n_runs, 1)
        if model not in MODELS:
            raise ConfigurationError(f"model must be one of {MODELS}, got {model!r}")

        self.config = config
        self.model = model
        self.random_generator = rng if rng is not None else config.make_rng()
        self.landscape = landscape if landscape is not None else Landscape.from_config(config, self.random_generator)

    def run(self) -> CoverCollector:
        """Run n_runs simulations and return their cover outcomes."""
        collector = CoverCollector()
        for run_rng in self.random_generator.spawn(self.n_runs):
            result = SimulationRunner(self.config, self.landscape, self.model, run_rng).run()
            collector.add_run(result.cover)
        return collector

    def summarize(self, value: object = None) -> SweepPoint:
        """Run the replicates and reduce them to a SweepPoint."""
        collector = self.run()
        final_cover, _ = collector.convert_to_arrays()
        if len(collector) > 1:
            mean, lower, upper = CoverCollector.calculate_ci95_mean(final_cover)
        else:
            mean = lower = upper = float(final_cover[0])
        return SweepPoint(value, mean, lower, upper, collector.mean_series())


def sensitivity_sweep(
    config: SimulationConfig,
    parameter: str,
    values: Iterable,
    n_runs: int = 10,
    model: str = "weighted",
    rng: Optional[np.random.Generator] = None,
) -> List[SweepPoint]:
    """Mean final cover (with 95% CI) as one configuration field varies.

    Every variant is validated before any run starts, so a bad value rejects
    the whole sweep. All variants share one landscape.
    """
    if parameter not in SimulationConfig.field_names():
        raise ConfigurationError(f"unknown parameter {parameter!r}")
    if parameter in TERRAIN_FIELDS:
        raise ConfigurationError(f"{parameter!r} changes the landscape and cannot be swept on a shared terrain")

    variants = [(value, config.replace(**{parameter: value})) for value in values]
    if not variants:
        raise ConfigurationError("values must not be empty")

    random_generator = rng if rng is not None else config.make_rng()
    landscape = Landscape.from_config(config, random_generator)

    points = []
    for value, variant in variants:
        point = ReplicateRunner(variant, n_runs, model, landscape, random_generator).summarize(value)
        logger.info(
            "Sweep point finished",
            parameter=parameter,
            value=value,
            final_cover_mean=point.final_cover_mean,
            n_runs=n_runs,
        )
        points.append(point)
    return points


def compare_models(
    config: SimulationConfig,
    n_runs: int = 10,
    rng: Optional[np.random.Generator] = None,
) -> ModelComparison:
    """Contrast the neutral null model with the terrain-weighted model."""
    random_generator = rng if rng is not None else config.make_rng()
    landscape = Landscape.from_config(config, random_generator)

    neutral = ReplicateRunner(config, n_runs, "neutral", landscape, random_generator).summarize("neutral")
    weighted = ReplicateRunner(config, n_runs, "weighted", landscape, random_generator).summarize("weighted")
    comparison = ModelComparison(neutral=neutral, weighted=weighted)
    logger.info(
        "Model comparison finished",
        neutral_final_cover=neutral.final_cover_mean,
        weighted_final_cover=weighted.final_cover_mean,
        difference=comparison.difference,
    )
    return comparison
