from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np
import structlog

from .automaton import Automaton, initial_grid as seed_grid
from .config import check_int, ConfigurationError, Kernel, SimulationConfig
from .landscape import Landscape

logger = structlog.get_logger()

MODELS = ("weighted", "neutral")


@dataclass(frozen=True)
class CoverSample:
    """Fraction of occupied cells at one iteration."""
    iteration: int
    fraction_occupied: float


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the occupancy grid captured at a scheduled iteration."""
    iteration: int
    grid: np.ndarray


@dataclass(frozen=True)
class SimulationResult:
    """Everything one run hands to the rendering layer.

    ``height``, ``slope`` and ``prob_map`` are the static fields of the run;
    ``cover_series`` holds one sample per iteration starting at 0.
    """
    config: SimulationConfig
    model: str
    height: np.ndarray
    slope: np.ndarray
    prob_map: np.ndarray
    cover_series: Tuple[CoverSample, ...]
    snapshots: Tuple[Snapshot, ...]
    final_grid: np.ndarray

    @property
    def iterations(self) -> np.ndarray:
        return np.asarray([sample.iteration for sample in self.cover_series], dtype=int)

    @property
    def cover(self) -> np.ndarray:
        """Cover fractions as a float array indexed by iteration."""
        return np.asarray([sample.fraction_occupied for sample in self.cover_series], dtype=float)

    @property
    def final_cover(self) -> float:
        return self.cover_series[-1].fraction_occupied


def snapshot_schedule(num_iterations: int, snapshot_count: int) -> Tuple[int, ...]:
    """Iterations at which to capture the grid.

    ``snapshot_count`` indices evenly spaced over [0, num_iterations], rounded
    and deduplicated, so 0 and ``num_iterations`` are always present.
    """
    num_iterations = check_int("num_iterations", num_iterations, 0)
    snapshot_count = check_int("snapshot_count", snapshot_count, 2)
    points = np.round(np.linspace(0, num_iterations, snapshot_count)).astype(int)
    return tuple(int(t) for t in np.unique(points))


def _frozen_copy(grid: np.ndarray) -> np.ndarray:
    copied = np.array(grid, dtype=bool, copy=True)
    copied.setflags(write=False)
    return copied


def run(
    num_iterations: int,
    initial_grid: np.ndarray,
    prob_map: np.ndarray,
    kernel: Union[Kernel, str],
    neighbor_threshold: int,
    death_prob: float,
    snapshot_count: int,
    rng: np.random.Generator,
) -> Tuple[List[CoverSample], List[Snapshot], np.ndarray]:
    """Iterate the automaton and sample it.

    Returns ``(cover_series, snapshots, final_grid)``: one cover sample per
    iteration including 0, the grid at every scheduled iteration, and the grid
    after the last iteration. ``initial_grid`` is left untouched.
    """
    schedule = set(snapshot_schedule(num_iterations, snapshot_count))
    automaton = Automaton(initial_grid, prob_map, kernel, neighbor_threshold, death_prob, rng)

    cover_series = [CoverSample(0, automaton.cover)]
    snapshots = [Snapshot(0, _frozen_copy(automaton.grid))]

    for t in range(1, num_iterations + 1):
        grid = automaton.advance()
        cover_series.append(CoverSample(t, automaton.cover))
        if t in schedule:
            snapshots.append(Snapshot(t, _frozen_copy(grid)))
            logger.debug("Snapshot captured", iteration=t, cover=automaton.cover)

    return cover_series, snapshots, automaton.grid.copy()


class SimulationRunner:
    """Run one vegetation spread simulation from a configuration.

    High-level flow:
    - build (or reuse) a landscape and derive the run's probability field
    - seed ``init_n`` occupied cells at random
    - iterate the automaton, recording cover and scheduled snapshots

    The runner owns its random stream. If rng is not provided, one is created
    from ``config.seed``.
    """

    def __init__(
        self,
        config: SimulationConfig,
        landscape: Optional[Landscape] = None,
        model: str = "weighted",
        rng: Optional[np.random.Generator] = None,
    ):
        if model not in MODELS:
            raise ConfigurationError(f"model must be one of {MODELS}, got {model!r}")
        if landscape is not None and landscape.shape != config.shape:
            raise ConfigurationError(
                f"landscape shape {landscape.shape} does not match configured grid {config.shape}"
            )

        self.config = config
        self.model = model
        self.random_generator = rng if rng is not None else config.make_rng()
        self.landscape = landscape if landscape is not None else Landscape.from_config(config, self.random_generator)

    def probability_map(self) -> np.ndarray:
        """Static colonization probability for this run's model."""
        if self.model == "neutral":
            return self.landscape.neutral_probability(self.config.base_growth)
        return self.landscape.growth_probability(
            self.config.base_growth, self.config.alpha_elev, self.config.alpha_slope
        )

    def run(self) -> SimulationResult:
        config = self.config
        prob_map = self.probability_map()
        grid = seed_grid(config.shape, config.init_n, self.random_generator)

        logger.info(
            "Simulation started",
            model=self.model,
            shape=config.shape,
            iterations=config.num_iterations,
            init_n=config.init_n,
            kernel=config.kernel.value,
        )
        cover_series, snapshots, final_grid = run(
            config.num_iterations,
            grid,
            prob_map,
            config.kernel,
            config.neighbor_threshold,
            config.death_prob,
            config.snapshot_count,
            self.random_generator,
        )
        logger.info(
            "Simulation finished",
            model=self.model,
            initial_cover=cover_series[0].fraction_occupied,
            final_cover=cover_series[-1].fraction_occupied,
            snapshots=len(snapshots),
        )

        return SimulationResult(
            config=config,
            model=self.model,
            height=self.landscape.height,
            slope=self.landscape.slope,
            prob_map=prob_map,
            cover_series=tuple(cover_series),
            snapshots=tuple(snapshots),
            final_grid=final_grid,
        )


def simulate(
    config: Optional[SimulationConfig] = None,
    model: str = "weighted",
    landscape: Optional[Landscape] = None,
    rng: Optional[np.random.Generator] = None,
) -> SimulationResult:
    """Run a single simulation (terrain-weighted by default, or the neutral null model)."""
    return SimulationRunner(config if config is not None else SimulationConfig(), landscape, model, rng).run()
