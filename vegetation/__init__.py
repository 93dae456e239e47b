from .automaton import Automaton, count_neighbors, initial_grid, step
from .config import ConfigurationError, Kernel, SimulationConfig
from .data_collector import CoverCollector
from .landscape import (
    Landscape,
    compute_growth_probability,
    compute_slope,
    fractal_landscape,
    neutral_growth_probability,
    normalize_height,
)
from .runner import CoverSample, SimulationResult, SimulationRunner, Snapshot, run, simulate, snapshot_schedule
from .sweep import ModelComparison, ReplicateRunner, SweepPoint, compare_models, sensitivity_sweep
from .terrain import perlin_noise

__all__ = [
    "Automaton",
    "ConfigurationError",
    "CoverCollector",
    "CoverSample",
    "Kernel",
    "Landscape",
    "ModelComparison",
    "ReplicateRunner",
    "SimulationConfig",
    "SimulationResult",
    "SimulationRunner",
    "Snapshot",
    "SweepPoint",
    "compare_models",
    "compute_growth_probability",
    "compute_slope",
    "count_neighbors",
    "fractal_landscape",
    "initial_grid",
    "neutral_growth_probability",
    "normalize_height",
    "perlin_noise",
    "run",
    "sensitivity_sweep",
    "simulate",
    "snapshot_schedule",
    "step",
]
