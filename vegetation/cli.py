from __future__ import annotations

import argparse
import csv
import os
from typing import Optional, Sequence

import structlog

from .config import ConfigurationError, Kernel, SimulationConfig
from .log import configure_logging
from .plotting import plot_cover, plot_diagnostics, plot_snapshots
from .runner import MODELS, simulate, SimulationResult

logger = structlog.get_logger()

_DEFAULTS = SimulationConfig()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vegetation",
        description="Simulate vegetation spread on a fractal terrain with a stochastic cellular automaton.",
    )
    parser.add_argument("--model", choices=MODELS, default="weighted",
                        help="terrain-weighted colonization or the spatially neutral null model")
    parser.add_argument("--num-iterations", type=int, default=_DEFAULTS.num_iterations)
    parser.add_argument("--n-rows", type=int, default=_DEFAULTS.n_rows)
    parser.add_argument("--n-cols", type=int, default=_DEFAULTS.n_cols)
    parser.add_argument("--base-growth", type=float, default=_DEFAULTS.base_growth)
    parser.add_argument("--death-prob", type=float, default=_DEFAULTS.death_prob)
    parser.add_argument("--alpha-elev", type=float, default=_DEFAULTS.alpha_elev)
    parser.add_argument("--alpha-slope", type=float, default=_DEFAULTS.alpha_slope)
    parser.add_argument("--init-n", type=int, default=_DEFAULTS.init_n)
    parser.add_argument("--neighbor-threshold", type=int, default=_DEFAULTS.neighbor_threshold)
    parser.add_argument("--kernel", choices=[k.value for k in Kernel], default=_DEFAULTS.kernel.value)
    parser.add_argument("--snapshot-count", type=int, default=_DEFAULTS.snapshot_count)
    parser.add_argument("--frequency", type=float, default=_DEFAULTS.frequency)
    parser.add_argument("--octaves", type=int, default=_DEFAULTS.octaves)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output", default="output", help="directory for cover.csv and figures")
    parser.add_argument("--no-plots", action="store_true", help="only write cover.csv")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--json-logs", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(**{name: getattr(args, name) for name in SimulationConfig.field_names()})


def save_cover(result: SimulationResult, path: str) -> str:
    """Write the cover series as iteration, vegetation cover (%)."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["iteration", "vegetation_cover"])
        for sample in result.cover_series:
            writer.writerow([sample.iteration, 100.0 * sample.fraction_occupied])
    return path


def save_figures(result: SimulationResult, output_dir: str) -> list[str]:
    figures = {
        "diagnostics.png": plot_diagnostics(result),
        "evolution.png": plot_snapshots(result.snapshots, result.prob_map),
        "cover.png": plot_cover(result.cover_series),
    }
    paths = []
    for name, fig in figures.items():
        path = os.path.join(output_dir, name)
        fig.savefig(path, dpi=150)
        paths.append(path)
    return paths


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json=args.json_logs)

    try:
        config = config_from_args(args)
    except ConfigurationError as exc:
        parser.error(str(exc))

    result = simulate(config, model=args.model)

    os.makedirs(args.output, exist_ok=True)
    written = [save_cover(result, os.path.join(args.output, "cover.csv"))]
    if not args.no_plots:
        written.extend(save_figures(result, args.output))
    logger.info("Outputs written", files=written, final_cover=result.final_cover)
    return 0
