from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from matplotlib.figure import Figure

from .runner import CoverSample, SimulationResult, Snapshot


def _bare_axes(ax, title: str, fontsize: float = 10):
    ax.set_title(title, fontsize=fontsize)
    ax.set_xticks([])
    ax.set_yticks([])


def _draw_field(fig: Figure, ax, field: np.ndarray, title: str, label: str):
    image = ax.imshow(np.asarray(field, dtype=float), origin="lower", cmap="plasma_r", interpolation="nearest")
    cbar = fig.colorbar(image, ax=ax, fraction=0.046, pad=0.04)
    cbar.set_label(label)
    _bare_axes(ax, title)


def plot_field(field: np.ndarray, title: str, label: str) -> Figure:
    """Raster of a single static field (height, slope or growth probability)."""
    fig = Figure(figsize=(5, 5))
    ax = fig.subplots()
    _draw_field(fig, ax, field, title, label)
    fig.tight_layout()
    return fig


def plot_diagnostics(result: SimulationResult) -> Figure:
    """Terrain, slope and growth probability side by side."""
    fig = Figure(figsize=(15, 5))
    axes = fig.subplots(1, 3)
    _draw_field(fig, axes[0], result.height, "Fractal Terrain (Elevation)", "Elevation")
    _draw_field(fig, axes[1], result.slope, "Slope (Steepness)", "Slope")
    _draw_field(fig, axes[2], result.prob_map, "Probability of Vegetation Growth", "Growth Probability")
    fig.tight_layout()
    return fig


def plot_snapshots(snapshots: Sequence[Snapshot], prob_map: Optional[np.ndarray] = None, ncols: int = 3) -> Figure:
    """One panel per snapshot; occupied cells coloured by growth probability, empty cells white."""
    if not snapshots:
        raise ValueError("need at least one snapshot")
    ncols = max(1, min(int(ncols), len(snapshots)))
    nrows = math.ceil(len(snapshots) / ncols)

    fig = Figure(figsize=(4 * ncols, 4 * nrows))
    axes = np.atleast_1d(fig.subplots(nrows, ncols)).ravel()
    image = None
    for ax, snapshot in zip(axes, snapshots):
        values = snapshot.grid.astype(float) if prob_map is None else np.asarray(prob_map, dtype=float)
        masked = np.ma.masked_where(~snapshot.grid, values)
        image = ax.imshow(masked, origin="lower", cmap="plasma_r", vmin=0.0, vmax=max(float(values.max()), 1e-12),
                          interpolation="nearest")
        ax.set_facecolor("white")
        _bare_axes(ax, f"Iteration {snapshot.iteration}", fontsize=8)
    for ax in axes[len(snapshots):]:
        ax.set_axis_off()

    if prob_map is not None and image is not None:
        cbar = fig.colorbar(image, ax=list(axes[:len(snapshots)]), fraction=0.02, pad=0.02)
        cbar.set_label("Prob.", fontsize=8)
    return fig


def plot_cover(cover_series: Sequence[CoverSample]) -> Figure:
    """Vegetation cover (%) against iteration."""
    iterations = [sample.iteration for sample in cover_series]
    percent = [100.0 * sample.fraction_occupied for sample in cover_series]

    fig = Figure(figsize=(7, 4))
    ax = fig.subplots()
    ax.plot(iterations, percent, color="forestgreen", linewidth=1.2)
    ax.scatter(iterations, percent, color="darkgreen", s=8)
    ax.set_title("Vegetation Cover Over Time")
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Vegetation Cover (%)")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    return fig
