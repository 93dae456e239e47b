from __future__ import annotations

from typing import Optional, Tuple, Union

import numpy as np

from .config import check_int, check_probability, ConfigurationError, Kernel

KERNEL_OFFSETS = {
    Kernel.MOORE: tuple(
        (di, dj) for di in (-1, 0, 1) for dj in (-1, 0, 1) if not (di == 0 and dj == 0)
    ),
    Kernel.VON_NEUMANN: ((-1, 0), (0, -1), (0, 1), (1, 0)),
}


def kernel_offsets(kernel: Union[Kernel, str]) -> Tuple[Tuple[int, int], ...]:
    """(di, dj) offsets of the neighbours in a kernel."""
    return KERNEL_OFFSETS[Kernel.parse(kernel)]


def as_grid(values: np.ndarray) -> np.ndarray:
    """Return a boolean occupancy grid (True = occupied) from a 0/1 or bool array."""
    array = np.asarray(values)
    if array.ndim != 2:
        raise ValueError("grid must be a 2D array")
    if array.dtype != bool:
        if not np.all((array == 0) | (array == 1)):
            raise ValueError("grid must only contain 0/1 (empty/occupied)")
        array = array.astype(bool)
    return array


def _shift(offset: int, size: int) -> Tuple[slice, slice]:
    """Destination and source slices pairing index i with i + offset inside [0, size)."""
    if offset > 0:
        return slice(0, max(size - offset, 0)), slice(offset, size)
    if offset < 0:
        return slice(-offset, size), slice(0, max(size + offset, 0))
    return slice(None), slice(None)


def count_neighbors(grid: np.ndarray, kernel: Union[Kernel, str] = Kernel.MOORE) -> np.ndarray:
    """Number of occupied neighbours of every cell.

    Offsets falling outside the grid are dropped, so border cells simply have
    fewer neighbours (no wraparound).
    """
    occupied = as_grid(grid).astype(np.int32)
    n_rows, n_cols = occupied.shape
    counts = np.zeros_like(occupied)
    # counts[dst] += occupied[src] for every kernel offset
    for di, dj in kernel_offsets(kernel):
        dst_rows, src_rows = _shift(di, n_rows)
        dst_cols, src_cols = _shift(dj, n_cols)
        counts[dst_rows, dst_cols] += occupied[src_rows, src_cols]
    return counts


def initial_grid(shape: Tuple[int, int], init_n: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Grid with init_n occupied cells chosen uniformly without replacement."""
    n_rows = check_int("n_rows", shape[0], 1)
    n_cols = check_int("n_cols", shape[1], 1)
    init_n = check_int("init_n", init_n, 0)
    n_cells = n_rows * n_cols
    if init_n > n_cells:
        raise ConfigurationError(f"init_n ({init_n}) exceeds grid capacity {n_cells}")

    random_generator = rng if rng is not None else np.random.default_rng()
    grid = np.zeros(n_cells, dtype=bool)
    if init_n > 0:
        grid[random_generator.choice(n_cells, size=init_n, replace=False)] = True
    return grid.reshape(n_rows, n_cols)


def _next_state(
    grid: np.ndarray,
    prob_map: np.ndarray,
    kernel: Kernel,
    neighbor_threshold: int,
    death_prob: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """One synchronous update into a fresh buffer; inputs are assumed validated."""
    # One draw per cell: compared to prob_map if empty, to death_prob if occupied
    draws = rng.random(grid.shape)
    neighbors = count_neighbors(grid, kernel)
    colonized = ~grid & (neighbors >= neighbor_threshold) & (draws < prob_map)
    survived = grid & ~(draws < death_prob)
    return colonized | survived


def _check_step_inputs(grid, prob_map, kernel, neighbor_threshold, death_prob):
    grid = as_grid(grid)
    prob_map = np.asarray(prob_map, dtype=float)
    if prob_map.shape != grid.shape:
        raise ValueError(f"prob_map {prob_map.shape} must match grid {grid.shape}")
    if np.any(~np.isfinite(prob_map)) or np.any(prob_map < 0.0) or np.any(prob_map > 1.0):
        raise ValueError("prob_map values must lie in [0, 1]")
    return (
        grid,
        prob_map,
        Kernel.parse(kernel),
        check_int("neighbor_threshold", neighbor_threshold, 0),
        check_probability("death_prob", death_prob),
    )


def step(
    grid: np.ndarray,
    prob_map: np.ndarray,
    kernel: Union[Kernel, str],
    neighbor_threshold: int,
    death_prob: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Advance an occupancy grid by one iteration and return the new grid.

    Every cell reads the previous grid only. An empty cell with at least
    ``neighbor_threshold`` occupied neighbours colonizes when its uniform draw
    falls below its ``prob_map`` value; an occupied cell dies when its draw
    falls below ``death_prob``. The input grid is not modified.
    """
    grid, prob_map, kernel, neighbor_threshold, death_prob = _check_step_inputs(
        grid, prob_map, kernel, neighbor_threshold, death_prob
    )
    return _next_state(grid, prob_map, kernel, neighbor_threshold, death_prob, rng)


class Automaton:
    """Occupancy grid evolving under a fixed probability field.

    The current grid is replaced by a freshly computed one at each ``advance``;
    it is never mutated in place, so grids handed out earlier stay valid.
    """

    def __init__(
        self,
        grid: np.ndarray,
        prob_map: np.ndarray,
        kernel: Union[Kernel, str] = Kernel.MOORE,
        neighbor_threshold: int = 1,
        death_prob: float = 0.02,
        rng: Optional[np.random.Generator] = None,
    ):
        grid, prob_map, kernel, neighbor_threshold, death_prob = _check_step_inputs(
            grid, prob_map, kernel, neighbor_threshold, death_prob
        )
        self.grid = grid.copy()
        self.prob_map = prob_map
        self.kernel = kernel
        self.neighbor_threshold = neighbor_threshold
        self.death_prob = death_prob
        self.random_generator = rng if rng is not None else np.random.default_rng()
        self.iteration = 0

    @property
    def shape(self) -> tuple[int, int]:
        return self.grid.shape

    @property
    def occupied_count(self) -> int:
        return int(self.grid.sum())

    @property
    def cover(self) -> float:
        """Fraction of occupied cells."""
        return self.occupied_count / float(self.grid.size)

    def advance(self) -> np.ndarray:
        """Apply one synchronous update and return the new grid."""
        self.grid = _next_state(
            self.grid,
            self.prob_map,
            self.kernel,
            self.neighbor_threshold,
            self.death_prob,
            self.random_generator,
        )
        self.iteration += 1
        return self.grid
