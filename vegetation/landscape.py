from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .config import check_probability, check_real, SimulationConfig
from .terrain import perlin_noise


def _as_field(values: np.ndarray, name: str) -> np.ndarray:
    field = np.asarray(values, dtype=float)
    if field.ndim != 2:
        raise ValueError(f"{name} must be a 2D array")
    if not np.all(np.isfinite(field)):
        raise ValueError(f"{name} must contain only finite values")
    return field


def normalize_height(height: np.ndarray) -> np.ndarray:
    """Min-max rescale a height field to [0, 1].

    A field already inside [0, 1] is returned unchanged (as a copy). A constant
    field outside that range has nothing to rescale and becomes all zeros.
    """
    field = _as_field(height, "height")
    if field.size and field.min() >= 0.0 and field.max() <= 1.0:
        return field.copy()
    return _rescale(field)


def _rescale(field: np.ndarray) -> np.ndarray:
    low, high = float(field.min()), float(field.max())
    if high > low:
        return (field - low) / (high - low)
    return np.zeros_like(field)


def compute_slope(height: np.ndarray) -> np.ndarray:
    """Rescaled gradient magnitude of a height field.

    Interior cells use central differences along both axes; border rows and
    columns stay 0 because the differences are undefined there. The result is
    min-max rescaled to [0, 1] unless it is constant, in which case it is left
    as is (all zeros).
    """
    field = _as_field(height, "height")
    slope = np.zeros_like(field)
    n_rows, n_cols = field.shape
    if n_rows < 3 or n_cols < 3:
        return slope

    dx = (field[1:-1, 2:] - field[1:-1, :-2]) / 2.0
    dy = (field[2:, 1:-1] - field[:-2, 1:-1]) / 2.0
    slope[1:-1, 1:-1] = np.sqrt(dx ** 2 + dy ** 2)

    low, high = float(slope.min()), float(slope.max())
    if high > low:
        slope = (slope - low) / (high - low)
    return slope


def compute_growth_probability(
    height: np.ndarray,
    slope: np.ndarray,
    base_growth: float,
    alpha_elev: float = 1.0,
    alpha_slope: float = 1.0,
) -> np.ndarray:
    """Per-cell colonization probability, higher on low and flat ground.

    ``base_growth * (1 - height)**alpha_elev * (1 - slope)**alpha_slope``
    clamped to [0, 1]. An exponent of 0 removes that factor.
    """
    height = _as_field(height, "height")
    slope = _as_field(slope, "slope")
    if height.shape != slope.shape:
        raise ValueError(f"height {height.shape} and slope {slope.shape} must have the same shape")
    base_growth = check_probability("base_growth", base_growth)
    alpha_elev = check_real("alpha_elev", alpha_elev)
    alpha_slope = check_real("alpha_slope", alpha_slope)

    # Clip the bases first so fractional exponents never see negative numbers
    lowness = np.clip(1.0 - height, 0.0, 1.0) ** alpha_elev
    flatness = np.clip(1.0 - slope, 0.0, 1.0) ** alpha_slope
    return np.clip(base_growth * lowness * flatness, 0.0, 1.0)


def neutral_growth_probability(shape: Tuple[int, int], p_grow: float) -> np.ndarray:
    """Spatially uniform colonization probability for the null model."""
    return np.full(tuple(shape), check_probability("p_grow", p_grow), dtype=float)


class Landscape:
    """Terrain a run colonizes: normalized height plus its derived slope.

    Both arrays are read-only so one landscape can be shared by several runs.
    """

    def __init__(self, height: np.ndarray):
        """Create a landscape from any finite 2D height field (rescaled to [0,1])."""
        self.height = normalize_height(height)
        self.slope = compute_slope(self.height)
        self.height.setflags(write=False)
        self.slope.setflags(write=False)
        self.n_cells = self.height.size

    @classmethod
    def from_noise(
        cls,
        shape: Tuple[int, int],
        frequency: float = 0.05,
        octaves: int = 5,
        rng: Optional[np.random.Generator] = None,
    ) -> Landscape:
        """Generate a fractal Perlin landscape."""
        return cls(fractal_landscape(shape, frequency=frequency, octaves=octaves, rng=rng))

    @classmethod
    def from_config(cls, config: SimulationConfig, rng: Optional[np.random.Generator] = None) -> Landscape:
        return cls.from_noise(config.shape, frequency=config.frequency, octaves=config.octaves, rng=rng)

    @property
    def shape(self) -> tuple[int, int]:
        """Grid shape as (n_rows, n_cols)."""
        return self.height.shape

    def growth_probability(self, base_growth: float, alpha_elev: float = 1.0, alpha_slope: float = 1.0) -> np.ndarray:
        """Terrain-weighted colonization probability for this landscape."""
        return compute_growth_probability(self.height, self.slope, base_growth, alpha_elev, alpha_slope)

    def neutral_probability(self, p_grow: float) -> np.ndarray:
        """Uniform colonization probability ignoring the terrain."""
        return neutral_growth_probability(self.shape, p_grow)


def fractal_landscape(
    shape: Tuple[int, int],
    frequency: float = 0.05,
    octaves: int = 5,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Perlin terrain rescaled to [0, 1]."""
    return _rescale(perlin_noise(shape, frequency=frequency, octaves=octaves, rng=rng))
