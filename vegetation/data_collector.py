from __future__ import annotations

from typing import List, Sequence

import numpy as np


class CoverCollector:
    """Collect per-run cover outcomes

    Cover is stored as fractions in [0, 1] so outcomes are comparable across grid
    sizes
    """

    def __init__(self):
        self.final_cover: list[float] = []
        self.mean_cover: list[float] = []
        self.series: List[np.ndarray] = []

    def __len__(self) -> int:
        return len(self.final_cover)

    def add_run(self, cover: Sequence[float]) -> None:
        """Add a single run's cover series (one fraction per iteration)"""
        cover_array = np.asarray(cover, dtype=float)
        if cover_array.ndim != 1 or cover_array.size == 0:
            raise ValueError("cover must be a non-empty 1D series")
        if self.series and cover_array.size != self.series[0].size:
            raise ValueError("all runs must have the same number of iterations")
        self.series.append(cover_array)
        self.final_cover.append(float(cover_array[-1]))
        self.mean_cover.append(float(cover_array.mean()))

    def convert_to_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return collected outcomes as NumPy arrays (final_cover, mean_cover)"""
        return np.asarray(self.final_cover, dtype=float), np.asarray(self.mean_cover, dtype=float)

    def mean_series(self) -> np.ndarray:
        """Per-iteration cover averaged over the collected runs"""
        if not self.series:
            raise ValueError("no runs collected")
        return np.vstack(self.series).mean(axis=0)

    @staticmethod
    def calculate_ci95_mean(samples: np.ndarray) -> tuple[float, float, float]:
        """Compute a 95% CI for the mean using a normal approximation

        Returns (mean, lower, upper)
        """
        sample_array = np.asarray(samples, dtype=float)
        if sample_array.ndim != 1:
            raise ValueError("samples must be a 1D array")
        sample_count = int(sample_array.size)
        if sample_count <= 1:
            raise ValueError("need at least 2 samples")

        sample_mean = float(sample_array.mean())
        standard_error = float(sample_array.std(ddof=1)) / float(np.sqrt(sample_count))
        half_width = 1.96 * standard_error
        return sample_mean, sample_mean - half_width, sample_mean + half_width
