from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .config import check_int, check_real, ConfigurationError

_TABLE_SIZE = 256


def _fade(t: np.ndarray) -> np.ndarray:
    """Perlin's quintic smoothstep 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _gradient_noise(
    rows: int,
    cols: int,
    frequency: float,
    offset: Tuple[float, float],
    permutation: np.ndarray,
    gradients: np.ndarray,
) -> np.ndarray:
    """Single octave of 2D Perlin gradient noise sampled on the integer grid."""
    y = np.arange(rows, dtype=float) * frequency + offset[0]
    x = np.arange(cols, dtype=float) * frequency + offset[1]
    y, x = np.meshgrid(y, x, indexing="ij")

    y0 = np.floor(y).astype(np.int64)
    x0 = np.floor(x).astype(np.int64)
    fy = y - y0
    fx = x - x0

    mask = _TABLE_SIZE - 1

    def corner(dy: int, dx: int) -> np.ndarray:
        # Hash the lattice corner into the gradient table and project the offset onto it
        index = permutation[(permutation[(x0 + dx) & mask] + y0 + dy) & mask]
        g = gradients[index]
        return g[..., 0] * (fx - dx) + g[..., 1] * (fy - dy)

    u = _fade(fx)
    v = _fade(fy)
    top = corner(0, 0) + u * (corner(0, 1) - corner(0, 0))
    bottom = corner(1, 0) + u * (corner(1, 1) - corner(1, 0))
    return top + v * (bottom - top)


def perlin_noise(
    shape: Tuple[int, int],
    frequency: float = 0.05,
    octaves: int = 5,
    rng: Optional[np.random.Generator] = None,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> np.ndarray:
    """Fractal Perlin noise surface of the given (n_rows, n_cols) shape.

    Octaves are summed with the frequency multiplied by ``lacunarity`` and the
    amplitude by ``gain`` at each step. The gradient table and per-octave
    offsets are drawn from ``rng`` so a seeded generator gives a reproducible
    surface. Values are raw (roughly within [-1, 1]); see ``fractal_landscape``
    for the normalized version.
    """
    if len(shape) != 2:
        raise ValueError("shape must be (n_rows, n_cols)")
    rows = check_int("n_rows", shape[0], 1)
    cols = check_int("n_cols", shape[1], 1)
    frequency = check_real("frequency", frequency)
    if frequency == 0.0:
        raise ConfigurationError("frequency must be > 0")
    octaves = check_int("octaves", octaves, 1)
    lacunarity = check_real("lacunarity", lacunarity)
    gain = check_real("gain", gain)

    random_generator = rng if rng is not None else np.random.default_rng()
    permutation = random_generator.permutation(_TABLE_SIZE)
    angles = random_generator.uniform(0.0, 2.0 * np.pi, size=_TABLE_SIZE)
    gradients = np.stack([np.cos(angles), np.sin(angles)], axis=-1)

    surface = np.zeros((rows, cols), dtype=float)
    amplitude = 1.0
    octave_frequency = frequency
    for _ in range(octaves):
        offset = tuple(random_generator.uniform(0.0, _TABLE_SIZE, size=2))
        surface += amplitude * _gradient_noise(rows, cols, octave_frequency, offset, permutation, gradients)
        octave_frequency *= lacunarity
        amplitude *= gain
    return surface
