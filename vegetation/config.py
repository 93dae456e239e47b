from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace as dataclass_replace
from enum import Enum
from numbers import Integral, Real
from typing import Optional, Union

import numpy as np


class ConfigurationError(ValueError):
    """A parameter lies outside its documented domain."""


class Kernel(str, Enum):
    """Neighbourhood used to count occupied neighbours."""

    MOORE = "moore"
    VON_NEUMANN = "von_neumann"

    @classmethod
    def parse(cls, value: Union[str, Kernel]) -> Kernel:
        """Return the kernel named by value (enum member or its string name)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            names = ", ".join(k.value for k in cls)
            raise ConfigurationError(f"unknown kernel {value!r} (expected one of: {names})") from None


def check_int(name: str, value, minimum: int = 0) -> int:
    """Return value as int, or raise if it is not an integer >= minimum."""
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return int(value)


def check_real(name: str, value, low: float = 0.0, high: Optional[float] = None) -> float:
    """Return value as float, or raise if it is not finite and within [low, high]."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    if value < low or (high is not None and value > high):
        bound = f"[{low}, {high}]" if high is not None else f">= {low}"
        raise ConfigurationError(f"{name} must be {bound}, got {value}")
    return value


def check_probability(name: str, value) -> float:
    return check_real(name, value, 0.0, 1.0)


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of one vegetation spread run.

    The record is validated on construction and never changes afterwards. Use
    ``replace`` to derive a variant; the variant is validated again.

    Colonization probability is ``base_growth * (1 - height)**alpha_elev *
    (1 - slope)**alpha_slope``; ``frequency`` and ``octaves`` shape the
    generated terrain.
    """
    num_iterations: int = 100
    n_rows: int = 100
    n_cols: int = 100
    base_growth: float = 0.1
    death_prob: float = 0.02
    alpha_elev: float = 1.0
    alpha_slope: float = 1.0
    init_n: int = 200
    neighbor_threshold: int = 1
    kernel: Union[Kernel, str] = Kernel.MOORE
    snapshot_count: int = 9
    frequency: float = 0.05
    octaves: int = 5
    seed: Optional[int] = None

    def __post_init__(self):
        checked = {
            "num_iterations": check_int("num_iterations", self.num_iterations, 0),
            "n_rows": check_int("n_rows", self.n_rows, 1),
            "n_cols": check_int("n_cols", self.n_cols, 1),
            "base_growth": check_probability("base_growth", self.base_growth),
            "death_prob": check_probability("death_prob", self.death_prob),
            "alpha_elev": check_real("alpha_elev", self.alpha_elev),
            "alpha_slope": check_real("alpha_slope", self.alpha_slope),
            "init_n": check_int("init_n", self.init_n, 0),
            "neighbor_threshold": check_int("neighbor_threshold", self.neighbor_threshold, 0),
            "kernel": Kernel.parse(self.kernel),
            "snapshot_count": check_int("snapshot_count", self.snapshot_count, 2),
            "octaves": check_int("octaves", self.octaves, 1),
        }
        checked["frequency"] = check_real("frequency", self.frequency)
        if checked["frequency"] == 0.0:
            raise ConfigurationError("frequency must be > 0, got 0.0")
        if self.seed is not None:
            checked["seed"] = check_int("seed", self.seed, 0)

        capacity = checked["n_rows"] * checked["n_cols"]
        if checked["init_n"] > capacity:
            raise ConfigurationError(
                f"init_n ({checked['init_n']}) exceeds grid capacity {checked['n_rows']}x{checked['n_cols']}={capacity}"
            )

        # Frozen dataclass: write normalized values back through object.__setattr__
        for name, value in checked.items():
            object.__setattr__(self, name, value)

    @property
    def shape(self) -> tuple[int, int]:
        """Grid shape as (n_rows, n_cols)."""
        return self.n_rows, self.n_cols

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def replace(self, **changes) -> SimulationConfig:
        """Return a validated copy with some fields changed."""
        unknown = set(changes) - set(self.field_names())
        if unknown:
            raise ConfigurationError(f"unknown configuration field(s): {', '.join(sorted(unknown))}")
        return dataclass_replace(self, **changes)

    def make_rng(self) -> np.random.Generator:
        """Create the random stream owned by one run (non-reproducible when seed is None)."""
        return np.random.default_rng(self.seed)
