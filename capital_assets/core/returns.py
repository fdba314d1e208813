from __future__ import annotations

import math
from typing import Iterable, Optional, Protocol

import numpy as np

from .inputs import SimulationInputs
from .periods import resolve_period

LCG_MULTIPLIER = 1664525.0
LCG_INCREMENT = 1013904223.0
LCG_MODULUS = 4294967296.0  # 2**32

DEFAULT_RETURN_RATE = 0.05
MIN_ANNUAL_RETURN = -0.95
MAX_ANNUAL_RETURN = 2.0
Z_CLAMP = 3.0
YEAR_SEED_STRIDE = 1000
SEED_SCALE = 1_000_000


def _lcg_uniform(seed: float) -> float:
    # fmod, not %, so negative seeds keep their sign
    state = math.fmod(LCG_MULTIPLIER * seed + LCG_INCREMENT, LCG_MODULUS)
    return state / LCG_MODULUS


def lcg_normal(seed: float) -> float:
    """Standard normal draw from two LCG steps and Box-Muller, clamped to +/-3."""
    seed = float(seed)
    u1 = _lcg_uniform(seed)
    u2 = _lcg_uniform(seed + 1)
    z0 = math.sqrt(-2.0 * math.log(max(u1, 1e-10))) * math.cos(2.0 * math.pi * u2)
    return max(-Z_CLAMP, min(Z_CLAMP, z0))


def return_for_year(inputs: SimulationInputs, year: int, scenario_seed: Optional[float] = None) -> float:
    """Annual return as a fraction for ``year``.

    Year 0 uses the manual override when present. Randomized return periods
    only draw when a scenario seed is supplied; otherwise the mean is used.
    """
    if year == 0 and inputs.has_manual_year0:
        return inputs.manual_year0_return_percent / 100.0

    period = resolve_period(inputs.return_periods, year)
    if period is None:
        return DEFAULT_RETURN_RATE

    base_return = period.return_rate_percent / 100.0
    if scenario_seed is None or not period.is_randomized:
        return base_return

    z = lcg_normal(scenario_seed + year * YEAR_SEED_STRIDE)
    random_return = base_return + z * (period.standard_deviation_percent / 100.0)
    return max(MIN_ANNUAL_RETURN, min(MAX_ANNUAL_RETURN, random_return))


class SeedSource(Protocol):
    def next_seed(self) -> float:
        ...


class UniformSeedSource:
    """Scenario seeds in [0, 1e6) from a seeded numpy generator."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def next_seed(self) -> float:
        return float(self._rng.random() * SEED_SCALE)


class FixedSeedSource:
    """Replays a given seed sequence; cycles when exhausted."""

    def __init__(self, seeds: Iterable[float]):
        self.seeds = [float(s) for s in seeds]
        if not self.seeds:
            raise ValueError("FixedSeedSource needs at least one seed.")
        self._position = 0

    def next_seed(self) -> float:
        seed = self.seeds[self._position % len(self.seeds)]
        self._position += 1
        return seed
