from __future__ import annotations

import math
import multiprocessing
import threading
from dataclasses import asdict, dataclass
from functools import partial
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from capital_assets.validation.checks import validate_monte_carlo

from .engine import run_projection
from .inputs import SimulationInputs
from .returns import SeedSource, UniformSeedSource

PERCENTILES = {"p10": 0.10, "p25": 0.25, "p50": 0.50, "p75": 0.75, "p90": 0.90}


class SimulationCancelled(RuntimeError):
    """Raised when a cancellation token fires between scenarios."""


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class PercentileBand:
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float


@dataclass(frozen=True)
class ChartPoint:
    year: int
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    mean: float


@dataclass
class MonteCarloResult:
    num_runs: int
    percentiles: PercentileBand
    chart_data: List[ChartPoint]
    frame: pd.DataFrame
    seeds: List[float]


def _scenario_balances(inputs: SimulationInputs, seed: float) -> List[float]:
    return [row.ending_balance for row in run_projection(inputs, scenario_seed=seed)]


def nearest_rank(sorted_values: np.ndarray, pct: float) -> float:
    """Value at floor(n * pct) of an ascending array, no interpolation."""
    n = len(sorted_values)
    index = min(int(math.floor(n * pct)), n - 1)
    return float(sorted_values[index])


def _band(sorted_values: np.ndarray) -> dict:
    return {label: nearest_rank(sorted_values, pct) for label, pct in PERCENTILES.items()}


def _evaluate(
    inputs: SimulationInputs,
    seeds: Sequence[float],
    max_workers: int,
    cancel_token: Optional[CancellationToken],
) -> List[List[float]]:
    def check_cancelled(done: int) -> None:
        if cancel_token is not None and cancel_token.cancelled:
            logger.warning("Monte Carlo cancelled after {} of {} scenarios", done, len(seeds))
            raise SimulationCancelled(f"Cancelled after {done} of {len(seeds)} scenarios.")

    worker = partial(_scenario_balances, inputs)
    results: List[List[float]] = []

    if max_workers <= 1:
        logger.debug("Running {} scenarios sequentially", len(seeds))
        for seed in seeds:
            check_cancelled(len(results))
            results.append(worker(seed))
        return results

    logger.debug("Running {} scenarios on {} processes", len(seeds), max_workers)
    chunksize = max(1, len(seeds) // (max_workers * 8))
    with multiprocessing.Pool(processes=max_workers) as pool:
        for balances in pool.imap(worker, seeds, chunksize=chunksize):
            check_cancelled(len(results))
            results.append(balances)
    return results


def run_monte_carlo(
    inputs: SimulationInputs,
    num_runs: int,
    seed_source: Optional[SeedSource] = None,
    max_workers: int = 1,
    cancel_token: Optional[CancellationToken] = None,
) -> MonteCarloResult:
    """Run ``num_runs`` independent scenarios and band the ending balances per year.

    Seeds are drawn before any scenario runs, so the result does not depend on
    ``max_workers``.
    """
    validate_monte_carlo(num_runs)
    seed_source = seed_source or UniformSeedSource()
    seeds = [seed_source.next_seed() for _ in range(num_runs)]

    balances = np.asarray(_evaluate(inputs, seeds, max_workers, cancel_token), dtype=float)
    ordered = np.sort(balances, axis=0)
    means = balances.mean(axis=0)

    chart_data = [
        ChartPoint(year=inputs.start_calendar_year + idx, mean=float(means[idx]), **_band(ordered[:, idx]))
        for idx in range(ordered.shape[1])
    ]
    percentiles = PercentileBand(**_band(ordered[:, -1]))
    frame = pd.DataFrame([asdict(point) for point in chart_data]).set_index("year") if chart_data else pd.DataFrame()

    logger.info(
        "Monte Carlo complete: {} runs, median ending balance {:,.0f}", num_runs, percentiles.p50
    )
    return MonteCarloResult(
        num_runs=num_runs,
        percentiles=percentiles,
        chart_data=chart_data,
        frame=frame,
        seeds=seeds,
    )
