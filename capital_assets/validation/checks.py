from __future__ import annotations

import numbers
from typing import List, Sequence

from capital_assets.core.inputs import (
    ACCOUNT_TYPES,
    INDEXING_TYPES,
    REDEMPTION_TYPES,
    RETURN_TYPES,
    TIMINGS,
    ContributionPeriod,
    Period,
    RedemptionPeriod,
    ReturnPeriod,
    SimulationInputs,
)
from capital_assets.core.periods import overlapping_periods


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ValueError(message)


def validate_period(period: Period, label: str) -> None:
    _require(period.start_year >= 0, f"{label}: start year cannot be negative.")
    _require(
        period.end_year == 0 or period.end_year >= period.start_year,
        f"{label}: end year must be 0 (open-ended) or not before the start year.",
    )
    if isinstance(period, ContributionPeriod):
        _require(period.annual_contribution >= 0, f"{label}: contribution cannot be negative.")
        _require(period.indexing_type in INDEXING_TYPES, f"{label}: unknown indexing type '{period.indexing_type}'.")
        _require(period.timing in TIMINGS, f"{label}: timing must be 'beginning' or 'end'.")
    elif isinstance(period, RedemptionPeriod):
        _require(period.annual_redemption >= 0, f"{label}: redemption cannot be negative.")
        _require(period.percentage_rate_percent >= 0, f"{label}: redemption percentage cannot be negative.")
        _require(period.redemption_type in REDEMPTION_TYPES, f"{label}: unknown redemption type '{period.redemption_type}'.")
        _require(period.indexing_type in INDEXING_TYPES, f"{label}: unknown indexing type '{period.indexing_type}'.")
        _require(period.timing in TIMINGS, f"{label}: timing must be 'beginning' or 'end'.")
    elif isinstance(period, ReturnPeriod):
        _require(period.return_type in RETURN_TYPES, f"{label}: unknown return type '{period.return_type}'.")
        _require(period.standard_deviation_percent >= 0, f"{label}: standard deviation cannot be negative.")


def validate_inputs(inputs: SimulationInputs) -> None:
    _require(inputs.initial_investment >= 0, "Initial investment cannot be negative.")
    _require(inputs.projection_years >= 0, "Projection horizon cannot be negative.")
    _require(inputs.account_type in ACCOUNT_TYPES, f"Unknown account type '{inputs.account_type}'.")
    _require(0 <= inputs.marginal_tax_rate <= 1, "Marginal tax rate must be between 0 and 1.")
    _require(0 <= inputs.capital_gains_tax_rate <= 1, "Capital gains tax rate must be between 0 and 1.")
    _require(inputs.effective_mer_percent >= 0, "MER cannot be negative.")
    for idx, period in enumerate(inputs.contribution_periods, start=1):
        validate_period(period, f"Contribution period {idx}")
    for idx, period in enumerate(inputs.redemption_periods, start=1):
        validate_period(period, f"Redemption period {idx}")
    for idx, period in enumerate(inputs.return_periods, start=1):
        validate_period(period, f"Return period {idx}")
    for year, lump in inputs.lump_sums.items():
        _require(lump.contribution >= 0 and lump.redemption >= 0, f"Lump sums for year {year} cannot be negative.")


def validate_monte_carlo(num_runs: int) -> None:
    is_count = isinstance(num_runs, numbers.Integral) and not isinstance(num_runs, bool)
    _require(is_count and num_runs > 0, "Number of runs must be a positive integer.")


def _overlap_messages(periods: Sequence[Period], kind: str) -> List[str]:
    return [
        f"{kind} periods {i + 1} and {j + 1} overlap; period {i + 1} takes precedence."
        for i, j in overlapping_periods(periods)
    ]


def period_warnings(inputs: SimulationInputs) -> List[str]:
    """Non-fatal notes about overlapping periods (earlier entries win)."""
    return (
        _overlap_messages(inputs.contribution_periods, "Contribution")
        + _overlap_messages(inputs.redemption_periods, "Redemption")
        + _overlap_messages(inputs.return_periods, "Return")
    )
