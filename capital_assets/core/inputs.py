from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .parsing import parse_bool, parse_float, parse_int

NON_REGISTERED = "non_registered"
REGISTERED = "registered"
TFSA = "tfsa"
ACCOUNT_TYPES = (NON_REGISTERED, REGISTERED, TFSA)

INDEXING_NONE = "none"
INDEXING_INFLATION = "inflation"
INDEXING_CUSTOM = "custom"
INDEXING_TYPES = (INDEXING_NONE, INDEXING_INFLATION, INDEXING_CUSTOM)

TIMING_BEGINNING = "beginning"
TIMING_END = "end"
TIMINGS = (TIMING_BEGINNING, TIMING_END)

FIXED_AMOUNT = "fixed_amount"
PERCENTAGE_OF_INITIAL = "percentage_of_initial"
PERCENTAGE_OF_CURRENT = "percentage_of_current"
REDEMPTION_TYPES = (FIXED_AMOUNT, PERCENTAGE_OF_INITIAL, PERCENTAGE_OF_CURRENT)

RETURN_FIXED = "fixed"
RETURN_MONTE_CARLO = "monte_carlo"
RETURN_TYPES = (RETURN_FIXED, RETURN_MONTE_CARLO)

DEFAULT_INFLATION_RATE_PERCENT = 2.5
DEFAULT_MC_MEAN_PERCENT = 7.0
DEFAULT_MC_STD_DEV_PERCENT = 15.0


def _choice(value: Any, allowed: Tuple[str, ...], default: str) -> str:
    return value if value in allowed else default


@dataclass(frozen=True)
class ContributionPeriod:
    start_year: int = 1
    end_year: int = 0  # 0 runs to the horizon
    annual_contribution: float = 0.0
    indexing_type: str = INDEXING_NONE
    custom_index_rate_percent: float = 0.0
    timing: str = TIMING_BEGINNING

    def covers(self, year: int) -> bool:
        return year >= self.start_year and (self.end_year == 0 or year <= self.end_year)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContributionPeriod":
        indexing = data.get("indexing_rate_type", data.get("indexing_type"))
        if indexing is None and "index_contributions" in data:
            # Older records stored a boolean instead of the indexing type.
            indexing = INDEXING_INFLATION if parse_bool(data["index_contributions"]) else INDEXING_NONE
        return cls(
            start_year=parse_int(data.get("start_year"), 1),
            end_year=parse_int(data.get("end_year"), 0),
            annual_contribution=parse_float(data.get("annual_contribution")),
            indexing_type=_choice(indexing, INDEXING_TYPES, INDEXING_NONE),
            custom_index_rate_percent=parse_float(data.get("annual_index_rate", data.get("custom_index_rate_percent"))),
            timing=_choice(data.get("contribution_timing", data.get("timing")), TIMINGS, TIMING_BEGINNING),
        )


@dataclass(frozen=True)
class RedemptionPeriod:
    start_year: int = 1
    end_year: int = 0
    redemption_type: str = FIXED_AMOUNT
    annual_redemption: float = 0.0
    percentage_rate_percent: float = 0.0
    indexing_type: str = INDEXING_NONE
    custom_index_rate_percent: float = 0.0
    timing: str = TIMING_END

    def covers(self, year: int) -> bool:
        return year >= self.start_year and (self.end_year == 0 or year <= self.end_year)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RedemptionPeriod":
        return cls(
            start_year=parse_int(data.get("start_year"), 1),
            end_year=parse_int(data.get("end_year"), 0),
            redemption_type=_choice(data.get("redemption_type"), REDEMPTION_TYPES, FIXED_AMOUNT),
            annual_redemption=parse_float(data.get("annual_redemption")),
            percentage_rate_percent=parse_float(
                data.get("percentage_of_initial_rate", data.get("percentage_rate_percent"))
            ),
            indexing_type=_choice(
                data.get("indexing_rate_type", data.get("indexing_type")), INDEXING_TYPES, INDEXING_NONE
            ),
            custom_index_rate_percent=parse_float(
                data.get("custom_indexing_rate", data.get("custom_index_rate_percent"))
            ),
            timing=_choice(data.get("redemption_timing", data.get("timing")), TIMINGS, TIMING_END),
        )


@dataclass(frozen=True)
class ReturnPeriod:
    start_year: int = 0
    end_year: int = 0
    return_type: str = RETURN_FIXED
    return_rate_percent: float = DEFAULT_MC_MEAN_PERCENT
    standard_deviation_percent: float = DEFAULT_MC_STD_DEV_PERCENT
    use_randomized_returns: bool = False

    def covers(self, year: int) -> bool:
        return year >= self.start_year and (self.end_year == 0 or year <= self.end_year)

    @property
    def is_randomized(self) -> bool:
        return self.return_type == RETURN_MONTE_CARLO and self.use_randomized_returns

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReturnPeriod":
        return cls(
            start_year=parse_int(data.get("start_year"), 0),
            end_year=parse_int(data.get("end_year"), 0),
            return_type=_choice(data.get("return_type"), RETURN_TYPES, RETURN_FIXED),
            return_rate_percent=parse_float(
                data.get("return_rate", data.get("return_rate_percent")), DEFAULT_MC_MEAN_PERCENT
            ),
            standard_deviation_percent=parse_float(
                data.get("standard_deviation", data.get("standard_deviation_percent")), DEFAULT_MC_STD_DEV_PERCENT
            ),
            use_randomized_returns=parse_bool(data.get("use_randomized_returns")),
        )


Period = Union[ContributionPeriod, RedemptionPeriod, ReturnPeriod]


@dataclass(frozen=True)
class LumpSum:
    contribution: float = 0.0
    redemption: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LumpSum":
        return cls(
            contribution=parse_float(data.get("contribution")),
            redemption=parse_float(data.get("redemption")),
        )


@dataclass(frozen=True)
class AppSettings:
    """Host settings consumed by the engine and the Monte Carlo runner."""

    preferred_inflation_rate_percent: float = DEFAULT_INFLATION_RATE_PERCENT
    monte_carlo_runs: int = 1000
    max_workers: int = 1

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AppSettings":
        data = data or {}
        return cls(
            preferred_inflation_rate_percent=parse_float(
                data.get("preferred_inflation_rate"), DEFAULT_INFLATION_RATE_PERCENT
            ),
            monte_carlo_runs=max(1, parse_int(data.get("monte_carlo_runs"), 1000)),
            max_workers=max(1, parse_int(data.get("max_workers"), 1)),
        )


@dataclass(frozen=True)
class SimulationInputs:
    initial_investment: float = 0.0
    projection_years: int = 25
    start_calendar_year: int = 2025
    account_type: str = NON_REGISTERED
    marginal_tax_rate: float = 0.0  # fraction, not percent
    capital_gains_tax_rate: float = 0.0
    defer_tax_on_growth: bool = False
    apply_mer: bool = False
    effective_mer_percent: float = 0.0
    manual_year0_return_percent: Optional[float] = None
    contribution_periods: Tuple[ContributionPeriod, ...] = ()
    redemption_periods: Tuple[RedemptionPeriod, ...] = ()
    return_periods: Tuple[ReturnPeriod, ...] = ()
    lump_sums: Dict[int, LumpSum] = field(default_factory=dict)
    actual_balances: Dict[int, float] = field(default_factory=dict)
    use_actual_balances: bool = False
    inflation_rate_percent: float = DEFAULT_INFLATION_RATE_PERCENT
    current_age: Optional[int] = None

    @property
    def has_manual_year0(self) -> bool:
        return self.manual_year0_return_percent is not None

    @property
    def years(self) -> range:
        return range(0, max(self.projection_years, 0) + 1)

    def lump_sum(self, year: int) -> LumpSum:
        return self.lump_sums.get(year, LumpSum())

    def actual_balance(self, year: int) -> Optional[float]:
        if not self.use_actual_balances:
            return None
        return self.actual_balances.get(year)
