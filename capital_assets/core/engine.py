from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional

from .fees import annual_fee, prorate_year0
from .inputs import (
    INDEXING_CUSTOM,
    INDEXING_INFLATION,
    INDEXING_NONE,
    PERCENTAGE_OF_CURRENT,
    PERCENTAGE_OF_INITIAL,
    TIMING_BEGINNING,
    TIMING_END,
    ContributionPeriod,
    RedemptionPeriod,
    SimulationInputs,
)
from .periods import resolve_period
from .returns import return_for_year
from .taxes import apply_tax


@dataclass(frozen=True)
class YearRow:
    year_index: int
    calendar_year: int
    age: Optional[int]
    beginning_balance: float
    periodic_contribution: float
    lump_sum_contribution: float
    tax_savings: float
    periodic_redemption: float
    lump_sum_redemption: float
    ror: float
    growth: float
    tax_on_growth: float
    projected_balance: float
    average_annual_balance: float
    mer: float
    estimated_fees: float
    ending_balance: float
    variance_dollar: float = 0.0
    variance_percent: float = 0.0
    actual_ror: Optional[float] = None
    cumulative_growth: float = 0.0
    cumulative_tax_savings: float = 0.0
    cumulative_tax_on_growth: float = 0.0
    cumulative_fees: float = 0.0

    @property
    def total_contribution(self) -> float:
        return self.periodic_contribution + self.lump_sum_contribution

    @property
    def total_redemption(self) -> float:
        return self.periodic_redemption + self.lump_sum_redemption


def _index_multiplier(indexing_type: str, custom_rate_percent: float, start_year: int, year: int, inputs: SimulationInputs) -> float:
    """Annual escalation since the period started; none in the period's first year."""
    if indexing_type == INDEXING_NONE or year <= start_year:
        return 1.0
    if indexing_type == INDEXING_INFLATION:
        rate = inputs.inflation_rate_percent / 100.0
    elif indexing_type == INDEXING_CUSTOM:
        rate = custom_rate_percent / 100.0
    else:
        rate = 0.0
    return (1.0 + rate) ** (year - start_year)


def periodic_contribution(period: Optional[ContributionPeriod], year: int, inputs: SimulationInputs) -> float:
    if period is None:
        return 0.0
    return period.annual_contribution * _index_multiplier(
        period.indexing_type, period.custom_index_rate_percent, period.start_year, year, inputs
    )


def periodic_redemption(
    period: Optional[RedemptionPeriod], year: int, inputs: SimulationInputs, beginning_balance: float
) -> float:
    if period is None:
        return 0.0
    rate = period.percentage_rate_percent / 100.0
    if period.redemption_type == PERCENTAGE_OF_INITIAL:
        return inputs.initial_investment * rate
    if period.redemption_type == PERCENTAGE_OF_CURRENT:
        return beginning_balance * rate
    return period.annual_redemption * _index_multiplier(
        period.indexing_type, period.custom_index_rate_percent, period.start_year, year, inputs
    )


def step_year(
    year: int,
    beginning_balance: float,
    inputs: SimulationInputs,
    scenario_seed: Optional[float] = None,
    year1_rate: Optional[float] = None,
) -> YearRow:
    """Advance one year from ``beginning_balance``.

    Year 0 is the opening position: periodic flows start in year 1 and growth
    only accrues with a manual year-0 return, which also prorates the fee.
    """
    contribution_period = resolve_period(inputs.contribution_periods, year)
    redemption_period = resolve_period(inputs.redemption_periods, year)

    if year > 0:
        planned_contribution = periodic_contribution(contribution_period, year, inputs)
        planned_redemption = periodic_redemption(redemption_period, year, inputs, beginning_balance)
    else:
        planned_contribution = 0.0
        planned_redemption = 0.0

    lump = inputs.lump_sum(year)
    balance = beginning_balance + lump.contribution
    lump_redemption = min(balance, lump.redemption)
    balance -= lump_redemption

    contribution_paid = 0.0
    redemption_paid = 0.0
    if contribution_period is not None and contribution_period.timing == TIMING_BEGINNING:
        balance += planned_contribution
        contribution_paid = planned_contribution
    if redemption_period is not None and redemption_period.timing == TIMING_BEGINNING:
        redemption_paid = min(balance, planned_redemption)
        balance -= redemption_paid

    if year > 0 or inputs.has_manual_year0:
        ror = return_for_year(inputs, year, scenario_seed)
    else:
        ror = 0.0
    growth = balance * ror
    balance += growth

    if contribution_period is not None and contribution_period.timing == TIMING_END:
        balance += planned_contribution
        contribution_paid = planned_contribution
    if redemption_period is not None and redemption_period.timing == TIMING_END:
        redemption_paid = min(balance, planned_redemption)
        balance -= redemption_paid

    tax = apply_tax(
        inputs,
        contribution=contribution_paid + lump.contribution,
        redemption=redemption_paid + lump_redemption,
        growth=growth,
    )
    projected_balance = max(0.0, balance - tax.deducted_from_balance)

    variance_dollar = 0.0
    variance_percent = 0.0
    actual_ror = None
    balance_for_fee = projected_balance
    actual = inputs.actual_balance(year)
    if actual is not None:
        variance_dollar = actual - projected_balance
        variance_percent = (variance_dollar / projected_balance) * 100.0 if projected_balance != 0 else 0.0
        net_contribution = contribution_paid + lump.contribution - redemption_paid - lump_redemption
        if beginning_balance != 0:
            actual_ror = (actual - beginning_balance - net_contribution) / beginning_balance
        balance_for_fee = actual

    fee, average_balance = annual_fee(beginning_balance, balance_for_fee, inputs.effective_mer_percent, inputs.apply_mer)
    mer = inputs.effective_mer_percent if inputs.apply_mer else 0.0
    if year == 0 and inputs.has_manual_year0:
        if year1_rate is None:
            year1_rate = return_for_year(inputs, 1, scenario_seed)
        fee, mer = prorate_year0(fee, mer, inputs.manual_year0_return_percent / 100.0, year1_rate)

    return YearRow(
        year_index=year,
        calendar_year=inputs.start_calendar_year + year,
        age=inputs.current_age + year if inputs.current_age is not None else None,
        beginning_balance=beginning_balance,
        periodic_contribution=contribution_paid,
        lump_sum_contribution=lump.contribution,
        tax_savings=tax.tax_savings,
        periodic_redemption=redemption_paid,
        lump_sum_redemption=lump_redemption,
        ror=ror,
        growth=growth,
        tax_on_growth=tax.tax_payable,
        projected_balance=projected_balance,
        average_annual_balance=average_balance,
        mer=mer,
        estimated_fees=fee,
        ending_balance=max(0.0, balance_for_fee - fee),
        variance_dollar=variance_dollar,
        variance_percent=variance_percent,
        actual_ror=actual_ror,
    )


def run_projection(inputs: SimulationInputs, scenario_seed: Optional[float] = None) -> List[YearRow]:
    """Chain ``step_year`` over years 0..projection_years, one scenario."""
    year1_rate = return_for_year(inputs, 1, scenario_seed)
    rows: List[YearRow] = []
    balance = inputs.initial_investment
    growth = tax_savings = tax_on_growth = fees = 0.0

    for year in inputs.years:
        row = step_year(year, balance, inputs, scenario_seed=scenario_seed, year1_rate=year1_rate)
        growth += row.growth
        tax_savings += row.tax_savings
        tax_on_growth += row.tax_on_growth
        fees += row.estimated_fees
        row = replace(
            row,
            cumulative_growth=growth,
            cumulative_tax_savings=tax_savings,
            cumulative_tax_on_growth=tax_on_growth,
            cumulative_fees=fees,
        )
        rows.append(row)
        balance = row.ending_balance

    return rows
