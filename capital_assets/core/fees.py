from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Tuple

from .parsing import parse_float, parse_optional_float


def portfolio_weighted_mer(holdings: Iterable[Mapping[str, Any]], funds: Iterable[Mapping[str, Any]]) -> Optional[float]:
    """Allocation-weighted MER (percent) of a portfolio's fund holdings.

    Fund MERs are stored as fractions; the result is a percent. Holdings whose
    fund is unknown or lacks an MER are ignored. Returns None when
    nothing qualifies.
    """
    funds_by_id = {fund.get("id"): fund for fund in funds}
    total_weighted = 0.0
    total_allocation = 0.0
    has_valid_mer = False
    for holding in holdings:
        fund = funds_by_id.get(holding.get("fund_id"))
        if fund is None:
            continue
        mer = parse_optional_float(fund.get("mer"))
        allocation = parse_optional_float(holding.get("allocation_percentage"))
        if mer is None or allocation is None:
            continue
        total_weighted += (allocation / 100.0) * mer
        total_allocation += allocation / 100.0
        has_valid_mer = True
    if not has_valid_mer or total_allocation <= 0:
        return None
    return (total_weighted / total_allocation) * 100.0


def effective_mer_percent(apply_mer: bool, manual_mer_percent: Any, calculated_mer_percent: Optional[float] = None) -> float:
    if not apply_mer:
        return 0.0
    if calculated_mer_percent is not None and calculated_mer_percent > 0:
        return calculated_mer_percent
    return parse_float(manual_mer_percent)


def annual_fee(beginning_balance: float, closing_balance: float, mer_percent: float, apply_mer: bool) -> Tuple[float, float]:
    """Fee on the average of opening and closing balance; returns (fee, average)."""
    average_balance = (beginning_balance + closing_balance) / 2.0
    fee = average_balance * (mer_percent / 100.0) if apply_mer else 0.0
    return fee, average_balance


def prorate_year0(fee: float, mer_percent: float, manual_rate: float, year1_rate: float) -> Tuple[float, float]:
    """Scale the year-0 fee and MER by the share of a year the manual return represents."""
    if year1_rate > 0:
        ratio = max(0.0, manual_rate / year1_rate)
        return fee * ratio, mer_percent * ratio
    if manual_rate == 0:
        # No positive baseline to scale against; a flat year 0 carries no fee.
        return 0.0, 0.0
    return fee, mer_percent
