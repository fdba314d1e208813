"""Translate saved calculator records from the host application into engine inputs.

Host records keep tax rates in percent, key per-year maps by strings, and
carry a few legacy field names; everything is coerced leniently.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from loguru import logger

from .fees import effective_mer_percent, portfolio_weighted_mer
from .inputs import (
    ACCOUNT_TYPES,
    NON_REGISTERED,
    AppSettings,
    ContributionPeriod,
    LumpSum,
    RedemptionPeriod,
    ReturnPeriod,
    SimulationInputs,
)
from .parsing import parse_bool, parse_float, parse_int, parse_optional_float


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _year_map(raw: Any) -> dict:
    if not isinstance(raw, Mapping):
        return {}
    out = {}
    for key, value in raw.items():
        year = parse_optional_float(key)
        if year is not None:
            out[int(year)] = value
    return out


def linked_portfolio_mer(
    portfolio_id: Any,
    portfolios: Iterable[Mapping[str, Any]],
    funds: Iterable[Mapping[str, Any]],
) -> Optional[float]:
    if not portfolio_id:
        return None
    for portfolio in portfolios:
        if portfolio.get("id") == portfolio_id:
            return portfolio_weighted_mer(_as_list(portfolio.get("fund_holdings")), funds)
    return None


def inputs_from_state(
    state: Mapping[str, Any],
    settings: Optional[AppSettings] = None,
    portfolios: Iterable[Mapping[str, Any]] = (),
    funds: Iterable[Mapping[str, Any]] = (),
    default_start_year: int = 2025,
) -> SimulationInputs:
    settings = settings or AppSettings()
    form = state.get("formData") or {}

    apply_mer = parse_bool(form.get("apply_mer"))
    manual_mer = form.get("mer_manual", form.get("mer"))
    calculated_mer = linked_portfolio_mer(form.get("portfolio_id"), portfolios, list(funds))
    if calculated_mer is not None:
        logger.debug("Using portfolio-weighted MER {:.3f}% for {}", calculated_mer, form.get("portfolio_id"))

    lump_sums = {
        year: LumpSum.from_dict(raw)
        for year, raw in _year_map(state.get("lumpSums")).items()
        if isinstance(raw, Mapping)
    }
    actual_balances = {}
    for year, raw in _year_map(state.get("actualBalances")).items():
        balance = parse_optional_float(raw)
        if balance is not None:
            actual_balances[year] = balance

    account_type = form.get("account_type")
    if account_type not in ACCOUNT_TYPES:
        account_type = NON_REGISTERED
    current_age = parse_optional_float(form.get("current_age"))

    return SimulationInputs(
        initial_investment=parse_float(form.get("initial_investment")),
        projection_years=parse_int(form.get("projection_years"), 0),
        start_calendar_year=parse_int(form.get("start_calendar_year"), default_start_year) or default_start_year,
        account_type=account_type,
        marginal_tax_rate=parse_float(form.get("marginal_tax_rate")) / 100.0,
        capital_gains_tax_rate=parse_float(form.get("capital_gains_tax_rate")) / 100.0,
        defer_tax_on_growth=parse_bool(form.get("defer_tax_on_growth")),
        apply_mer=apply_mer,
        effective_mer_percent=effective_mer_percent(apply_mer, manual_mer, calculated_mer),
        manual_year0_return_percent=parse_optional_float(state.get("manualYear0Ror")),
        contribution_periods=tuple(ContributionPeriod.from_dict(p) for p in _as_list(form.get("periods"))),
        redemption_periods=tuple(RedemptionPeriod.from_dict(p) for p in _as_list(form.get("redemption_periods"))),
        return_periods=tuple(ReturnPeriod.from_dict(p) for p in _as_list(form.get("return_periods"))),
        lump_sums=lump_sums,
        actual_balances=actual_balances,
        use_actual_balances=parse_bool(state.get("useActualBalances")),
        inflation_rate_percent=settings.preferred_inflation_rate_percent,
        current_age=int(current_age) if current_age is not None else None,
    )
