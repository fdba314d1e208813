from __future__ import annotations

from .inputs import (
    INDEXING_INFLATION,
    NON_REGISTERED,
    PERCENTAGE_OF_CURRENT,
    RETURN_MONTE_CARLO,
    TIMING_BEGINNING,
    TIMING_END,
    AppSettings,
    ContributionPeriod,
    RedemptionPeriod,
    ReturnPeriod,
    SimulationInputs,
)


def default_settings() -> AppSettings:
    return AppSettings(preferred_inflation_rate_percent=2.5, monte_carlo_runs=1000, max_workers=1)


def default_return_period() -> ReturnPeriod:
    return ReturnPeriod(
        start_year=0,
        end_year=0,
        return_type=RETURN_MONTE_CARLO,
        return_rate_percent=6.0,
        standard_deviation_percent=12.0,
        use_randomized_returns=True,
    )


def base_scenario() -> SimulationInputs:
    """Provide a reasonable starting point for the UI."""
    settings = default_settings()
    return SimulationInputs(
        initial_investment=250_000,
        projection_years=25,
        start_calendar_year=2025,
        account_type=NON_REGISTERED,
        marginal_tax_rate=0.30,
        capital_gains_tax_rate=0.15,
        defer_tax_on_growth=False,
        apply_mer=True,
        effective_mer_percent=1.2,
        contribution_periods=(
            ContributionPeriod(
                start_year=1,
                end_year=10,
                annual_contribution=12_000,
                indexing_type=INDEXING_INFLATION,
                timing=TIMING_BEGINNING,
            ),
        ),
        redemption_periods=(
            RedemptionPeriod(
                start_year=16,
                end_year=0,
                redemption_type=PERCENTAGE_OF_CURRENT,
                percentage_rate_percent=4.0,
                timing=TIMING_END,
            ),
        ),
        return_periods=(default_return_period(),),
        inflation_rate_percent=settings.preferred_inflation_rate_percent,
    )
