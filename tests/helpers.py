from dataclasses import replace

from capital_assets.core.inputs import ReturnPeriod, SimulationInputs


def fixed_return(rate_percent: float, start_year: int = 0, end_year: int = 0) -> ReturnPeriod:
    return ReturnPeriod(start_year=start_year, end_year=end_year, return_type="fixed", return_rate_percent=rate_percent)


def randomized_return(rate_percent: float = 7.0, std_dev_percent: float = 15.0) -> ReturnPeriod:
    return ReturnPeriod(
        start_year=0,
        end_year=0,
        return_type="monte_carlo",
        return_rate_percent=rate_percent,
        standard_deviation_percent=std_dev_percent,
        use_randomized_returns=True,
    )


def make_inputs(**overrides) -> SimulationInputs:
    base = SimulationInputs(
        initial_investment=100_000.0,
        projection_years=1,
        start_calendar_year=2025,
        account_type="non_registered",
        return_periods=(fixed_return(0.0),),
    )
    return replace(base, **overrides)
