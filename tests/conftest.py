import pytest

from capital_assets.core.inputs import ContributionPeriod, RedemptionPeriod
from tests.helpers import make_inputs, randomized_return


@pytest.fixture
def busy_inputs():
    """Inputs touching every feature: periods, lump sums, overrides, MER and tax."""
    return make_inputs(
        initial_investment=250_000.0,
        projection_years=12,
        capital_gains_tax_rate=0.2,
        apply_mer=True,
        effective_mer_percent=1.5,
        manual_year0_return_percent=2.0,
        contribution_periods=(
            ContributionPeriod(start_year=1, end_year=5, annual_contribution=10_000, indexing_type="inflation"),
        ),
        redemption_periods=(
            RedemptionPeriod(start_year=4, end_year=0, redemption_type="fixed_amount", annual_redemption=60_000, timing="beginning"),
        ),
        return_periods=(randomized_return(5.0, 25.0),),
        lump_sums={},
        actual_balances={3: 150_000.0},
        use_actual_balances=True,
    )
