import pytest

from capital_assets.core.engine import run_projection, step_year
from capital_assets.core.inputs import ContributionPeriod, LumpSum, RedemptionPeriod
from tests.helpers import fixed_return, make_inputs


def test_single_year_growth():
    inputs = make_inputs(return_periods=(fixed_return(10.0),))

    rows = run_projection(inputs)

    assert [row.year_index for row in rows] == [0, 1]
    assert [row.calendar_year for row in rows] == [2025, 2026]
    assert rows[0].ror == 0.0
    assert rows[0].ending_balance == pytest.approx(100_000)
    assert rows[1].beginning_balance == pytest.approx(100_000)
    assert rows[1].growth == pytest.approx(10_000)
    assert rows[1].ending_balance == pytest.approx(110_000)


def test_capital_gains_tax_reduces_balance_unless_deferred():
    inputs = make_inputs(return_periods=(fixed_return(10.0),), capital_gains_tax_rate=0.2)

    taxed = run_projection(inputs)[1]
    deferred = run_projection(make_inputs(
        return_periods=(fixed_return(10.0),), capital_gains_tax_rate=0.2, defer_tax_on_growth=True
    ))[1]

    assert taxed.tax_on_growth == pytest.approx(2_000)
    assert taxed.ending_balance == pytest.approx(108_000)
    assert deferred.tax_on_growth == 0.0
    assert deferred.ending_balance == pytest.approx(110_000)


def test_negative_growth_is_not_taxed():
    inputs = make_inputs(return_periods=(fixed_return(-10.0),), capital_gains_tax_rate=0.2)

    row = run_projection(inputs)[1]

    assert row.tax_on_growth == 0.0
    assert row.ending_balance == pytest.approx(90_000)


def test_percentage_of_current_redemption():
    inputs = make_inputs(
        projection_years=3,
        redemption_periods=(
            RedemptionPeriod(start_year=3, redemption_type="percentage_of_current", percentage_rate_percent=5.0),
        ),
    )

    rows = run_projection(inputs)

    assert [row.periodic_redemption for row in rows[:3]] == [0.0, 0.0, 0.0]
    assert rows[3].periodic_redemption == pytest.approx(5_000)
    assert rows[3].ending_balance == pytest.approx(95_000)


def test_percentage_of_initial_redemption_ignores_current_balance():
    inputs = make_inputs(
        projection_years=2,
        return_periods=(fixed_return(50.0),),
        redemption_periods=(
            RedemptionPeriod(start_year=1, redemption_type="percentage_of_initial", percentage_rate_percent=4.0),
        ),
    )

    rows = run_projection(inputs)

    assert rows[1].periodic_redemption == pytest.approx(4_000)
    assert rows[2].periodic_redemption == pytest.approx(4_000)


def test_inflation_and_custom_indexing():
    inflation = make_inputs(
        projection_years=3,
        contribution_periods=(ContributionPeriod(start_year=1, annual_contribution=1_000, indexing_type="inflation"),),
    )
    custom = make_inputs(
        projection_years=2,
        contribution_periods=(
            ContributionPeriod(
                start_year=1, annual_contribution=1_000, indexing_type="custom", custom_index_rate_percent=10.0
            ),
        ),
    )

    inflation_rows = run_projection(inflation)
    custom_rows = run_projection(custom)

    assert inflation_rows[1].periodic_contribution == pytest.approx(1_000)
    assert inflation_rows[3].periodic_contribution == pytest.approx(1_050.625)
    assert custom_rows[2].periodic_contribution == pytest.approx(1_100)


def test_contribution_timing():
    def year_one(timing):
        inputs = make_inputs(
            initial_investment=0.0,
            return_periods=(fixed_return(10.0),),
            contribution_periods=(ContributionPeriod(start_year=1, annual_contribution=1_000, timing=timing),),
        )
        return run_projection(inputs)[1]

    beginning = year_one("beginning")
    end = year_one("end")

    assert beginning.growth == pytest.approx(100)
    assert beginning.ending_balance == pytest.approx(1_100)
    assert end.growth == 0.0
    assert end.ending_balance == pytest.approx(1_000)


def test_redemption_is_limited_to_available_balance():
    inputs = make_inputs(
        initial_investment=1_000.0,
        projection_years=2,
        redemption_periods=(RedemptionPeriod(start_year=1, annual_redemption=5_000),),
    )

    rows = run_projection(inputs)

    assert rows[1].periodic_redemption == pytest.approx(1_000)
    assert rows[1].ending_balance == 0.0
    assert rows[2].periodic_redemption == 0.0
    assert rows[2].ending_balance == 0.0


def test_lump_sums_apply_in_their_year():
    inputs = make_inputs(
        projection_years=2,
        lump_sums={0: LumpSum(contribution=5_000), 2: LumpSum(redemption=500_000)},
    )

    rows = run_projection(inputs)

    assert rows[0].lump_sum_contribution == 5_000
    assert rows[0].ending_balance == pytest.approx(105_000)
    assert rows[2].lump_sum_redemption == pytest.approx(105_000)
    assert rows[2].ending_balance == 0.0


def test_registered_account_tax():
    inputs = make_inputs(
        account_type="registered",
        marginal_tax_rate=0.4,
        contribution_periods=(ContributionPeriod(start_year=1, annual_contribution=10_000),),
        redemption_periods=(RedemptionPeriod(start_year=1, annual_redemption=1_000),),
    )

    row = run_projection(inputs)[1]

    assert row.tax_savings == pytest.approx(4_000)
    assert row.tax_on_growth == pytest.approx(400)
    assert row.ending_balance == pytest.approx(109_000)


def test_tfsa_has_no_tax():
    inputs = make_inputs(
        account_type="tfsa",
        marginal_tax_rate=0.4,
        capital_gains_tax_rate=0.5,
        return_periods=(fixed_return(10.0),),
        contribution_periods=(ContributionPeriod(start_year=1, annual_contribution=10_000),),
    )

    row = run_projection(inputs)[1]

    assert row.tax_savings == 0.0
    assert row.tax_on_growth == 0.0
    assert row.ending_balance == pytest.approx(121_000)


def test_fees_follow_apply_mer():
    charged = run_projection(make_inputs(apply_mer=True, effective_mer_percent=1.0))
    waived = run_projection(make_inputs(apply_mer=False, effective_mer_percent=1.0))

    assert charged[0].estimated_fees == pytest.approx(1_000)
    assert charged[0].mer == 1.0
    assert charged[0].ending_balance == pytest.approx(99_000)
    assert charged[1].estimated_fees == pytest.approx(990)
    assert charged[1].ending_balance == pytest.approx(98_010)
    assert all(row.estimated_fees == 0.0 and row.mer == 0.0 for row in waived)


def test_flat_manual_year0_carries_no_fee():
    inputs = make_inputs(apply_mer=True, effective_mer_percent=1.0, manual_year0_return_percent=0.0)

    row = run_projection(inputs)[0]

    assert row.estimated_fees == 0.0
    assert row.mer == 0.0


def test_manual_year0_prorates_fee_against_year_one_rate():
    inputs = make_inputs(
        apply_mer=True,
        effective_mer_percent=1.0,
        manual_year0_return_percent=5.0,
        return_periods=(fixed_return(10.0),),
    )

    row = run_projection(inputs)[0]

    assert row.ror == pytest.approx(0.05)
    assert row.growth == pytest.approx(5_000)
    assert row.estimated_fees == pytest.approx(512.5)
    assert row.mer == pytest.approx(0.5)
    assert row.ending_balance == pytest.approx(104_487.5)


def test_actual_balance_overrides_projection():
    inputs = make_inputs(
        return_periods=(fixed_return(10.0),),
        actual_balances={1: 120_000.0},
        use_actual_balances=True,
    )

    row = run_projection(inputs)[1]

    assert row.projected_balance == pytest.approx(110_000)
    assert row.variance_dollar == pytest.approx(10_000)
    assert row.variance_percent == pytest.approx(9.0909, rel=1e-4)
    assert row.actual_ror == pytest.approx(0.2)
    assert row.ending_balance == pytest.approx(120_000)


def test_actual_balances_ignored_when_disabled():
    inputs = make_inputs(
        return_periods=(fixed_return(10.0),),
        actual_balances={1: 120_000.0},
        use_actual_balances=False,
    )

    row = run_projection(inputs)[1]

    assert row.variance_dollar == 0.0
    assert row.actual_ror is None
    assert row.ending_balance == pytest.approx(110_000)


def test_actual_ror_undefined_from_zero_balance():
    inputs = make_inputs(initial_investment=0.0, actual_balances={1: 500.0}, use_actual_balances=True)

    row = run_projection(inputs)[1]

    assert row.actual_ror is None
    assert row.ending_balance == pytest.approx(500)


def test_rows_chain_and_never_go_negative(busy_inputs):
    rows = run_projection(busy_inputs, scenario_seed=4_242.0)

    assert len(rows) == busy_inputs.projection_years + 1
    for previous, current in zip(rows, rows[1:]):
        assert current.beginning_balance == previous.ending_balance
    assert all(row.ending_balance >= 0 and row.projected_balance >= 0 for row in rows)
    assert rows[3].ending_balance == pytest.approx(150_000 - rows[3].estimated_fees)


def test_projection_is_repeatable(busy_inputs):
    assert run_projection(busy_inputs, scenario_seed=77.0) == run_projection(busy_inputs, scenario_seed=77.0)
    assert run_projection(busy_inputs) == run_projection(busy_inputs)


def test_step_year_matches_chained_projection(busy_inputs):
    rows = run_projection(busy_inputs, scenario_seed=9.0)

    stepped = step_year(5, rows[4].ending_balance, busy_inputs, scenario_seed=9.0)

    assert stepped.ending_balance == pytest.approx(rows[5].ending_balance)
    assert stepped.growth == pytest.approx(rows[5].growth)


def test_cumulative_columns():
    inputs = make_inputs(
        projection_years=2,
        apply_mer=True,
        effective_mer_percent=1.0,
        return_periods=(fixed_return(10.0),),
    )

    rows = run_projection(inputs)

    assert rows[2].cumulative_growth == pytest.approx(rows[1].growth + rows[2].growth)
    assert rows[2].cumulative_fees == pytest.approx(sum(row.estimated_fees for row in rows))


def test_age_tracks_current_age():
    rows = run_projection(make_inputs(projection_years=2, current_age=40))

    assert [row.age for row in rows] == [40, 41, 42]
    assert run_projection(make_inputs())[0].age is None


def test_opening_year_is_charged_a_full_fee_without_manual_return():
    inputs = make_inputs(apply_mer=True, effective_mer_percent=1.0, return_periods=(fixed_return(10.0),))

    row = run_projection(inputs)[0]

    assert row.ror == 0.0
    assert row.mer == 1.0
    assert row.estimated_fees == pytest.approx(1_000)
    assert row.ending_balance == pytest.approx(99_000)
