import pytest

from capital_assets.core.inputs import AppSettings
from capital_assets.core.returns import UniformSeedSource
from capital_assets.core.session import (
    COMPLETE,
    IDLE,
    RUNNING,
    SimulationInProgressError,
    SimulationSession,
)
from tests.helpers import fixed_return, make_inputs, randomized_return


@pytest.fixture
def session():
    inputs = make_inputs(projection_years=5, return_periods=(randomized_return(),))
    return SimulationSession(inputs=inputs, settings=AppSettings(monte_carlo_runs=25))


def test_run_uses_settings_run_count(session):
    assert session.state == IDLE

    result = session.run_monte_carlo(seed_source=UniformSeedSource(5))

    assert result.num_runs == 25
    assert session.monte_carlo_result is result
    assert session.state == COMPLETE
    assert session.is_running is False


def test_second_run_is_rejected_while_running(session):
    session.is_running = True

    assert session.state == RUNNING
    with pytest.raises(SimulationInProgressError):
        session.run_monte_carlo()


def test_running_flag_resets_after_failure(session):
    with pytest.raises(ValueError):
        session.run_monte_carlo(num_runs=0)

    assert session.is_running is False
    assert session.monte_carlo_result is None


def test_projection_is_cached_until_inputs_change(session):
    first = session.projection()

    assert session.projection() is first

    session.update_inputs(make_inputs(projection_years=2, return_periods=(fixed_return(3.0),)))
    assert session.projection() is not first
    assert len(session.projection().rows) == 3


def test_invalid_inputs_are_rejected(session):
    session.update_inputs(make_inputs(initial_investment=-1.0))

    with pytest.raises(ValueError):
        session.projection()
    with pytest.raises(ValueError):
        session.run_monte_carlo(num_runs=5)


def test_calculated_mer_replaces_manual_mer():
    session = SimulationSession(inputs=make_inputs(apply_mer=True, effective_mer_percent=2.0))
    session.run_monte_carlo(num_runs=3, seed_source=UniformSeedSource(1))

    session.set_calculated_mer(0.75)

    assert session.effective_inputs.effective_mer_percent == 0.75
    assert session.inputs.effective_mer_percent == 2.0
    assert session.monte_carlo_result is None
    assert session.projection().rows[1].mer == 0.75


@pytest.mark.parametrize("cleared", [None, 0.0])
def test_manual_mer_returns_when_portfolio_mer_is_cleared(cleared):
    session = SimulationSession(inputs=make_inputs(apply_mer=True, effective_mer_percent=2.0))
    session.set_calculated_mer(0.75)
    with_portfolio = session.projection()

    session.set_calculated_mer(cleared)

    assert session.effective_inputs.effective_mer_percent == 2.0
    assert session.projection() is not with_portfolio
    assert session.projection().rows[1].mer == 2.0


def test_calculated_mer_ignored_when_mer_not_applied():
    session = SimulationSession(inputs=make_inputs(apply_mer=False, effective_mer_percent=0.0))

    session.set_calculated_mer(0.75)

    assert session.calculated_mer_percent == 0.75
    assert session.effective_inputs.effective_mer_percent == 0.0
