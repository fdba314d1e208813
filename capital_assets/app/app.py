from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))


import pandas as pd
import streamlit as st

from capital_assets.core.export import build_report_payload
from capital_assets.core.inputs import (
    ACCOUNT_TYPES,
    INDEXING_TYPES,
    REDEMPTION_TYPES,
    RETURN_TYPES,
    TIMINGS,
    ContributionPeriod,
    RedemptionPeriod,
    ReturnPeriod,
    SimulationInputs,
)
from capital_assets.core.scenarios import base_scenario, default_settings
from capital_assets.core.session import SimulationSession
from capital_assets.core.returns import UniformSeedSource
from capital_assets.validation.checks import period_warnings, validate_inputs


st.set_page_config(page_title="Capital Assets Projection", layout="wide")


def sidebar_inputs() -> SimulationInputs:
    defaults = base_scenario()
    contribution_default = defaults.contribution_periods[0]
    redemption_default = defaults.redemption_periods[0]
    return_default = defaults.return_periods[0]

    with st.sidebar.expander("Account", expanded=True):
        initial_investment = st.number_input(
            "Initial investment", min_value=0, max_value=50_000_000, value=int(defaults.initial_investment), step=5_000
        )
        projection_years = st.slider("Projection (years)", min_value=1, max_value=60, value=defaults.projection_years)
        start_year = st.number_input("Start calendar year", min_value=1900, max_value=2200, value=defaults.start_calendar_year)
        account_type = st.selectbox("Account type", options=list(ACCOUNT_TYPES), index=ACCOUNT_TYPES.index(defaults.account_type))
        marginal_tax = st.slider(
            "Marginal tax rate (%)", min_value=0.0, max_value=60.0, value=defaults.marginal_tax_rate * 100, step=0.5
        )
        capital_gains_tax = st.slider(
            "Capital gains tax rate (%)", min_value=0.0, max_value=60.0, value=defaults.capital_gains_tax_rate * 100, step=0.5
        )
        defer_tax = st.checkbox("Defer tax on growth", value=defaults.defer_tax_on_growth)
        apply_mer = st.checkbox("Apply MER", value=defaults.apply_mer)
        mer = st.number_input("MER (%)", min_value=0.0, max_value=5.0, value=defaults.effective_mer_percent, step=0.05)
        use_manual_year0 = st.checkbox("Override year-0 return", value=False)
        manual_year0 = None
        if use_manual_year0:
            manual_year0 = st.number_input("Year-0 return (%)", min_value=-95.0, max_value=200.0, value=0.0, step=0.5)

    with st.sidebar.expander("Contributions", expanded=False):
        c_start, c_end = st.columns(2)
        contribution_start = c_start.number_input("Start year", min_value=0, value=contribution_default.start_year, key="c_start")
        contribution_end = c_end.number_input("End year (0 = horizon)", min_value=0, value=contribution_default.end_year, key="c_end")
        annual_contribution = st.number_input(
            "Annual contribution", min_value=0, max_value=5_000_000, value=int(contribution_default.annual_contribution), step=1_000
        )
        contribution_indexing = st.selectbox(
            "Indexing", options=list(INDEXING_TYPES), index=INDEXING_TYPES.index(contribution_default.indexing_type), key="c_idx"
        )
        contribution_custom = st.number_input("Custom index rate (%)", min_value=0.0, max_value=20.0, value=0.0, key="c_custom")
        contribution_timing = st.selectbox(
            "Timing", options=list(TIMINGS), index=TIMINGS.index(contribution_default.timing), key="c_timing"
        )

    with st.sidebar.expander("Redemptions", expanded=False):
        r_start, r_end = st.columns(2)
        redemption_start = r_start.number_input("Start year", min_value=0, value=redemption_default.start_year, key="r_start")
        redemption_end = r_end.number_input("End year (0 = horizon)", min_value=0, value=redemption_default.end_year, key="r_end")
        redemption_type = st.selectbox(
            "Redemption type", options=list(REDEMPTION_TYPES), index=REDEMPTION_TYPES.index(redemption_default.redemption_type)
        )
        annual_redemption = st.number_input(
            "Annual redemption", min_value=0, max_value=5_000_000, value=int(redemption_default.annual_redemption), step=1_000
        )
        redemption_percent = st.number_input(
            "Redemption rate (%)", min_value=0.0, max_value=100.0, value=redemption_default.percentage_rate_percent, step=0.5
        )
        redemption_indexing = st.selectbox("Indexing", options=list(INDEXING_TYPES), index=0, key="r_idx")
        redemption_timing = st.selectbox(
            "Timing", options=list(TIMINGS), index=TIMINGS.index(redemption_default.timing), key="r_timing"
        )

    with st.sidebar.expander("Returns & Simulation", expanded=False):
        return_type = st.selectbox("Return type", options=list(RETURN_TYPES), index=RETURN_TYPES.index(return_default.return_type))
        return_rate = st.slider(
            "Mean return (annual %)", min_value=-10.0, max_value=20.0, value=return_default.return_rate_percent, step=0.25
        )
        std_dev = st.slider(
            "Volatility (annual %)", min_value=0.0, max_value=50.0, value=return_default.standard_deviation_percent, step=0.5
        )
        randomized = st.checkbox("Randomize returns in simulations", value=return_default.use_randomized_returns)
        inflation = st.slider(
            "Inflation (annual %)", min_value=0.0, max_value=10.0, value=defaults.inflation_rate_percent, step=0.1
        )

    return SimulationInputs(
        initial_investment=float(initial_investment),
        projection_years=int(projection_years),
        start_calendar_year=int(start_year),
        account_type=account_type,
        marginal_tax_rate=marginal_tax / 100.0,
        capital_gains_tax_rate=capital_gains_tax / 100.0,
        defer_tax_on_growth=defer_tax,
        apply_mer=apply_mer,
        effective_mer_percent=float(mer) if apply_mer else 0.0,
        manual_year0_return_percent=manual_year0,
        contribution_periods=(
            ContributionPeriod(
                start_year=int(contribution_start),
                end_year=int(contribution_end),
                annual_contribution=float(annual_contribution),
                indexing_type=contribution_indexing,
                custom_index_rate_percent=float(contribution_custom),
                timing=contribution_timing,
            ),
        ),
        redemption_periods=(
            RedemptionPeriod(
                start_year=int(redemption_start),
                end_year=int(redemption_end),
                redemption_type=redemption_type,
                annual_redemption=float(annual_redemption),
                percentage_rate_percent=float(redemption_percent),
                indexing_type=redemption_indexing,
                timing=redemption_timing,
            ),
        ),
        return_periods=(
            ReturnPeriod(
                start_year=0,
                end_year=0,
                return_type=return_type,
                return_rate_percent=float(return_rate),
                standard_deviation_percent=float(std_dev),
                use_randomized_returns=randomized,
            ),
        ),
        inflation_rate_percent=float(inflation),
    )


def render_summary(summary) -> None:
    st.subheader("Summary")
    cols = st.columns(4)
    cols[0].metric("Ending balance", f"${summary.ending_balance:,.0f}")
    cols[1].metric("Total contributions", f"${summary.total_contributions:,.0f}")
    cols[2].metric("Total growth", f"${summary.total_growth:,.0f}")
    cols[3].metric("Net return", f"{summary.net_return_percent:.2f}%")
    cols = st.columns(4)
    cols[0].metric("Total redemptions", f"${summary.total_redemptions:,.0f}")
    cols[1].metric("Tax payable", f"${summary.total_tax_payable:,.0f}")
    cols[2].metric("Tax savings", f"${summary.total_tax_savings:,.0f}")
    cols[3].metric("Fees", f"${summary.total_fees:,.0f}")


def render_projection_table(frame: pd.DataFrame) -> None:
    columns = [
        "calendar_year",
        "beginning_balance",
        "periodic_contribution",
        "periodic_redemption",
        "ror",
        "growth",
        "tax_on_growth",
        "estimated_fees",
        "ending_balance",
    ]
    table = frame[columns].copy()
    table["ror"] = table["ror"].map(lambda x: f"{x * 100:.2f}%")
    st.dataframe(table.reset_index(), use_container_width=True)


def render_monte_carlo(result) -> None:
    st.subheader(f"Simulation results ({result.num_runs:,} scenarios)")
    cols = st.columns(5)
    for col, (label, value) in zip(cols, vars(result.percentiles).items()):
        col.metric(label.upper(), f"${value:,.0f}")
    st.line_chart(result.frame[["p10", "p25", "p50", "p75", "p90", "mean"]], height=320)


def main():
    st.title("Capital Assets Projection")
    st.write(
        "Project an investment account year by year with contributions, redemptions, fees and taxes, then stress it with randomized returns."
    )

    sim_inputs = sidebar_inputs()
    settings = default_settings()

    if "session" not in st.session_state:
        st.session_state["session"] = SimulationSession(inputs=sim_inputs, settings=settings)
    session: SimulationSession = st.session_state["session"]
    if session.inputs != sim_inputs:
        session.update_inputs(sim_inputs)

    try:
        validate_inputs(sim_inputs)
    except ValueError as exc:
        st.error(f"Invalid inputs: {exc}")
        return
    for warning in period_warnings(sim_inputs):
        st.warning(warning)

    tab_table, tab_chart, tab_sim = st.tabs(["Projection table", "Balance chart", "Monte Carlo"])

    projection = session.projection()
    with tab_table:
        render_summary(projection.summary)
        render_projection_table(projection.frame)
        st.download_button("Download CSV", projection.frame.to_csv().encode("utf-8"), file_name="projection.csv")

    with tab_chart:
        st.line_chart(projection.frame.set_index("calendar_year")[["ending_balance", "projected_balance"]], height=320)

    with tab_sim:
        runs = st.slider("Simulations", min_value=100, max_value=5000, value=settings.monte_carlo_runs, step=100)
        seed = st.number_input("Seed (0 = random)", min_value=0, value=0, step=1)
        run_btn = st.button("Run simulation", type="primary", disabled=session.is_running)
        if run_btn:
            try:
                session.run_monte_carlo(int(runs), seed_source=UniformSeedSource(int(seed) or None))
            except Exception as exc:  # Streamlit friendly error surface
                st.error(f"Unable to run simulation: {exc}")
        if session.monte_carlo_result is not None:
            render_monte_carlo(session.monte_carlo_result)
            with st.expander("Report payload"):
                st.json(build_report_payload(projection, session.monte_carlo_result))
        else:
            st.info("Adjust inputs in the sidebar and click **Run simulation**.")


if __name__ == "__main__":
    main()
