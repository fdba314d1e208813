from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import List, Sequence

import pandas as pd
from loguru import logger

from .engine import YearRow, run_projection
from .inputs import SimulationInputs


@dataclass(frozen=True)
class ProjectionSummary:
    ending_balance: float
    total_contributions: float
    total_redemptions: float
    total_growth: float
    total_tax_payable: float
    total_tax_savings: float
    total_fees: float
    net_return_percent: float


@dataclass
class ProjectionResult:
    rows: List[YearRow]
    frame: pd.DataFrame
    summary: ProjectionSummary


def rows_to_frame(rows: Sequence[YearRow]) -> pd.DataFrame:
    if not rows:
        return pd.DataFrame(columns=list(YearRow.__dataclass_fields__)).set_index("year_index")
    return pd.DataFrame([asdict(row) for row in rows]).set_index("year_index")


def summarize(rows: Sequence[YearRow], inputs: SimulationInputs) -> ProjectionSummary:
    """Horizon aggregates; average return and MER exclude the opening year."""
    ending_balance = rows[-1].ending_balance if rows else inputs.initial_investment
    total_contributions = inputs.initial_investment + sum(row.total_contribution for row in rows)
    total_redemptions = sum(row.total_redemption for row in rows)
    total_fees = sum(row.estimated_fees for row in rows) if inputs.apply_mer else 0.0

    growth_years = rows[1:]
    average_ror_percent = 0.0
    average_mer_percent = 0.0
    if growth_years:
        average_ror_percent = sum(row.ror for row in growth_years) / len(growth_years) * 100.0
        if inputs.apply_mer:
            average_mer_percent = sum(row.mer for row in growth_years) / len(growth_years)

    return ProjectionSummary(
        ending_balance=ending_balance,
        total_contributions=total_contributions,
        total_redemptions=total_redemptions,
        total_growth=ending_balance - total_contributions + total_redemptions + total_fees,
        total_tax_payable=sum(row.tax_on_growth for row in rows),
        total_tax_savings=sum(row.tax_savings for row in rows),
        total_fees=total_fees,
        net_return_percent=average_ror_percent - average_mer_percent,
    )


def project(inputs: SimulationInputs) -> ProjectionResult:
    """Deterministic projection using mean returns for every period."""
    rows = run_projection(inputs)
    summary = summarize(rows, inputs)
    logger.debug(
        "Projected {} years from {:,.0f} to {:,.0f}", len(rows), inputs.initial_investment, summary.ending_balance
    )
    return ProjectionResult(rows=rows, frame=rows_to_frame(rows), summary=summary)
