from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .projection import ProjectionResult
from .simulator import MonteCarloResult

# Row keys expected by the PDF rendering service.
ROW_FIELDS = {
    "calendar_year": "year",
    "age": "age",
    "beginning_balance": "beginningBalance",
    "periodic_contribution": "periodicContribution",
    "lump_sum_contribution": "lumpSumContribution",
    "tax_savings": "taxSavings",
    "periodic_redemption": "periodicRedemption",
    "lump_sum_redemption": "lumpSumRedemption",
    "ror": "ror",
    "growth": "growth",
    "tax_on_growth": "taxOnGrowth",
    "projected_balance": "projectedBalance",
    "average_annual_balance": "averageAnnualBalance",
    "mer": "mer",
    "estimated_fees": "estimatedFees",
    "ending_balance": "balanceAfterFees",
    "variance_percent": "variancePercent",
    "variance_dollar": "varianceDollar",
    "actual_ror": "actualRoR",
}

SUMMARY_FIELDS = {
    "ending_balance": "endingBalance",
    "total_contributions": "totalContributions",
    "total_redemptions": "totalRedemptions",
    "total_growth": "totalGrowth",
    "total_tax_payable": "totalTaxPayable",
    "total_tax_savings": "totalTaxSavings",
    "total_fees": "totalEstimatedFees",
    "net_return_percent": "netReturnPercentage",
}


def build_report_payload(
    result: ProjectionResult,
    monte_carlo: Optional[MonteCarloResult] = None,
    name: str = "Capital Assets",
) -> Dict[str, Any]:
    """Flatten a projection (and optional Monte Carlo bands) for the PDF service."""
    summary = asdict(result.summary)
    payload: Dict[str, Any] = {
        "name": name,
        "projectionData": [
            {key: getattr(row, attr) for attr, key in ROW_FIELDS.items()} for row in result.rows
        ],
        "finalMetrics": {key: summary[attr] for attr, key in SUMMARY_FIELDS.items()},
        "monteCarloResult": None,
    }
    if monte_carlo is not None:
        payload["monteCarloResult"] = {
            "numRuns": monte_carlo.num_runs,
            "percentiles": asdict(monte_carlo.percentiles),
            "chartData": [asdict(point) for point in monte_carlo.chart_data],
        }
    return payload


def projection_to_csv(result: ProjectionResult, path: Union[str, Path]) -> Path:
    path = Path(path)
    result.frame.to_csv(path)
    return path
