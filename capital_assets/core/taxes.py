from __future__ import annotations

from typing import NamedTuple

from .inputs import NON_REGISTERED, REGISTERED, SimulationInputs


class TaxEffect(NamedTuple):
    tax_savings: float
    tax_payable: float
    deducted_from_balance: float


def apply_tax(inputs: SimulationInputs, contribution: float, redemption: float, growth: float) -> TaxEffect:
    """Return (tax_savings, tax_payable, deducted_from_balance) for one year.

    Registered: contributions earn a deduction, withdrawals are taxed; neither
    touches the balance. Non-registered: positive growth is taxed at the
    capital-gains rate and paid from the balance unless deferred. TFSA: none.
    """
    if inputs.account_type == REGISTERED:
        return TaxEffect(
            tax_savings=contribution * inputs.marginal_tax_rate,
            tax_payable=redemption * inputs.marginal_tax_rate,
            deducted_from_balance=0.0,
        )
    if inputs.account_type == NON_REGISTERED and growth > 0 and not inputs.defer_tax_on_growth:
        tax_paid = growth * inputs.capital_gains_tax_rate
        return TaxEffect(tax_savings=0.0, tax_payable=tax_paid, deducted_from_balance=tax_paid)
    return TaxEffect(0.0, 0.0, 0.0)
