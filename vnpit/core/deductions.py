from __future__ import annotations

from decimal import Decimal

from vnpit.core.errors import InputValidationError
from vnpit.core.models import Deductions, TaxInput
from vnpit.core.regimes import RegimeConstants

D = Decimal
_ZERO = D("0")


def resolve_deductions(req: TaxInput, constants: RegimeConstants) -> Deductions:
    """Family and caller-supplied deductions for one calculation.

    The personal deduction is flat and never reduced by income level. Voluntary
    pension contributions are capped by the regime; the remaining "other"
    amounts are passed through, floored at zero.
    """
    if req.dependents < 0:
        raise InputValidationError(["negative_dependents"])
    pension = min(max(_ZERO, req.pension_contribution), constants.pension_deduction_cap)
    other = (
        max(_ZERO, req.other_deductions)
        + max(_ZERO, req.charitable_contribution)
        + pension
    )
    return Deductions(
        personal_deduction=constants.personal_deduction,
        dependent_deduction=constants.dependent_deduction * req.dependents,
        other_deductions=other,
    )
