from __future__ import annotations

import logging
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict

from vnpit.core.brackets import ZERO, round_vnd
from vnpit.core.errors import InputValidationError
from vnpit.core.models import Money, Rate

D = Decimal

SeveranceType = Literal[
    "severance",
    "job_loss",
    "early_retirement",
    "social_insurance_lump_sum",
    "voluntary_pension_lump_sum",
]

SEVERANCE_TAX_RATE = D("0.10")
# Exempt part of a termination payment, in months of average salary.
EXEMPT_SALARY_MONTHS: dict[str, int] = {
    "severance": 10,
    "job_loss": 10,
    "early_retirement": 10,
    "social_insurance_lump_sum": 10,
    "voluntary_pension_lump_sum": 0,
}
SEVERANCE_LABELS: dict[str, str] = {
    "severance": "Severance allowance",
    "job_loss": "Job-loss allowance",
    "early_retirement": "Early retirement payment",
    "social_insurance_lump_sum": "One-off social insurance withdrawal",
    "voluntary_pension_lump_sum": "Voluntary pension lump sum",
}

logger = logging.getLogger("vnpit.severance")


class SeveranceInput(BaseModel):
    type: SeveranceType
    total_amount: Decimal
    average_salary: Decimal = ZERO
    contribution_amount: Decimal = ZERO
    years_worked: int | None = None

    model_config = ConfigDict(frozen=True)


class SeveranceResult(BaseModel):
    type: SeveranceType
    label: str
    total_amount: Money
    tax_exempt_amount: Money
    taxable_income: Money
    tax_rate: Rate
    tax_amount: Money
    net_amount: Money
    effective_rate: Rate
    notes: tuple[str, ...] = ()


def _validate(req: SeveranceInput) -> None:
    issues: list[str] = []
    for name in ("total_amount", "average_salary", "contribution_amount"):
        value: Decimal = getattr(req, name)
        if not value.is_finite() or value < 0:
            issues.append(f"negative_{name}")
        elif value != value.to_integral_value():
            issues.append(f"{name}_not_whole_vnd")
    if req.years_worked is not None and req.years_worked < 0:
        issues.append("negative_years_worked")
    if issues:
        raise InputValidationError(issues)


def compute_severance(req: SeveranceInput) -> SeveranceResult:
    """Tax a one-off termination or pension payment.

    Termination payments are exempt up to ten months of average salary and
    taxed at 10% above that. A voluntary pension lump sum is taxed at 10% on
    what is withdrawn beyond the member's own contributions.
    """
    _validate(req)
    notes: list[str] = []
    if req.type == "voluntary_pension_lump_sum":
        exempt = min(req.total_amount, req.contribution_amount)
        notes.append("Own contributions are returned tax free.")
    else:
        months = EXEMPT_SALARY_MONTHS[req.type]
        exempt = min(req.total_amount, req.average_salary * months)
        notes.append(f"Exempt up to {months} months of average salary.")
    taxable = req.total_amount - exempt
    tax = round_vnd(taxable * SEVERANCE_TAX_RATE)
    if req.years_worked is not None:
        notes.append(f"{req.years_worked} year(s) of service.")
    effective = (tax / req.total_amount).quantize(D("0.000001")) if req.total_amount > 0 else ZERO
    logger.debug("Severance %s: total=%s exempt=%s tax=%s", req.type, req.total_amount, exempt, tax)
    return SeveranceResult(
        type=req.type,
        label=SEVERANCE_LABELS[req.type],
        total_amount=req.total_amount,
        tax_exempt_amount=exempt,
        taxable_income=taxable,
        tax_rate=SEVERANCE_TAX_RATE,
        tax_amount=tax,
        net_amount=req.total_amount - tax,
        effective_rate=effective,
        notes=tuple(notes),
    )


__all__ = ["SeveranceInput", "SeveranceResult", "compute_severance", "SEVERANCE_TAX_RATE"]
