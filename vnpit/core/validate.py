from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from vnpit.core.categories import INCOME_TYPES
from vnpit.core.errors import InputValidationError
from vnpit.core.models import IncomeSource, PersonContext, TaxInput

_ALLOWED_REGIONS = {1, 2, 3, 4}


def _check_money(issues: list[str], name: str, value: Decimal | None) -> None:
    if value is None:
        return
    if not value.is_finite():
        issues.append(f"{name}_not_finite")
        return
    if value < 0:
        issues.append(f"negative_{name}")
    if value != value.to_integral_value():
        issues.append(f"{name}_not_whole_vnd")


def _check_household(issues: list[str], dependents: int, region: int) -> None:
    if dependents < 0:
        issues.append("negative_dependents")
    if region not in _ALLOWED_REGIONS:
        issues.append("invalid_region")


def validate_tax_input(req: TaxInput) -> list[str]:
    issues: list[str] = []
    _check_money(issues, "gross_income", req.gross_income)
    _check_money(issues, "insurance_salary", req.insurance_salary)
    _check_money(issues, "other_deductions", req.other_deductions)
    _check_money(issues, "pension_contribution", req.pension_contribution)
    _check_money(issues, "charitable_contribution", req.charitable_contribution)
    _check_household(issues, req.dependents, req.region)
    return issues


def validate_person(person: PersonContext) -> list[str]:
    issues: list[str] = []
    _check_money(issues, "other_deductions", person.other_deductions)
    _check_money(issues, "pension_contribution", person.pension_contribution)
    _check_money(issues, "charitable_contribution", person.charitable_contribution)
    _check_household(issues, person.dependents, person.region)
    return issues


def validate_sources(sources: Iterable[IncomeSource]) -> list[str]:
    issues: list[str] = []
    seen: set[str] = set()
    for source in sources:
        if source.type not in INCOME_TYPES:
            issues.append(f"unknown_income_category:{source.id}")
        if not source.amount.is_finite():
            issues.append(f"amount_not_finite:{source.id}")
        elif source.amount < 0:
            issues.append(f"negative_amount:{source.id}")
        elif source.amount != source.amount.to_integral_value():
            issues.append(f"amount_not_whole_vnd:{source.id}")
        if source.id in seen:
            issues.append(f"duplicate_source_id:{source.id}")
        seen.add(source.id)
    return issues


def ensure_valid(issues: list[str]) -> None:
    if issues:
        raise InputValidationError(issues)


__all__ = [
    "validate_tax_input",
    "validate_person",
    "validate_sources",
    "ensure_valid",
]
