from __future__ import annotations

import secrets
from datetime import date
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

D = Decimal
_ZERO = D("0")


def _money_json(value: Decimal) -> int | str:
    if value == value.to_integral_value():
        return int(value)
    return str(value)


Money = Annotated[Decimal, PlainSerializer(_money_json, when_used="json")]
Rate = Annotated[Decimal, PlainSerializer(float, when_used="json")]

Period = Literal["monthly", "yearly"]
Frequency = Literal["monthly", "yearly", "one_time"]


class InsuranceOptions(BaseModel):
    bhxh: bool = True
    bhyt: bool = True
    bhtn: bool = True

    model_config = ConfigDict(frozen=True)


def default_insurance_options() -> InsuranceOptions:
    return InsuranceOptions()


def no_insurance_options() -> InsuranceOptions:
    return InsuranceOptions(bhxh=False, bhyt=False, bhtn=False)


class TaxInput(BaseModel):
    gross_income: Decimal
    reference_date: date
    dependents: int = 0
    has_insurance: bool = True
    insurance_options: InsuranceOptions = Field(default_factory=default_insurance_options)
    insurance_salary: Decimal | None = None
    region: int = 1
    other_deductions: Decimal = _ZERO
    pension_contribution: Decimal = _ZERO
    charitable_contribution: Decimal = _ZERO
    period: Period = "monthly"

    model_config = ConfigDict(frozen=True)


class InsuranceDetail(BaseModel):
    bhxh: Money = _ZERO
    bhyt: Money = _ZERO
    bhtn: Money = _ZERO
    total: Money = _ZERO

    model_config = ConfigDict(frozen=True)


class Deductions(BaseModel):
    personal_deduction: Money
    dependent_deduction: Money
    other_deductions: Money

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> Decimal:
        return self.personal_deduction + self.dependent_deduction + self.other_deductions


class BracketContribution(BaseModel):
    bracket: int
    lower: Money
    upper: Money | None
    rate: Rate
    taxable_amount: Money
    tax_amount: Money

    model_config = ConfigDict(frozen=True)


class TaxResult(BaseModel):
    regime: str
    period: Period
    gross_income: Money
    insurance_deduction: Money
    insurance_detail: InsuranceDetail
    personal_deduction: Money
    dependent_deduction: Money
    other_deductions: Money
    taxable_income: Money
    tax_amount: Money
    tax_breakdown: tuple[BracketContribution, ...] = ()
    net_income: Money
    effective_rate: Rate

    model_config = ConfigDict(frozen=True)


class GrossSolution(BaseModel):
    target_net: Money
    gross: Money
    net: Money
    iterations: int
    converged: bool
    result: TaxResult

    model_config = ConfigDict(frozen=True)


def generate_source_id() -> str:
    return secrets.token_hex(5)


class IncomeSource(BaseModel):
    id: str = Field(default_factory=generate_source_id)
    type: str
    amount: Decimal
    frequency: Frequency = "yearly"
    description: str | None = None
    is_from_family: bool = False
    is_gov_bond: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        return str(value).strip().lower()


def create_income_source(
    income_type: str,
    amount: Decimal | int = 0,
    frequency: Frequency | None = None,
    **flags: bool,
) -> IncomeSource:
    if frequency is None:
        frequency = "monthly" if income_type == "salary" else "yearly"
    return IncomeSource(type=income_type, amount=D(amount), frequency=frequency, **flags)


class PersonContext(BaseModel):
    reference_date: date
    dependents: int = 0
    has_insurance: bool = True
    insurance_options: InsuranceOptions = Field(default_factory=default_insurance_options)
    region: int = 1
    other_deductions: Decimal = _ZERO
    pension_contribution: Decimal = _ZERO
    charitable_contribution: Decimal = _ZERO

    model_config = ConfigDict(frozen=True)


class SourceTaxResult(BaseModel):
    source_id: str
    type: str
    group: str
    treatment: str
    annual_amount: Money
    taxable_amount: Money
    tax_amount: Money
    applied_rate: Rate | None
    effective_rate: Rate
    regime: str
    exempted: bool = False
    notes: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class CategoryTotals(BaseModel):
    gross: Money = _ZERO
    tax: Money = _ZERO

    model_config = ConfigDict(frozen=True)


class MultiSourceResult(BaseModel):
    source_results: tuple[SourceTaxResult, ...]
    total_gross: Money
    total_taxable: Money
    total_tax: Money
    total_net: Money
    progressive_tax: Money
    flat_tax: Money
    overall_effective_rate: Rate
    per_category_breakdown: dict[str, CategoryTotals]
    group_breakdown: dict[str, CategoryTotals]
    progressive_result: TaxResult | None = None
    optimization_tips: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)
