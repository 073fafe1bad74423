from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vnpit.core.brackets import ZERO, apportion, round_vnd
from vnpit.core.errors import InputValidationError
from vnpit.core.models import Money, Rate, generate_source_id
from vnpit.core.regimes import RegimeSelector, default_selector

D = Decimal

BusinessCategory = Literal["distribution", "services", "production", "other"]
# revenue: presumptive rate by line of business; income: revenue less expenses at the regime's band rate
TaxMethod = Literal["revenue", "income"]

# Presumptive PIT and VAT rates on revenue, by line of business.
PIT_RATES: dict[str, Decimal] = {
    "distribution": D("0.005"),
    "services": D("0.02"),
    "production": D("0.015"),
    "other": D("0.01"),
}
VAT_RATES: dict[str, Decimal] = {
    "distribution": D("0.01"),
    "services": D("0.05"),
    "production": D("0.03"),
    "other": D("0.02"),
}

logger = logging.getLogger("vnpit.household")


class HouseholdBusiness(BaseModel):
    id: str = Field(default_factory=generate_source_id)
    name: str = ""
    category: BusinessCategory
    monthly_revenue: Decimal
    monthly_expenses: Decimal = ZERO
    operating_months: int = 12
    has_business_license: bool = True

    model_config = ConfigDict(frozen=True)

    @property
    def annual_revenue(self) -> Decimal:
        return self.monthly_revenue * self.operating_months

    @property
    def annual_expenses(self) -> Decimal:
        return self.monthly_expenses * self.operating_months


class HouseholdBusinessInput(BaseModel):
    businesses: list[HouseholdBusiness]
    reference_date: date
    tax_method: TaxMethod = "revenue"


class BusinessTaxLine(BaseModel):
    id: str
    name: str
    category: BusinessCategory
    annual_revenue: Money
    annual_expenses: Money
    threshold_deduction: Money
    tax_method: TaxMethod
    taxable_amount: Money
    pit_rate: Rate
    vat_rate: Rate
    pit_amount: Money
    vat_amount: Money
    total_tax: Money
    net_income: Money
    notes: tuple[str, ...] = ()


class HouseholdBusinessResult(BaseModel):
    regime: str
    threshold: Money
    total_revenue: Money
    above_threshold: bool
    tax_method: TaxMethod
    lines: tuple[BusinessTaxLine, ...]
    total_pit: Money
    total_vat: Money
    total_tax: Money
    net_income: Money


def _validate(req: HouseholdBusinessInput) -> None:
    issues: list[str] = []
    seen: set[str] = set()
    for business in req.businesses:
        for name in ("monthly_revenue", "monthly_expenses"):
            value: Decimal = getattr(business, name)
            if not value.is_finite() or value < 0:
                issues.append(f"negative_{name}:{business.id}")
            elif value != value.to_integral_value():
                issues.append(f"{name}_not_whole_vnd:{business.id}")
        if not 1 <= business.operating_months <= 12:
            issues.append(f"invalid_operating_months:{business.id}")
        if business.id in seen:
            issues.append(f"duplicate_business_id:{business.id}")
        seen.add(business.id)
    if issues:
        raise InputValidationError(issues)


def compute_household_business(
    req: HouseholdBusinessInput, selector: RegimeSelector | None = None
) -> HouseholdBusinessResult:
    """Presumptive PIT and VAT for a household running one or more businesses.

    Nothing is due while the household's combined revenue stays at or below
    the regime's threshold. Above it VAT applies to all revenue. Under the
    revenue method PIT applies to all revenue, or, where the regime deducts
    the threshold, to revenue above it with the threshold split across
    businesses by revenue. Under the income method PIT applies to revenue
    less expenses at the band rate for the household's total revenue; regimes
    without income bands fall back to the revenue method.
    """
    _validate(req)
    regime = (selector or default_selector()).resolve(req.reference_date, "freelance")
    threshold = regime.household_revenue_threshold
    revenues = [b.annual_revenue for b in req.businesses]
    total_revenue = sum(revenues, ZERO)
    above = total_revenue > threshold
    income_rate = regime.household_income_rate(total_revenue) if req.tax_method == "income" else None
    method: TaxMethod = "income" if income_rate is not None else "revenue"
    if req.tax_method == "income" and method == "revenue":
        logger.info("Income method not available under %s, using the revenue method", regime.code)
    if above and method == "revenue" and regime.household_threshold_deductible:
        deductions = apportion(threshold, revenues)
    else:
        deductions = [ZERO for _ in revenues]

    lines: list[BusinessTaxLine] = []
    for business, deduction in zip(req.businesses, deductions):
        revenue = business.annual_revenue
        notes: list[str] = []
        if above and income_rate is not None:
            pit_rate = income_rate
            vat_rate = VAT_RATES[business.category]
            taxable = max(ZERO, revenue - business.annual_expenses)
            notes.append("Income method: keep invoices and records for every expense.")
            if not business.has_business_license:
                notes.append("Business registration and periodic filing are required.")
        elif above:
            pit_rate = PIT_RATES[business.category]
            vat_rate = VAT_RATES[business.category]
            taxable = max(ZERO, revenue - deduction)
            if req.tax_method == "income":
                notes.append(f"Income method not available under {regime.code}; taxed on revenue.")
            if not business.has_business_license:
                notes.append("Business registration and periodic filing are required.")
        else:
            pit_rate = vat_rate = ZERO
            taxable = ZERO
            notes.append(f"Household revenue within the {int(threshold):,} VND threshold.")
        pit = round_vnd(taxable * pit_rate)
        vat = round_vnd(revenue * vat_rate)
        lines.append(
            BusinessTaxLine(
                id=business.id,
                name=business.name,
                category=business.category,
                annual_revenue=revenue,
                annual_expenses=business.annual_expenses,
                threshold_deduction=deduction,
                tax_method=method,
                taxable_amount=taxable,
                pit_rate=pit_rate,
                vat_rate=vat_rate,
                pit_amount=pit,
                vat_amount=vat,
                total_tax=pit + vat,
                net_income=revenue - business.annual_expenses - pit - vat,
                notes=tuple(notes),
            )
        )

    total_pit = sum((line.pit_amount for line in lines), ZERO)
    total_vat = sum((line.vat_amount for line in lines), ZERO)
    logger.debug(
        "Household business under %s: revenue=%s pit=%s vat=%s", regime.code, total_revenue, total_pit, total_vat
    )
    return HouseholdBusinessResult(
        regime=regime.code,
        threshold=threshold,
        total_revenue=total_revenue,
        above_threshold=above,
        tax_method=method,
        lines=tuple(lines),
        total_pit=total_pit,
        total_vat=total_vat,
        total_tax=total_pit + total_vat,
        net_income=sum((line.net_income for line in lines), ZERO),
    )


__all__ = [
    "HouseholdBusiness",
    "HouseholdBusinessInput",
    "HouseholdBusinessResult",
    "PIT_RATES",
    "TaxMethod",
    "VAT_RATES",
    "compute_household_business",
]
