from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from vnpit.core.brackets import ZERO, round_vnd
from vnpit.core.calculator import compute_tax, compute_with_constants
from vnpit.core.errors import InputValidationError
from vnpit.core.models import (
    InsuranceOptions,
    Money,
    Rate,
    TaxInput,
    TaxResult,
    default_insurance_options,
)
from vnpit.core.regimes import RegimeConstants, RegimeSelector, default_selector

D = Decimal

NON_RESIDENT_TAX_RATE = D("0.20")
RESIDENCY_DAYS_THRESHOLD = 183

ResidencyStatus = Literal["resident", "non_resident"]

logger = logging.getLogger("vnpit.foreigner")


class Treaty(NamedTuple):
    country: str
    year: int


# Double taxation agreements in force, keyed by ISO 3166 alpha-2 code.
DOUBLE_TAX_TREATIES: dict[str, Treaty] = {
    "AU": Treaty("Australia", 1992),
    "AT": Treaty("Austria", 2009),
    "BY": Treaty("Belarus", 1997),
    "BE": Treaty("Belgium", 1996),
    "BN": Treaty("Brunei", 2007),
    "BG": Treaty("Bulgaria", 1996),
    "CA": Treaty("Canada", 1997),
    "CN": Treaty("China", 1995),
    "HR": Treaty("Croatia", 2016),
    "CZ": Treaty("Czech Republic", 1997),
    "DK": Treaty("Denmark", 1995),
    "EG": Treaty("Egypt", 2012),
    "FI": Treaty("Finland", 2002),
    "FR": Treaty("France", 1993),
    "DE": Treaty("Germany", 1996),
    "HK": Treaty("Hong Kong", 2008),
    "HU": Treaty("Hungary", 1995),
    "IS": Treaty("Iceland", 2003),
    "IN": Treaty("India", 1994),
    "ID": Treaty("Indonesia", 1998),
    "IR": Treaty("Iran", 2014),
    "IE": Treaty("Ireland", 2008),
    "IL": Treaty("Israel", 2009),
    "IT": Treaty("Italy", 1996),
    "JP": Treaty("Japan", 1995),
    "KZ": Treaty("Kazakhstan", 2015),
    "KP": Treaty("North Korea", 2005),
    "KR": Treaty("South Korea", 1994),
    "KW": Treaty("Kuwait", 2011),
    "LA": Treaty("Laos", 1996),
    "LV": Treaty("Latvia", 2016),
    "LU": Treaty("Luxembourg", 1996),
    "MY": Treaty("Malaysia", 1995),
    "MT": Treaty("Malta", 2017),
    "MN": Treaty("Mongolia", 1996),
    "MA": Treaty("Morocco", 2012),
    "MZ": Treaty("Mozambique", 2016),
    "MM": Treaty("Myanmar", 2011),
    "NL": Treaty("Netherlands", 1995),
    "NZ": Treaty("New Zealand", 2013),
    "NO": Treaty("Norway", 1996),
    "OM": Treaty("Oman", 2010),
    "PK": Treaty("Pakistan", 2005),
    "PA": Treaty("Panama", 2017),
    "PH": Treaty("Philippines", 2003),
    "PL": Treaty("Poland", 1994),
    "PT": Treaty("Portugal", 2016),
    "QA": Treaty("Qatar", 2009),
    "RO": Treaty("Romania", 1996),
    "RU": Treaty("Russia", 1993),
    "SA": Treaty("Saudi Arabia", 2010),
    "RS": Treaty("Serbia", 2016),
    "SC": Treaty("Seychelles", 2006),
    "SG": Treaty("Singapore", 1994),
    "SK": Treaty("Slovakia", 2009),
    "ES": Treaty("Spain", 2006),
    "LK": Treaty("Sri Lanka", 2006),
    "SE": Treaty("Sweden", 1994),
    "CH": Treaty("Switzerland", 1996),
    "TW": Treaty("Taiwan", 1998),
    "TH": Treaty("Thailand", 1992),
    "TN": Treaty("Tunisia", 2013),
    "TR": Treaty("Turkey", 2015),
    "UA": Treaty("Ukraine", 1996),
    "AE": Treaty("United Arab Emirates", 2009),
    "GB": Treaty("United Kingdom", 1994),
    "US": Treaty("United States", 2016),
    "UZ": Treaty("Uzbekistan", 1996),
    "VE": Treaty("Venezuela", 2009),
}


class ForeignerAllowances(BaseModel):
    housing: Decimal = ZERO
    school_fees: Decimal = ZERO
    home_leave_fare: Decimal = ZERO
    relocation: Decimal = ZERO
    language_training: Decimal = ZERO
    other: Decimal = ZERO

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> Decimal:
        return self.taxable + self.exempt

    @property
    def taxable(self) -> Decimal:
        return self.housing + self.language_training + self.other

    @property
    def exempt(self) -> Decimal:
        return self.school_fees + self.home_leave_fare + self.relocation


class ForeignerTaxInput(BaseModel):
    nationality: str
    reference_date: date
    gross_income: Decimal
    foreign_income: Decimal = ZERO
    days_in_vietnam: int | None = None
    arrival_date: date | None = None
    has_permanent_residence: bool = False
    allowances: ForeignerAllowances = Field(default_factory=ForeignerAllowances)
    has_vietnamese_insurance: bool = False
    insurance_options: InsuranceOptions = Field(default_factory=default_insurance_options)
    region: int = 1
    dependents: int = 0
    compare_previous_regime: bool = True

    model_config = ConfigDict(frozen=True)


class ForeignerTaxResult(BaseModel):
    residency_status: ResidencyStatus
    days_in_vietnam: int
    gross_income: Money
    foreign_income: Money
    total_allowances: Money
    taxable_allowances: Money
    exempt_allowances: Money
    total_income: Money
    insurance_deduction: Money
    taxable_income: Money
    tax_amount: Money
    net_income: Money
    effective_rate: Rate
    resident_result: TaxResult | None = None
    treaty_country: str | None = None
    treaty_year: int | None = None
    # residents only: the same income under the regime that preceded the current one
    previous_regime: str | None = None
    previous_regime_tax: Money | None = None
    savings_vs_previous: Money | None = None
    notes: tuple[str, ...] = ()


def days_in_vietnam(arrival: date, reference_date: date) -> int:
    """Days present in Vietnam in the reference date's calendar year, both ends inclusive."""
    start = max(arrival, date(reference_date.year, 1, 1))
    if start > reference_date:
        return 0
    return (reference_date - start).days + 1


def determine_residency(days: int, has_permanent_residence: bool) -> ResidencyStatus:
    if has_permanent_residence or days >= RESIDENCY_DAYS_THRESHOLD:
        return "resident"
    return "non_resident"


def find_treaty(nationality: str) -> Treaty | None:
    return DOUBLE_TAX_TREATIES.get(nationality.strip().upper())


def previous_regime(selector: RegimeSelector, code: str) -> RegimeConstants | None:
    regimes = selector.regimes()
    codes = [regime.code for regime in regimes]
    idx = codes.index(code)
    return regimes[idx - 1] if idx > 0 else None


def _validate(req: ForeignerTaxInput) -> None:
    issues: list[str] = []
    money = {
        "gross_income": req.gross_income,
        "foreign_income": req.foreign_income,
        **{f"allowance_{k}": v for k, v in req.allowances.model_dump().items()},
    }
    for name, value in money.items():
        if not value.is_finite() or value < 0:
            issues.append(f"negative_{name}")
        elif value != value.to_integral_value():
            issues.append(f"{name}_not_whole_vnd")
    if req.days_in_vietnam is not None and not 0 <= req.days_in_vietnam <= 366:
        issues.append("invalid_days_in_vietnam")
    if req.dependents < 0:
        issues.append("negative_dependents")
    if req.region not in (1, 2, 3, 4):
        issues.append("invalid_region")
    if issues:
        raise InputValidationError(issues)


def compute_foreigner_tax(
    req: ForeignerTaxInput, selector: RegimeSelector | None = None
) -> ForeignerTaxResult:
    """Monthly PIT for a foreign national working in Vietnam.

    Residents are taxed like citizens on worldwide income plus taxable
    allowances, and their tax is also worked out under the preceding regime
    for comparison. Non-residents pay a flat 20% on Vietnam-sourced income
    with no deductions.
    """
    _validate(req)
    if req.days_in_vietnam is not None:
        days = req.days_in_vietnam
    elif req.arrival_date is not None:
        days = days_in_vietnam(req.arrival_date, req.reference_date)
    else:
        days = 0
    status = determine_residency(days, req.has_permanent_residence)
    treaty = find_treaty(req.nationality)
    allowances = req.allowances
    total_income = req.gross_income + req.foreign_income + allowances.total
    notes: list[str] = []

    selector = selector or default_selector()
    resident_result: TaxResult | None = None
    earlier: TaxResult | None = None
    if status == "resident":
        resident_input = TaxInput(
            gross_income=req.gross_income + req.foreign_income + allowances.taxable,
            reference_date=req.reference_date,
            dependents=req.dependents,
            has_insurance=req.has_vietnamese_insurance,
            insurance_options=req.insurance_options,
            insurance_salary=req.gross_income,
            region=req.region,
        )
        resident_result = compute_tax(resident_input, selector)
        insurance = resident_result.insurance_deduction
        taxable = resident_result.taxable_income
        tax = resident_result.tax_amount
        if req.has_permanent_residence:
            notes.append("Resident through a permanent residence in Vietnam.")
        else:
            notes.append(f"Resident: {days} days in Vietnam this year.")
        prior = previous_regime(selector, resident_result.regime) if req.compare_previous_regime else None
        if prior is not None:
            earlier = compute_with_constants(resident_input, prior)
            notes.append(
                f"Under {prior.code} the same income would owe {int(earlier.tax_amount):,} VND; "
                f"the difference is {int(earlier.tax_amount - tax):,} VND."
            )
    else:
        insurance = ZERO
        taxable = req.gross_income + allowances.taxable
        tax = round_vnd(taxable * NON_RESIDENT_TAX_RATE)
        notes.append(f"Non-resident: {days} days in Vietnam, flat 20% on Vietnam-sourced income.")
        if req.foreign_income > 0:
            notes.append("Foreign-sourced income of a non-resident is not taxed in Vietnam.")
    if allowances.exempt > 0:
        notes.append("School fees, home leave fares and relocation allowances are exempt.")
    if treaty is not None:
        notes.append(f"{treaty.country} has a double taxation agreement with Vietnam ({treaty.year}).")

    effective = (tax / total_income).quantize(D("0.000001")) if total_income > 0 else ZERO
    logger.debug("Foreigner %s (%s days): taxable=%s tax=%s", status, days, taxable, tax)
    return ForeignerTaxResult(
        residency_status=status,
        days_in_vietnam=days,
        gross_income=req.gross_income,
        foreign_income=req.foreign_income,
        total_allowances=allowances.total,
        taxable_allowances=allowances.taxable,
        exempt_allowances=allowances.exempt,
        total_income=total_income,
        insurance_deduction=insurance,
        taxable_income=taxable,
        tax_amount=tax,
        net_income=total_income - insurance - tax,
        effective_rate=effective,
        resident_result=resident_result,
        treaty_country=treaty.country if treaty else None,
        treaty_year=treaty.year if treaty else None,
        previous_regime=earlier.regime if earlier is not None else None,
        previous_regime_tax=earlier.tax_amount if earlier is not None else None,
        savings_vs_previous=earlier.tax_amount - tax if earlier is not None else None,
        notes=tuple(notes),
    )


__all__ = [
    "DOUBLE_TAX_TREATIES",
    "ForeignerAllowances",
    "ForeignerTaxInput",
    "ForeignerTaxResult",
    "NON_RESIDENT_TAX_RATE",
    "compute_foreigner_tax",
    "days_in_vietnam",
    "determine_residency",
    "find_treaty",
    "previous_regime",
]
