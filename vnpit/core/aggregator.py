from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Sequence

from vnpit.core.brackets import ZERO, apportion, round_vnd
from vnpit.core.calculator import compute_tax
from vnpit.core.categories import Exempt, FlatRate, Progressive, Treatment, category_group
from vnpit.core.errors import ConfigurationError
from vnpit.core.models import (
    CategoryTotals,
    IncomeSource,
    MultiSourceResult,
    PersonContext,
    SourceTaxResult,
    TaxInput,
    TaxResult,
)
from vnpit.core.regimes import RegimeConstants, RegimeSelector, default_selector
from vnpit.core.validate import ensure_valid, validate_person, validate_sources

D = Decimal
_RATE_PLACES = D("0.000001")
_GROUPS = ("salary", "investment", "business", "other")

logger = logging.getLogger("vnpit.aggregator")


def annualize(amount: D, frequency: str) -> D:
    if frequency == "monthly":
        return amount * 12
    return amount


@dataclass
class _Line:
    source: IncomeSource
    annual: D
    regime: RegimeConstants
    treatment: Treatment
    taxable: D = ZERO
    tax: D = ZERO
    applied_rate: D | None = None
    exempted: bool = False
    notes: list[str] = field(default_factory=list)


def _apply_flat(line: _Line) -> None:
    treatment = line.treatment
    if not isinstance(treatment, FlatRate):
        raise ConfigurationError(f"{line.regime.code} treatment for {line.source.type} is not a flat rate")
    line.applied_rate = treatment.rate
    flag = treatment.exemption_flag
    if flag is not None and getattr(line.source, flag):
        line.exempted = True
        line.applied_rate = ZERO
        line.notes.append(f"exempt ({flag})")
        return
    amount = line.annual
    if treatment.basis == "excess":
        if amount <= treatment.threshold:
            line.notes.append(f"at or below {int(treatment.threshold):,} threshold")
            return
        line.taxable = amount - treatment.threshold
    elif treatment.basis == "revenue_threshold":
        if amount < treatment.threshold:
            line.notes.append(f"revenue below {int(treatment.threshold):,} threshold")
            return
        line.taxable = amount
    else:
        line.taxable = amount
    line.tax = round_vnd(line.taxable * treatment.rate)


def _apply_exempt(line: _Line) -> None:
    treatment = line.treatment
    if not isinstance(treatment, Exempt):
        raise ConfigurationError(f"{line.regime.code} treatment for {line.source.type} is not an exemption")
    line.exempted = True
    line.applied_rate = ZERO
    if treatment.reason:
        line.notes.append(treatment.reason)


# Progressive lines are settled together after the pass, so they have no handler here.
_FLAT_HANDLERS: dict[str, Callable[[_Line], None]] = {
    "flat": _apply_flat,
    "exempt": _apply_exempt,
}


def _settle_progressive(
    lines: list[_Line], person: PersonContext, selector: RegimeSelector
) -> TaxResult | None:
    if not lines:
        return None
    total = sum((line.annual for line in lines), ZERO)
    req = TaxInput(
        gross_income=total,
        reference_date=person.reference_date,
        dependents=person.dependents,
        has_insurance=person.has_insurance,
        insurance_options=person.insurance_options,
        region=person.region,
        other_deductions=person.other_deductions,
        pension_contribution=person.pension_contribution,
        charitable_contribution=person.charitable_contribution,
        period="yearly",
    )
    result = compute_tax(req, selector)
    weights = [line.annual for line in lines]
    taxes = apportion(result.tax_amount, weights)
    taxables = apportion(result.taxable_income, weights)
    for line, tax, taxable in zip(lines, taxes, taxables):
        line.tax = tax
        line.taxable = taxable
        line.notes.append(f"taxed progressively with {len(lines)} salary-like source(s)")
    return result


def _tips(person: PersonContext, lines: list[_Line], progressive: TaxResult | None) -> list[str]:
    tips: list[str] = []
    salary_tax = progressive.tax_amount if progressive is not None else ZERO
    if salary_tax > 0:
        regime = next(line.regime for line in lines if isinstance(line.treatment, Progressive))
        if person.dependents == 0:
            tips.append(
                f"Registering dependents deducts {int(regime.dependent_deduction):,} VND "
                "per dependent per month."
            )
        if person.pension_contribution == 0:
            tips.append(
                f"Voluntary pension contributions are deductible up to "
                f"{int(regime.pension_deduction_cap):,} VND per month."
            )
        if person.charitable_contribution == 0:
            tips.append("Donations through recognised charities are deductible.")

    def annual_for(kind: str) -> D:
        return sum((line.annual for line in lines if line.source.type == kind), ZERO)

    if annual_for("freelance") > D("1000000000"):
        tips.append("High freelance revenue: compare the tax cost of operating as a company.")
    if annual_for("rental") > D("500000000"):
        tips.append("High rental revenue: a registered household business can deduct expenses.")
    if any(line.source.type == "interest" and not line.source.is_gov_bond for line in lines):
        tips.append("Interest on government bonds is exempt from personal income tax.")
    return tips


def aggregate(
    sources: Sequence[IncomeSource],
    person: PersonContext,
    selector: RegimeSelector | None = None,
) -> MultiSourceResult:
    """Tax a person's income streams, each under its own category treatment.

    Salary-like sources are pooled and taxed once on the yearly schedule so
    the low brackets apply once per person, not once per source.
    """
    ensure_valid(validate_person(person) + validate_sources(sources))
    selector = selector or default_selector()

    lines: list[_Line] = []
    for source in sources:
        regime = selector.resolve(person.reference_date, source.type)
        lines.append(
            _Line(
                source=source,
                annual=annualize(source.amount, source.frequency),
                regime=regime,
                treatment=regime.treatment_for(source.type),
            )
        )

    progressive_lines = [line for line in lines if isinstance(line.treatment, Progressive)]
    for line in lines:
        handler = _FLAT_HANDLERS.get(line.treatment.kind)
        if handler is not None:
            handler(line)
    progressive_result = _settle_progressive(progressive_lines, person, selector)

    per_category: dict[str, tuple[D, D]] = {}
    groups: dict[str, tuple[D, D]] = {g: (ZERO, ZERO) for g in _GROUPS}
    results: list[SourceTaxResult] = []
    for line in lines:
        group = category_group(line.source.type)
        gross, tax = per_category.get(line.source.type, (ZERO, ZERO))
        per_category[line.source.type] = (gross + line.annual, tax + line.tax)
        gross, tax = groups[group]
        groups[group] = (gross + line.annual, tax + line.tax)
        results.append(
            SourceTaxResult(
                source_id=line.source.id,
                type=line.source.type,
                group=group,
                treatment=line.treatment.kind,
                annual_amount=line.annual,
                taxable_amount=line.taxable,
                tax_amount=line.tax,
                applied_rate=line.applied_rate,
                effective_rate=(line.tax / line.annual).quantize(_RATE_PLACES) if line.annual > 0 else ZERO,
                regime=line.regime.code,
                exempted=line.exempted,
                notes=tuple(line.notes),
            )
        )

    total_gross = sum((line.annual for line in lines), ZERO)
    total_tax = sum((line.tax for line in lines), ZERO)
    progressive_tax = sum((line.tax for line in progressive_lines), ZERO)
    logger.debug(
        "Aggregated %s sources: gross=%s tax=%s progressive=%s",
        len(lines),
        total_gross,
        total_tax,
        progressive_tax,
    )
    return MultiSourceResult(
        source_results=tuple(results),
        total_gross=total_gross,
        total_taxable=sum((line.taxable for line in lines), ZERO),
        total_tax=total_tax,
        total_net=total_gross - total_tax,
        progressive_tax=progressive_tax,
        flat_tax=total_tax - progressive_tax,
        overall_effective_rate=(total_tax / total_gross).quantize(_RATE_PLACES) if total_gross > 0 else ZERO,
        per_category_breakdown={k: CategoryTotals(gross=g, tax=t) for k, (g, t) in per_category.items()},
        group_breakdown={k: CategoryTotals(gross=g, tax=t) for k, (g, t) in groups.items()},
        progressive_result=progressive_result,
        optimization_tips=tuple(_tips(person, lines, progressive_result)),
    )


__all__ = ["aggregate", "annualize", "apportion"]
