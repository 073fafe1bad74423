from __future__ import annotations

import logging
from decimal import Decimal

from vnpit.core.brackets import ZERO, progressive_slices
from vnpit.core.deductions import resolve_deductions
from vnpit.core.insurance import compute_insurance, no_insurance
from vnpit.core.models import BracketContribution, TaxInput, TaxResult
from vnpit.core.regimes import RegimeConstants, RegimeSelector, default_selector
from vnpit.core.validate import ensure_valid, validate_tax_input

D = Decimal
_RATE_PLACES = D("0.000001")

logger = logging.getLogger("vnpit.calculator")


def regime_for(req: TaxInput, selector: RegimeSelector | None = None) -> RegimeConstants:
    constants = (selector or default_selector()).resolve(req.reference_date, "salary")
    return constants.annualized() if req.period == "yearly" else constants


def _zero_result(req: TaxInput, constants: RegimeConstants) -> TaxResult:
    return TaxResult(
        regime=constants.code,
        period=req.period,
        gross_income=ZERO,
        insurance_deduction=ZERO,
        insurance_detail=no_insurance(),
        personal_deduction=ZERO,
        dependent_deduction=ZERO,
        other_deductions=ZERO,
        taxable_income=ZERO,
        tax_amount=ZERO,
        net_income=ZERO,
        effective_rate=ZERO,
    )


def compute_with_constants(req: TaxInput, constants: RegimeConstants) -> TaxResult:
    """Run the forward calculation against an already resolved regime."""
    gross = req.gross_income
    if gross == 0:
        return _zero_result(req, constants)
    if req.has_insurance:
        insurance = compute_insurance(
            gross, req.insurance_options, req.region, constants, req.insurance_salary
        )
    else:
        insurance = no_insurance()
    deductions = resolve_deductions(req, constants)

    taxable = max(ZERO, gross - insurance.total - deductions.total)
    slices = progressive_slices(constants.brackets, taxable)
    tax = sum((s.tax_amount for s in slices), ZERO)
    breakdown = tuple(
        BracketContribution(
            bracket=s.number,
            lower=s.bracket.lower,
            upper=s.bracket.upper,
            rate=s.bracket.rate,
            taxable_amount=s.taxable_amount,
            tax_amount=s.tax_amount,
        )
        for s in slices
    )
    effective = (tax / gross).quantize(_RATE_PLACES) if gross > 0 else ZERO
    return TaxResult(
        regime=constants.code,
        period=req.period,
        gross_income=gross,
        insurance_deduction=insurance.total,
        insurance_detail=insurance,
        personal_deduction=deductions.personal_deduction,
        dependent_deduction=deductions.dependent_deduction,
        other_deductions=deductions.other_deductions,
        taxable_income=taxable,
        tax_amount=tax,
        tax_breakdown=breakdown,
        net_income=gross - insurance.total - tax,
        effective_rate=effective,
    )


def compute_tax(req: TaxInput, selector: RegimeSelector | None = None) -> TaxResult:
    ensure_valid(validate_tax_input(req))
    constants = regime_for(req, selector)
    result = compute_with_constants(req, constants)
    logger.debug(
        "Computed %s tax under %s: gross=%s taxable=%s tax=%s",
        req.period,
        constants.code,
        result.gross_income,
        result.taxable_income,
        result.tax_amount,
    )
    return result


__all__ = ["compute_tax", "compute_with_constants", "regime_for"]
