from __future__ import annotations

from decimal import Decimal

from vnpit.core.brackets import apportion, round_vnd
from vnpit.core.errors import InputValidationError
from vnpit.core.models import InsuranceDetail, InsuranceOptions
from vnpit.core.regimes import RegimeConstants

D = Decimal
_ZERO = D("0")


def contribution_bases(
    salary_base: D, region: int, constants: RegimeConstants
) -> tuple[D, D]:
    """Capped salary bases for (social+health, unemployment) insurance.

    Social and health insurance stop at 20x the statutory base salary;
    unemployment insurance stops at 20x the regional minimum wage.
    """
    if region not in constants.regional_minimum_wages:
        raise InputValidationError(["invalid_region"])
    base = max(_ZERO, salary_base)
    return (
        min(base, constants.insurance_contribution_ceiling),
        min(base, constants.unemployment_ceiling(region)),
    )


def compute_insurance(
    gross_income: D,
    options: InsuranceOptions,
    region: int,
    constants: RegimeConstants,
    insurance_salary: D | None = None,
) -> InsuranceDetail:
    salary_base = gross_income if insurance_salary is None else insurance_salary
    capped, capped_unemployment = contribution_bases(salary_base, region, constants)
    rates = constants.insurance_rates
    exact = [
        capped * rates.bhxh if options.bhxh else _ZERO,
        capped * rates.bhyt if options.bhyt else _ZERO,
        capped_unemployment * rates.bhtn if options.bhtn else _ZERO,
    ]
    # The total is rounded once so it never grows by more than the salary base does.
    total = round_vnd(sum(exact, _ZERO))
    bhxh, bhyt, bhtn = apportion(total, exact)
    return InsuranceDetail(bhxh=bhxh, bhyt=bhyt, bhtn=bhtn, total=total)


def no_insurance() -> InsuranceDetail:
    return InsuranceDetail()
