from datetime import date
from decimal import Decimal as D

import pytest

from vnpit.core.calculator import compute_tax
from vnpit.core.errors import InputValidationError
from tests.fixtures.inputs import PRE_2026, make_tax_input, make_uninsured_input


def test_monthly_salary_under_2026_law():
    r = compute_tax(make_tax_input(20_000_000))
    assert r.regime == "2026"
    assert r.insurance_deduction == D("2100000")
    assert r.personal_deduction == D("15500000")
    assert r.taxable_income == D("2400000")
    assert r.tax_amount == D("120000")
    assert r.net_income == D("17780000")
    assert r.effective_rate == D("0.006")
    assert [(b.bracket, b.tax_amount) for b in r.tax_breakdown] == [(1, D("120000"))]


def test_same_salary_under_previous_law():
    r = compute_tax(make_tax_input(20_000_000, reference_date=PRE_2026))
    assert r.regime == "pre_2026"
    assert r.taxable_income == D("6900000")
    assert r.tax_amount == D("440000")
    assert r.net_income == D("17460000")


def test_zero_gross_is_all_zero():
    r = compute_tax(make_tax_input(0, dependents=3))
    assert r.gross_income == r.tax_amount == r.net_income == D("0")
    assert r.insurance_deduction == r.personal_deduction == r.dependent_deduction == D("0")
    assert r.taxable_income == D("0")
    assert r.effective_rate == D("0")
    assert r.tax_breakdown == ()


def test_deductions_larger_than_income_clamp_to_zero():
    r = compute_tax(make_uninsured_input(5_000_000, dependents=4))
    assert r.taxable_income == D("0")
    assert r.tax_amount == D("0")
    assert r.net_income == D("5000000")


def test_dependents_reduce_taxable_income():
    r = compute_tax(make_uninsured_input(30_000_000, dependents=2))
    assert r.taxable_income == D("2100000")
    assert r.tax_amount == D("105000")


def test_breakdown_sums_to_tax_for_high_income():
    r = compute_tax(make_uninsured_input(200_000_000))
    assert r.tax_amount == D("50075000")
    assert sum(b.tax_amount for b in r.tax_breakdown) == r.tax_amount
    assert sum(b.taxable_amount for b in r.tax_breakdown) == r.taxable_income


def test_yearly_period_uses_annual_schedule():
    yearly = compute_tax(make_uninsured_input(240_000_000, period="yearly"))
    monthly = compute_tax(make_uninsured_input(20_000_000))
    assert yearly.period == "yearly"
    assert yearly.personal_deduction == D("186000000")
    assert yearly.tax_amount == monthly.tax_amount * 12 == D("2700000")


def test_repeated_calls_are_identical():
    req = make_tax_input(37_123_456, dependents=1)
    assert compute_tax(req) == compute_tax(req)


@pytest.mark.parametrize(
    "overrides,issue",
    [
        ({"gross_income": D("-1")}, "negative_gross_income"),
        ({"gross_income": D("100.5")}, "gross_income_not_whole_vnd"),
        ({"dependents": -1}, "negative_dependents"),
        ({"region": 7}, "invalid_region"),
    ],
)
def test_invalid_inputs_raise(overrides, issue):
    with pytest.raises(InputValidationError) as exc:
        compute_tax(make_tax_input(**overrides))
    assert issue in exc.value.issues


def test_dates_before_2020_use_9m_deduction():
    r = compute_tax(make_tax_input(20_000_000, reference_date=date(2019, 12, 31)))
    assert r.regime == "pre_2020"
    assert r.insurance_deduction == D("2100000")
    assert r.taxable_income == D("8900000")
    assert r.tax_amount == D("640000")
    assert r.net_income == D("17260000")


def test_pre_2020_insurance_ceiling_uses_2019_base_salary():
    r = compute_tax(make_tax_input(40_000_000, reference_date=date(2015, 1, 1)))
    assert r.insurance_detail.bhxh + r.insurance_detail.bhyt == D("2831000")
    assert r.insurance_detail.bhtn == D("400000")
    assert r.taxable_income == D("27769000")
    assert r.tax_amount == D("3903800")
