from decimal import Decimal as D

import pytest

from vnpit.core.aggregator import _Line, _apply_flat, aggregate, annualize, apportion
from vnpit.core.categories import Exempt
from vnpit.core.errors import ConfigurationError, InputValidationError
from vnpit.core.models import IncomeSource, create_income_source
from vnpit.core.regimes import default_selector
from tests.fixtures.inputs import LATE_2026, NEW_2026, PRE_2026, make_person


def _by_type(result):
    return {r.type: r for r in result.source_results}


def test_family_inheritance_is_exempt():
    sources = [
        create_income_source("salary", 20_000_000),
        create_income_source("inheritance", 5_000_000_000, is_from_family=True),
    ]
    result = aggregate(sources, make_person())
    inheritance = _by_type(result)["inheritance"]
    assert inheritance.tax_amount == D("0")
    assert inheritance.exempted is True
    assert result.total_tax == _by_type(result)["salary"].tax_amount == D("1440000")


def test_non_family_inheritance_taxed_above_threshold():
    result = aggregate([create_income_source("inheritance", 30_000_000)], make_person())
    assert result.total_tax == D("2000000")


@pytest.mark.parametrize("amount,tax", [(10_000_000, 0), (15_000_000, 500_000)])
def test_lottery_threshold(amount, tax):
    result = aggregate([create_income_source("lottery", amount)], make_person(PRE_2026))
    assert result.total_tax == D(tax)


def test_government_bond_interest_exempt():
    sources = [
        create_income_source("interest", 100_000_000, is_gov_bond=True),
        create_income_source("interest", 100_000_000),
    ]
    result = aggregate(sources, make_person())
    taxes = sorted(r.tax_amount for r in result.source_results)
    assert taxes == [D("0"), D("5000000")]
    assert any("gov" in tip.lower() for tip in result.optimization_tips)


@pytest.mark.parametrize(
    "reference_date,tax,regime",
    [(NEW_2026, D("0"), "pre_2026"), (LATE_2026, D("1000000"), "2026")],
)
def test_digital_asset_follows_category_cutover(reference_date, tax, regime):
    result = aggregate([create_income_source("digital_asset", 1_000_000_000)], make_person(reference_date))
    line = result.source_results[0]
    assert line.regime == regime
    assert line.tax_amount == tax


@pytest.mark.parametrize(
    "reference_date,amount,tax",
    [
        (NEW_2026, 400_000_000, 0),
        (NEW_2026, 600_000_000, 60_000_000),
        (PRE_2026, 400_000_000, 40_000_000),
        (PRE_2026, 90_000_000, 0),
    ],
)
def test_freelance_revenue_threshold(reference_date, amount, tax):
    result = aggregate([create_income_source("freelance", amount)], make_person(reference_date))
    assert result.total_tax == D(tax)


def test_salary_sources_pooled_once_per_person():
    single = aggregate([create_income_source("salary", 20_000_000)], make_person())
    split = aggregate(
        [create_income_source("salary", 12_000_000), create_income_source("salary", 8_000_000)],
        make_person(),
    )
    assert split.total_tax == single.total_tax
    assert split.progressive_tax == split.total_tax
    assert split.progressive_result is not None
    assert split.progressive_result.period == "yearly"
    assert sum(r.tax_amount for r in split.source_results) == split.progressive_result.tax_amount


def test_breakdowns_are_consistent():
    sources = [
        create_income_source("salary", 25_000_000),
        create_income_source("rental", 120_000_000),
        create_income_source("dividend", 40_000_000),
        create_income_source("securities", 500_000_000),
        create_income_source("real_estate", 2_000_000_000),
    ]
    result = aggregate(sources, make_person(PRE_2026, dependents=1))
    by_type = _by_type(result)
    assert by_type["rental"].tax_amount == D("6000000")
    assert by_type["dividend"].tax_amount == D("2000000")
    assert by_type["securities"].tax_amount == D("500000")
    assert by_type["real_estate"].tax_amount == D("40000000")
    assert result.total_tax == sum(r.tax_amount for r in result.source_results)
    assert result.total_net == result.total_gross - result.total_tax
    assert result.flat_tax + result.progressive_tax == result.total_tax
    assert sum(c.tax for c in result.group_breakdown.values()) == result.total_tax
    assert sum(c.gross for c in result.per_category_breakdown.values()) == result.total_gross
    assert result.group_breakdown["investment"].gross == D("540000000")


def test_empty_sources():
    result = aggregate([], make_person())
    assert result.total_gross == result.total_tax == D("0")
    assert result.progressive_result is None


def test_invalid_sources_collect_issues():
    sources = [
        IncomeSource(id="a", type="salary", amount=D("-5")),
        IncomeSource(id="b", type="crypto_mining", amount=D("5")),
        IncomeSource(id="b", type="rental", amount=D("1.5")),
    ]
    with pytest.raises(InputValidationError) as exc:
        aggregate(sources, make_person())
    assert exc.value.issues == [
        "negative_amount:a",
        "unknown_income_category:b",
        "amount_not_whole_vnd:b",
        "duplicate_source_id:b",
    ]


@pytest.mark.parametrize(
    "overrides,issue",
    [
        ({"region": 5}, "invalid_region"),
        ({"region": 0}, "invalid_region"),
        ({"dependents": -2}, "negative_dependents"),
        ({"other_deductions": D("-1")}, "negative_other_deductions"),
    ],
)
def test_invalid_person_rejected(overrides, issue):
    sources = [create_income_source("salary", 20_000_000)]
    with pytest.raises(InputValidationError) as exc:
        aggregate(sources, make_person(**overrides))
    assert exc.value.issues == [issue]


def test_person_and_source_issues_reported_together():
    with pytest.raises(InputValidationError) as exc:
        aggregate([IncomeSource(id="x", type="bitcoin", amount=D("1"))], make_person(region=9))
    assert exc.value.issues == ["invalid_region", "unknown_income_category:x"]


def test_handler_refuses_mismatched_treatment():
    regime = default_selector().resolve(NEW_2026, "rental")
    line = _Line(
        source=create_income_source("rental", 1),
        annual=D("1"),
        regime=regime,
        treatment=Exempt(),
    )
    with pytest.raises(ConfigurationError):
        _apply_flat(line)


def test_source_type_normalized():
    assert IncomeSource(type=" Salary ", amount=D("1")).type == "salary"


def test_salary_defaults_to_monthly():
    assert create_income_source("salary").frequency == "monthly"
    assert create_income_source("rental").frequency == "yearly"
    assert annualize(D("10"), "monthly") == D("120")
    assert annualize(D("10"), "one_time") == D("10")


@pytest.mark.parametrize(
    "total,weights,expected",
    [
        (D("100"), [D("1"), D("1"), D("1")], [D("34"), D("33"), D("33")]),
        (D("0"), [D("1"), D("2")], [D("0"), D("0")]),
        (D("7"), [D("0"), D("0")], [D("0"), D("0")]),
        (D("10"), [D("3"), D("1")], [D("8"), D("2")]),
    ],
)
def test_apportion_sums_back(total, weights, expected):
    assert apportion(total, weights) == expected
