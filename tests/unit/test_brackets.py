from decimal import Decimal as D

import pytest

from vnpit.core.brackets import (
    TaxBracket,
    calculate_progressive_tax,
    marginal_rate,
    progressive_slices,
    round_vnd,
    validate_schedule,
)
from vnpit.core.errors import ConfigurationError
from vnpit.core.regimes.pre2026 import BRACKETS_PRE_2026
from vnpit.core.regimes.y2026 import BRACKETS_2026


def test_pre_2026_schedule_top_bracket():
    assert calculate_progressive_tax(BRACKETS_PRE_2026, D("100000000")) == D("25150000")


def test_2026_schedule_fills_every_bracket():
    slices = progressive_slices(BRACKETS_2026, D("184500000"))
    assert [s.number for s in slices] == [1, 2, 3, 4, 5]
    assert [s.tax_amount for s in slices] == [
        D("500000"),
        D("2000000"),
        D("6000000"),
        D("12000000"),
        D("29575000"),
    ]
    assert sum(s.taxable_amount for s in slices) == D("184500000")


def test_slices_stop_at_taxable_income():
    slices = progressive_slices(BRACKETS_2026, D("2400000"))
    assert len(slices) == 1
    assert slices[0].taxable_amount == D("2400000")
    assert slices[0].tax_amount == D("120000")


@pytest.mark.parametrize("taxable", [D("0"), D("-5")])
def test_no_tax_without_taxable_income(taxable):
    assert progressive_slices(BRACKETS_2026, taxable) == []
    assert calculate_progressive_tax(BRACKETS_2026, taxable) == D("0")


def test_marginal_rate_at_bracket_boundary():
    assert marginal_rate(BRACKETS_2026, D("9999999")) == D("0.05")
    assert marginal_rate(BRACKETS_2026, D("10000000")) == D("0.10")
    assert marginal_rate(BRACKETS_2026, D("500000000")) == D("0.35")


def test_round_vnd_half_up():
    assert round_vnd(D("0.5")) == D("1")
    assert round_vnd(D("1234.49")) == D("1234")


def test_scaled_bracket_keeps_rate():
    yearly = TaxBracket(D("10000000"), D("30000000"), D("0.10")).scaled(12)
    assert yearly == TaxBracket(D("120000000"), D("360000000"), D("0.10"))


@pytest.mark.parametrize(
    "schedule",
    [
        (),
        (TaxBracket(D("1"), None, D("0.05")),),
        (TaxBracket(D("0"), D("10"), D("0.05")),),
        (TaxBracket(D("0"), D("10"), D("0.05")), TaxBracket(D("11"), None, D("0.10"))),
        (TaxBracket(D("0"), D("10"), D("0.10")), TaxBracket(D("10"), None, D("0.05"))),
        (TaxBracket(D("0"), None, D("1.5")),),
    ],
)
def test_invalid_schedules_rejected(schedule):
    with pytest.raises(ConfigurationError):
        validate_schedule(schedule)
