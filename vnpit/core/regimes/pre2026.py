from __future__ import annotations

from datetime import date
from decimal import Decimal

from vnpit.core.brackets import TaxBracket
from vnpit.core.categories import Exempt, FlatRate, Progressive
from vnpit.core.regimes.base import InsuranceRates, RegimeConstants, frozen_map

D = Decimal

# Monthly taxable income, Law on PIT 2007 (amended 2012, 2014).
BRACKETS_PRE_2026 = (
    TaxBracket(D("0"),          D("5000000"),  D("0.05")),
    TaxBracket(D("5000000"),    D("10000000"), D("0.10")),
    TaxBracket(D("10000000"),   D("18000000"), D("0.15")),
    TaxBracket(D("18000000"),   D("32000000"), D("0.20")),
    TaxBracket(D("32000000"),   D("52000000"), D("0.25")),
    TaxBracket(D("52000000"),   D("80000000"), D("0.30")),
    TaxBracket(D("80000000"),   None,          D("0.35")),
)

# Resolution 954/2020/UBTVQH14, from 2020-07-01.
PERSONAL_DEDUCTION_PRE_2026 = D("11000000")
DEPENDENT_DEDUCTION_PRE_2026 = D("4400000")

INSURANCE_RATES = InsuranceRates(bhxh=D("0.08"), bhyt=D("0.015"), bhtn=D("0.01"))
STATUTORY_BASE_SALARY = D("2340000")
INSURANCE_CEILING_MULTIPLIER = 20

# Decree 74/2024/ND-CP, from 2024-07-01.
REGIONAL_MINIMUM_WAGES_2024 = {
    1: D("4960000"),
    2: D("4410000"),
    3: D("3860000"),
    4: D("3450000"),
}

VOLUNTARY_PENSION_CAP = D("1000000")
HOUSEHOLD_REVENUE_THRESHOLD_PRE_2026 = D("100000000")

TREATMENTS_PRE_2026 = {
    "salary": Progressive(),
    "freelance": FlatRate(D("0.10"), basis="revenue_threshold", threshold=D("100000000")),
    "rental": FlatRate(D("0.05")),
    "dividend": FlatRate(D("0.05")),
    "interest": FlatRate(D("0.05"), exemption_flag="is_gov_bond"),
    "securities": FlatRate(D("0.001")),
    "real_estate": FlatRate(D("0.02")),
    "lottery": FlatRate(D("0.10"), basis="excess", threshold=D("10000000")),
    "inheritance": FlatRate(
        D("0.10"), basis="excess", threshold=D("10000000"), exemption_flag="is_from_family"
    ),
    "royalty": FlatRate(D("0.05")),
    "capital_investment": FlatRate(D("0.05")),
    "digital_asset": Exempt("Digital asset transfers are not taxed before the 2026 law"),
}

REGIME_PRE_2026 = RegimeConstants(
    code="pre_2026",
    title="Law on PIT 2007 (7 brackets)",
    brackets=BRACKETS_PRE_2026,
    personal_deduction=PERSONAL_DEDUCTION_PRE_2026,
    dependent_deduction=DEPENDENT_DEDUCTION_PRE_2026,
    insurance_rates=INSURANCE_RATES,
    insurance_contribution_ceiling=STATUTORY_BASE_SALARY * INSURANCE_CEILING_MULTIPLIER,
    regional_minimum_wages=frozen_map(REGIONAL_MINIMUM_WAGES_2024),
    unemployment_ceiling_multiplier=20,
    pension_deduction_cap=VOLUNTARY_PENSION_CAP,
    household_revenue_threshold=HOUSEHOLD_REVENUE_THRESHOLD_PRE_2026,
    effective_from=date(2020, 7, 1),
    treatments=frozen_map(TREATMENTS_PRE_2026),
)
