from __future__ import annotations

from datetime import date
from decimal import Decimal

from vnpit.core.brackets import TaxBracket
from vnpit.core.categories import FlatRate
from vnpit.core.regimes.base import RegimeConstants, frozen_map
from vnpit.core.regimes.pre2026 import (
    INSURANCE_CEILING_MULTIPLIER,
    INSURANCE_RATES,
    STATUTORY_BASE_SALARY,
    TREATMENTS_PRE_2026,
    VOLUNTARY_PENSION_CAP,
)

D = Decimal

# Monthly taxable income, Law 109/2025/QH15.
BRACKETS_2026 = (
    TaxBracket(D("0"),          D("10000000"),  D("0.05")),
    TaxBracket(D("10000000"),   D("30000000"),  D("0.10")),
    TaxBracket(D("30000000"),   D("60000000"),  D("0.20")),
    TaxBracket(D("60000000"),   D("100000000"), D("0.30")),
    TaxBracket(D("100000000"),  None,           D("0.35")),
)

# Resolution 110/2025/UBTVQH15, from the 2026 tax period.
PERSONAL_DEDUCTION_2026 = D("15500000")
DEPENDENT_DEDUCTION_2026 = D("6200000")

# Decree 293/2025/ND-CP, from 2026-01-01.
REGIONAL_MINIMUM_WAGES_2026 = {
    1: D("5310000"),
    2: D("4730000"),
    3: D("4140000"),
    4: D("3700000"),
}

HOUSEHOLD_REVENUE_THRESHOLD_2026 = D("500000000")

# Households taxed on income (revenue less expenses), rate set by yearly revenue.
HOUSEHOLD_INCOME_RATES_2026 = (
    TaxBracket(D("500000000"),    D("3000000000"),  D("0.15")),
    TaxBracket(D("3000000000"),   D("50000000000"), D("0.17")),
    TaxBracket(D("50000000000"),  None,            D("0.20")),
)

SALARY_CUTOVER_2026 = date(2026, 1, 1)
# Capital, transfer and windfall income follow the law's general effective date.
CAPITAL_CUTOVER_2026 = date(2026, 7, 1)

_CAPITAL_CATEGORIES = (
    "dividend",
    "interest",
    "securities",
    "real_estate",
    "lottery",
    "inheritance",
    "royalty",
    "capital_investment",
    "digital_asset",
)

TREATMENTS_2026 = {
    **TREATMENTS_PRE_2026,
    "freelance": FlatRate(
        D("0.10"), basis="revenue_threshold", threshold=HOUSEHOLD_REVENUE_THRESHOLD_2026
    ),
    "digital_asset": FlatRate(D("0.001")),
}

REGIME_2026 = RegimeConstants(
    code="2026",
    title="Law 109/2025/QH15 (5 brackets)",
    brackets=BRACKETS_2026,
    personal_deduction=PERSONAL_DEDUCTION_2026,
    dependent_deduction=DEPENDENT_DEDUCTION_2026,
    insurance_rates=INSURANCE_RATES,
    insurance_contribution_ceiling=STATUTORY_BASE_SALARY * INSURANCE_CEILING_MULTIPLIER,
    regional_minimum_wages=frozen_map(REGIONAL_MINIMUM_WAGES_2026),
    unemployment_ceiling_multiplier=20,
    pension_deduction_cap=VOLUNTARY_PENSION_CAP,
    household_revenue_threshold=HOUSEHOLD_REVENUE_THRESHOLD_2026,
    effective_from=SALARY_CUTOVER_2026,
    household_threshold_deductible=True,
    household_income_rates=HOUSEHOLD_INCOME_RATES_2026,
    category_effective_from=frozen_map({c: CAPITAL_CUTOVER_2026 for c in _CAPITAL_CATEGORIES}),
    treatments=frozen_map(TREATMENTS_2026),
)
