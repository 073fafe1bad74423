from __future__ import annotations

from datetime import date
from decimal import Decimal

from vnpit.core.regimes.base import RegimeConstants, frozen_map
from vnpit.core.regimes.pre2026 import (
    BRACKETS_PRE_2026,
    HOUSEHOLD_REVENUE_THRESHOLD_PRE_2026,
    INSURANCE_CEILING_MULTIPLIER,
    INSURANCE_RATES,
    TREATMENTS_PRE_2026,
    VOLUNTARY_PENSION_CAP,
)

D = Decimal

# Law 26/2012/QH13, from 2013-07-01. Same brackets as the 2020 deduction update.
PERSONAL_DEDUCTION_PRE_2020 = D("9000000")
DEPENDENT_DEDUCTION_PRE_2020 = D("3600000")

# Decree 38/2019/ND-CP, from 2019-07-01.
STATUTORY_BASE_SALARY_2019 = D("1490000")

# Decree 90/2019/ND-CP, from 2020-01-01.
REGIONAL_MINIMUM_WAGES_2020 = {
    1: D("4420000"),
    2: D("3920000"),
    3: D("3430000"),
    4: D("3070000"),
}

REGIME_PRE_2020 = RegimeConstants(
    code="pre_2020",
    title="Law on PIT 2007 as amended in 2012 (9M personal deduction)",
    brackets=BRACKETS_PRE_2026,
    personal_deduction=PERSONAL_DEDUCTION_PRE_2020,
    dependent_deduction=DEPENDENT_DEDUCTION_PRE_2020,
    insurance_rates=INSURANCE_RATES,
    insurance_contribution_ceiling=STATUTORY_BASE_SALARY_2019 * INSURANCE_CEILING_MULTIPLIER,
    regional_minimum_wages=frozen_map(REGIONAL_MINIMUM_WAGES_2020),
    unemployment_ceiling_multiplier=20,
    pension_deduction_cap=VOLUNTARY_PENSION_CAP,
    household_revenue_threshold=HOUSEHOLD_REVENUE_THRESHOLD_PRE_2026,
    effective_from=date(2013, 7, 1),
    treatments=frozen_map(TREATMENTS_PRE_2026),
)
