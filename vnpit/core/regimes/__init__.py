from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from vnpit.core.categories import INCOME_TYPES
from vnpit.core.errors import ConfigurationError, InputValidationError
from vnpit.core.regimes.base import (
    InsuranceRates,
    RegimeConstants,
    RegimeTable,
    RegimeWindow,
)
from vnpit.core.regimes.pre2020 import REGIME_PRE_2020
from vnpit.core.regimes.pre2026 import REGIME_PRE_2026
from vnpit.core.regimes.y2026 import REGIME_2026

logger = logging.getLogger("vnpit.regimes")

DEFAULT_REGIME_TABLE = RegimeTable((REGIME_PRE_2020, REGIME_PRE_2026, REGIME_2026))


class RegimeSelector:
    """Resolve the regime in force for a reference date and income category.

    All date comparisons in the engine happen here. The selector never looks at
    the current date; callers pass ``reference_date`` explicitly.
    """

    def __init__(self, table: RegimeTable | None = None):
        self._table = table if table is not None else DEFAULT_REGIME_TABLE

    @property
    def table(self) -> RegimeTable:
        return self._table

    def regimes(self) -> tuple[RegimeConstants, ...]:
        return self._table.regimes

    def resolve(self, reference_date: date, category: str = "salary") -> RegimeConstants:
        if isinstance(reference_date, datetime):
            reference_date = reference_date.date()
        if not isinstance(reference_date, date):
            raise InputValidationError(["invalid_reference_date"])
        if category not in INCOME_TYPES:
            raise InputValidationError(["unknown_income_category"])
        for window in self._table.windows(category):
            if window.contains(reference_date):
                logger.debug(
                    "Resolved regime %s for %s on %s", window.regime.code, category, reference_date
                )
                return window.regime
        raise ConfigurationError(f"No regime covers {category} income on {reference_date.isoformat()}")


_DEFAULT_SELECTOR = RegimeSelector()


def default_selector() -> RegimeSelector:
    return _DEFAULT_SELECTOR


def describe(regime: RegimeConstants) -> dict[str, Any]:
    return {
        "code": regime.code,
        "title": regime.title,
        "period": regime.period,
        "effective_from": regime.effective_from.isoformat(),
        "effective_until": regime.effective_until.isoformat() if regime.effective_until else None,
        "category_effective_from": {
            category: day.isoformat() for category, day in sorted(regime.category_effective_from.items())
        },
        "brackets": [
            {
                "number": number,
                "lower": int(b.lower),
                "upper": int(b.upper) if b.upper is not None else None,
                "rate": float(b.rate),
            }
            for number, b in enumerate(regime.brackets, start=1)
        ],
        "personal_deduction": int(regime.personal_deduction),
        "dependent_deduction": int(regime.dependent_deduction),
        "insurance_rates": {
            "bhxh": float(regime.insurance_rates.bhxh),
            "bhyt": float(regime.insurance_rates.bhyt),
            "bhtn": float(regime.insurance_rates.bhtn),
        },
        "insurance_contribution_ceiling": int(regime.insurance_contribution_ceiling),
        "regional_minimum_wages": {str(k): int(v) for k, v in sorted(regime.regional_minimum_wages.items())},
        "household_revenue_threshold": int(regime.household_revenue_threshold),
        "household_income_rates": [
            {"lower": int(b.lower), "upper": int(b.upper) if b.upper is not None else None, "rate": float(b.rate)}
            for b in regime.household_income_rates
        ],
        "treatments": {category: treatment.kind for category, treatment in regime.treatments.items()},
    }


__all__ = [
    "DEFAULT_REGIME_TABLE",
    "InsuranceRates",
    "RegimeConstants",
    "RegimeSelector",
    "RegimeTable",
    "RegimeWindow",
    "default_selector",
    "describe",
]
