from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Iterator, Mapping

from vnpit.core.brackets import TaxBracket, validate_schedule
from vnpit.core.categories import Treatment
from vnpit.core.errors import ConfigurationError

D = Decimal

_EMPTY: Mapping = MappingProxyType({})


@dataclass(frozen=True)
class InsuranceRates:
    bhxh: D
    bhyt: D
    bhtn: D

    @property
    def total(self) -> D:
        return self.bhxh + self.bhyt + self.bhtn


@dataclass(frozen=True)
class RegimeConstants:
    code: str
    title: str
    brackets: tuple[TaxBracket, ...]
    personal_deduction: D
    dependent_deduction: D
    insurance_rates: InsuranceRates
    insurance_contribution_ceiling: D
    regional_minimum_wages: Mapping[int, D]
    unemployment_ceiling_multiplier: int
    pension_deduction_cap: D
    household_revenue_threshold: D
    effective_from: date
    household_threshold_deductible: bool = False
    # yearly revenue bands for households taxed on income, rate chosen by total revenue
    household_income_rates: tuple[TaxBracket, ...] = ()
    effective_until: date | None = None
    category_effective_from: Mapping[str, date] = field(default_factory=lambda: _EMPTY)
    treatments: Mapping[str, Treatment] = field(default_factory=lambda: _EMPTY)
    period: str = "monthly"

    def __post_init__(self) -> None:
        validate_schedule(self.brackets)
        if self.effective_until is not None and self.effective_until <= self.effective_from:
            raise ConfigurationError(
                f"Regime {self.code} ends ({self.effective_until}) before it starts ({self.effective_from})"
            )
        if set(self.regional_minimum_wages) != {1, 2, 3, 4}:
            raise ConfigurationError(f"Regime {self.code} must define minimum wages for regions 1-4")
        for rate in (self.insurance_rates.bhxh, self.insurance_rates.bhyt, self.insurance_rates.bhtn):
            if not D("0") <= rate <= D("1"):
                raise ConfigurationError(f"Regime {self.code} has insurance rate {rate} outside [0, 1]")

    @property
    def insurance_rate_personal(self) -> D:
        return self.insurance_rates.total

    def unemployment_ceiling(self, region: int) -> D:
        return self.regional_minimum_wages[region] * self.unemployment_ceiling_multiplier

    def household_income_rate(self, revenue: D) -> D | None:
        if not self.household_income_rates:
            return None
        for band in self.household_income_rates:
            if band.lower < revenue and (band.upper is None or revenue <= band.upper):
                return band.rate
        return D("0")

    def starts_for(self, category: str) -> date:
        return self.category_effective_from.get(category, self.effective_from)

    def treatment_for(self, category: str) -> Treatment:
        try:
            return self.treatments[category]
        except KeyError as exc:
            raise ConfigurationError(f"Regime {self.code} has no treatment for {category}") from exc

    def annualized(self) -> "RegimeConstants":
        """Return the same regime expressed per year instead of per month."""
        if self.period == "yearly":
            return self
        return replace(
            self,
            brackets=tuple(b.scaled(12) for b in self.brackets),
            personal_deduction=self.personal_deduction * 12,
            dependent_deduction=self.dependent_deduction * 12,
            insurance_contribution_ceiling=self.insurance_contribution_ceiling * 12,
            regional_minimum_wages=MappingProxyType(
                {region: wage * 12 for region, wage in self.regional_minimum_wages.items()}
            ),
            pension_deduction_cap=self.pension_deduction_cap * 12,
            period="yearly",
        )


@dataclass(frozen=True)
class RegimeWindow:
    start: date
    end: date | None
    regime: RegimeConstants

    def contains(self, day: date) -> bool:
        return self.start <= day and (self.end is None or day < self.end)


@dataclass(frozen=True)
class RegimeTable:
    regimes: tuple[RegimeConstants, ...]

    def __post_init__(self) -> None:
        if not self.regimes:
            raise ConfigurationError("Regime table is empty")
        codes = [r.code for r in self.regimes]
        if len(set(codes)) != len(codes):
            raise ConfigurationError(f"Duplicate regime codes in {codes}")
        for category in self.categories():
            list(self.windows(category))

    def categories(self) -> set[str]:
        known = {"salary"}
        for regime in self.regimes:
            known.update(regime.category_effective_from)
            known.update(regime.treatments)
        return known

    def windows(self, category: str) -> Iterator[RegimeWindow]:
        """Contiguous windows covering every date for ``category``.

        The earliest regime also answers for dates before it took effect, and
        the latest one stays in force with no end date.
        """
        ordered = self.regimes
        starts = [r.starts_for(category) for r in ordered]
        for prev, cur in zip(starts, starts[1:]):
            if cur <= prev:
                raise ConfigurationError(f"Regime windows overlap for {category} at {cur}")
        last = len(ordered) - 1
        for idx, regime in enumerate(ordered):
            if idx == last:
                if regime.effective_until is not None:
                    raise ConfigurationError(
                        f"Regime {regime.code} ends on {regime.effective_until} with no successor"
                    )
                end = None
            else:
                end = starts[idx + 1]
                if regime.effective_until is not None and regime.effective_until != end:
                    raise ConfigurationError(
                        f"Regime {regime.code} must end where its successor starts for {category}"
                    )
            yield RegimeWindow(date.min if idx == 0 else starts[idx], end, regime)

    def get(self, code: str) -> RegimeConstants:
        for regime in self.regimes:
            if regime.code == code:
                return regime
        raise KeyError(code)


def frozen_map(values: dict) -> Mapping:
    return MappingProxyType(dict(values))


__all__ = [
    "InsuranceRates",
    "RegimeConstants",
    "RegimeWindow",
    "RegimeTable",
    "frozen_map",
]
