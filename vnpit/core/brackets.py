from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from vnpit.core.errors import ConfigurationError

D = Decimal
ZERO = D("0")
_VND = D("1")


def round_vnd(value: D) -> D:
    return value.quantize(_VND, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBracket:
    lower: D
    upper: D | None
    rate: D

    def scaled(self, factor: int) -> "TaxBracket":
        upper = None if self.upper is None else self.upper * factor
        return TaxBracket(self.lower * factor, upper, self.rate)


@dataclass(frozen=True)
class BracketSlice:
    number: int
    bracket: TaxBracket
    taxable_amount: D
    tax_amount: D


def validate_schedule(brackets: Iterable[TaxBracket]) -> tuple[TaxBracket, ...]:
    """Check that a schedule is contiguous, ascending and open-ended.

    Raises :class:`ConfigurationError` on the first violation.
    """
    schedule = tuple(brackets)
    if not schedule:
        raise ConfigurationError("Bracket schedule is empty")
    if schedule[0].lower != ZERO:
        raise ConfigurationError(f"First bracket must start at 0, got {schedule[0].lower}")
    if schedule[-1].upper is not None:
        raise ConfigurationError("Last bracket must be open-ended")
    for bracket in schedule:
        if not ZERO <= bracket.rate <= D("1"):
            raise ConfigurationError(f"Bracket rate {bracket.rate} outside [0, 1]")
        if bracket.upper is not None and bracket.upper <= bracket.lower:
            raise ConfigurationError(f"Empty bracket {bracket.lower}-{bracket.upper}")
    for prev, cur in zip(schedule, schedule[1:]):
        if prev.upper != cur.lower:
            raise ConfigurationError(f"Brackets not contiguous at {prev.upper} / {cur.lower}")
        if cur.rate < prev.rate:
            raise ConfigurationError(f"Bracket rates decrease at {cur.lower}")
    return schedule


def progressive_slices(brackets: Sequence[TaxBracket], taxable_income: D) -> list[BracketSlice]:
    ti = max(ZERO, taxable_income)
    slices: list[BracketSlice] = []
    for number, bracket in enumerate(brackets, start=1):
        if ti <= bracket.lower:
            break
        hi = ti if bracket.upper is None else min(ti, bracket.upper)
        span = hi - bracket.lower
        if span > 0:
            slices.append(BracketSlice(number, bracket, span, round_vnd(span * bracket.rate)))
    return slices


def calculate_progressive_tax(brackets: Sequence[TaxBracket], taxable_income: D) -> D:
    return sum((s.tax_amount for s in progressive_slices(brackets, taxable_income)), ZERO)


def apportion(total: D, weights: Sequence[D]) -> list[D]:
    """Split a whole-VND total across weights so the parts sum back exactly."""
    weight_sum = sum(weights, ZERO)
    if total == 0 or weight_sum == 0:
        return [ZERO for _ in weights]
    raw = [total * w / weight_sum for w in weights]
    parts = [r.to_integral_value(rounding=ROUND_FLOOR) for r in raw]
    remainder = int(total - sum(parts, ZERO))
    order = sorted(range(len(raw)), key=lambda i: raw[i] - parts[i], reverse=True)
    for i in order[:remainder]:
        parts[i] += 1
    return parts


def marginal_rate(brackets: Sequence[TaxBracket], taxable_income: D) -> D:
    ti = max(ZERO, taxable_income)
    for bracket in brackets:
        if bracket.upper is None or ti < bracket.upper:
            return bracket.rate
    return brackets[-1].rate


__all__ = [
    "D",
    "ZERO",
    "TaxBracket",
    "BracketSlice",
    "round_vnd",
    "apportion",
    "validate_schedule",
    "progressive_slices",
    "calculate_progressive_tax",
    "marginal_rate",
]
