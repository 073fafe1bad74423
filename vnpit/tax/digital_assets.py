from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field

from vnpit.core.brackets import ZERO, round_vnd
from vnpit.core.categories import Exempt, FlatRate
from vnpit.core.errors import InputValidationError
from vnpit.core.models import CategoryTotals, Money, Rate, generate_source_id
from vnpit.core.regimes import RegimeSelector, default_selector

D = Decimal

TransactionType = Literal["buy", "sell", "swap", "transfer"]
DISPOSALS = frozenset({"sell", "swap"})

logger = logging.getLogger("vnpit.digital_assets")


class DigitalAssetTransaction(BaseModel):
    id: str = Field(default_factory=generate_source_id)
    trade_date: date
    type: TransactionType
    asset_name: str = ""
    quantity: Decimal = ZERO
    total_value: Decimal
    fee: Decimal = ZERO

    model_config = ConfigDict(frozen=True)


class TransactionTax(BaseModel):
    id: str
    trade_date: date
    type: TransactionType
    asset_name: str
    total_value: Money
    regime: str
    taxable: bool
    tax_rate: Rate
    tax_amount: Money
    note: str = ""


class DigitalAssetTaxResult(BaseModel):
    transactions: tuple[TransactionTax, ...]
    total_transactions: int
    taxable_transactions: int
    total_buy_value: Money
    total_sell_value: Money
    total_swap_value: Money
    total_taxable_value: Money
    total_tax: Money
    effective_rate: Rate
    # keyed by "YYYY-MM"
    monthly_breakdown: dict[str, CategoryTotals] = Field(default_factory=dict)


def _validate(transactions: Sequence[DigitalAssetTransaction]) -> None:
    issues: list[str] = []
    for tx in transactions:
        for name in ("total_value", "fee", "quantity"):
            value: Decimal = getattr(tx, name)
            if not value.is_finite() or value < 0:
                issues.append(f"negative_{name}:{tx.id}")
        if tx.total_value.is_finite() and tx.total_value != tx.total_value.to_integral_value():
            issues.append(f"total_value_not_whole_vnd:{tx.id}")
    if issues:
        raise InputValidationError(issues)


def compute_digital_asset_tax(
    transactions: Sequence[DigitalAssetTransaction],
    selector: RegimeSelector | None = None,
) -> DigitalAssetTaxResult:
    """Transfer tax on digital-asset disposals.

    Each transaction is taxed under the regime in force on its own date.
    Sells and swaps pay the regime's flat rate on the transaction value where
    the regime taxes digital assets; buys and wallet transfers never do.
    """
    _validate(transactions)
    selector = selector or default_selector()
    taxed: list[TransactionTax] = []
    monthly: dict[str, tuple[D, D]] = {}
    for tx in sorted(transactions, key=lambda t: t.trade_date):
        regime = selector.resolve(tx.trade_date, "digital_asset")
        treatment = regime.treatment_for("digital_asset")
        rate = ZERO
        tax = ZERO
        note = ""
        if tx.type not in DISPOSALS:
            note = f"{tx.type} is not a disposal"
        elif isinstance(treatment, FlatRate):
            rate = treatment.rate
            tax = round_vnd(tx.total_value * rate)
        elif isinstance(treatment, Exempt):
            note = treatment.reason or f"not taxed under {regime.code}"
        taxable = rate > 0
        taxed.append(
            TransactionTax(
                id=tx.id,
                trade_date=tx.trade_date,
                type=tx.type,
                asset_name=tx.asset_name,
                total_value=tx.total_value,
                regime=regime.code,
                taxable=taxable,
                tax_rate=rate,
                tax_amount=tax,
                note=note,
            )
        )
        key = tx.trade_date.strftime("%Y-%m")
        value, month_tax = monthly.get(key, (ZERO, ZERO))
        monthly[key] = (value + tx.total_value, month_tax + tax)

    def total_for(kind: str) -> D:
        return sum((t.total_value for t in taxed if t.type == kind), ZERO)

    taxable_value = sum((t.total_value for t in taxed if t.taxable), ZERO)
    total_tax = sum((t.tax_amount for t in taxed), ZERO)
    logger.debug("Digital assets: %s transactions, tax=%s", len(taxed), total_tax)
    return DigitalAssetTaxResult(
        transactions=tuple(taxed),
        total_transactions=len(taxed),
        taxable_transactions=sum(1 for t in taxed if t.taxable),
        total_buy_value=total_for("buy"),
        total_sell_value=total_for("sell"),
        total_swap_value=total_for("swap"),
        total_taxable_value=taxable_value,
        total_tax=total_tax,
        effective_rate=(total_tax / taxable_value).quantize(D("0.000001")) if taxable_value > 0 else ZERO,
        monthly_breakdown={k: CategoryTotals(gross=v, tax=t) for k, (v, t) in monthly.items()},
    )


__all__ = [
    "DigitalAssetTransaction",
    "DigitalAssetTaxResult",
    "TransactionTax",
    "compute_digital_asset_tax",
]
