from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Union

D = Decimal

IncomeType = Literal[
    "salary",
    "freelance",
    "rental",
    "dividend",
    "interest",
    "securities",
    "real_estate",
    "lottery",
    "inheritance",
    "royalty",
    "capital_investment",
    "digital_asset",
]

INCOME_TYPES: tuple[str, ...] = (
    "salary",
    "freelance",
    "rental",
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

INCOME_TYPE_LABELS: dict[str, str] = {
    "salary": "Salary and wages",
    "freelance": "Freelance / individual business",
    "rental": "Property rental",
    "dividend": "Dividends",
    "interest": "Deposit and bond interest",
    "securities": "Securities transfer",
    "real_estate": "Real estate transfer",
    "lottery": "Lottery and prize winnings",
    "inheritance": "Inheritance and gifts",
    "royalty": "Royalties and franchising",
    "capital_investment": "Capital contribution returns",
    "digital_asset": "Digital asset transfer",
}

CategoryGroup = Literal["salary", "investment", "business", "other"]

_GROUPS: dict[str, CategoryGroup] = {
    "salary": "salary",
    "dividend": "investment",
    "interest": "investment",
    "securities": "investment",
    "capital_investment": "investment",
    "digital_asset": "investment",
    "freelance": "business",
    "rental": "business",
    "royalty": "business",
}


def category_group(income_type: str) -> CategoryGroup:
    return _GROUPS.get(income_type, "other")


# How the flat rate meets the annual amount:
#   amount            rate x amount
#   excess            rate x (amount - threshold), nothing at or below the threshold
#   revenue_threshold nothing below the threshold, rate x amount otherwise
FlatBasis = Literal["amount", "excess", "revenue_threshold"]
ExemptionFlag = Literal["is_from_family", "is_gov_bond"]


@dataclass(frozen=True)
class Progressive:
    kind: Literal["progressive"] = "progressive"


@dataclass(frozen=True)
class FlatRate:
    rate: D
    basis: FlatBasis = "amount"
    threshold: D = D("0")
    exemption_flag: ExemptionFlag | None = None
    kind: Literal["flat"] = "flat"


@dataclass(frozen=True)
class Exempt:
    reason: str = ""
    kind: Literal["exempt"] = "exempt"


Treatment = Union[Progressive, FlatRate, Exempt]


__all__ = [
    "IncomeType",
    "INCOME_TYPES",
    "INCOME_TYPE_LABELS",
    "CategoryGroup",
    "category_group",
    "FlatBasis",
    "ExemptionFlag",
    "Progressive",
    "FlatRate",
    "Exempt",
    "Treatment",
]
