from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict

from vnpit.core.brackets import ZERO, round_vnd
from vnpit.core.categories import Exempt, FlatRate
from vnpit.core.errors import ConfigurationError, InputValidationError
from vnpit.core.models import Money, Rate
from vnpit.core.regimes import RegimeSelector, default_selector

D = Decimal

TransactionKind = Literal["inheritance", "gift"]
Relationship = Literal[
    "spouse",
    "parent_child",
    "grandparent_grandchild",
    "siblings",
    "other_relative",
    "non_relative",
]
AssetType = Literal["real_estate", "securities", "cash", "vehicles", "jewelry", "other"]

# Transfers within the immediate family are exempt whatever their value.
EXEMPT_RELATIONSHIPS = frozenset({"spouse", "parent_child", "grandparent_grandchild", "siblings"})
DECLARATION_DEADLINE_DAYS = 10

RELATIONSHIP_LABELS: dict[str, str] = {
    "spouse": "spouses",
    "parent_child": "parent and child (natural or adopted)",
    "grandparent_grandchild": "grandparent and grandchild",
    "siblings": "siblings",
    "other_relative": "other relatives",
    "non_relative": "unrelated persons",
}

_PROOF_OF_RELATIONSHIP = {
    "spouse": "Marriage certificate",
    "parent_child": "Birth certificate or adoption decision",
    "grandparent_grandchild": "Birth certificates across both generations",
    "siblings": "Birth certificates of both parties",
}

_ASSET_DOCUMENTS = {
    "real_estate": (
        "Land use right or house ownership certificate",
        "Evidence of value (purchase contract or valuation certificate)",
    ),
    "securities": (
        "Securities account statement",
        "Valuation confirmation from the securities company",
    ),
    "vehicles": (
        "Vehicle registration certificate",
        "Evidence of value (purchase invoice or valuation)",
    ),
    "cash": (
        "Bank account statement",
        "Balance confirmation for deposits",
    ),
    "jewelry": (
        "Inspection or quality certificate",
        "Purchase invoice or valuation certificate",
    ),
}

logger = logging.getLogger("vnpit.inheritance")


class GiftedAsset(BaseModel):
    type: AssetType = "other"
    value: Decimal
    description: str = ""

    model_config = ConfigDict(frozen=True)


class InheritanceGiftInput(BaseModel):
    transaction_type: TransactionKind
    relationship: Relationship
    assets: list[GiftedAsset]
    # date the inheritance or gift passes to the recipient
    reference_date: date


class InheritanceGiftResult(BaseModel):
    regime: str
    transaction_type: TransactionKind
    relationship: Relationship
    total_value: Money
    threshold: Money
    exempt: bool
    exempt_reason: str | None = None
    taxable_amount: Money
    tax_rate: Rate
    tax_amount: Money
    effective_rate: Rate
    declaration_deadline: date
    required_documents: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()


def is_exempt_relationship(relationship: str) -> bool:
    return relationship in EXEMPT_RELATIONSHIPS


def declaration_deadline(transaction_date: date) -> date:
    return transaction_date + timedelta(days=DECLARATION_DEADLINE_DAYS)


def required_documents(
    transaction_type: TransactionKind, relationship: Relationship, asset_types: list[str]
) -> list[str]:
    documents = ["PIT declaration (form 04/TNCN)", "Recipient's ID card or passport"]
    proof = _PROOF_OF_RELATIONSHIP.get(relationship)
    if proof:
        documents.append(proof)
    if transaction_type == "inheritance":
        documents.extend(
            [
                "Death certificate of the deceased",
                "Will, or minutes of the family agreement dividing the estate",
                "Notarised declaration or division of the estate",
            ]
        )
    else:
        documents.extend(["Notarised gift contract", "Donor's ID card"])
    for asset_type in dict.fromkeys(asset_types):
        documents.extend(_ASSET_DOCUMENTS.get(asset_type, ()))
    return documents


def _validate(req: InheritanceGiftInput) -> None:
    issues: list[str] = []
    if not req.assets:
        issues.append("no_assets")
    for idx, asset in enumerate(req.assets):
        if not asset.value.is_finite() or asset.value < 0:
            issues.append(f"negative_asset_value:{idx}")
        elif asset.value != asset.value.to_integral_value():
            issues.append(f"asset_value_not_whole_vnd:{idx}")
    if issues:
        raise InputValidationError(issues)


def compute_inheritance_gift_tax(
    req: InheritanceGiftInput, selector: RegimeSelector | None = None
) -> InheritanceGiftResult:
    """Tax on an inheritance or gift received in one transaction.

    Asset values are summed. Immediate family transfers are exempt outright;
    otherwise the regime's rate applies to the value above its threshold.
    """
    _validate(req)
    regime = (selector or default_selector()).resolve(req.reference_date, "inheritance")
    treatment = regime.treatment_for("inheritance")
    if isinstance(treatment, FlatRate):
        rate, threshold = treatment.rate, treatment.threshold
    elif isinstance(treatment, Exempt):
        rate, threshold = ZERO, ZERO
    else:
        raise ConfigurationError(f"Regime {regime.code} taxes inheritance progressively")

    total = sum((asset.value for asset in req.assets), ZERO)
    deadline = declaration_deadline(req.reference_date)
    documents = tuple(required_documents(req.transaction_type, req.relationship, [a.type for a in req.assets]))
    label = RELATIONSHIP_LABELS[req.relationship]

    exempt_reason: str | None = None
    notes: list[str] = []
    if is_exempt_relationship(req.relationship):
        exempt_reason = f"{req.transaction_type.capitalize()} between {label} is exempt."
        notes.append("A declaration is still required, with proof of the relationship.")
    elif isinstance(treatment, Exempt):
        exempt_reason = treatment.reason or f"Not taxed under {regime.code}."
    elif total <= threshold:
        exempt_reason = f"Value does not exceed the {int(threshold):,} VND threshold."
        notes.append("Several receipts in one year that together exceed the threshold are taxable.")

    if exempt_reason is not None:
        taxable = tax = ZERO
    else:
        taxable = total - threshold
        tax = round_vnd(taxable * rate)
        notes.append(f"Tax = ({int(total):,} - {int(threshold):,}) x {rate:.0%} = {int(tax):,} VND.")
        notes.append("Pay within 10 days of the tax notice.")
    notes.append(f"Declare by {deadline.isoformat()}, {DECLARATION_DEADLINE_DAYS} days after the transaction.")

    logger.debug(
        "%s from %s under %s: value=%s tax=%s", req.transaction_type, req.relationship, regime.code, total, tax
    )
    return InheritanceGiftResult(
        regime=regime.code,
        transaction_type=req.transaction_type,
        relationship=req.relationship,
        total_value=total,
        threshold=threshold,
        exempt=exempt_reason is not None,
        exempt_reason=exempt_reason,
        taxable_amount=taxable,
        tax_rate=ZERO if exempt_reason is not None else rate,
        tax_amount=tax,
        effective_rate=(tax / total).quantize(D("0.000001")) if total > 0 else ZERO,
        declaration_deadline=deadline,
        required_documents=documents,
        notes=tuple(notes),
    )


__all__ = [
    "DECLARATION_DEADLINE_DAYS",
    "EXEMPT_RELATIONSHIPS",
    "GiftedAsset",
    "InheritanceGiftInput",
    "InheritanceGiftResult",
    "compute_inheritance_gift_tax",
    "declaration_deadline",
    "is_exempt_relationship",
    "required_documents",
]
