"""
Effects: the concrete instructions a matched rule produces for one
transaction. They are returned to the caller, never applied here.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from transaction_rules.domain.enums import TransactionType


@dataclass(frozen=True)
class ResolvedSplitLine:
    amount: Decimal
    category_id: Optional[str] = None
    description: Optional[str] = None
    tax_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "categoryId": self.category_id,
            "description": self.description,
            "taxIds": list(self.tax_ids),
        }


@dataclass(frozen=True)
class SetType:
    kind: ClassVar[str] = "set_type"
    type: TransactionType

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "type": self.type.value}


@dataclass(frozen=True)
class SetCategory:
    kind: ClassVar[str] = "set_category"
    category_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "categoryId": self.category_id}


@dataclass(frozen=True)
class SetContact:
    kind: ClassVar[str] = "set_contact"
    contact_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "contactId": self.contact_id}


@dataclass(frozen=True)
class SetMemo:
    kind: ClassVar[str] = "set_memo"
    memo: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "memo": self.memo}


@dataclass(frozen=True)
class SetTaxes:
    kind: ClassVar[str] = "set_taxes"
    tax_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "taxIds": list(self.tax_ids)}


@dataclass(frozen=True)
class ApplySplits:
    kind: ClassVar[str] = "apply_splits"
    lines: Tuple[ResolvedSplitLine, ...]

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "lines": [line.to_dict() for line in self.lines]}


@dataclass(frozen=True)
class Exclude:
    kind: ClassVar[str] = "exclude"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}


Effect = Union[SetType, SetCategory, SetContact, SetMemo, SetTaxes, ApplySplits, Exclude]


def describe_effect(effect: Effect) -> str:
    """Short human label for an effect, used by the CLI"""
    if isinstance(effect, SetType):
        return f"type={effect.type.value}"
    if isinstance(effect, SetCategory):
        return f"category={effect.category_id}"
    if isinstance(effect, SetContact):
        return f"contact={effect.contact_id}"
    if isinstance(effect, SetMemo):
        return f"memo={effect.memo!r}"
    if isinstance(effect, SetTaxes):
        return f"taxes={','.join(effect.tax_ids)}"
    if isinstance(effect, ApplySplits):
        amounts = " + ".join(f"{line.amount:.2f}" for line in effect.lines)
        return f"splits=[{amounts}]"
    if isinstance(effect, Exclude):
        return "exclude"
    raise TypeError(f"Unknown effect: {effect!r}")
