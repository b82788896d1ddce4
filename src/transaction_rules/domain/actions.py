"""
Action variants.

Every action except `ExcludeAction` carries a payload. `action_type` is
the wire name used by rule payloads.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Optional, Tuple, Union

from transaction_rules.domain.enums import SplitMode, TransactionType


@dataclass(frozen=True)
class SplitLine:
    """
    One line of a split. Only `percent` or `amount` is meaningful,
    depending on the parent action's mode.
    """
    percent: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    tax_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "tax_ids", tuple(self.tax_ids))


@dataclass(frozen=True)
class SetTypeAction:
    action_type: ClassVar[str] = "set_type"

    type: TransactionType
    id: Optional[str] = None


@dataclass(frozen=True)
class SetCategoryAction:
    action_type: ClassVar[str] = "set_category"

    category_id: str
    id: Optional[str] = None


@dataclass(frozen=True)
class SetContactAction:
    action_type: ClassVar[str] = "set_contact"

    contact_id: str
    id: Optional[str] = None


@dataclass(frozen=True)
class SetMemoAction:
    action_type: ClassVar[str] = "set_memo"

    memo: str
    id: Optional[str] = None


@dataclass(frozen=True)
class SetTaxesAction:
    action_type: ClassVar[str] = "set_taxes"

    tax_ids: Tuple[str, ...]
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "tax_ids", tuple(self.tax_ids))


@dataclass(frozen=True)
class SetSplitsAction:
    action_type: ClassVar[str] = "set_splits"

    mode: SplitMode
    lines: Tuple[SplitLine, ...]
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class ExcludeAction:
    """Void the transaction; no other action applies"""
    action_type: ClassVar[str] = "exclude"

    id: Optional[str] = None


Action = Union[
    SetTypeAction,
    SetCategoryAction,
    SetContactAction,
    SetMemoAction,
    SetTaxesAction,
    SetSplitsAction,
    ExcludeAction,
]

ACTION_TYPES = {
    cls.action_type: cls
    for cls in (
        SetTypeAction,
        SetCategoryAction,
        SetContactAction,
        SetMemoAction,
        SetTaxesAction,
        SetSplitsAction,
        ExcludeAction,
    )
}


def describe_action(action: Action) -> str:
    """Human label for an action, e.g. `Set Type to income`"""
    if isinstance(action, SetTypeAction):
        return f"Set Type to {action.type.value}"
    if isinstance(action, SetCategoryAction):
        return f"Set Category ({action.category_id})"
    if isinstance(action, SetContactAction):
        return f"Set Contact ({action.contact_id})"
    if isinstance(action, SetMemoAction):
        return f'Set Memo "{action.memo}"'
    if isinstance(action, SetTaxesAction):
        return f"Set Taxes ({', '.join(action.tax_ids)})"
    if isinstance(action, SetSplitsAction):
        return f"Split by {action.mode.value} into {len(action.lines)} lines"
    if isinstance(action, ExcludeAction):
        return "Exclude"
    raise TypeError(f"Unknown action type: {type(action).__name__}")
