from dataclasses import dataclass, field
from decimal import Decimal
from datetime import date
from typing import FrozenSet, Optional, Tuple

from transaction_rules.domain.enums import (
    AccountScope,
    MatchType,
    RuleTransactionType,
    TransactionType,
)
from transaction_rules.domain.conditions import Condition
from transaction_rules.domain.actions import Action

ZERO = Decimal("0")


@dataclass(frozen=True)
class Transaction:
    """
    Bank transaction as seen by the rule engine.

    Money direction is carried by two non-negative fields: `spent` for
    outgoing and `received` for incoming amounts. The engine never
    mutates a transaction.
    """
    id: str
    description: str = ""
    spent: Optional[Decimal] = None
    received: Optional[Decimal] = None
    account_id: Optional[str] = None
    reference_number: Optional[str] = None
    contact_id: Optional[str] = None
    date: Optional[date] = None

    @classmethod
    def from_signed_amount(cls, id: str, amount: Decimal, **kwargs) -> "Transaction":
        """Build a transaction from a signed amount (positive=received, negative=spent)"""
        amount = Decimal(amount)
        if amount >= 0:
            return cls(id=id, received=amount, **kwargs)
        return cls(id=id, spent=-amount, **kwargs)

    @property
    def direction(self) -> Optional[TransactionType]:
        """INCOME if anything was received, EXPENSE if anything was spent, else None"""
        if self.received and self.received > 0:
            return TransactionType.INCOME
        if self.spent and self.spent > 0:
            return TransactionType.EXPENSE
        return None

    @property
    def amount(self) -> Decimal:
        """Absolute amount of the transaction (always >= 0)"""
        if self.received:
            return abs(self.received)
        if self.spent:
            return abs(self.spent)
        return ZERO

    @property
    def signed_amount(self) -> Decimal:
        """Return amount with sign for net calculations"""
        return self.amount if self.direction == TransactionType.INCOME else -self.amount

    def __repr__(self):
        sign = "+" if self.direction == TransactionType.INCOME else "-"
        return f"Transaction({self.id}, {self.description[:30]}, {sign}${self.amount})"


@dataclass(frozen=True)
class Rule:
    """
    A named matching + action definition applied to transactions.

    Treated as an immutable value for the duration of an evaluation.
    Lower `priority` values are evaluated first.
    """
    id: str
    name: str
    conditions: Tuple[Condition, ...] = ()
    actions: Tuple[Action, ...] = ()
    description: Optional[str] = None
    transaction_type: RuleTransactionType = RuleTransactionType.ANY
    account_scope: AccountScope = AccountScope.ALL
    account_ids: FrozenSet[str] = field(default_factory=frozenset)
    match_type: MatchType = MatchType.ALL
    auto_apply: bool = False
    stop_on_match: bool = True
    priority: float = 100
    active: bool = True

    def __post_init__(self):
        # Accept lists/sets from callers but store immutable containers
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "actions", tuple(self.actions))
        object.__setattr__(self, "account_ids", frozenset(self.account_ids))

    def __repr__(self):
        return (
            f"Rule({self.id!r}, {self.name!r}, priority={self.priority}, "
            f"{len(self.conditions)} conditions, {len(self.actions)} actions)"
        )
