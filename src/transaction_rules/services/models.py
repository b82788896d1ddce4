"""
Service layer models - DTOs for service operations.

These models describe what happened during a batch run or a rule
preview, not domain entities. Effects inside them are still only
instructions for the caller.
"""
from dataclasses import dataclass, field
from typing import List

from transaction_rules.domain.effects import Effect
from transaction_rules.domain.models import Transaction
from transaction_rules.engine.results import RuleSetResult
from transaction_rules.errors import ValidationError


@dataclass
class BatchResult:
    """
    Results of running a rule set over many transactions, in input order.
    """
    results: List[RuleSetResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def matched_count(self) -> int:
        return sum(1 for r in self.results if r.matched)

    @property
    def excluded_count(self) -> int:
        return sum(1 for r in self.results if r.excluded)

    @property
    def untouched_count(self) -> int:
        """Transactions no rule matched; the caller leaves them unreviewed"""
        return self.total - self.matched_count

    def __str__(self) -> str:
        "Human-readable summary"
        lines = [
            f"Rule run summary:",
            f" 📄 Transactions: {self.total}",
            f" ✅ Matched: {self.matched_count}",
            f" 🚫 Excluded: {self.excluded_count}",
            f" ⏭️ Untouched: {self.untouched_count}",
        ]
        return "\n".join(lines)


@dataclass
class RuleTestMatch:
    transaction: Transaction
    effects: List[Effect] = field(default_factory=list)


@dataclass
class RuleTestResult:
    """
    Preview of a single rule against a set of transactions.

    The rule does not need to be saved or active to be tested.
    """
    rule_id: str
    rule_name: str
    tested: int
    matches: List[RuleTestMatch] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def matched_transaction_ids(self) -> List[str]:
        return [m.transaction.id for m in self.matches]

    def __str__(self) -> str:
        lines = [
            f"Rule test for '{self.rule_name}':",
            f" 🔎 Tested: {self.tested}",
            f" ✅ Matched: {len(self.matches)}",
        ]
        if self.errors:
            lines.append(f" ❌ Validation errors: {len(self.errors)}")
        return "\n".join(lines)
