from dataclasses import dataclass, field
from typing import Any, Dict, List

from transaction_rules.domain.effects import Effect, Exclude


@dataclass
class RuleEvaluation:
    """Outcome of evaluating one rule against one transaction"""
    matched: bool
    effects: List[Effect] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "effects": [effect.to_dict() for effect in self.effects],
        }


@dataclass
class RuleSetResult:
    """
    Outcome of running a rule set against one transaction.

    `matched_rule_ids` lists every rule whose effects were collected,
    in evaluation order.
    """
    transaction_id: str
    matched_rule_ids: List[str] = field(default_factory=list)
    effects: List[Effect] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.matched_rule_ids)

    @property
    def excluded(self) -> bool:
        return any(isinstance(effect, Exclude) for effect in self.effects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionId": self.transaction_id,
            "matchedRuleIds": list(self.matched_rule_ids),
            "effects": [effect.to_dict() for effect in self.effects],
        }
