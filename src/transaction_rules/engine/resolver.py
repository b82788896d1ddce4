"""
Action resolution.

Turns a matched rule's actions into effects for one transaction.
Effects are returned in the rule's stored action order; applying them
is the caller's job.
"""
from typing import List

from transaction_rules.domain.actions import (
    Action,
    ExcludeAction,
    SetCategoryAction,
    SetContactAction,
    SetMemoAction,
    SetSplitsAction,
    SetTaxesAction,
    SetTypeAction,
)
from transaction_rules.domain.effects import (
    ApplySplits,
    Effect,
    Exclude,
    SetCategory,
    SetContact,
    SetMemo,
    SetTaxes,
    SetType,
)
from transaction_rules.domain.models import Rule, Transaction
from transaction_rules.errors import RuleNotMatchedError, SplitAllocationError
from transaction_rules.engine.matcher import matches
from transaction_rules.engine.splits import allocate
from transaction_rules.logging_setup import get_logger

logger = get_logger(__name__)


def _resolve_splits(rule: Rule, action: SetSplitsAction, transaction: Transaction) -> List[Effect]:
    try:
        lines = allocate(action.mode, action.lines, transaction.amount)
    except SplitAllocationError as e:
        # Amount splits are checked against the concrete transaction here;
        # a mismatch drops the split instead of failing the evaluation.
        logger.warning(
            "Rule %r: dropping splits for transaction %s: %s",
            rule.name, transaction.id, e,
        )
        return []
    return [ApplySplits(lines=tuple(lines))]


def _resolve_action(rule: Rule, action: Action, transaction: Transaction) -> List[Effect]:
    if isinstance(action, SetTypeAction):
        return [SetType(type=action.type)]
    if isinstance(action, SetCategoryAction):
        return [SetCategory(category_id=action.category_id)]
    if isinstance(action, SetContactAction):
        return [SetContact(contact_id=action.contact_id)]
    if isinstance(action, SetMemoAction):
        return [SetMemo(memo=action.memo)]
    if isinstance(action, SetTaxesAction):
        return [SetTaxes(tax_ids=tuple(action.tax_ids))]
    if isinstance(action, SetSplitsAction):
        return _resolve_splits(rule, action, transaction)
    if isinstance(action, ExcludeAction):
        return [Exclude()]

    raise TypeError(f"Unknown action type: {type(action).__name__}")


def resolve_actions(rule: Rule, transaction: Transaction) -> List[Effect]:
    """
    Resolve a rule's actions without re-checking that it matches.

    Used by callers that already ran `matches()`.
    """
    if any(isinstance(action, ExcludeAction) for action in rule.actions):
        return [Exclude()]

    effects: List[Effect] = []
    for action in rule.actions:
        effects.extend(_resolve_action(rule, action, transaction))
    return effects


def resolve(rule: Rule, transaction: Transaction) -> List[Effect]:
    """
    Produce the ordered effects of a matched rule for a transaction.

    If the rule has an exclude action anywhere, the result is exactly
    `[Exclude()]`.

    Args:
        rule: A rule that matches `transaction`
        transaction: Transaction the effects are for

    Returns:
        Ordered list of effects

    Raises:
        RuleNotMatchedError: If the rule doesn't match the transaction
    """
    if not matches(rule, transaction):
        raise RuleNotMatchedError(
            f"Rule '{rule.name}' does not match transaction {transaction.id}"
        )
    return resolve_actions(rule, transaction)
