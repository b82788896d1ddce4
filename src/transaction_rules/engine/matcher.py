from transaction_rules.domain.enums import AccountScope, MatchType, RuleTransactionType
from transaction_rules.domain.models import Rule, Transaction
from transaction_rules.engine.evaluator import evaluate


def passes_prefilter(rule: Rule, transaction: Transaction) -> bool:
    """
    Check the rule's direction and account scope against a transaction.

    A rule restricted to income or expense only applies to transactions
    moving money in that direction; a transaction with neither spent nor
    received can only be matched by `any` rules.
    """
    if rule.transaction_type != RuleTransactionType.ANY:
        direction = transaction.direction
        if direction is None or direction.value != rule.transaction_type.value:
            return False

    if rule.account_scope == AccountScope.SELECTED:
        if transaction.account_id not in rule.account_ids:
            return False

    return True


def matches(rule: Rule, transaction: Transaction) -> bool:
    """
    Decide whether a rule matches a transaction.

    Conditions are only evaluated once the pre-filter passes. A rule
    without conditions never matches.

    Args:
        rule: Rule to test
        transaction: Transaction to test it against

    Returns:
        True if the rule matches
    """
    if not passes_prefilter(rule, transaction):
        return False

    if not rule.conditions:
        return False

    results = (evaluate(condition, transaction) for condition in rule.conditions)

    if rule.match_type == MatchType.ALL:
        return all(results)
    if rule.match_type == MatchType.ANY:
        return any(results)

    raise ValueError(f"Unknown match type: {rule.match_type}")
