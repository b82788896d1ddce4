"""
Rule validation.

Checks a rule definition before it is saved. Every problem found is
reported; nothing is corrected silently.
"""
from typing import Any, List, Mapping, Optional, Union

from transaction_rules.domain.actions import (
    Action,
    SetCategoryAction,
    SetContactAction,
    SetMemoAction,
    SetSplitsAction,
    SetTaxesAction,
)
from transaction_rules.domain.conditions import (
    AmountCondition,
    Condition,
    ContactCondition,
    TextCondition,
)
from transaction_rules.domain.enums import AccountScope, AmountOperator
from transaction_rules.domain.models import Rule, Transaction
from transaction_rules.errors import (
    InvalidRuleError,
    RulePayloadError,
    ValidationError,
)
from transaction_rules.engine.splits import check_lines
from transaction_rules.parsers.rule_payload import parse_rule


def _check_condition(condition: Condition, path: str) -> List[ValidationError]:
    errors: List[ValidationError] = []

    if isinstance(condition, TextCondition):
        if not condition.value:
            errors.append(ValidationError("Text condition needs a value", f"{path}.valueString"))

    elif isinstance(condition, AmountCondition):
        if condition.value is None:
            errors.append(ValidationError("Amount condition needs a value", f"{path}.valueNumber"))
        if condition.operator == AmountOperator.BETWEEN:
            if condition.value_to is None:
                errors.append(ValidationError(
                    "'between' needs an upper bound", f"{path}.valueNumberTo"
                ))
            elif condition.value is not None and condition.value > condition.value_to:
                errors.append(ValidationError(
                    f"Lower bound {condition.value} is greater than upper bound {condition.value_to}",
                    f"{path}.valueNumberTo",
                ))
        elif condition.value_to is not None:
            errors.append(ValidationError(
                "Upper bound is only used by 'between'", f"{path}.valueNumberTo"
            ))

    elif isinstance(condition, ContactCondition):
        if not condition.contact_id:
            errors.append(ValidationError("Contact condition needs a contact", f"{path}.valueString"))

    else:
        errors.append(ValidationError(f"Unknown condition type {type(condition).__name__}", path))

    return errors


def _check_action(
    action: Action,
    path: str,
    transaction: Optional[Transaction],
) -> List[ValidationError]:
    errors: List[ValidationError] = []

    if isinstance(action, SetCategoryAction) and not action.category_id:
        errors.append(ValidationError("Category is required", f"{path}.payload.categoryId"))
    elif isinstance(action, SetContactAction) and not action.contact_id:
        errors.append(ValidationError("Contact is required", f"{path}.payload.contactId"))
    elif isinstance(action, SetMemoAction) and not action.memo.strip():
        errors.append(ValidationError("Memo must not be empty", f"{path}.payload.memo"))
    elif isinstance(action, SetTaxesAction):
        if not action.tax_ids:
            errors.append(ValidationError("At least one tax is required", f"{path}.payload.taxIds"))
        elif not all(action.tax_ids):
            errors.append(ValidationError("Tax ids must not be empty", f"{path}.payload.taxIds"))
    elif isinstance(action, SetSplitsAction):
        total = transaction.amount if transaction is not None else None
        errors.extend(check_lines(action.mode, action.lines, total, f"{path}.payload.lines"))

    return errors


def validate_rule(
    rule: Union[Rule, Mapping[str, Any]],
    transaction: Optional[Transaction] = None,
) -> List[ValidationError]:
    """
    Check a rule definition before it is saved.

    Args:
        rule: Typed rule, or a rule payload dict in the API shape
        transaction: Optional transaction the rule is being created from.
            Amount-mode splits can only be reconciled against a concrete
            amount, so their sum is checked only when this is given.

    Returns:
        Every validation error found; empty when the rule is valid

    Example:
        ```
        errors = validate_rule(rule)
        if errors:
            for error in errors:
                print(error)
        ```
    """
    if not isinstance(rule, Rule):
        try:
            rule = parse_rule(rule)
        except RulePayloadError as e:
            return [e]

    errors: List[ValidationError] = []

    if not rule.name or not rule.name.strip():
        errors.append(ValidationError("Rule name is required", "name"))

    if rule.account_scope == AccountScope.SELECTED and not rule.account_ids:
        errors.append(ValidationError("Select at least one account", "accountIds"))

    if not rule.conditions:
        errors.append(ValidationError("Rule needs at least one condition", "conditions"))

    for i, condition in enumerate(rule.conditions):
        errors.extend(_check_condition(condition, f"conditions[{i}]"))

    for i, action in enumerate(rule.actions):
        errors.extend(_check_action(action, f"actions[{i}]", transaction))

    return errors


def assert_valid_rule(
    rule: Union[Rule, Mapping[str, Any]],
    transaction: Optional[Transaction] = None,
) -> Rule:
    """
    Save-time gate: return the typed rule or raise.

    Raises:
        InvalidRuleError: If the rule has any validation error
    """
    errors = validate_rule(rule, transaction)
    if errors:
        name = rule.name if isinstance(rule, Rule) else str(rule.get("name", ""))
        raise InvalidRuleError(name, errors)
    return rule if isinstance(rule, Rule) else parse_rule(rule)
