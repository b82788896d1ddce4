"""
Condition evaluation.

Evaluates a single condition against a single transaction. Anomalies in
the data (absent fields, missing condition values) resolve to False
rather than raising, so one malformed transaction never aborts a batch.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from transaction_rules.domain.conditions import (
    AmountCondition,
    Condition,
    ContactCondition,
    TextCondition,
)
from transaction_rules.domain.enums import AmountOperator, ConditionField, TextOperator
from transaction_rules.domain.models import Transaction

CENTS = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places"""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def field_value(field: ConditionField, transaction: Transaction):
    """
    Resolve the transaction value a condition compares against.

    Returns:
        str for text and contact fields (empty when absent),
        Decimal (>= 0) for the amount field
    """
    if field == ConditionField.DESCRIPTION:
        return transaction.description or ""
    if field == ConditionField.REFERENCE:
        return transaction.reference_number or ""
    if field == ConditionField.CONTACT_ID:
        return transaction.contact_id or ""
    if field == ConditionField.AMOUNT:
        return transaction.amount
    raise ValueError(f"Unknown condition field: {field}")


def _evaluate_text(condition: TextCondition, transaction: Transaction) -> bool:
    expected = condition.value or ""
    if not expected:
        # An empty needle is contained in every string
        return condition.operator == TextOperator.CONTAINS

    actual = field_value(condition.field, transaction)
    if not condition.case_sensitive:
        expected = expected.casefold()
        actual = actual.casefold()

    if condition.operator == TextOperator.CONTAINS:
        return expected in actual
    if condition.operator == TextOperator.EQUALS:
        return actual == expected
    if condition.operator == TextOperator.STARTS_WITH:
        return actual.startswith(expected)
    if condition.operator == TextOperator.ENDS_WITH:
        return actual.endswith(expected)

    raise ValueError(f"Unknown text operator: {condition.operator}")


def _evaluate_amount(condition: AmountCondition, transaction: Transaction) -> bool:
    if condition.value is None:
        return False

    actual = transaction.amount
    value: Decimal = condition.value

    if condition.operator == AmountOperator.EQUALS:
        return to_cents(actual) == to_cents(value)
    if condition.operator == AmountOperator.GREATER_THAN:
        return actual > value
    if condition.operator == AmountOperator.LESS_THAN:
        return actual < value
    if condition.operator == AmountOperator.BETWEEN:
        upper: Optional[Decimal] = condition.value_to
        if upper is None or value > upper:
            return False
        return value <= actual <= upper

    raise ValueError(f"Unknown amount operator: {condition.operator}")


def _evaluate_contact(condition: ContactCondition, transaction: Transaction) -> bool:
    actual = transaction.contact_id
    if not actual or not condition.contact_id:
        return False
    return actual == condition.contact_id


def evaluate(condition: Condition, transaction: Transaction) -> bool:
    """
    Check whether one condition holds for a transaction.

    Args:
        condition: The condition to test
        transaction: Transaction to test it against

    Returns:
        True if the condition holds

    Example:
        ```
        >>> cond = TextCondition(value="sun life")
        >>> evaluate(cond, Transaction(id="1", description="SUN LIFE INSURANCE"))
        True
        ```
    """
    if isinstance(condition, TextCondition):
        return _evaluate_text(condition, transaction)
    if isinstance(condition, AmountCondition):
        return _evaluate_amount(condition, transaction)
    if isinstance(condition, ContactCondition):
        return _evaluate_contact(condition, transaction)

    raise TypeError(f"Unknown condition type: {type(condition).__name__}")
