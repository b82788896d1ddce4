"""
Condition variants.

A condition is one comparison test within a rule. Each variant only
carries the value type that makes sense for its field:

- TextCondition: `description` or `reference` against a string
- AmountCondition: the transaction's absolute amount against number(s)
- ContactCondition: the transaction's contact against an identifier
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Optional, Union

from transaction_rules.domain.enums import (
    AmountOperator,
    ConditionField,
    TextOperator,
)


@dataclass(frozen=True)
class TextCondition:
    field: ConditionField = ConditionField.DESCRIPTION
    operator: TextOperator = TextOperator.CONTAINS
    value: str = ""
    case_sensitive: bool = False
    id: Optional[str] = None

    def __post_init__(self):
        if not self.field.is_text:
            raise ValueError(f"{self.field.value} is not a text field")


@dataclass(frozen=True)
class AmountCondition:
    field: ClassVar[ConditionField] = ConditionField.AMOUNT

    operator: AmountOperator = AmountOperator.EQUALS
    value: Optional[Decimal] = None
    value_to: Optional[Decimal] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class ContactCondition:
    field: ClassVar[ConditionField] = ConditionField.CONTACT_ID
    operator: ClassVar[str] = "equals"

    contact_id: str = ""
    id: Optional[str] = None


Condition = Union[TextCondition, AmountCondition, ContactCondition]


def describe_condition(condition: Condition) -> str:
    """
    Human label for a condition, e.g. `description contains "sun life"`
    or `amount between 100 and 200`.
    """
    if isinstance(condition, AmountCondition):
        op = condition.operator.value
        if condition.operator == AmountOperator.BETWEEN:
            return f"amount between {condition.value} and {condition.value_to}"
        return f"amount {op} {condition.value if condition.value is not None else ''}".strip()
    if isinstance(condition, ContactCondition):
        return f'contactId equals "{condition.contact_id}"'

    label = f'{condition.field.value} {condition.operator.value} "{condition.value}"'
    if condition.case_sensitive:
        label += " (case sensitive)"
    return label
