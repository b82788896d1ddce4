from enum import Enum

class TransactionType(Enum):
    """Represents whether money is coming in or out"""
    INCOME = "income" # received
    EXPENSE = "expense" # spent


class RuleTransactionType(Enum):
    """Which transaction direction a rule is considered for"""
    ANY = "any"
    INCOME = "income"
    EXPENSE = "expense"


class AccountScope(Enum):
    ALL = "all"
    SELECTED = "selected"


class MatchType(Enum):
    """How condition results are combined"""
    ALL = "all"
    ANY = "any"


class ConditionField(Enum):
    DESCRIPTION = "description"
    AMOUNT = "amount"
    REFERENCE = "reference"
    CONTACT_ID = "contactId"

    @property
    def is_text(self) -> bool:
        return self in (ConditionField.DESCRIPTION, ConditionField.REFERENCE)


class TextOperator(Enum):
    CONTAINS = "contains"
    EQUALS = "equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


class AmountOperator(Enum):
    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"


class SplitMode(Enum):
    PERCENT = "percent"
    AMOUNT = "amount"
