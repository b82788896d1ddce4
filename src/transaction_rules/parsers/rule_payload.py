"""
Conversion between rule payloads and typed rules.

Payloads use the shape of the rules API:

    {
        "id": "r1",
        "name": "Sun Life deposits",
        "transactionType": "income",
        "matchType": "all",
        "autoApply": false,
        "stopOnMatch": true,
        "priority": 1,
        "accountScope": "selected",
        "accountIds": ["acc-chequing"],
        "conditions": [
            {"field": "description", "operator": "contains",
             "valueString": "sun life", "caseSensitive": false}
        ],
        "actions": [
            {"actionType": "set_category", "payload": {"categoryId": "insurance"}}
        ]
    }

Actions with an empty or unusable payload are dropped while parsing, so
a typed rule never carries a semantically empty action.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from transaction_rules.domain.actions import (
    ACTION_TYPES,
    Action,
    ExcludeAction,
    SetCategoryAction,
    SetContactAction,
    SetMemoAction,
    SetSplitsAction,
    SetTaxesAction,
    SetTypeAction,
    SplitLine,
)
from transaction_rules.domain.conditions import (
    AmountCondition,
    Condition,
    ContactCondition,
    TextCondition,
)
from transaction_rules.domain.enums import (
    AccountScope,
    AmountOperator,
    ConditionField,
    MatchType,
    RuleTransactionType,
    SplitMode,
    TextOperator,
    TransactionType,
)
from transaction_rules.domain.models import Rule, Transaction
from transaction_rules.errors import RulePayloadError
from transaction_rules.logging_setup import get_logger

logger = get_logger(__name__)

# Older payloads send the form's labels for set_type
TYPE_ALIASES = {
    "income": TransactionType.INCOME,
    "deposit": TransactionType.INCOME,
    "expense": TransactionType.EXPENSE,
}


def _to_decimal(value: Any, path: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RulePayloadError(f"Expected a number, got {value!r}", path)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise RulePayloadError(f"Expected a number, got {value!r}", path)
    if not number.is_finite():
        raise RulePayloadError(f"Expected a finite number, got {value!r}", path)
    return number


def _enum(enum_cls, value: Any, default, path: str):
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise RulePayloadError(f"Unknown value {value!r} (expected one of: {allowed})", path)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# ═══════════════════════════════════════════════════════════
# CONDITIONS
# ═══════════════════════════════════════════════════════════

def parse_condition(data: Mapping[str, Any], path: str = "condition") -> Condition:
    """
    Build a typed condition from a payload dict.

    The value is read from `valueString` or `valueNumber`/`valueNumberTo`
    depending on the field's type class.

    Raises:
        RulePayloadError: Not an object, unknown field, operator not valid
            for the field, or a non-numeric amount
    """
    if not isinstance(data, Mapping):
        raise RulePayloadError(f"Condition must be an object, got {type(data).__name__}", path)

    field = _enum(ConditionField, data.get("field"), ConditionField.DESCRIPTION, f"{path}.field")
    condition_id = data.get("id")

    if field == ConditionField.AMOUNT:
        operator = _enum(AmountOperator, data.get("operator"), AmountOperator.EQUALS, f"{path}.operator")
        return AmountCondition(
            operator=operator,
            value=_to_decimal(data.get("valueNumber"), f"{path}.valueNumber"),
            value_to=_to_decimal(data.get("valueNumberTo"), f"{path}.valueNumberTo"),
            id=condition_id,
        )

    if field == ConditionField.CONTACT_ID:
        operator = data.get("operator") or "equals"
        if operator != "equals":
            raise RulePayloadError(
                f"Unknown value {operator!r} (expected one of: equals)", f"{path}.operator"
            )
        return ContactCondition(contact_id=_text(data.get("valueString")), id=condition_id)

    operator = _enum(TextOperator, data.get("operator"), TextOperator.CONTAINS, f"{path}.operator")
    return TextCondition(
        field=field,
        operator=operator,
        value=_text(data.get("valueString")),
        case_sensitive=bool(data.get("caseSensitive", False)),
        id=condition_id,
    )


def condition_to_dict(condition: Condition) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "field": condition.field.value,
    }
    if condition.id is not None:
        data["id"] = condition.id

    if isinstance(condition, AmountCondition):
        data["operator"] = condition.operator.value
        if condition.value is not None:
            data["valueNumber"] = float(condition.value)
        if condition.value_to is not None:
            data["valueNumberTo"] = float(condition.value_to)
    elif isinstance(condition, ContactCondition):
        data["operator"] = condition.operator
        data["valueString"] = condition.contact_id
    else:
        data["operator"] = condition.operator.value
        data["valueString"] = condition.value
        data["caseSensitive"] = condition.case_sensitive
    return data


# ═══════════════════════════════════════════════════════════
# ACTIONS
# ═══════════════════════════════════════════════════════════

def _parse_split_line(data: Mapping[str, Any], mode: SplitMode, path: str) -> SplitLine:
    if not isinstance(data, Mapping):
        raise RulePayloadError(f"Split line must be an object, got {type(data).__name__}", path)
    tax_ids = [str(t) for t in (data.get("taxIds") or []) if t]
    if mode == SplitMode.PERCENT:
        return SplitLine(
            percent=_to_decimal(data.get("percent"), f"{path}.percent"),
            category_id=data.get("categoryId") or None,
            description=data.get("description") or None,
            tax_ids=tax_ids,
        )
    return SplitLine(
        amount=_to_decimal(data.get("amount"), f"{path}.amount"),
        category_id=data.get("categoryId") or None,
        description=data.get("description") or None,
        tax_ids=tax_ids,
    )


def parse_action(data: Mapping[str, Any], path: str = "action") -> Optional[Action]:
    """
    Build a typed action from a payload dict.

    Returns:
        The action, or None when its payload is empty or unusable

    Raises:
        RulePayloadError: If the action is not an object, its payload is
            not an object, or its type is unknown
    """
    if not isinstance(data, Mapping):
        raise RulePayloadError(f"Action must be an object, got {type(data).__name__}", path)

    action_type = data.get("actionType")
    payload = data.get("payload") or {}
    if not isinstance(payload, Mapping):
        raise RulePayloadError(f"Payload must be an object, got {type(payload).__name__}", f"{path}.payload")
    action_id = data.get("id")

    # Legacy single-tax action from the quick-create form
    if action_type == "set_tax":
        action_type = "set_taxes"
        payload = {"taxIds": [payload["taxId"]] if payload.get("taxId") else []}

    if not isinstance(action_type, str) or action_type not in ACTION_TYPES:
        allowed = ", ".join(sorted(ACTION_TYPES))
        raise RulePayloadError(
            f"Unknown action type {action_type!r} (expected one of: {allowed})",
            f"{path}.actionType",
        )

    if action_type == ExcludeAction.action_type:
        return ExcludeAction(id=action_id)

    if action_type == SetTypeAction.action_type:
        txn_type = TYPE_ALIASES.get(_text(payload.get("type")).strip().lower())
        return SetTypeAction(type=txn_type, id=action_id) if txn_type else None

    if action_type == SetCategoryAction.action_type:
        category_id = _text(payload.get("categoryId")).strip()
        return SetCategoryAction(category_id=category_id, id=action_id) if category_id else None

    if action_type == SetContactAction.action_type:
        contact_id = _text(payload.get("contactId")).strip()
        return SetContactAction(contact_id=contact_id, id=action_id) if contact_id else None

    if action_type == SetMemoAction.action_type:
        memo = _text(payload.get("memo")).strip()
        return SetMemoAction(memo=memo, id=action_id) if memo else None

    if action_type == SetTaxesAction.action_type:
        tax_ids = [str(t) for t in (payload.get("taxIds") or []) if t]
        return SetTaxesAction(tax_ids=tax_ids, id=action_id) if tax_ids else None

    # set_splits
    mode_value = payload.get("mode")
    if mode_value not in (SplitMode.PERCENT.value, SplitMode.AMOUNT.value):
        return None
    mode = SplitMode(mode_value)
    raw_lines = payload.get("lines") or []
    if not raw_lines:
        return None
    lines = [
        _parse_split_line(line, mode, f"{path}.payload.lines[{i}]")
        for i, line in enumerate(raw_lines)
    ]
    return SetSplitsAction(mode=mode, lines=lines, id=action_id)


def _split_line_to_dict(line: SplitLine, mode: SplitMode) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    value = line.percent if mode == SplitMode.PERCENT else line.amount
    if value is not None:
        data[mode.value] = float(value)
    if line.category_id:
        data["categoryId"] = line.category_id
    if line.description:
        data["description"] = line.description
    if line.tax_ids:
        data["taxIds"] = list(line.tax_ids)
    return data


def action_to_dict(action: Action) -> Dict[str, Any]:
    data: Dict[str, Any] = {"actionType": action.action_type}
    if action.id is not None:
        data["id"] = action.id

    if isinstance(action, SetTypeAction):
        data["payload"] = {"type": action.type.value}
    elif isinstance(action, SetCategoryAction):
        data["payload"] = {"categoryId": action.category_id}
    elif isinstance(action, SetContactAction):
        data["payload"] = {"contactId": action.contact_id}
    elif isinstance(action, SetMemoAction):
        data["payload"] = {"memo": action.memo}
    elif isinstance(action, SetTaxesAction):
        data["payload"] = {"taxIds": list(action.tax_ids)}
    elif isinstance(action, SetSplitsAction):
        data["payload"] = {
            "mode": action.mode.value,
            "lines": [_split_line_to_dict(line, action.mode) for line in action.lines],
        }
    return data


# ═══════════════════════════════════════════════════════════
# RULES
# ═══════════════════════════════════════════════════════════

def _priority(value: Any, path: str) -> Union[int, float]:
    if value is None or value == "":
        return 100
    number = _to_decimal(value, path)
    return int(number) if number == number.to_integral_value() else float(number)


def parse_rule(data: Mapping[str, Any], default_id: Optional[str] = None) -> Rule:
    """
    Build a typed rule from a payload dict.

    Args:
        data: Rule payload in the API shape
        default_id: Id to use when the payload has none. A random id is
            generated if neither is available.

    Returns:
        Typed rule. Empty actions are dropped.

    Raises:
        RulePayloadError: If the payload can't be represented as a rule
    """
    if not isinstance(data, Mapping):
        raise RulePayloadError(f"Rule must be an object, got {type(data).__name__}")

    conditions = [
        parse_condition(cond, f"conditions[{i}]")
        for i, cond in enumerate(data.get("conditions") or [])
    ]

    actions: List[Action] = []
    for i, raw_action in enumerate(data.get("actions") or []):
        action = parse_action(raw_action, f"actions[{i}]")
        if action is None:
            logger.debug(
                "Dropping empty %s action from rule %r",
                raw_action.get("actionType"), data.get("name"),
            )
            continue
        actions.append(action)

    account_scope = _enum(AccountScope, data.get("accountScope"), AccountScope.ALL, "accountScope")
    account_ids = [str(a).strip() for a in (data.get("accountIds") or []) if str(a).strip()]

    return Rule(
        id=str(data.get("id") or default_id or uuid4().hex),
        name=_text(data.get("name")).strip(),
        description=_text(data.get("description")).strip() or None,
        active=bool(data.get("active", True)),
        transaction_type=_enum(
            RuleTransactionType, data.get("transactionType"), RuleTransactionType.ANY, "transactionType"
        ),
        match_type=_enum(MatchType, data.get("matchType"), MatchType.ALL, "matchType"),
        auto_apply=bool(data.get("autoApply", False)),
        stop_on_match=bool(data.get("stopOnMatch", True)),
        priority=_priority(data.get("priority"), "priority"),
        account_scope=account_scope,
        account_ids=account_ids if account_scope == AccountScope.SELECTED else [],
        conditions=conditions,
        actions=actions,
    )


def parse_rules(document: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> List[Rule]:
    """
    Parse a list of rule payloads, or a `{"rules": [...]}` document.

    Rules without an id get `rule-<n>` by position.
    """
    items = document.get("rules", []) if isinstance(document, Mapping) else document
    rules = []
    for i, item in enumerate(items):
        try:
            rules.append(parse_rule(item, default_id=f"rule-{i + 1}"))
        except RulePayloadError as e:
            raise RulePayloadError(e.message, f"rules[{i}].{e.path}" if e.path else f"rules[{i}]")
    return rules


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": rule.id,
        "name": rule.name,
        "active": rule.active,
        "transactionType": rule.transaction_type.value,
        "matchType": rule.match_type.value,
        "autoApply": rule.auto_apply,
        "stopOnMatch": rule.stop_on_match,
        "priority": rule.priority,
        "accountScope": rule.account_scope.value,
        "accountIds": sorted(rule.account_ids),
        "conditions": [condition_to_dict(c) for c in rule.conditions],
        "actions": [action_to_dict(a) for a in rule.actions],
    }
    if rule.description:
        data["description"] = rule.description
    return data


# ═══════════════════════════════════════════════════════════
# TRANSACTIONS
# ═══════════════════════════════════════════════════════════

def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def parse_transaction(data: Mapping[str, Any], default_id: Optional[str] = None) -> Transaction:
    """
    Build a transaction from a dict.

    Accepts either `spent`/`received` (non-negative) or a signed `amount`
    (positive=received, negative=spent).

    Raises:
        RulePayloadError: If an amount is not a number
        ValueError: If the date is not ISO formatted
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Transaction must be an object, got {type(data).__name__}")

    spent = _to_decimal(data.get("spent"), "spent")
    received = _to_decimal(data.get("received"), "received")

    if spent is None and received is None:
        amount = _to_decimal(data.get("amount"), "amount")
        if amount is not None:
            if amount >= 0:
                received = amount
            else:
                spent = -amount

    return Transaction(
        id=str(data.get("id") or default_id or uuid4().hex),
        description=_text(data.get("description")),
        spent=abs(spent) if spent is not None else None,
        received=abs(received) if received is not None else None,
        account_id=data.get("accountId") or None,
        reference_number=data.get("referenceNumber") or None,
        contact_id=data.get("contactId") or None,
        date=_parse_date(data.get("date")),
    )
