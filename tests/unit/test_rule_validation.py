import pytest
from decimal import Decimal

from transaction_rules.domain.actions import (
    SetCategoryAction,
    SetMemoAction,
    SetSplitsAction,
    SetTaxesAction,
    SplitLine,
)
from transaction_rules.domain.conditions import (
    AmountCondition,
    ContactCondition,
    TextCondition,
)
from transaction_rules.domain.enums import AccountScope, AmountOperator, SplitMode
from transaction_rules.domain.models import Rule
from transaction_rules.engine.validation import assert_valid_rule, validate_rule
from transaction_rules.errors import (
    InvalidRuleError,
    RulePayloadError,
    SplitAllocationError,
    ValidationError,
)


def valid_payload(**overrides):
    payload = {
        "name": "Groceries",
        "conditions": [{"field": "description", "operator": "contains", "valueString": "costco"}],
        "actions": [{"actionType": "set_category", "payload": {"categoryId": "groceries"}}],
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
class TestValidateRule:
    """Test save-time checks"""

    def test_valid_payload(self):
        assert validate_rule(valid_payload()) == []

    def test_valid_typed_rule(self):
        rule = Rule(id="r", name="Coffee", conditions=[TextCondition(value="coffee")])

        assert validate_rule(rule) == []

    def test_missing_name(self):
        errors = validate_rule(valid_payload(name="   "))

        assert errors == [ValidationError("Rule name is required", "name")]

    def test_selected_scope_without_accounts(self):
        errors = validate_rule(valid_payload(accountScope="selected", accountIds=[]))

        assert [e.path for e in errors] == ["accountIds"]

    def test_rule_without_conditions(self):
        errors = validate_rule(valid_payload(conditions=[]))

        assert [e.path for e in errors] == ["conditions"]

    def test_reports_every_problem(self):
        errors = validate_rule(valid_payload(
            name="",
            conditions=[
                {"field": "reference", "operator": "equals", "valueString": ""},
                {"field": "amount", "operator": "between", "valueNumber": 200, "valueNumberTo": 100},
            ],
        ))

        assert [e.path for e in errors] == [
            "name",
            "conditions[0].valueString",
            "conditions[1].valueNumberTo",
        ]

    def test_between_without_upper_bound(self):
        errors = validate_rule(valid_payload(conditions=[
            {"field": "amount", "operator": "between", "valueNumber": 10},
        ]))

        assert errors == [
            ValidationError("'between' needs an upper bound", "conditions[0].valueNumberTo")
        ]

    def test_upper_bound_outside_between(self):
        rule = Rule(
            id="r",
            name="r",
            conditions=[AmountCondition(
                operator=AmountOperator.GREATER_THAN, value=Decimal("1"), value_to=Decimal("5"),
            )],
        )

        assert [e.path for e in validate_rule(rule)] == ["conditions[0].valueNumberTo"]

    def test_amount_without_value(self):
        rule = Rule(id="r", name="r", conditions=[AmountCondition(operator=AmountOperator.EQUALS)])

        assert [e.path for e in validate_rule(rule)] == ["conditions[0].valueNumber"]

    def test_contact_without_contact(self):
        rule = Rule(id="r", name="r", conditions=[ContactCondition(contact_id="")])

        assert [e.path for e in validate_rule(rule)] == ["conditions[0].valueString"]

    def test_empty_typed_actions_are_flagged(self):
        rule = Rule(
            id="r",
            name="r",
            conditions=[TextCondition(value="x")],
            actions=[
                SetCategoryAction(category_id=""),
                SetMemoAction(memo="  "),
                SetTaxesAction(tax_ids=[]),
            ],
        )

        assert [e.path for e in validate_rule(rule)] == [
            "actions[0].payload.categoryId",
            "actions[1].payload.memo",
            "actions[2].payload.taxIds",
        ]

    def test_percent_split_must_total_100(self):
        errors = validate_rule(valid_payload(actions=[{
            "actionType": "set_splits",
            "payload": {"mode": "percent", "lines": [{"percent": 50}, {"percent": 30}]},
        }]))

        assert len(errors) == 1
        assert isinstance(errors[0], SplitAllocationError)
        assert errors[0].path == "actions[0].payload.lines"

    def test_amount_split_checked_against_transaction(self, make_transaction):
        rule = Rule(
            id="r",
            name="r",
            conditions=[TextCondition(value="x")],
            actions=[SetSplitsAction(
                mode=SplitMode.AMOUNT,
                lines=[SplitLine(amount=Decimal("30")), SplitLine(amount=Decimal("30"))],
            )],
        )

        assert validate_rule(rule) == []
        assert len(validate_rule(rule, make_transaction(spent="60"))) == 0
        assert len(validate_rule(rule, make_transaction(spent="70"))) == 1

    @pytest.mark.parametrize(
        "overrides, path",
        [
            ({"conditions": ["oops"]}, "conditions[0]"),
            ({"actions": [42]}, "actions[0]"),
            ({"actions": [{"actionType": "set_memo", "payload": ["x"]}]}, "actions[0].payload"),
        ],
    )
    def test_entries_that_are_not_objects_are_reported(self, overrides, path):
        errors = validate_rule(valid_payload(**overrides))

        assert len(errors) == 1
        assert isinstance(errors[0], RulePayloadError)
        assert errors[0].path == path

    @pytest.mark.parametrize(
        "condition",
        [
            {"field": "amount", "operator": "greater_than", "valueNumber": "NaN"},
            {"field": "amount", "operator": "between", "valueNumber": "NaN", "valueNumberTo": 5},
            {"field": "amount", "operator": "between", "valueNumber": 1, "valueNumberTo": "Infinity"},
        ],
    )
    def test_non_finite_amounts_are_reported(self, condition):
        errors = validate_rule(valid_payload(conditions=[condition]))

        assert len(errors) == 1
        assert isinstance(errors[0], RulePayloadError)
        assert errors[0].path.startswith("conditions[0].valueNumber")

    def test_percent_split_rounding_checked_against_transaction(self, make_transaction):
        rule = Rule(
            id="r",
            name="r",
            conditions=[TextCondition(value="x")],
            actions=[SetSplitsAction(
                mode=SplitMode.PERCENT,
                lines=[SplitLine(percent=Decimal("100.005")), SplitLine(percent=Decimal("0"))],
            )],
        )

        assert validate_rule(rule) == []
        assert [e.path for e in validate_rule(rule, make_transaction(spent="100"))] == [
            "actions[0].payload.lines[1].percent"
        ]

    def test_unusable_payload_is_reported(self):
        errors = validate_rule(valid_payload(matchType="most"))

        assert len(errors) == 1
        assert isinstance(errors[0], RulePayloadError)
        assert errors[0].path == "matchType"


@pytest.mark.unit
class TestAssertValidRule:

    def test_returns_typed_rule(self):
        rule = assert_valid_rule(valid_payload(id="groceries"))

        assert isinstance(rule, Rule)
        assert rule.id == "groceries"

    def test_raises_with_all_errors(self):
        with pytest.raises(InvalidRuleError) as exc_info:
            assert_valid_rule(valid_payload(conditions=[], accountScope="selected"))

        assert len(exc_info.value.errors) == 2
        assert "Rule 'Groceries' is invalid" in str(exc_info.value)

    def test_typed_rule_passes_through(self):
        rule = Rule(
            id="r",
            name="r",
            account_scope=AccountScope.SELECTED,
            account_ids={"a"},
            conditions=[TextCondition(value="x")],
        )

        assert assert_valid_rule(rule) is rule
