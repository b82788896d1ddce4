import pytest
from decimal import Decimal

from transaction_rules.domain.conditions import (
    AmountCondition,
    ContactCondition,
    TextCondition,
)
from transaction_rules.domain.enums import AmountOperator, ConditionField, TextOperator
from transaction_rules.domain.models import Transaction
from transaction_rules.engine.evaluator import evaluate, field_value


@pytest.mark.unit
class TestFieldResolution:
    """Test which transaction value each field reads"""

    def test_description_defaults_to_empty(self):
        txn = Transaction(id="1", description="")
        assert field_value(ConditionField.DESCRIPTION, txn) == ""

    def test_reference_absent_is_empty(self):
        txn = Transaction(id="1")
        assert field_value(ConditionField.REFERENCE, txn) == ""

    def test_contact_absent_is_empty(self):
        txn = Transaction(id="1")
        assert field_value(ConditionField.CONTACT_ID, txn) == ""

    def test_amount_reads_spent(self, make_transaction):
        txn = make_transaction(spent="42.10")
        assert field_value(ConditionField.AMOUNT, txn) == Decimal("42.10")

    def test_amount_reads_received(self, make_transaction):
        txn = make_transaction(received="9.99")
        assert field_value(ConditionField.AMOUNT, txn) == Decimal("9.99")

    def test_amount_is_zero_when_nothing_moved(self):
        assert field_value(ConditionField.AMOUNT, Transaction(id="1")) == Decimal("0")


@pytest.mark.unit
class TestTextConditions:
    """Test description and reference operators"""

    def test_contains_ignores_case_by_default(self, make_transaction):
        # Arrange
        condition = TextCondition(value="Sun Life")
        txn = make_transaction(description="Payment from SUN LIFE INSURANCE")

        # Act & Assert
        assert evaluate(condition, txn) is True

    def test_contains_case_sensitive(self, make_transaction):
        condition = TextCondition(value="Sun Life", case_sensitive=True)
        txn = make_transaction(description="Payment from SUN LIFE INSURANCE")

        assert evaluate(condition, txn) is False

    @pytest.mark.parametrize(
        "operator, value, expected",
        [
            (TextOperator.EQUALS, "netflix.com", True),
            (TextOperator.EQUALS, "netflix", False),
            (TextOperator.STARTS_WITH, "NETFLIX", True),
            (TextOperator.STARTS_WITH, ".com", False),
            (TextOperator.ENDS_WITH, ".COM", True),
            (TextOperator.ENDS_WITH, "netflix", False),
            (TextOperator.CONTAINS, "flix.c", True),
        ],
    )
    def test_operators(self, make_transaction, operator, value, expected):
        condition = TextCondition(operator=operator, value=value)
        txn = make_transaction(description="Netflix.com")

        assert evaluate(condition, txn) is expected

    def test_reference_field(self, make_transaction):
        condition = TextCondition(
            field=ConditionField.REFERENCE,
            operator=TextOperator.STARTS_WITH,
            value="INV-",
        )
        with_ref = make_transaction(reference_number="inv-2041")
        without_ref = make_transaction()

        assert evaluate(condition, with_ref) is True
        assert evaluate(condition, without_ref) is False

    def test_case_fold_is_not_plain_lowercase(self, make_transaction):
        """German sharp s folds to 'ss'"""
        condition = TextCondition(value="STRASSE")
        txn = make_transaction(description="Hauptstraße 5")

        assert evaluate(condition, txn) is True

    def test_empty_contains_always_matches(self, make_transaction):
        condition = TextCondition(operator=TextOperator.CONTAINS, value="")

        assert evaluate(condition, make_transaction(description="anything")) is True
        assert evaluate(condition, make_transaction(description="")) is True

    @pytest.mark.parametrize(
        "operator",
        [TextOperator.EQUALS, TextOperator.STARTS_WITH, TextOperator.ENDS_WITH],
    )
    def test_empty_value_never_matches_other_operators(self, make_transaction, operator):
        condition = TextCondition(operator=operator, value="")

        assert evaluate(condition, make_transaction(description="")) is False

    def test_text_condition_rejects_non_text_field(self):
        with pytest.raises(ValueError):
            TextCondition(field=ConditionField.AMOUNT, value="x")

    @pytest.mark.parametrize(
        "description",
        ["Payment From Sun Life", "rent for march", "COSTCO WHOLESALE #123", "a"],
    )
    @pytest.mark.parametrize(
        "operator",
        list(TextOperator),
    )
    def test_case_insensitive_result_survives_swapcase(self, make_transaction, operator, description):
        condition = TextCondition(operator=operator, value=description[:5])
        original = make_transaction(description=description)
        swapped = make_transaction(description=description.swapcase())

        assert evaluate(condition, original) == evaluate(condition, swapped)


@pytest.mark.unit
class TestAmountConditions:
    """Test amount operators against the absolute amount"""

    def test_equals_rounds_to_cents(self, make_transaction):
        condition = AmountCondition(operator=AmountOperator.EQUALS, value=Decimal("19.999"))
        txn = make_transaction(spent="20.00")

        assert evaluate(condition, txn) is True

    def test_equals_rounds_half_up(self, make_transaction):
        condition = AmountCondition(operator=AmountOperator.EQUALS, value=Decimal("10.005"))

        assert evaluate(condition, make_transaction(spent="10.01")) is True
        assert evaluate(condition, make_transaction(spent="10.00")) is False

    def test_equals_ignores_direction(self, make_transaction):
        condition = AmountCondition(operator=AmountOperator.EQUALS, value=Decimal("75"))

        assert evaluate(condition, make_transaction(spent="75")) is True
        assert evaluate(condition, make_transaction(received="75")) is True

    def test_greater_than_is_strict(self, make_transaction):
        condition = AmountCondition(operator=AmountOperator.GREATER_THAN, value=Decimal("100"))

        assert evaluate(condition, make_transaction(spent="100.01")) is True
        assert evaluate(condition, make_transaction(spent="100")) is False

    def test_less_than_is_strict(self, make_transaction):
        condition = AmountCondition(operator=AmountOperator.LESS_THAN, value=Decimal("100"))

        assert evaluate(condition, make_transaction(spent="99.99")) is True
        assert evaluate(condition, make_transaction(spent="100")) is False

    def test_between(self, make_transaction):
        condition = AmountCondition(
            operator=AmountOperator.BETWEEN,
            value=Decimal("100"),
            value_to=Decimal("200"),
        )

        assert evaluate(condition, make_transaction(spent="150")) is True
        assert evaluate(condition, make_transaction(spent="250")) is False

    def test_between_is_inclusive(self, make_transaction):
        condition = AmountCondition(
            operator=AmountOperator.BETWEEN,
            value=Decimal("100"),
            value_to=Decimal("200"),
        )

        assert evaluate(condition, make_transaction(spent="100")) is True
        assert evaluate(condition, make_transaction(received="200")) is True

    def test_between_with_inverted_bounds_never_matches(self, make_transaction):
        condition = AmountCondition(
            operator=AmountOperator.BETWEEN,
            value=Decimal("200"),
            value_to=Decimal("100"),
        )

        assert evaluate(condition, make_transaction(spent="150")) is False

    def test_between_without_upper_bound_never_matches(self, make_transaction):
        condition = AmountCondition(operator=AmountOperator.BETWEEN, value=Decimal("1"))

        assert evaluate(condition, make_transaction(spent="150")) is False

    @pytest.mark.parametrize("operator", list(AmountOperator))
    def test_missing_value_never_matches(self, make_transaction, operator):
        condition = AmountCondition(operator=operator)

        assert evaluate(condition, make_transaction(spent="0")) is False


@pytest.mark.unit
class TestContactConditions:

    def test_exact_match(self, make_transaction):
        condition = ContactCondition(contact_id="c-42")

        assert evaluate(condition, make_transaction(contact_id="c-42")) is True
        assert evaluate(condition, make_transaction(contact_id="C-42")) is False

    def test_absent_contact_never_matches(self, make_transaction):
        condition = ContactCondition(contact_id="c-42")

        assert evaluate(condition, make_transaction()) is False

    def test_empty_condition_contact_never_matches(self, make_transaction):
        condition = ContactCondition(contact_id="")

        assert evaluate(condition, make_transaction(contact_id="")) is False


@pytest.mark.unit
class TestEvaluateDispatch:

    def test_unknown_condition_type_is_programming_error(self, make_transaction):
        with pytest.raises(TypeError):
            evaluate(object(), make_transaction())
