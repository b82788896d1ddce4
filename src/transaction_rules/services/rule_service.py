from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from transaction_rules.domain.models import Rule, Transaction
from transaction_rules.errors import ValidationError
from transaction_rules.engine.matcher import matches
from transaction_rules.engine.resolver import resolve_actions
from transaction_rules.engine.runner import RuleSetRunner, evaluate_rule
from transaction_rules.engine.validation import assert_valid_rule, validate_rule
from transaction_rules.logging_setup import get_logger
from transaction_rules.parsers.factory import ParserFactory
from transaction_rules.engine.results import RuleEvaluation, RuleSetResult
from transaction_rules.services.models import BatchResult, RuleTestMatch, RuleTestResult

logger = get_logger(__name__)


class RuleService:

    def __init__(
        self,
        rules: Optional[Sequence[Rule]] = None,
        runner: Optional[RuleSetRunner] = None,
    ):
        self._rules = rules
        self._runner: Optional[RuleSetRunner] = runner

    @property
    def runner(self) -> RuleSetRunner:
        """Lazy-load the rule set runner"""
        if self._runner is None:
            self._runner = RuleSetRunner(rules=self._rules)
        return self._runner

    @property
    def rules(self) -> List[Rule]:
        return self.runner.rules

    def find_rule(self, rule_id: str) -> Rule:
        """
        Look up a loaded rule by id.

        Raises:
            KeyError: If no loaded rule has that id
        """
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        available = ', '.join(rule.id for rule in self.rules)
        raise KeyError(f"No rule with id '{rule_id}'. Available rules: {available}")

    def load_statement(self, filepath: Path, **parser_kwargs) -> List[Transaction]:
        """
        Parse a statement file with the parser registered for its extension.
        """
        parser = ParserFactory.create_parser_for(filepath, **parser_kwargs)
        return parser.parse(str(filepath))

    def evaluate(self, rule: Rule, transaction: Transaction) -> RuleEvaluation:
        """Evaluate one rule against one transaction"""
        return evaluate_rule(rule, transaction)

    def run(self, transaction: Transaction, auto_apply_only: bool = False) -> RuleSetResult:
        """Run the loaded rule set against one transaction"""
        return self.runner.run_detailed(transaction, auto_apply_only=auto_apply_only)

    def run_many(
        self,
        transactions: Iterable[Transaction],
        auto_apply_only: bool = False,
        max_workers: Optional[int] = None,
    ) -> BatchResult:
        """
        Run the loaded rule set over many transactions.

        Args:
            transactions: Transactions to evaluate
            auto_apply_only: Only rules with auto-apply enabled
            max_workers: Thread pool size for the batch

        Returns:
            BatchResult with one result per transaction, in input order

        Example:
            ```
            service = RuleService()
            batch = service.run_many(service.load_statement(Path("march.csv")))
            print(batch)
            ```
        """
        results = self.runner.run_many(
            transactions,
            auto_apply_only=auto_apply_only,
            max_workers=max_workers,
        )
        batch = BatchResult(results=results)
        logger.info(
            "Batch: %d matched, %d excluded, %d untouched",
            batch.matched_count, batch.excluded_count, batch.untouched_count,
        )
        return batch

    def test_rule(self, rule: Rule, transactions: Iterable[Transaction]) -> RuleTestResult:
        """
        Preview a rule against transactions without saving or activating it.

        Validation errors are reported alongside the matches so the rule
        author sees both at once.
        """
        transactions = list(transactions)
        result = RuleTestResult(
            rule_id=rule.id,
            rule_name=rule.name,
            tested=len(transactions),
            errors=validate_rule(rule),
        )

        for txn in transactions:
            if matches(rule, txn):
                result.matches.append(
                    RuleTestMatch(transaction=txn, effects=resolve_actions(rule, txn))
                )

        return result

    def validate(
        self,
        rule: Union[Rule, Mapping[str, Any]],
        transaction: Optional[Transaction] = None,
    ) -> List[ValidationError]:
        """Collect the validation errors of a rule or rule payload"""
        return validate_rule(rule, transaction)

    def validate_all(self) -> dict[str, List[ValidationError]]:
        """Validation errors of every loaded rule, keyed by rule id"""
        return {rule.id: validate_rule(rule) for rule in self.rules}

    def save_check(
        self,
        rule: Union[Rule, Mapping[str, Any]],
        transaction: Optional[Transaction] = None,
    ) -> Rule:
        """
        Gate a rule before it is persisted by the caller.

        Raises:
            InvalidRuleError: If the rule has validation errors
        """
        return assert_valid_rule(rule, transaction)
