from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Sequence

from transaction_rules.config.settings import ConfigLoader
from transaction_rules.domain.effects import Effect, Exclude
from transaction_rules.domain.models import Rule, Transaction
from transaction_rules.engine.matcher import matches
from transaction_rules.engine.resolver import resolve_actions
from transaction_rules.logging_setup import get_logger
from transaction_rules.parsers.rule_payload import parse_rules
from transaction_rules.engine.results import RuleEvaluation, RuleSetResult

logger = get_logger(__name__)


def order_rules(rules: Iterable[Rule], auto_apply_only: bool = False) -> List[Rule]:
    """
    Active rules in evaluation order.

    Sorted by priority ascending; the sort is stable so rules with equal
    priority keep their input order.
    """
    selected = [
        rule for rule in rules
        if rule.active and (rule.auto_apply or not auto_apply_only)
    ]
    return sorted(selected, key=lambda rule: rule.priority)


class RuleSetRunner:
    """
    Runs an ordered set of rules against transactions.

    Rules are tried in priority order. Effects of every matching rule
    are collected until a rule with `stop_on_match` matches, or a rule
    excludes the transaction.

    Usage:
        # Production - loads rules.json through ConfigLoader
        runner = RuleSetRunner()

        # Testing - inject rules or a config document
        runner = RuleSetRunner(rules=[rule1, rule2])
        runner = RuleSetRunner(config={"rules": [...]})

        effects = runner.run(transaction)
        results = runner.run_many(transactions, max_workers=4)
    """

    def __init__(
        self,
        rules: Optional[Sequence[Rule]] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the runner.

        Args:
            rules: Rules to run. Takes precedence over `config`.
            config: Optional rules document (`{"rules": [...]}`). If neither
                is given, loads `rules.json` from ConfigLoader.
        """
        if rules is None:
            rules = self._load_rules(config)
        self.rules: List[Rule] = list(rules)

    def _load_rules(self, config: Optional[Dict[str, Any]] = None) -> List[Rule]:
        if config is None:
            try:
                config = ConfigLoader.load_rules_config()
            except FileNotFoundError:
                # No rules configured yet - nothing will match.
                return []
        return parse_rules(config)

    def ordered_rules(self, auto_apply_only: bool = False) -> List[Rule]:
        return order_rules(self.rules, auto_apply_only)

    def run_detailed(
        self,
        transaction: Transaction,
        auto_apply_only: bool = False,
    ) -> RuleSetResult:
        """
        Run the rule set and report which rules contributed effects.

        Args:
            transaction: Transaction to evaluate
            auto_apply_only: Only consider rules with `auto_apply` set

        Returns:
            RuleSetResult with matched rule ids and collected effects
        """
        result = RuleSetResult(transaction_id=transaction.id)

        for rule in self.ordered_rules(auto_apply_only):
            if not matches(rule, transaction):
                logger.debug("Rule %r did not match %s", rule.name, transaction.id)
                continue

            effects = resolve_actions(rule, transaction)
            result.matched_rule_ids.append(rule.id)
            logger.debug(
                "Rule %r matched %s with %d effects",
                rule.name, transaction.id, len(effects),
            )

            if any(isinstance(effect, Exclude) for effect in effects):
                result.effects = [Exclude()]
                break

            result.effects.extend(effects)

            if rule.stop_on_match:
                break

        return result

    def run(self, transaction: Transaction, auto_apply_only: bool = False) -> List[Effect]:
        """
        Run the rule set against one transaction.

        Returns:
            Collected effects; empty if no rule matched
        """
        return self.run_detailed(transaction, auto_apply_only).effects

    def run_many(
        self,
        transactions: Iterable[Transaction],
        auto_apply_only: bool = False,
        max_workers: Optional[int] = None,
    ) -> List[RuleSetResult]:
        """
        Run the rule set over many transactions.

        Each transaction is independent, so they are evaluated on a thread
        pool. Results come back in input order.

        Args:
            transactions: Transactions to evaluate
            auto_apply_only: Only consider rules with `auto_apply` set
            max_workers: Thread pool size. 1 evaluates inline.

        Returns:
            One RuleSetResult per transaction
        """
        transactions = list(transactions)

        def evaluate_one(txn: Transaction) -> RuleSetResult:
            return self.run_detailed(txn, auto_apply_only)

        if max_workers == 1 or len(transactions) <= 1:
            results = [evaluate_one(txn) for txn in transactions]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(evaluate_one, transactions))

        logger.info(
            "Evaluated %d transactions against %d rules",
            len(transactions), len(self.rules),
        )
        return results

    def get_rule_order_info(self, auto_apply_only: bool = False) -> str:
        """
        Describe the rules in the order they will be tried.

        Useful for debugging which rules are active.
        """
        rules = self.ordered_rules(auto_apply_only)
        if not rules:
            return "No rules loaded"

        lines = []
        for position, rule in enumerate(rules, start=1):
            flags = []
            if rule.stop_on_match:
                flags.append("stop")
            if rule.auto_apply:
                flags.append("auto")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            lines.append(f"{position}. {rule.name} (priority {rule.priority}){suffix}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"RuleSetRunner({len(self.rules)} rules)"


def evaluate_rule(rule: Rule, transaction: Transaction) -> RuleEvaluation:
    """
    Evaluate a single rule against a transaction.

    Pure: the same inputs always give the same result.
    """
    if not matches(rule, transaction):
        return RuleEvaluation(matched=False)
    return RuleEvaluation(matched=True, effects=resolve_actions(rule, transaction))


def run_rule_set(
    rules: Sequence[Rule],
    transaction: Transaction,
    auto_apply_only: bool = False,
) -> List[Effect]:
    """Run `rules` against a transaction and return the collected effects."""
    return RuleSetRunner(rules=rules).run(transaction, auto_apply_only=auto_apply_only)
