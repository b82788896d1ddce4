"""
Rule engine for bank transactions.

Evaluates rule conditions against transactions and resolves the
actions of matching rules into effects, without applying them.

Quick Start:
    >>> from transaction_rules.engine import RuleSetRunner
    >>>
    >>> runner = RuleSetRunner(rules=rules)
    >>> effects = runner.run(transaction)
    >>> print(effects)
"""
from transaction_rules.engine.evaluator import evaluate
from transaction_rules.engine.matcher import matches
from transaction_rules.engine.resolver import resolve
from transaction_rules.engine.splits import allocate
from transaction_rules.engine.runner import RuleSetRunner, evaluate_rule, run_rule_set
from transaction_rules.engine.validation import assert_valid_rule, validate_rule
from transaction_rules.errors import (
    InvalidRuleError,
    RuleEngineError,
    RuleNotMatchedError,
    RulePayloadError,
    SplitAllocationError,
    ValidationError,
)

__all__ = [
    "evaluate",
    "matches",
    "resolve",
    "allocate",
    "RuleSetRunner",
    "evaluate_rule",
    "run_rule_set",
    "validate_rule",
    "assert_valid_rule",
    "InvalidRuleError",
    "RuleEngineError",
    "RuleNotMatchedError",
    "RulePayloadError",
    "SplitAllocationError",
    "ValidationError",
]
