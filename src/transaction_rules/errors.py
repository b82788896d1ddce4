from typing import List, Optional


class RuleEngineError(Exception):
    """Base class for errors raised by the rule engine."""
    pass


class ValidationError(RuleEngineError):
    """
    A rule definition is malformed.

    Raised (or collected) at rule-authoring time, never while
    evaluating a rule against a transaction.

    Args:
        message: Human-readable description of the problem
        path: Dotted location of the offending element,
            e.g. `actions[1].payload.lines`
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, path={self.path!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (type(self), self.message, self.path) == (type(other), other.message, other.path)

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.path))


class SplitAllocationError(ValidationError):
    """Raised when split lines don't reconcile with their total."""
    pass


class RulePayloadError(ValidationError):
    """Raised when a rule payload can't be represented as a typed rule."""
    pass


class InvalidRuleError(RuleEngineError):
    """Raised by the save-time gate when a rule has validation errors."""

    def __init__(self, rule_name: str, errors: List[ValidationError]):
        self.rule_name = rule_name
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Rule '{rule_name}' is invalid: {details}")


class RuleNotMatchedError(RuleEngineError):
    """Raised when actions are resolved for a rule that doesn't match."""
    pass
