"""
Split allocation.

Distributes a transaction amount across split lines, by percent or by
fixed amount. Percent splits always reconcile exactly: rounding drift
is absorbed by the last line.
"""
from decimal import Decimal
from typing import List, Optional, Sequence

from transaction_rules.domain.actions import SplitLine
from transaction_rules.domain.effects import ResolvedSplitLine
from transaction_rules.domain.enums import SplitMode
from transaction_rules.errors import SplitAllocationError
from transaction_rules.engine.evaluator import to_cents

HUNDRED = Decimal("100")
PERCENT_TOLERANCE = Decimal("0.01")
AMOUNT_TOLERANCE = Decimal("0.01")


def _line_value(line: SplitLine, mode: SplitMode) -> Optional[Decimal]:
    return line.percent if mode == SplitMode.PERCENT else line.amount


def _percent_amounts(lines: Sequence[SplitLine], total: Decimal) -> List[Decimal]:
    """Round every line but the last; the last takes the remainder"""
    amounts = [to_cents(total * Decimal(line.percent) / HUNDRED) for line in lines[:-1]]
    amounts.append(total - sum(amounts, Decimal("0")))
    return amounts


def check_lines(
    mode: SplitMode,
    lines: Sequence[SplitLine],
    total_amount: Optional[Decimal] = None,
    path: str = "lines",
) -> List[SplitAllocationError]:
    """
    Collect every reason the lines can't be allocated.

    Args:
        mode: Split mode
        lines: Split lines to check
        total_amount: Transaction amount. Amount-mode sums and the
            rounded percent lines can only be checked when it is known.
        path: Location prefix used in error paths

    Returns:
        List of errors, empty when the lines are valid
    """
    errors: List[SplitAllocationError] = []

    if not lines:
        errors.append(SplitAllocationError("Split must have at least one line", path))
        return errors

    values: List[Decimal] = []
    for i, line in enumerate(lines):
        value = _line_value(line, mode)
        if value is None:
            errors.append(SplitAllocationError(
                f"Line is missing its {mode.value}", f"{path}[{i}].{mode.value}"
            ))
        elif value < 0:
            errors.append(SplitAllocationError(
                f"Line {mode.value} must not be negative", f"{path}[{i}].{mode.value}"
            ))
        else:
            values.append(Decimal(value))

    if errors:
        return errors

    total = sum(values, Decimal("0"))
    if mode == SplitMode.PERCENT:
        if abs(total - HUNDRED) > PERCENT_TOLERANCE:
            errors.append(SplitAllocationError(
                f"Percentages must add up to 100, got {total}", path
            ))
        elif total_amount is not None:
            amounts = _percent_amounts(lines, to_cents(abs(Decimal(total_amount))))
            if amounts[-1] < 0:
                errors.append(SplitAllocationError(
                    f"Rounding leaves the last line at {amounts[-1]}", f"{path}[{len(lines) - 1}].percent"
                ))
    elif total_amount is not None:
        expected = abs(Decimal(total_amount))
        if abs(total - expected) > AMOUNT_TOLERANCE:
            errors.append(SplitAllocationError(
                f"Amounts must add up to {expected}, got {total}", path
            ))

    return errors


def allocate(
    mode: SplitMode,
    lines: Sequence[SplitLine],
    total_amount: Decimal,
) -> List[ResolvedSplitLine]:
    """
    Resolve split lines into absolute amounts.

    Args:
        mode: PERCENT or AMOUNT
        lines: Split lines from a `set_splits` action
        total_amount: Absolute transaction amount

    Returns:
        One resolved line per input line, in order

    Raises:
        SplitAllocationError: If the lines don't reconcile with the total
            or a line is missing its numeric field

    Example:
        ```
        >>> lines = [SplitLine(percent=Decimal("33.33")),
        ...          SplitLine(percent=Decimal("33.33")),
        ...          SplitLine(percent=Decimal("33.34"))]
        >>> [l.amount for l in allocate(SplitMode.PERCENT, lines, Decimal("10"))]
        [Decimal('3.33'), Decimal('3.33'), Decimal('3.34')]
        ```
    """
    errors = check_lines(mode, lines, total_amount)
    if errors:
        raise errors[0]

    total = to_cents(abs(Decimal(total_amount)))

    if mode == SplitMode.AMOUNT:
        amounts = [Decimal(line.amount) for line in lines]
    else:
        amounts = _percent_amounts(lines, total)

    return [
        ResolvedSplitLine(
            amount=amount,
            category_id=line.category_id,
            description=line.description,
            tax_ids=tuple(line.tax_ids),
        )
        for line, amount in zip(lines, amounts)
    ]
