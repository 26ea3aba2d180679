"""
Recurrence Expander.
Computes due dates for the Nth occurrence of a template and decides how many
occurrences to materialize up front.

Month and year arithmetic goes through dateutil's relativedelta, which clamps
to the last valid day of the target month:

    2025-01-31 + 1 month  -> 2025-02-28
    2024-02-29 + 1 year   -> 2025-02-28

Every due date is derived from the series base date, never from the previous
occurrence, so a Jan 31 monthly series reads Jan 31, Feb 28, Mar 31.
"""

import logging
from datetime import date, timedelta
from typing import Iterator, Optional, Tuple

from dateutil.relativedelta import relativedelta

from src.recurrence.models import RecurrenceUnit, TemplateRule
from src.utils.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_CAP = 3


def add_units(base: date, unit: RecurrenceUnit, amount: int) -> date:
    """
    Add ``amount`` recurrence units to a date.

    This is the only place calendar arithmetic happens; generation, lazy
    top-up and rescheduling all call it.

    Args:
        base: Starting date
        unit: DAY, MONTH or YEAR
        amount: Number of units to add

    Returns:
        Shifted date
    """
    if unit == RecurrenceUnit.DAY:
        return base + timedelta(days=amount)
    if unit == RecurrenceUnit.MONTH:
        return base + relativedelta(months=amount)
    if unit == RecurrenceUnit.YEAR:
        return base + relativedelta(years=amount)
    raise ValidationError(f"Unsupported recurrence unit: {unit}")


def first_due_date(base_date: date, rule: TemplateRule) -> date:
    """Due date of iteration 0: base date plus the template offset."""
    return base_date + timedelta(days=rule.first_due_offset_days)


def base_for_first_due(first_due: date, rule: TemplateRule) -> date:
    """Inverse of first_due_date, used when a series is re-based on a moved due date."""
    return first_due - timedelta(days=rule.first_due_offset_days)


def compute_due_date(base_date: date, rule: TemplateRule, iteration: int) -> date:
    """
    Compute the due date of the given iteration.

    Args:
        base_date: Resolved anchor date of the series
        rule: Template recurrence rule
        iteration: Zero-based occurrence index

    Returns:
        Due date of the occurrence
    """
    if iteration < 0:
        raise ValidationError("iteration must be >= 0")
    total_units = rule.recurrence_every * iteration
    return add_units(first_due_date(base_date, rule), rule.recurrence_unit, total_units)


def plan_occurrence_count(
    base_date: date,
    rule: TemplateRule,
    end_date: Optional[date] = None,
    cap: int = DEFAULT_LOOKAHEAD_CAP
) -> int:
    """
    Decide how many occurrences to materialize for one target.

    Without an end date the full lookahead cap is used. With one, occurrences
    are counted while ``due_date <= end_date``; due dates never decrease with
    the iteration, so counting stops at the first one past the end date.

    Args:
        base_date: Resolved anchor date of the series
        rule: Template recurrence rule
        end_date: Optional inclusive recurrence end date
        cap: Maximum number of occurrences to materialize

    Returns:
        Number of occurrences, between 0 and ``cap``
    """
    if cap < 1:
        raise ValidationError("lookahead cap must be a positive integer")
    if end_date is None:
        return cap

    count = 0
    for iteration in range(cap):
        if compute_due_date(base_date, rule, iteration) > end_date:
            break
        count += 1
    return count


def iter_due_dates(
    base_date: date,
    rule: TemplateRule,
    count: int,
    start_iteration: int = 0
) -> Iterator[Tuple[int, date]]:
    """Yield ``(iteration, due_date)`` for ``count`` consecutive iterations."""
    for iteration in range(start_iteration, start_iteration + count):
        yield iteration, compute_due_date(base_date, rule, iteration)
