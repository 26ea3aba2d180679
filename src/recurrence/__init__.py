"""Recurring deadline generation: expander, target resolver, grouping and generator."""

from src.recurrence.expander import add_units, compute_due_date, plan_occurrence_count
from src.recurrence.generator import DeadlineGenerator
from src.recurrence.grouping import GroupingMode, collapse_to_next, new_group_id
from src.recurrence.models import (
    Anchor,
    DeadlineStatus,
    Occurrence,
    RecurrenceUnit,
    Target,
    TargetSpec,
    TargetSpecType,
    TargetType,
    TemplateRule,
)
from src.recurrence.targets import resolve_targets

__all__ = [
    "add_units",
    "compute_due_date",
    "plan_occurrence_count",
    "DeadlineGenerator",
    "GroupingMode",
    "collapse_to_next",
    "new_group_id",
    "Anchor",
    "DeadlineStatus",
    "Occurrence",
    "RecurrenceUnit",
    "Target",
    "TargetSpec",
    "TargetSpecType",
    "TargetType",
    "TemplateRule",
    "resolve_targets",
]
