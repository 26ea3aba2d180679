"""
Domain types for recurring deadline generation.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from src.utils.errors import ValidationError


class RecurrenceUnit(str, Enum):
    DAY = "DAY"
    MONTH = "MONTH"
    YEAR = "YEAR"


class Anchor(str, Enum):
    """What the base date of a template means. Resolution happens in storage."""

    HIRE_DATE = "HIRE_DATE"
    ASSIGNMENT_START = "ASSIGNMENT_START"
    LAST_COMPLETION = "LAST_COMPLETION"
    CUSTOM = "CUSTOM"


class TargetType(str, Enum):
    PERSON = "PERSON"
    STRUCTURE = "STRUCTURE"


class TargetSpecType(str, Enum):
    PERSON = "PERSON"
    STRUCTURE = "STRUCTURE"
    ALL_PEOPLE = "ALL_PEOPLE"
    ALL_STRUCTURES = "ALL_STRUCTURES"


class DeadlineStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"


@dataclass(frozen=True)
class TemplateRule:
    """Recurrence rule of a compliance template."""

    recurrence_unit: RecurrenceUnit
    recurrence_every: int = 1
    first_due_offset_days: int = 0
    anchor: Anchor = Anchor.CUSTOM
    title: str = ""
    description: Optional[str] = None
    template_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.recurrence_unit, RecurrenceUnit):
            try:
                object.__setattr__(self, "recurrence_unit", RecurrenceUnit(self.recurrence_unit))
            except ValueError:
                raise ValidationError(f"Unknown recurrence unit: {self.recurrence_unit}")
        if not isinstance(self.anchor, Anchor):
            try:
                object.__setattr__(self, "anchor", Anchor(self.anchor))
            except ValueError:
                raise ValidationError(f"Unknown anchor: {self.anchor}")
        if self.recurrence_every < 1:
            raise ValidationError("recurrence_every must be a positive integer")
        if self.first_due_offset_days < 0:
            raise ValidationError("first_due_offset_days must not be negative")


@dataclass(frozen=True)
class Target:
    type: TargetType
    id: str


@dataclass(frozen=True)
class TargetSpec:
    """What the caller asked for: one explicit target or a whole population."""

    type: TargetSpecType
    target_id: Optional[str] = None


@dataclass(frozen=True)
class Occurrence:
    """One materialized deadline, ready to be persisted."""

    due_date: date
    target: Target
    recurrence_group_id: str
    iteration: int
    series_base_date: date
    title: str = ""
    notes: Optional[str] = None
    template_id: Optional[str] = None
    recurrence_end_date: Optional[date] = None
    is_recurring: bool = True
    recurrence_active: bool = True
    status: DeadlineStatus = DeadlineStatus.PENDING

    @property
    def person_id(self) -> Optional[str]:
        return self.target.id if self.target.type == TargetType.PERSON else None

    @property
    def structure_id(self) -> Optional[str]:
        return self.target.id if self.target.type == TargetType.STRUCTURE else None
