"""
Group Assignment.
Recurrence group ids tie together the occurrences of one generation request
so they can be collapsed to the next occurrence or cancelled together.
"""

import time
import uuid
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, List, Tuple


class GroupingMode(str, Enum):
    """How many group ids one generation call hands out."""

    PER_CALL = "per_call"
    PER_TARGET = "per_target"


def new_group_id() -> str:
    """Return an opaque id such as ``recur_1735689600000_3f9c2a1b7d``."""
    return f"recur_{int(time.time() * 1000)}_{uuid.uuid4().hex[:10]}"


def collapse_to_next(records: Iterable[Any]) -> List[Any]:
    """
    Keep only the next pending occurrence of every recurring series.

    A series is identified by (recurrence group id, person id, structure id),
    so a group shared by several targets still shows one row per target.
    Non-recurring rows and rows that are no longer pending are returned as is.
    Input order is preserved.

    Args:
        records: Objects exposing ``recurrence_group_id``, ``is_recurring``,
            ``status``, ``due_date``, ``person_id`` and ``structure_id``

    Returns:
        Filtered list
    """
    records = list(records)
    earliest: Dict[Tuple[Hashable, ...], Any] = {}
    for record in records:
        if not _is_pending_recurring(record):
            continue
        key = _series_key(record)
        current = earliest.get(key)
        if current is None or record.due_date < current.due_date:
            earliest[key] = record

    keep = {id(record) for record in earliest.values()}
    return [
        record for record in records
        if not _is_pending_recurring(record) or id(record) in keep
    ]


def _series_key(record: Any) -> Tuple[Hashable, ...]:
    return (record.recurrence_group_id, record.person_id, record.structure_id)


def _is_pending_recurring(record: Any) -> bool:
    status = getattr(record.status, "value", record.status)
    return bool(record.is_recurring and record.recurrence_group_id and status == "PENDING")
