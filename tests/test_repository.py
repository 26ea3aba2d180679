"""
Unit tests for the deadline repository.
"""
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select

from src.recurrence.models import Anchor, Occurrence, Target, TargetType
from src.storage.models import AuditLog, DeadlineInstance

ORG_ID = "org-1"
PERSON = Target(TargetType.PERSON, "person-1")
STRUCTURE = Target(TargetType.STRUCTURE, "structure-1")


def add_completed(repository, target, completed_at, template_id="tpl-yearly"):
    occurrence = Occurrence(
        due_date=completed_at.date(),
        target=target,
        recurrence_group_id="recur_1700000000000_abcdef0123",
        iteration=0,
        series_base_date=completed_at.date(),
        title="Safety training",
        template_id=template_id,
    )
    with repository.transaction() as session:
        row = repository.add_occurrences(session, ORG_ID, [occurrence])[0]
        row.status = "COMPLETED"
        row.completed_at = completed_at


class TestTargetLookups:
    """Test enumeration and existence checks."""

    def test_lists_are_scoped_and_ordered(self, repository, seed):
        with repository.transaction() as session:
            assert repository.list_person_ids(session, ORG_ID) == ["person-1", "person-2"]
            assert repository.list_structure_ids(session, ORG_ID) == ["structure-1", "structure-2", "structure-3"]
            assert repository.list_structure_ids(session, "org-2") == []

    def test_target_exists(self, repository, seed):
        with repository.transaction() as session:
            assert repository.target_exists(session, ORG_ID, PERSON)
            assert repository.target_exists(session, ORG_ID, STRUCTURE)
            assert not repository.target_exists(session, ORG_ID, Target(TargetType.PERSON, "person-x"))
            assert not repository.target_exists(session, ORG_ID, Target(TargetType.STRUCTURE, "person-1"))


class TestAnchorResolution:
    """Test resolution of template anchors to dates."""

    @pytest.mark.parametrize("anchor,target,expected", [
        (Anchor.HIRE_DATE, PERSON, date(2024, 3, 15)),
        (Anchor.ASSIGNMENT_START, Target(TargetType.PERSON, "person-2"), date(2024, 9, 1)),
        (Anchor.ASSIGNMENT_START, STRUCTURE, date(2020, 5, 1)),
        (Anchor.HIRE_DATE, STRUCTURE, None),
        (Anchor.HIRE_DATE, Target(TargetType.PERSON, "person-2"), None),
        (Anchor.CUSTOM, PERSON, None),
    ])
    def test_static_anchors(self, repository, seed, anchor, target, expected):
        with repository.transaction() as session:
            assert repository.resolve_anchor_date(session, anchor, target, "tpl-yearly") == expected

    def test_last_completion_without_history(self, repository, seed):
        with repository.transaction() as session:
            assert repository.resolve_anchor_date(session, Anchor.LAST_COMPLETION, PERSON, "tpl-yearly") is None

    def test_last_completion_takes_latest(self, repository, seed):
        add_completed(repository, PERSON, datetime(2023, 4, 2, 9, 0, tzinfo=timezone.utc))
        add_completed(repository, PERSON, datetime(2024, 4, 10, 9, 0, tzinfo=timezone.utc))
        add_completed(repository, PERSON, datetime(2025, 1, 5, 9, 0, tzinfo=timezone.utc), template_id="tpl-monthly")

        with repository.transaction() as session:
            resolved = repository.resolve_anchor_date(session, Anchor.LAST_COMPLETION, PERSON, "tpl-yearly")

        assert resolved == date(2024, 4, 10)

    def test_last_completion_is_per_target(self, repository, seed):
        add_completed(repository, Target(TargetType.PERSON, "person-2"), datetime(2024, 6, 1, tzinfo=timezone.utc))

        with repository.transaction() as session:
            assert repository.resolve_anchor_date(session, Anchor.LAST_COMPLETION, PERSON, "tpl-yearly") is None


class TestDeadlineRows:
    """Test deadline persistence helpers."""

    def test_add_occurrences_maps_series_fields(self, repository, seed):
        occurrence = Occurrence(
            due_date=date(2025, 2, 28),
            target=STRUCTURE,
            recurrence_group_id="recur_1700000000000_abcdef0123",
            iteration=1,
            series_base_date=date(2025, 1, 31),
            title="Fire extinguisher check",
            template_id="tpl-monthly",
        )

        with repository.transaction() as session:
            row = repository.add_occurrences(session, ORG_ID, [occurrence])[0]
            row_id = row.id

        with repository.transaction() as session:
            stored = repository.get_deadline(session, ORG_ID, row_id)
            assert stored.structure_id == "structure-1"
            assert stored.person_id is None
            assert stored.recurrence_iteration == 1
            assert stored.recurrence_base_date == date(2025, 1, 31)
            assert stored.is_recurring is True
            assert stored.status == "PENDING"
            assert repository.get_deadline(session, "org-2", row_id) is None

    def test_audit_log_metadata(self, repository, seed):
        with repository.transaction() as session:
            repository.add_audit_log(session, ORG_ID, "user-1", "STOP_RECURRENCE", "recur_x", {"count": 3})

        with repository.transaction() as session:
            entry = session.scalars(select(AuditLog)).one()
            assert entry.details == {"count": 3}
            assert entry.entity == "DeadlineInstance"
            assert session.scalars(select(DeadlineInstance)).all() == []
