"""
Deadline Repository.
Relational persistence for templates, targets, deadlines and audit records.

Every method takes the session of the caller's unit of work; ``transaction()``
opens one and commits it as a whole, so a generation batch, its audit record
and any follow-up rows are written together or not at all.
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.recurrence.models import Anchor, DeadlineStatus, Occurrence, Target, TargetType
from src.storage.database import create_db_engine, create_session_factory, init_db
from src.storage.models import AuditLog, DeadlineInstance, DeadlineTemplate, Person, Structure
from src.utils.errors import PersistenceError

logger = logging.getLogger(__name__)


class DeadlineRepository:
    """SQLAlchemy-backed store for deadline data."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "DeadlineRepository":
        """Create the engine, make sure the tables exist and wrap it."""
        engine = create_db_engine(database_url, echo=echo)
        init_db(engine)
        return cls(create_session_factory(engine))

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unit of work. Commits on success; any failure rolls back everything.

        Raises:
            PersistenceError: The database rejected the batch
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Transaction rolled back: {e}", exc_info=True)
            raise PersistenceError(f"Failed to persist changes: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Templates and targets
    # ------------------------------------------------------------------
    def get_template(self, session: Session, template_id: str) -> Optional[DeadlineTemplate]:
        return session.get(DeadlineTemplate, template_id)

    def list_person_ids(self, session: Session, organization_id: str) -> List[str]:
        stmt = select(Person.id).where(Person.organization_id == organization_id).order_by(Person.id)
        return list(session.scalars(stmt))

    def list_structure_ids(self, session: Session, organization_id: str) -> List[str]:
        stmt = select(Structure.id).where(Structure.organization_id == organization_id).order_by(Structure.id)
        return list(session.scalars(stmt))

    def target_exists(self, session: Session, organization_id: str, target: Target) -> bool:
        model = Person if target.type == TargetType.PERSON else Structure
        stmt = select(model.id).where(model.id == target.id, model.organization_id == organization_id)
        return session.scalar(stmt) is not None

    def resolve_anchor_date(
        self,
        session: Session,
        anchor: Anchor,
        target: Target,
        template_id: Optional[str] = None
    ) -> Optional[date]:
        """
        Look up the concrete date behind a template anchor for one target.

        Args:
            session: Active session
            anchor: Template anchor
            target: Person or structure
            template_id: Template whose completions count for LAST_COMPLETION

        Returns:
            The anchor date, or None when it is unknown (CUSTOM, missing data)
        """
        if anchor == Anchor.HIRE_DATE and target.type == TargetType.PERSON:
            return session.scalar(select(Person.hire_date).where(Person.id == target.id))

        if anchor == Anchor.ASSIGNMENT_START:
            if target.type == TargetType.PERSON:
                return session.scalar(select(Person.assignment_start_date).where(Person.id == target.id))
            return session.scalar(select(Structure.opened_at).where(Structure.id == target.id))

        if anchor == Anchor.LAST_COMPLETION and template_id:
            column = DeadlineInstance.person_id if target.type == TargetType.PERSON else DeadlineInstance.structure_id
            last = session.scalar(
                select(func.max(DeadlineInstance.completed_at)).where(
                    DeadlineInstance.template_id == template_id,
                    DeadlineInstance.status == DeadlineStatus.COMPLETED.value,
                    column == target.id,
                )
            )
            return last.date() if last is not None else None

        return None

    # ------------------------------------------------------------------
    # Deadlines
    # ------------------------------------------------------------------
    def add_occurrences(
        self,
        session: Session,
        organization_id: str,
        occurrences: Sequence[Occurrence]
    ) -> List[DeadlineInstance]:
        """Stage occurrences as deadline rows; ids are assigned on flush."""
        rows = [
            DeadlineInstance(
                organization_id=organization_id,
                template_id=occ.template_id,
                title=occ.title,
                due_date=occ.due_date,
                status=occ.status.value,
                person_id=occ.person_id,
                structure_id=occ.structure_id,
                notes=occ.notes,
                is_recurring=occ.is_recurring,
                recurrence_active=occ.recurrence_active,
                recurrence_end_date=occ.recurrence_end_date,
                recurrence_group_id=occ.recurrence_group_id,
                recurrence_iteration=occ.iteration,
                recurrence_base_date=occ.series_base_date,
            )
            for occ in occurrences
        ]
        session.add_all(rows)
        session.flush()
        return rows

    def get_deadline(self, session: Session, organization_id: str, deadline_id: str) -> Optional[DeadlineInstance]:
        stmt = select(DeadlineInstance).where(
            DeadlineInstance.id == deadline_id,
            DeadlineInstance.organization_id == organization_id,
        )
        return session.scalar(stmt)

    def list_deadlines(
        self,
        session: Session,
        organization_id: str,
        status: Optional[str] = None,
        group_id: Optional[str] = None
    ) -> List[DeadlineInstance]:
        stmt = select(DeadlineInstance).where(DeadlineInstance.organization_id == organization_id)
        if status:
            stmt = stmt.where(DeadlineInstance.status == status)
        if group_id:
            stmt = stmt.where(DeadlineInstance.recurrence_group_id == group_id)
        stmt = stmt.order_by(DeadlineInstance.due_date, DeadlineInstance.created_at)
        return list(session.scalars(stmt))

    def series_state(
        self,
        session: Session,
        row: DeadlineInstance,
        as_of: date
    ) -> Tuple[date, int, int]:
        """
        Summarize the series a row belongs to (same group, same target).

        The position to extend from is the latest materialized row, whose
        base date may differ from ``row`` after a reschedule re-based part
        of the series.

        Returns:
            (base date and iteration of the latest row,
             pending occurrences due after ``as_of``)
        """
        series = self._series_filter(row)
        latest = session.scalars(
            select(DeadlineInstance)
            .where(*series)
            .order_by(
                DeadlineInstance.due_date.desc(),
                DeadlineInstance.recurrence_iteration.desc(),
            )
            .limit(1)
        ).first()
        pending_future = session.scalar(
            select(func.count(DeadlineInstance.id)).where(
                *series,
                DeadlineInstance.status == DeadlineStatus.PENDING.value,
                DeadlineInstance.due_date > as_of,
            )
        )
        if latest is None or latest.recurrence_base_date is None:
            return row.recurrence_base_date, row.recurrence_iteration or 0, pending_future or 0
        return latest.recurrence_base_date, latest.recurrence_iteration or 0, pending_future or 0

    def delete_pending_after(self, session: Session, row: DeadlineInstance, after: date) -> int:
        """Delete pending rows of the row's series due after the given date."""
        result = session.execute(
            delete(DeadlineInstance).where(
                *self._series_filter(row),
                DeadlineInstance.id != row.id,
                DeadlineInstance.status == DeadlineStatus.PENDING.value,
                DeadlineInstance.due_date > after,
            )
        )
        return result.rowcount or 0

    def count_pending(self, session: Session, row: DeadlineInstance) -> int:
        return session.scalar(
            select(func.count(DeadlineInstance.id)).where(
                *self._series_filter(row),
                DeadlineInstance.status == DeadlineStatus.PENDING.value,
            )
        ) or 0

    def deactivate_group(self, session: Session, organization_id: str, group_id: str) -> int:
        """Flip recurrence_active off on every row of a group."""
        result = session.execute(
            update(DeadlineInstance)
            .where(
                DeadlineInstance.organization_id == organization_id,
                DeadlineInstance.recurrence_group_id == group_id,
            )
            .values(recurrence_active=False)
        )
        return result.rowcount or 0

    def group_exists(self, session: Session, organization_id: str, group_id: str) -> bool:
        stmt = select(DeadlineInstance.id).where(
            DeadlineInstance.organization_id == organization_id,
            DeadlineInstance.recurrence_group_id == group_id,
        ).limit(1)
        return session.scalar(stmt) is not None

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------
    def add_audit_log(
        self,
        session: Session,
        organization_id: str,
        user_id: str,
        action: str,
        entity_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        entity: str = "DeadlineInstance"
    ) -> AuditLog:
        entry = AuditLog(
            organization_id=organization_id,
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=metadata or {},
        )
        session.add(entry)
        return entry

    @staticmethod
    def _series_filter(row: DeadlineInstance) -> list:
        return [
            DeadlineInstance.recurrence_group_id == row.recurrence_group_id,
            DeadlineInstance.person_id.is_(None) if row.person_id is None else DeadlineInstance.person_id == row.person_id,
            DeadlineInstance.structure_id.is_(None) if row.structure_id is None else DeadlineInstance.structure_id == row.structure_id,
        ]
