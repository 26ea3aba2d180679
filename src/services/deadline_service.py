"""
Deadline Service.
Ties the recurrence core to the repository: validation, scope checks,
target resolution, generation and the single atomic write per request.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from src.recurrence.expander import base_for_first_due
from src.recurrence.generator import DeadlineGenerator
from src.recurrence.grouping import collapse_to_next
from src.recurrence.models import DeadlineStatus, TargetSpec, TargetSpecType
from src.recurrence.targets import resolve_targets
from src.storage.deadline_repository import DeadlineRepository
from src.storage.models import DeadlineInstance
from src.utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class GenerationRequest:
    """Validated input of a generate-from-template call."""

    template_id: str
    target_type: TargetSpecType
    start_date: date
    target_id: Optional[str] = None
    recurrence_end_date: Optional[date] = None
    resolve_anchor: bool = False


class DeadlineService:
    """Business operations on recurring deadlines."""

    def __init__(
        self,
        repository: DeadlineRepository,
        generator: DeadlineGenerator,
        today: Callable[[], date] = date.today
    ):
        """
        Initialize the service.

        Args:
            repository: Persistence collaborator
            generator: Recurrence generator (holds cap and grouping mode)
            today: Clock used for "future" comparisons
        """
        self.repository = repository
        self.generator = generator
        self.today = today

    def generate_from_template(
        self,
        organization_id: str,
        user_id: str,
        request: GenerationRequest
    ) -> List[DeadlineInstance]:
        """
        Generate the initial occurrences of a template for the requested targets.

        All rows and the audit record are committed in one transaction.

        Raises:
            NotFoundError: Template or explicit target missing or out of scope
            ValidationError: Inactive template, bad target spec, no targets
            PersistenceError: Storage failure, nothing was committed
        """
        logger.info(
            f"Generating deadlines from template {request.template_id} "
            f"for {request.target_type.value} in organization {organization_id}"
        )

        with self.repository.transaction() as session:
            template = self.repository.get_template(session, request.template_id)
            if template is None:
                raise NotFoundError("Template not found", "DeadlineTemplate")
            if not template.is_accessible_by(organization_id):
                raise NotFoundError("Template not accessible", "DeadlineTemplate")
            if not template.active:
                raise ValidationError("Template is not active")

            rule = template.to_rule()
            spec = TargetSpec(request.target_type, request.target_id)
            targets = resolve_targets(
                spec,
                lambda: self.repository.list_person_ids(session, organization_id),
                lambda: self.repository.list_structure_ids(session, organization_id),
            )
            if spec.type in (TargetSpecType.PERSON, TargetSpecType.STRUCTURE):
                if not self.repository.target_exists(session, organization_id, targets[0]):
                    raise NotFoundError(
                        f"{spec.type.value.title()} not found in this organization",
                        spec.type.value.title(),
                    )

            anchor_resolver = None
            if request.resolve_anchor:
                def anchor_resolver(anchor, target):
                    return self.repository.resolve_anchor_date(session, anchor, target, template.id)

            occurrences = self.generator.generate(
                rule,
                targets,
                request.start_date,
                request.recurrence_end_date,
                anchor_resolver=anchor_resolver,
            )
            rows = self.repository.add_occurrences(session, organization_id, occurrences)
            self.repository.add_audit_log(
                session,
                organization_id,
                user_id,
                "GENERATE_DEADLINES_FROM_TEMPLATE",
                template.id,
                {
                    "templateId": template.id,
                    "targetType": request.target_type.value,
                    "targetId": request.target_id,
                    "count": len(rows),
                    "recurrenceGroupIds": sorted({row.recurrence_group_id for row in rows}),
                },
            )

        logger.info(f"Created {len(rows)} deadlines for {len(targets)} targets from template {template.id}")
        return rows

    def list_deadlines(
        self,
        organization_id: str,
        next_only: bool = False,
        status: Optional[str] = None
    ) -> List[DeadlineInstance]:
        """List deadlines ordered by due date, optionally collapsed to the next occurrence."""
        with self.repository.transaction() as session:
            rows = self.repository.list_deadlines(session, organization_id, status=status)
        return collapse_to_next(rows) if next_only else rows

    def complete_deadline(self, organization_id: str, user_id: str, deadline_id: str) -> DeadlineInstance:
        """
        Mark a deadline as completed.

        For an active recurring deadline the series is extended by one
        occurrence, as long as fewer than ``cap`` pending occurrences remain
        ahead and the recurrence end date allows it.
        """
        with self.repository.transaction() as session:
            row = self._get_deadline(session, organization_id, deadline_id)
            was_completed = row.status == DeadlineStatus.COMPLETED.value

            row.status = DeadlineStatus.COMPLETED.value
            if row.completed_at is None:
                row.completed_at = datetime.now(timezone.utc)

            self.repository.add_audit_log(
                session, organization_id, user_id, "UPDATE_DEADLINE", row.id,
                {"changes": {"status": DeadlineStatus.COMPLETED.value}},
            )

            if not was_completed and self._extends_series(row):
                template = self.repository.get_template(session, row.template_id)
                if template is not None:
                    series_base, last_iteration, pending_future = self.repository.series_state(
                        session, row, self.today()
                    )
                    occurrence = self.generator.next_occurrence(
                        template.to_rule(),
                        row.target,
                        row.recurrence_group_id,
                        series_base,
                        last_iteration,
                        row.recurrence_end_date,
                        pending_future,
                    )
                    if occurrence is not None:
                        self.repository.add_occurrences(session, organization_id, [occurrence])
                        logger.info(
                            f"Next recurring instance generated for group {row.recurrence_group_id} "
                            f"due {occurrence.due_date.isoformat()}"
                        )

        return row

    def reschedule_deadline(
        self,
        organization_id: str,
        user_id: str,
        deadline_id: str,
        new_due_date: date
    ) -> DeadlineInstance:
        """
        Move a deadline to a new due date.

        For a recurring deadline the pending occurrences after it are
        re-derived from the new date, keeping at most ``cap`` pending rows.
        """
        with self.repository.transaction() as session:
            row = self._get_deadline(session, organization_id, deadline_id)
            old_due_date = row.due_date
            row.due_date = new_due_date

            if self._extends_series(row):
                template = self.repository.get_template(session, row.template_id)
                if template is not None:
                    rule = template.to_rule()
                    deleted = self.repository.delete_pending_after(session, row, old_due_date)
                    row.recurrence_base_date = base_for_first_due(new_due_date, rule)
                    row.recurrence_iteration = 0
                    existing_pending = self.repository.count_pending(session, row)
                    occurrences = self.generator.regenerate_from(
                        rule,
                        row.target,
                        row.recurrence_group_id,
                        new_due_date,
                        row.recurrence_end_date,
                        existing_pending,
                    )
                    self.repository.add_occurrences(session, organization_id, occurrences)
                    logger.info(
                        f"Rescheduled series {row.recurrence_group_id}: "
                        f"{deleted} removed, {len(occurrences)} regenerated"
                    )

            self.repository.add_audit_log(
                session, organization_id, user_id, "UPDATE_DEADLINE", row.id,
                {"changes": {"dueDate": new_due_date.isoformat()}},
            )

        return row

    def stop_recurrence(self, organization_id: str, user_id: str, group_id: str) -> int:
        """
        Cancel a recurrence group. Rows stay in place with recurrence_active off.

        Returns:
            Number of deadlines deactivated
        """
        with self.repository.transaction() as session:
            if not self.repository.group_exists(session, organization_id, group_id):
                raise NotFoundError("Recurrence group not found", "RecurrenceGroup")
            count = self.repository.deactivate_group(session, organization_id, group_id)
            self.repository.add_audit_log(
                session, organization_id, user_id, "STOP_RECURRENCE", group_id, {"count": count}
            )

        logger.info(f"Stopped recurrence group {group_id} ({count} deadlines)")
        return count

    def _get_deadline(self, session, organization_id: str, deadline_id: str) -> DeadlineInstance:
        row = self.repository.get_deadline(session, organization_id, deadline_id)
        if row is None:
            raise NotFoundError("Deadline not found", "DeadlineInstance")
        return row

    @staticmethod
    def _extends_series(row: DeadlineInstance) -> bool:
        return bool(
            row.is_recurring
            and row.recurrence_active
            and row.template_id
            and row.recurrence_group_id
            and row.recurrence_base_date is not None
            and row.target is not None
        )
