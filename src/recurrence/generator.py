"""
Deadline Generator.
Expands a template over a set of targets into occurrences ready to persist.
No I/O happens here; the caller owns the batch write.
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence

from src.recurrence.expander import (
    DEFAULT_LOOKAHEAD_CAP,
    base_for_first_due,
    compute_due_date,
    iter_due_dates,
    plan_occurrence_count,
)
from src.recurrence.grouping import GroupingMode, new_group_id
from src.recurrence.models import Anchor, Occurrence, Target, TemplateRule
from src.utils.errors import EmptyTargetError, ValidationError

logger = logging.getLogger(__name__)

AnchorResolver = Callable[[Anchor, Target], Optional[date]]


class DeadlineGenerator:
    """Generates bounded recurring deadline series from templates."""

    def __init__(
        self,
        cap: int = DEFAULT_LOOKAHEAD_CAP,
        grouping: GroupingMode = GroupingMode.PER_CALL,
        group_id_factory: Callable[[], str] = new_group_id
    ):
        """
        Initialize the generator.

        Args:
            cap: Lookahead cap, maximum occurrences materialized per target
            grouping: One group id per call or one per target
            group_id_factory: Source of group ids
        """
        if cap < 1:
            raise ValidationError("lookahead cap must be a positive integer")
        self.cap = cap
        self.grouping = GroupingMode(grouping)
        self.group_id_factory = group_id_factory

    def generate(
        self,
        template: TemplateRule,
        targets: Sequence[Target],
        base_date: date,
        end_date: Optional[date] = None,
        anchor_resolver: Optional[AnchorResolver] = None
    ) -> List[Occurrence]:
        """
        Generate the initial occurrences of a recurring deadline.

        Args:
            template: Template recurrence rule
            targets: Resolved targets, must not be empty
            base_date: Start date supplied by the caller
            end_date: Optional inclusive recurrence end date
            anchor_resolver: Optional per-target base date lookup; a None
                result falls back to ``base_date``

        Returns:
            Occurrences for all targets, flattened in target order
        """
        if not targets:
            raise EmptyTargetError()

        call_group_id = self.group_id_factory()
        occurrences: List[Occurrence] = []

        for index, target in enumerate(targets):
            if self.grouping == GroupingMode.PER_TARGET and index > 0:
                group_id = self.group_id_factory()
            else:
                group_id = call_group_id

            series_base = base_date
            if anchor_resolver is not None:
                series_base = anchor_resolver(template.anchor, target) or base_date

            count = plan_occurrence_count(series_base, template, end_date, self.cap)
            for iteration, due_date in iter_due_dates(series_base, template, count):
                occurrences.append(self._build(
                    template, target, group_id, iteration, series_base, due_date, end_date
                ))

        logger.info(
            f"Generated {len(occurrences)} occurrences for {len(targets)} targets "
            f"(template={template.template_id}, grouping={self.grouping.value})"
        )
        return occurrences

    def next_occurrence(
        self,
        template: TemplateRule,
        target: Target,
        group_id: str,
        series_base_date: date,
        last_iteration: int,
        end_date: Optional[date] = None,
        pending_future_count: int = 0
    ) -> Optional[Occurrence]:
        """
        Lazily extend a series by one occurrence after a completion.

        Args:
            template: Template recurrence rule
            target: Target of the series
            group_id: Recurrence group id of the series
            series_base_date: Base date the series was derived from
            last_iteration: Highest iteration already materialized
            end_date: Optional inclusive recurrence end date
            pending_future_count: Pending occurrences still ahead

        Returns:
            The next occurrence, or None when the series is full or over
        """
        if pending_future_count >= self.cap:
            return None

        iteration = last_iteration + 1
        due_date = compute_due_date(series_base_date, template, iteration)
        if end_date is not None and due_date > end_date:
            return None

        return self._build(template, target, group_id, iteration, series_base_date, due_date, end_date)

    def regenerate_from(
        self,
        template: TemplateRule,
        target: Target,
        group_id: str,
        new_due_date: date,
        end_date: Optional[date] = None,
        existing_pending: int = 0
    ) -> List[Occurrence]:
        """
        Re-derive the future of a series whose current due date moved.

        The moved occurrence becomes iteration 0 of a new series base; the
        returned occurrences start at iteration 1 and top the series up to
        the cap, trimmed by the end date.
        """
        to_generate = max(0, self.cap - existing_pending)
        series_base = base_for_first_due(new_due_date, template)
        occurrences = []
        for iteration, due_date in iter_due_dates(series_base, template, to_generate, start_iteration=1):
            if end_date is not None and due_date > end_date:
                break
            occurrences.append(self._build(
                template, target, group_id, iteration, series_base, due_date, end_date
            ))
        return occurrences

    @staticmethod
    def _build(template, target, group_id, iteration, series_base, due_date, end_date) -> Occurrence:
        return Occurrence(
            due_date=due_date,
            target=target,
            recurrence_group_id=group_id,
            iteration=iteration,
            series_base_date=series_base,
            title=template.title,
            notes=template.description or None,
            template_id=template.template_id,
            recurrence_end_date=end_date,
        )

