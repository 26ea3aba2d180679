"""
ORM models for organizations, targets, templates, deadlines and audit records.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.recurrence.models import Target, TargetType, TemplateRule
from src.storage.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Person(Base):
    __tablename__ = "people"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    hire_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    assignment_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class Structure(Base):
    __tablename__ = "structures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    opened_at: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class DeadlineTemplate(Base):
    """
    Compliance template. GLOBAL templates are visible to every organization,
    ORG templates only to the organization that owns them.
    """

    __tablename__ = "deadline_templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner_type: Mapped[str] = mapped_column(String(10), nullable=False, default="ORG")
    organization_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    compliance_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    recurrence_unit: Mapped[str] = mapped_column(String(10), nullable=False)
    recurrence_every: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    first_due_offset_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    anchor: Mapped[str] = mapped_column(String(20), nullable=False, default="CUSTOM")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def is_accessible_by(self, organization_id: str) -> bool:
        return self.owner_type == "GLOBAL" or self.organization_id == organization_id

    def to_rule(self) -> TemplateRule:
        return TemplateRule(
            recurrence_unit=self.recurrence_unit,
            recurrence_every=self.recurrence_every,
            first_due_offset_days=self.first_due_offset_days,
            anchor=self.anchor,
            title=self.title,
            description=self.description,
            template_id=self.id,
        )


class DeadlineInstance(Base):
    """A materialized deadline. Recurring rows share a recurrence_group_id."""

    __tablename__ = "deadline_instances"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("deadline_templates.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    person_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=True
    )
    structure_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("structures.id", ondelete="CASCADE"), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    recurrence_group_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    # Position in the series and the base date it was derived from; lazy
    # top-up re-derives the next due date from these.
    recurrence_iteration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    recurrence_base_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def target(self) -> Optional[Target]:
        if self.person_id:
            return Target(TargetType.PERSON, self.person_id)
        if self.structure_id:
            return Target(TargetType.STRUCTURE, self.structure_id)
        return None


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity: Mapped[str] = mapped_column(String(64), nullable=False, default="DeadlineInstance")
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # "metadata" is reserved on declarative classes
    details: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
