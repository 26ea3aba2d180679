"""
Pydantic Models for the Compliance Deadline API.
Defines request and response schemas. JSON fields are camelCase.
"""

from datetime import date, datetime
from typing import List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.recurrence.models import TargetSpecType


def _parse_date(value):
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp; keep the date part."""
    if value is None or isinstance(value, date):
        return value.date() if isinstance(value, datetime) else value
    if isinstance(value, str):
        if not value.strip():
            raise ValueError("date must not be empty")
        try:
            return isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            raise ValueError(f"invalid ISO date: {value}")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp")


class GenerateFromTemplateRequest(CamelModel):
    """Request model for generating deadlines from a template."""
    template_id: str = Field(..., min_length=1, description="Template to expand")
    target_type: TargetSpecType = Field(..., description="PERSON, STRUCTURE, ALL_PEOPLE or ALL_STRUCTURES")
    target_id: Optional[str] = Field(None, description="Required for PERSON and STRUCTURE")
    start_date: date = Field(..., description="Base date of the series")
    recurrence_end_date: Optional[date] = Field(None, description="Inclusive end of the recurrence")
    resolve_anchor: bool = Field(False, description="Derive each target's base date from the template anchor")

    @field_validator("start_date", "recurrence_end_date", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return _parse_date(value)


class RescheduleRequest(CamelModel):
    """Request model for moving a deadline."""
    due_date: date = Field(..., description="New due date")

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return _parse_date(value)


class DeadlineResponse(CamelModel):
    """A persisted deadline."""
    id: str
    organization_id: str
    template_id: Optional[str] = None
    title: str
    due_date: date
    status: str
    person_id: Optional[str] = None
    structure_id: Optional[str] = None
    notes: Optional[str] = None
    is_recurring: bool
    recurrence_active: bool
    recurrence_end_date: Optional[date] = None
    recurrence_group_id: Optional[str] = None
    completed_at: Optional[datetime] = None


class GenerateFromTemplateResponse(CamelModel):
    """Response model for deadline generation."""
    success: bool = True
    count: int = Field(..., description="Number of deadlines created")
    deadlines: List[DeadlineResponse] = Field(default=[], description="Created deadlines")


class DeadlineListResponse(CamelModel):
    count: int
    deadlines: List[DeadlineResponse] = []


class StopRecurrenceResponse(CamelModel):
    success: bool = True
    recurrence_group_id: str
    count: int = Field(..., description="Number of deadlines deactivated")
