"""
API Routes for the Compliance Deadline Service.
Implements endpoints for generating, listing, completing, rescheduling and
cancelling recurring deadlines.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, Query

from src.api.models import (
    DeadlineListResponse,
    DeadlineResponse,
    GenerateFromTemplateRequest,
    GenerateFromTemplateResponse,
    HealthResponse,
    RescheduleRequest,
    StopRecurrenceResponse,
)
from src.recurrence.generator import DeadlineGenerator
from src.services.deadline_service import DeadlineService, GenerationRequest
from src.storage.deadline_repository import DeadlineRepository
from src.utils.config import get_api_config, get_app_version, get_database_url, get_recurrence_settings
from src.utils.errors import ServiceError

logger = logging.getLogger(__name__)
router = APIRouter()

# Initialize components (singleton pattern)
_repository = None
_deadline_service = None


def get_repository() -> DeadlineRepository:
    global _repository
    if _repository is None:
        db_config = get_api_config().get('database', {})
        _repository = DeadlineRepository.from_url(get_database_url(), echo=bool(db_config.get('echo', False)))
    return _repository


def build_generator() -> DeadlineGenerator:
    """Build the generator from recurrence settings; bad cap or grouping raise here."""
    settings = get_recurrence_settings()
    return DeadlineGenerator(
        cap=settings["lookahead_cap"],
        grouping=settings["grouping"],
    )


def get_deadline_service() -> DeadlineService:
    global _deadline_service
    if _deadline_service is None:
        _deadline_service = DeadlineService(get_repository(), build_generator())
    return _deadline_service


def _to_response(rows) -> List[DeadlineResponse]:
    return [DeadlineResponse.model_validate(row) for row in rows]


def _raise_http(e: ServiceError, action: str):
    level = logging.ERROR if e.status_code >= 500 else logging.WARNING
    logger.log(level, f"{action} failed ({e.code}): {e.message}")
    raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=get_app_version(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )


@router.post(
    "/organizations/{organization_id}/deadlines/generate-from-template",
    response_model=GenerateFromTemplateResponse,
    tags=["Deadlines"]
)
async def generate_from_template(
    organization_id: str,
    body: GenerateFromTemplateRequest,
    x_user_id: Optional[str] = Header(None)
):
    """
    Generate recurring deadlines from a template for one or many targets.
    """
    user_id = x_user_id or "anonymous"
    try:
        logger.info(
            f"Generate from template: org={organization_id} template={body.template_id} "
            f"target={body.target_type.value}:{body.target_id} start={body.start_date} "
            f"end={body.recurrence_end_date}"
        )
        request = GenerationRequest(
            template_id=body.template_id,
            target_type=body.target_type,
            target_id=body.target_id,
            start_date=body.start_date,
            recurrence_end_date=body.recurrence_end_date,
            resolve_anchor=body.resolve_anchor,
        )
        rows = await asyncio.to_thread(
            get_deadline_service().generate_from_template, organization_id, user_id, request
        )
        return GenerateFromTemplateResponse(success=True, count=len(rows), deadlines=_to_response(rows))

    except HTTPException:
        raise
    except ServiceError as e:
        _raise_http(e, "Deadline generation")
    except Exception as e:
        logger.error(f"Error generating deadlines from template: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate deadlines")


@router.get(
    "/organizations/{organization_id}/deadlines",
    response_model=DeadlineListResponse,
    tags=["Deadlines"]
)
async def list_deadlines(
    organization_id: str,
    next_only: bool = Query(False, alias="nextOnly"),
    status: Optional[str] = Query(None)
):
    """List deadlines; ``nextOnly`` shows only the next occurrence of each series."""
    try:
        rows = await asyncio.to_thread(
            get_deadline_service().list_deadlines, organization_id, next_only, status
        )
        return DeadlineListResponse(count=len(rows), deadlines=_to_response(rows))
    except ServiceError as e:
        _raise_http(e, "Deadline listing")
    except Exception as e:
        logger.error(f"Error listing deadlines: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list deadlines")


@router.post(
    "/organizations/{organization_id}/deadlines/{deadline_id}/complete",
    response_model=DeadlineResponse,
    tags=["Deadlines"]
)
async def complete_deadline(
    organization_id: str,
    deadline_id: str,
    x_user_id: Optional[str] = Header(None)
):
    """Mark a deadline completed; recurring series are topped up lazily."""
    try:
        row = await asyncio.to_thread(
            get_deadline_service().complete_deadline, organization_id, x_user_id or "anonymous", deadline_id
        )
        return DeadlineResponse.model_validate(row)
    except ServiceError as e:
        _raise_http(e, "Deadline completion")
    except Exception as e:
        logger.error(f"Error completing deadline {deadline_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to complete deadline")


@router.patch(
    "/organizations/{organization_id}/deadlines/{deadline_id}",
    response_model=DeadlineResponse,
    tags=["Deadlines"]
)
async def reschedule_deadline(
    organization_id: str,
    deadline_id: str,
    body: RescheduleRequest,
    x_user_id: Optional[str] = Header(None)
):
    """Move a deadline; following occurrences of a recurring series are re-derived."""
    try:
        row = await asyncio.to_thread(
            get_deadline_service().reschedule_deadline,
            organization_id, x_user_id or "anonymous", deadline_id, body.due_date
        )
        return DeadlineResponse.model_validate(row)
    except ServiceError as e:
        _raise_http(e, "Deadline reschedule")
    except Exception as e:
        logger.error(f"Error rescheduling deadline {deadline_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update deadline")


@router.post(
    "/organizations/{organization_id}/recurrence-groups/{group_id}/stop",
    response_model=StopRecurrenceResponse,
    tags=["Deadlines"]
)
async def stop_recurrence(
    organization_id: str,
    group_id: str,
    x_user_id: Optional[str] = Header(None)
):
    """Cancel a recurrence group; its deadlines stay but no longer recur."""
    try:
        count = await asyncio.to_thread(
            get_deadline_service().stop_recurrence, organization_id, x_user_id or "anonymous", group_id
        )
        return StopRecurrenceResponse(success=True, recurrence_group_id=group_id, count=count)
    except ServiceError as e:
        _raise_http(e, "Stop recurrence")
    except Exception as e:
        logger.error(f"Error stopping recurrence group {group_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to stop recurrence")
