"""API module for the Compliance Deadline Service."""

from src.api.routes import router
from src.api.models import (
    HealthResponse,
    GenerateFromTemplateRequest,
    GenerateFromTemplateResponse,
    DeadlineResponse,
)

__all__ = [
    "router",
    "HealthResponse",
    "GenerateFromTemplateRequest",
    "GenerateFromTemplateResponse",
    "DeadlineResponse",
]
