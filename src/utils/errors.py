"""
Error taxonomy for the Compliance Deadline Service.
Each error carries the HTTP status code the API layer responds with.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    def __init__(self, message: str, status_code: int = 500, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code or "SERVICE_ERROR"


class ValidationError(ServiceError):
    """Malformed or missing input, rejected before any generation attempt."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, 400, code)


class EmptyTargetError(ValidationError):
    """Target resolution produced no people or structures."""

    def __init__(self, message: str = "No targets found", code: str = "EMPTY_TARGET"):
        super().__init__(message, code)


class NotFoundError(ServiceError):
    """Referenced resource does not exist or is outside the caller's organization."""

    def __init__(self, message: str, resource: Optional[str] = None, code: str = "NOT_FOUND"):
        super().__init__(message, 404, code)
        self.resource = resource


class PersistenceError(ServiceError):
    """Storage failure; the whole batch has been rolled back."""

    def __init__(self, message: str, code: str = "PERSISTENCE_ERROR"):
        super().__init__(message, 500, code)
