"""
Structured exceptions and error responses for LivePlan.

Provides consistent error handling with:
- A closed taxonomy of domain exceptions raised by the engine
- Structured error response format
- FastAPI exception handlers

The engine only raises these; turning them into user-facing text is the
presentation layer's job.
"""

from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "circular_dependency")
    message: str
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class LivePlanException(Exception):
    """Base exception for all LivePlan errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(LivePlanException):
    """Malformed input (bad DateKey string, broken invariant, ...)."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class NotFoundError(LivePlanException):
    """Entity not found."""

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            message=f"{entity_type} not found: {entity_id}",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class EmptyTitleError(LivePlanException):
    """A title or name was empty after trimming."""

    def __init__(self, field: str = "title"):
        super().__init__(
            message=f"{field} must not be empty",
            error_code="empty_title",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=[{"loc": ["body", field], "msg": "must not be empty", "type": "empty_title"}],
        )
        self.field = field


class NoTaskToCompleteError(LivePlanException):
    """Nothing outstanding to complete."""

    def __init__(self):
        super().__init__(
            message="No task to complete",
            error_code="no_task_to_complete",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class DuplicateCompletionError(LivePlanException):
    """The occurrence already has a completion log."""

    def __init__(self, task_id: str, occurrence_key: str):
        super().__init__(
            message=f"Task {task_id} already completed for {occurrence_key}",
            error_code="duplicate_completion",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.task_id = task_id
        self.occurrence_key = occurrence_key


class CircularDependencyError(LivePlanException):
    """Adding a dependency would create a cycle."""

    def __init__(self, cycle_task_ids: List[str]):
        super().__init__(
            message=f"Circular dependency detected: {' -> '.join(cycle_task_ids)}",
            error_code="circular_dependency",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body", "depends_on"],
                "msg": "cycle: " + ", ".join(cycle_task_ids),
                "type": "cycle_error",
            }],
        )
        self.cycle_task_ids = list(cycle_task_ids)


class StorageError(LivePlanException):
    """Opaque failure passed through from the persistence collaborator."""

    def __init__(self, cause: BaseException):
        super().__init__(
            message=f"Storage error: {cause}",
            error_code="storage_error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        self.cause = cause


# =============================================================================
# Exception Handlers
# =============================================================================

async def liveplan_exception_handler(request: Request, exc: LivePlanException) -> JSONResponse:
    """Handle LivePlanException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(LivePlanException, liveplan_exception_handler)
