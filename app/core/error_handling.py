"""
Error hierarchy, logging and exception handlers for the ESAS API
"""
import logging
import os
import traceback
from typing import Optional, Dict, Any, Iterable
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import sentry_sdk

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception"""
    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppException):
    """Validation error exception"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class NotFoundException(AppException):
    """Resource not found exception"""
    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=404, details=details)


class UnauthorizedException(AppException):
    """Unauthorized access exception"""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, details=details)


class ForbiddenException(AppException):
    """Forbidden access exception"""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=403, details=details)


class ConflictException(AppException):
    """Resource conflict exception"""
    def __init__(self, message: str = "Resource conflict", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


# ==================== Screening input errors ====================

class ScreeningValidationError(ValidationException):
    """A submitted ESAS score set was rejected. Never retried."""

    def __init__(self, message: str, field: str, **extra: Any):
        self.field = field
        super().__init__(message, details={"field": field, **extra})


class IncompleteScoreSet(ScreeningValidationError):
    def __init__(self, missing: Iterable[int], present: int):
        missing = sorted(missing)
        super().__init__(
            f"Expected answers for all 9 ESAS questions, got {present}",
            field="scores",
            missing=missing,
        )
        self.missing = missing


class InvalidQuestionId(ScreeningValidationError):
    def __init__(self, question_id: Any):
        super().__init__(
            f"Unknown ESAS question identifier: {question_id!r}",
            field=str(question_id),
        )


class ScoreOutOfRange(ScreeningValidationError):
    def __init__(self, question_id: int, value: Any):
        super().__init__(
            f"Score for question {question_id} must be an integer between 0 and 10",
            field=str(question_id),
            value=value if isinstance(value, (int, float, str)) or value is None else repr(value),
        )


# ==================== Configuration errors ====================

class RecommendationNotFound(AppException):
    """The recommendation table has no entry for a (symptom, risk level) pair"""

    def __init__(self, missing: Iterable[tuple]):
        self.missing = [(str(symptom), str(risk)) for symptom, risk in missing]
        pairs = ", ".join(f"{symptom}/{risk}" for symptom, risk in self.missing)
        super().__init__(
            f"Recommendation table is missing entries: {pairs}",
            status_code=500,
            details={"missing": [list(pair) for pair in self.missing]},
        )


# ==================== Guest linking errors ====================

class LinkError(AppException):
    """Base class for guest-to-account linking failures"""


class GuestIdentifierNotFound(NotFoundException, LinkError):
    def __init__(self, guest_identifier: str):
        self.guest_identifier = guest_identifier
        super().__init__(
            "No guest screenings to link for this identifier",
            details={"guest_identifier": guest_identifier},
        )


class ConcurrentLinkConflict(ConflictException, LinkError):
    """Another request linked the same guest data first. Safe to retry once or ignore."""

    def __init__(self, guest_identifier: str, screening_id: Optional[str] = None):
        self.guest_identifier = guest_identifier
        self.screening_id = screening_id
        super().__init__(
            "Guest screening was linked by a concurrent request",
            details={
                "guest_identifier": guest_identifier,
                "screening_id": screening_id,
                "retryable": True,
            },
        )


# ==================== Infrastructure errors ====================

class StorageUnavailable(AppException):
    """The data store failed or timed out. Nothing from the request is committed."""

    def __init__(self, operation: str = "storage operation"):
        self.operation = operation
        super().__init__(
            "The service is temporarily unavailable, please try again",
            status_code=503,
        )


def log_error(error: Exception, request: Optional[Request] = None, context: Optional[Dict[str, Any]] = None):
    """
    Log error with context and send to Sentry if configured
    """
    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if request:
        error_context.update({
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else None,
        })

    if context:
        error_context.update(context)

    if isinstance(error, AppException) and error.status_code < 500:
        logger.info(f"Request rejected: {error_context}")
        return

    error_context["traceback"] = traceback.format_exc()
    logger.error(f"Error occurred: {error_context}")

    try:
        sentry_sdk.capture_exception(error)
    except Exception:
        logger.debug("Sentry capture failed", exc_info=True)


async def app_exception_handler(request: Request, exc: AppException):
    """Handle application exceptions"""
    log_error(exc, request)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.message,
                "type": type(exc).__name__,
                "details": exc.details,
            }
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation exceptions with better formatting"""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    log_error(exc, request, {"validation_errors": errors})

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "message": "Validation error",
                "type": "ValidationError",
                "details": {
                    "errors": errors
                }
            }
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    log_error(exc, request)

    # Don't expose internal errors in production
    is_development = os.getenv("ENVIRONMENT", "development") == "development"

    error_detail = {
        "message": str(exc) if is_development else "Internal server error",
        "type": type(exc).__name__,
    }

    if is_development:
        error_detail["traceback"] = traceback.format_exc().split("\n")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": error_detail
        }
    )
