"""
Custom exceptions for the application
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette_context import context

from catalog_etl.core.config import settings
from catalog_etl.core.logging import log


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(status_code=self.status_code, detail=detail or self.detail, headers=headers or self.headers)
        # Store any additional context
        self.context = kwargs


class ConflictError(BaseAPIException):
    """Conflict with existing resource"""

    status_code = status.HTTP_409_CONFLICT
    detail = "Resource conflict"


class UnauthorizedError(BaseAPIException):
    """Unauthorized access"""

    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(BaseAPIException):
    """Forbidden access"""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "Forbidden"


class BadRequestError(BaseAPIException):
    """Bad request"""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Bad request"


class DatabaseError(BaseAPIException):
    """Database operation error"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Database error"


class ExternalServiceError(BaseAPIException):
    """External service error"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "External service unavailable"


class SourceUnavailableError(BaseAPIException):
    """The catalog source could not be read"""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Catalog source unavailable"


class StorageError(ExternalServiceError):
    """Blob storage read or write failed"""

    detail = "Blob storage error"


class BatchImportError(BaseAPIException):
    """Unexpected failure while processing a batch"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Batch import failed"


# Error response models for OpenAPI documentation
class ErrorResponse(BaseModel):
    """Standard error response"""

    error: str
    message: str
    context: Optional[Dict[str, Any]] = None
    correlation_id: Optional[str] = None
    timestamp: str


def _correlation_id() -> str:
    if context.exists():
        return context.get("X-Correlation-ID") or context.get("request_id", "no-context")
    return "no-context"


def _error_payload(error: str, message: str, ctx: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {
        "error": error,
        "message": message,
        "correlation_id": _correlation_id(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if ctx:
        payload["context"] = ctx
    return payload


# Exception handlers
async def handle_api_exception(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle API exceptions with structured response"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(exc.__class__.__name__, exc.detail, getattr(exc, "context", None)),
        headers=getattr(exc, "headers", None),
    )


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Render framework HTTP errors (404, 405, auth) in the same shape"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload("HTTPException", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""
    # Log the full exception
    log.opt(exception=exc).error("Unexpected error")

    # Don't expose internal errors in production
    if settings.DEBUG:
        detail = str(exc)
    else:
        detail = "An unexpected error occurred"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_payload("InternalServerError", detail),
    )


async def handle_validation_exception(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures in the standard error shape"""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_error_payload("ValidationError", "Request validation failed", {"errors": errors}),
    )
