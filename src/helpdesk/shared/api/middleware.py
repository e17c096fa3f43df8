"""
Shared API Middleware
======================

Common middleware and exception handlers for the FastAPI application.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from helpdesk.config import settings
from helpdesk.core import ApplicationException, InvalidStateException, StorageUnavailableException
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Error kind -> HTTP status
STATUS_BY_KIND = {
    "NotFound": 404,
    "InvalidReference": 422,
    "InvalidState": 422,
    "InvalidPriority": 422,
    "InvalidFormat": 422,
    "EmptyComment": 422,
    "Forbidden": 403,
    "AlreadyExists": 409,
    "StorageUnavailable": 503,
    "StorageError": 409,
    "BlobStoreError": 502,
    "ConfigurationError": 500,
}

RETRY_AFTER_SECONDS = 5


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds correlation ID to requests for tracing.

    Correlation IDs link the request log lines, the service log lines and
    the error body returned to the caller.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests and responses.

    Provides audit trail and debugging information.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = getattr(request.state, "correlation_id", "unknown")
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "user_id": request.headers.get("X-User-Id"),
                "client": request.client.host if request.client else None
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "response_time_ms": int((time.perf_counter() - start_time) * 1000)
                }
            )
            raise

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "response_time_ms": int((time.perf_counter() - start_time) * 1000)
            }
        )
        return response


def status_for(exc: ApplicationException) -> int:
    """HTTP status for an application error."""
    if isinstance(exc, InvalidStateException) and exc.illegal_transition:
        return 409
    return STATUS_BY_KIND.get(exc.kind, 400)


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """
    Map the error taxonomy onto HTTP responses.

    Body: ``{"error": kind, "detail": message, "correlation_id": ...}``.
    StorageUnavailable responses carry ``Retry-After``.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    status_code = status_for(exc)

    logger.log(
        logging.ERROR if status_code >= 500 else logging.INFO,
        "Request rejected",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_kind": exc.kind,
            "error": exc.message,
            "status_code": status_code,
        }
    )

    headers = {}
    if isinstance(exc, StorageUnavailableException):
        headers["Retry-After"] = str(RETRY_AFTER_SECONDS)

    content = {
        "error": exc.kind,
        "detail": exc.message,
        "correlation_id": correlation_id,
    }
    if exc.details:
        content["context"] = exc.details

    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies, headers and parameters answer as InvalidFormat."""
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    errors = jsonable_encoder(exc.errors())

    logger.info(
        "Request rejected",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_kind": "InvalidFormat",
            "status_code": 422,
        }
    )

    fields = sorted({".".join(str(part) for part in error.get("loc", ())) for error in errors})
    return JSONResponse(
        status_code=422,
        content={
            "error": "InvalidFormat",
            "detail": f"Malformed request: {', '.join(fields)}",
            "correlation_id": correlation_id,
            "context": {"errors": errors},
        }
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Returns consistent error responses for all exceptions.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        },
        exc_info=exc,
    )

    # Don't expose internal details in production
    is_dev = settings.environment == "development"

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalError",
            "detail": "Internal server error",
            "correlation_id": correlation_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "debug_info": str(exc) if is_dev else None
        }
    )
