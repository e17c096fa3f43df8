"""
Shared API Components
=====================

Middleware, exception handlers and request-scoped dependencies used by
every router.
"""

from helpdesk.shared.api.identity import get_actor, get_clock
from helpdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
    request_validation_exception_handler,
    status_for,
)

__all__ = [
    "get_actor",
    "get_clock",
    "CorrelationIDMiddleware",
    "LoggingMiddleware",
    "application_exception_handler",
    "global_exception_handler",
    "request_validation_exception_handler",
    "status_for",
]
