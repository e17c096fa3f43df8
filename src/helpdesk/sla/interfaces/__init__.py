"""
SLA Interfaces Layer
====================

Interface adapters (controllers) for the SLA catalog.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from helpdesk.sla.interfaces.controllers import router as sla_router, get_catalog_service

__all__ = ["sla_router", "get_catalog_service"]
