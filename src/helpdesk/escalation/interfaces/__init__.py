"""
Escalation Interfaces Layer
============================

Interface adapters (controllers) for the escalation monitor.
"""

from helpdesk.escalation.interfaces.controllers import (
    router as escalation_router,
    get_escalation_service,
    get_escalation_scanner,
)

__all__ = ["escalation_router", "get_escalation_service", "get_escalation_scanner"]
