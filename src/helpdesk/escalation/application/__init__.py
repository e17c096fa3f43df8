"""
Escalation Application Layer
=============================

Contains:
- Services: EscalationService (single ticket), EscalationScanner (batch)
- DTOs: Data transfer objects for API serialization
"""

from helpdesk.escalation.application.dto import (
    BreachStatusResponse,
    EscalationOutcomeResponse,
    EscalationScanResponse,
)
from helpdesk.escalation.application.services import (
    EscalationService,
    EscalationScanner,
    audit_text,
)

__all__ = [
    # DTOs
    "BreachStatusResponse",
    "EscalationOutcomeResponse",
    "EscalationScanResponse",
    # Services
    "EscalationService",
    "EscalationScanner",
    "audit_text",
]
