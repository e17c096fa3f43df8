"""
SLA Application Layer
======================

Application layer for the SLA catalog.

Contains:
- Services: SLACatalogService (tier lookup, deadlines, admin edits)
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.sla.application.dto import (
    SLATierCreateDTO,
    SLATierUpdateDTO,
    SLATierResponse,
)
from helpdesk.sla.application.services import (
    SLACatalogService,
    ISLATierRepository,
)

__all__ = [
    # DTOs
    "SLATierCreateDTO",
    "SLATierUpdateDTO",
    "SLATierResponse",
    # Services
    "SLACatalogService",
    # Repository Interfaces
    "ISLATierRepository",
]
