"""
SLA Domain Layer
================

Domain layer for the SLA module.

Contains:
- Entities: SLATier (catalog entry)
- Value Objects: SLADeadlines
- Domain Services: DeadlineCalculator, breach predicate

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.sla.domain.entities import SLATier
from helpdesk.sla.domain.value_objects import (
    SLADeadlines,
    DeadlineCalculator,
    is_breaching,
)

__all__ = [
    # Entities
    "SLATier",
    # Value Objects & Services
    "SLADeadlines",
    "DeadlineCalculator",
    "is_breaching",
]
