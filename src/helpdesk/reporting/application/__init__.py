"""
Reporting Application Layer
============================

Contains:
- Services: ReportingService
- DTOs: Data transfer objects for API serialization
"""

from helpdesk.reporting.application.dto import (
    SummaryResponse,
    AgentRollupResponse,
    TierRollupResponse,
)
from helpdesk.reporting.application.services import ReportingService

__all__ = [
    "SummaryResponse",
    "AgentRollupResponse",
    "TierRollupResponse",
    "ReportingService",
]
