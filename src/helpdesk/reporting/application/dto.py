"""
Reporting DTOs
===============

Percentages and averages are null ("N/A") when there is nothing to
average over.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int
    breached: int = Field(..., description="Past response deadline and neither Resolved nor Closed")
    sla_met: int
    compliance_pct: Optional[float] = Field(None, description="Share of tickets meeting the response SLA; null when there are no tickets")
    by_priority: Dict[str, int]


class AgentRollupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    agent_id: int
    username: Optional[str]
    assigned: int
    resolved: int
    breached: int
    avg_response_hours: Optional[float]
    avg_resolution_hours: Optional[float]


class TierRollupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sla_tier_id: int
    name: str
    tickets: int
    breached: int
    compliance_pct: Optional[float]
