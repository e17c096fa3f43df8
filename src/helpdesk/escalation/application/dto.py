"""
Escalation DTOs
================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from helpdesk.escalation.domain import BreachStatus, EscalationOutcome, EscalationScanSummary


class BreachStatusResponse(BaseModel):
    """SLA position of one ticket."""
    ticket_id: int
    status: str
    response_due: datetime
    resolution_due: datetime
    is_breaching: bool = Field(..., description="Response deadline passed while unresolved")
    escalated_at: Optional[datetime]
    checked_at: datetime

    @classmethod
    def from_status(cls, status: BreachStatus) -> "BreachStatusResponse":
        return cls(
            ticket_id=status.ticket_id,
            status=status.status,
            response_due=status.response_due,
            resolution_due=status.resolution_due,
            is_breaching=status.is_breaching,
            escalated_at=status.escalated_at,
            checked_at=status.checked_at,
        )


class EscalationOutcomeResponse(BaseModel):
    ticket_id: int
    result: str = Field(..., description="escalated, not_breaching or already_escalated")
    escalated: bool
    previous_assignee: Optional[int]
    new_assignee: Optional[int]
    escalated_at: Optional[datetime]
    audit_comment_id: Optional[int]

    @classmethod
    def from_outcome(cls, outcome: EscalationOutcome) -> "EscalationOutcomeResponse":
        return cls(
            ticket_id=outcome.ticket_id,
            result=outcome.result.value,
            escalated=outcome.escalated,
            previous_assignee=outcome.previous_assignee,
            new_assignee=outcome.new_assignee,
            escalated_at=outcome.escalated_at,
            audit_comment_id=outcome.audit_comment_id,
        )


class EscalationScanResponse(BaseModel):
    """Result of one escalation scan."""
    scanned: int
    escalated: int
    skipped: int
    failed: int
    failed_ticket_ids: List[int] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: EscalationScanSummary) -> "EscalationScanResponse":
        return cls(**summary.to_dict())
