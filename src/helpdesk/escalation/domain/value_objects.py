"""
Escalation Value Objects
=========================

Immutable results returned by the escalation monitor.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from helpdesk.tickets.domain import Ticket


class EscalationResult(str, Enum):
    ESCALATED = "escalated"
    NOT_BREACHING = "not_breaching"
    ALREADY_ESCALATED = "already_escalated"


@dataclass(frozen=True)
class BreachStatus:
    """Snapshot of a ticket's SLA position at ``checked_at``."""

    ticket_id: int
    status: str
    response_due: datetime
    resolution_due: datetime
    is_breaching: bool
    escalated_at: Optional[datetime]
    checked_at: datetime

    @classmethod
    def of(cls, ticket: Ticket, now: datetime) -> "BreachStatus":
        return cls(
            ticket_id=ticket.id,
            status=ticket.status.value,
            response_due=ticket.response_due,
            resolution_due=ticket.resolution_due,
            is_breaching=ticket.is_breaching(now),
            escalated_at=ticket.escalated_at,
            checked_at=now,
        )


@dataclass(frozen=True)
class EscalationOutcome:
    ticket_id: int
    result: EscalationResult
    previous_assignee: Optional[int] = None
    new_assignee: Optional[int] = None
    escalated_at: Optional[datetime] = None
    audit_comment_id: Optional[int] = None

    @property
    def escalated(self) -> bool:
        return self.result == EscalationResult.ESCALATED


@dataclass
class EscalationScanSummary:
    """Counters for one pass over the breaching tickets."""

    scanned: int = 0
    escalated: int = 0
    skipped: int = 0
    failed: int = 0
    failed_ticket_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "escalated": self.escalated,
            "skipped": self.skipped,
            "failed": self.failed,
            "failed_ticket_ids": list(self.failed_ticket_ids),
        }
