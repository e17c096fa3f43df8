"""
Ticket Domain Entities
=======================

Pure Python domain entities for the ticket lifecycle and its thread.

The Ticket entity owns the state machine: every mutation goes through one
of its methods, which enforce the lifecycle rules and refresh
``updated_at``. Persistence is handled elsewhere.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from helpdesk.config import Priority, TicketStatus, TERMINAL_STATUSES
from helpdesk.core import InvalidStateException, ValidationException
from helpdesk.sla.domain import SLADeadlines, is_breaching


@dataclass
class Ticket:
    """
    Support ticket.

    Lifecycle: Open -> InProgress -> Resolved -> Closed. Any state may move
    to any other state except Open; there is no path back to Open.
    """

    # Core attributes
    id: Optional[int]
    title: str
    description: str
    category_id: int
    subcategory_id: Optional[int]
    priority: Priority
    status: TicketStatus
    created_by: int
    sla_tier_id: int

    # Fixed SLA contract
    response_due: datetime
    resolution_due: datetime

    # Timestamps
    created_at: datetime
    updated_at: datetime

    assigned_to: Optional[int] = None
    time_worked: timedelta = field(default_factory=timedelta)
    due_date: Optional[datetime] = None
    escalated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate invariants on initialization."""
        if self.response_due < self.created_at:
            raise ValidationException("response_due cannot be before created_at")

        if self.resolution_due < self.response_due:
            raise ValidationException("resolution_due cannot be before response_due")

        if self.status == TicketStatus.IN_PROGRESS and self.assigned_to is None:
            raise ValidationException("an InProgress ticket must have an assignee")

    @classmethod
    def open(
        cls,
        title: str,
        description: str,
        category_id: int,
        subcategory_id: Optional[int],
        priority: Priority,
        sla_tier_id: int,
        created_by: int,
        deadlines: SLADeadlines,
        now: datetime,
    ) -> "Ticket":
        """Create a new ticket in the Open state."""
        if not title or not title.strip():
            raise ValidationException("Ticket title must not be blank")

        return cls(
            id=None,
            title=title.strip(),
            description=description or "",
            category_id=category_id,
            subcategory_id=subcategory_id,
            priority=priority,
            status=TicketStatus.OPEN,
            created_by=created_by,
            sla_tier_id=sla_tier_id,
            response_due=deadlines.response_due,
            resolution_due=deadlines.resolution_due,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_resolved(self) -> bool:
        """Check if ticket has been resolved or closed."""
        return self.status in TERMINAL_STATUSES

    def is_breaching(self, now: datetime) -> bool:
        return is_breaching(self.status, self.response_due, now)

    def change_status(self, new_status: TicketStatus, acting_user: int, now: datetime) -> None:
        """
        Move to ``new_status``.

        Entering InProgress binds the acting user as assignee when the
        ticket has none.
        """
        if new_status == TicketStatus.OPEN:
            raise InvalidStateException(
                "Tickets cannot be moved back to Open",
                {"ticket_id": self.id, "from": self.status.value},
                illegal_transition=True,
            )

        if new_status == TicketStatus.IN_PROGRESS and self.assigned_to is None:
            self.assigned_to = acting_user

        self.status = new_status
        self.updated_at = now

    def change_priority(self, priority: Priority, now: datetime) -> None:
        self.priority = priority
        self.updated_at = now

    def assign(self, agent_id: Optional[int], now: datetime) -> None:
        if agent_id is None and self.status == TicketStatus.IN_PROGRESS:
            raise InvalidStateException(
                "An InProgress ticket must keep an assignee",
                {"ticket_id": self.id},
                illegal_transition=True,
            )
        self.assigned_to = agent_id
        self.updated_at = now

    def set_due_date(self, due_date: Optional[datetime], now: datetime) -> None:
        self.due_date = due_date
        self.updated_at = now

    def set_time_worked(self, duration: timedelta, now: datetime) -> None:
        self.time_worked = duration
        self.updated_at = now

    def add_time_worked(self, delta: timedelta, now: datetime) -> None:
        self.time_worked = self.time_worked + delta
        self.updated_at = now

    def touch(self, now: datetime) -> None:
        """Record thread activity."""
        self.updated_at = now

    def escalate(self, new_assignee: Optional[int], now: datetime) -> None:
        """Record an escalation. The watermark makes repeat calls no-ops."""
        if self.escalated_at is not None:
            raise InvalidStateException(
                "Ticket already escalated",
                {"ticket_id": self.id, "escalated_at": self.escalated_at.isoformat()},
                illegal_transition=True,
            )
        if new_assignee is None and self.status == TicketStatus.IN_PROGRESS:
            raise InvalidStateException(
                "An InProgress ticket must keep an assignee",
                {"ticket_id": self.id},
                illegal_transition=True,
            )
        self.assigned_to = new_assignee
        self.escalated_at = now
        self.updated_at = now


@dataclass(frozen=True)
class UserRef:
    """Read-only view of a user from the identity directory."""

    id: int
    username: str
    role: str


@dataclass
class Attachment:
    """File metadata belonging to exactly one comment."""

    id: Optional[int]
    comment_id: int
    ticket_id: int
    file_name: str
    storage_path: str
    uploaded_at: datetime


@dataclass
class Comment:
    """Immutable entry in a ticket's thread."""

    id: Optional[int]
    ticket_id: int
    commenter_id: int
    text: str
    created_at: datetime
    commenter_name: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)


@dataclass
class CommentReceipt:
    """
    Outcome of ``add_comment``.

    ``failed_attachments`` lists file names whose upload or metadata insert
    failed; the comment and the other attachments are stored regardless.
    """

    comment: Comment
    failed_attachments: List[str] = field(default_factory=list)

    @property
    def comment_id(self) -> int:
        return self.comment.id


@dataclass
class Unavailability:
    """A day an agent has marked themselves away."""

    id: Optional[int]
    user_id: int
    unavailable_date: date
    reason: str = "Unavailable"
    username: Optional[str] = None
