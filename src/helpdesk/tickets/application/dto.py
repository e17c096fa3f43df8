"""
Ticket Application DTOs
========================

Data Transfer Objects for the ticket and thread API.

Status and priority arrive as plain strings so the lifecycle can reject
unknown values with its own error kinds (InvalidState, InvalidPriority)
rather than a generic schema error.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from helpdesk.tickets.domain import (
    Attachment,
    Comment,
    CommentReceipt,
    Ticket,
    Unavailability,
    UserRef,
    format_duration,
)


# ========== Request DTOs ==========

class TicketCreateDTO(BaseModel):
    """Request model for opening a ticket."""
    title: str = Field(..., min_length=1, max_length=255, description="Short summary")
    description: str = Field(default="", description="Full problem description")
    category_id: int = Field(..., description="Category id")
    subcategory_id: Optional[int] = Field(None, description="Subcategory id (must belong to the category)")
    priority: str = Field(..., description="Low, Medium, High or Critical")
    sla_tier_id: int = Field(..., description="SLA tier id, fixed for the ticket's lifetime")


class StatusUpdateDTO(BaseModel):
    status: str = Field(..., description="InProgress, Resolved or Closed")


class PriorityUpdateDTO(BaseModel):
    priority: str = Field(..., description="Low, Medium, High or Critical")


class AssigneeUpdateDTO(BaseModel):
    assigned_to: Optional[int] = Field(None, description="Agent user id; null clears the assignment")


class DueDateUpdateDTO(BaseModel):
    due_date: Optional[datetime] = Field(None, description="Soft deadline; null clears it")


class TimeWorkedUpdateDTO(BaseModel):
    time_worked: str = Field(..., description="HH:MM:SS", examples=["08:00:00"])


# ========== Response DTOs ==========

class TicketResponse(BaseModel):
    """Response model for a ticket."""
    id: int
    title: str
    description: str
    category_id: int
    subcategory_id: Optional[int]
    priority: str
    status: str
    created_by: int
    assigned_to: Optional[int]
    sla_tier_id: int
    response_due: datetime
    resolution_due: datetime
    time_worked: str = Field(..., description="HH:MM:SS")
    due_date: Optional[datetime]
    escalated_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    is_breaching: bool = Field(..., description="Response deadline passed while unresolved")

    @classmethod
    def from_entity(cls, ticket: Ticket, now: datetime) -> "TicketResponse":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            category_id=ticket.category_id,
            subcategory_id=ticket.subcategory_id,
            priority=ticket.priority.value,
            status=ticket.status.value,
            created_by=ticket.created_by,
            assigned_to=ticket.assigned_to,
            sla_tier_id=ticket.sla_tier_id,
            response_due=ticket.response_due,
            resolution_due=ticket.resolution_due,
            time_worked=format_duration(ticket.time_worked),
            due_date=ticket.due_date,
            escalated_at=ticket.escalated_at,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            is_breaching=ticket.is_breaching(now),
        )


class TicketOverviewResponse(TicketResponse):
    """Administrator listing row: ticket plus the latest replier."""
    last_replier: Optional[str] = None

    @classmethod
    def from_overview(cls, ticket: Ticket, repliers: Dict[int, str], now: datetime) -> "TicketOverviewResponse":
        base = TicketResponse.from_entity(ticket, now).model_dump()
        return cls(**base, last_replier=repliers.get(ticket.id))


class AttachmentResponse(BaseModel):
    id: int
    comment_id: int
    ticket_id: int
    file_name: str
    storage_path: str
    uploaded_at: datetime

    @classmethod
    def from_entity(cls, attachment: Attachment) -> "AttachmentResponse":
        return cls(
            id=attachment.id,
            comment_id=attachment.comment_id,
            ticket_id=attachment.ticket_id,
            file_name=attachment.file_name,
            storage_path=attachment.storage_path,
            uploaded_at=attachment.uploaded_at,
        )


class CommentResponse(BaseModel):
    id: int
    ticket_id: int
    commenter_id: int
    commenter_name: Optional[str]
    text: str
    created_at: datetime
    attachments: List[AttachmentResponse] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            ticket_id=comment.ticket_id,
            commenter_id=comment.commenter_id,
            commenter_name=comment.commenter_name,
            text=comment.text,
            created_at=comment.created_at,
            attachments=[AttachmentResponse.from_entity(a) for a in comment.attachments],
        )


class CommentCreatedResponse(BaseModel):
    """Response model for ``add_comment``."""
    comment_id: int
    comment: CommentResponse
    failed_attachments: List[str] = Field(
        default_factory=list,
        description="File names that could not be stored; the comment is saved regardless"
    )

    @classmethod
    def from_receipt(cls, receipt: CommentReceipt) -> "CommentCreatedResponse":
        return cls(
            comment_id=receipt.comment_id,
            comment=CommentResponse.from_entity(receipt.comment),
            failed_attachments=receipt.failed_attachments,
        )


class AgentResponse(BaseModel):
    id: int
    username: str

    @classmethod
    def from_entity(cls, user: UserRef) -> "AgentResponse":
        return cls(id=user.id, username=user.username)


class UnavailabilityCreateDTO(BaseModel):
    day: date = Field(..., alias="date", description="Day the caller is away (YYYY-MM-DD)")
    reason: Optional[str] = Field(None, max_length=255, description="Defaults to 'Unavailable'")


class UnavailabilityResponse(BaseModel):
    """Calendar event: ``title`` is the reason, ``start`` the day."""
    id: int
    user_id: int
    username: Optional[str]
    title: str
    start: date

    @classmethod
    def from_entity(cls, entry: Unavailability) -> "UnavailabilityResponse":
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            username=entry.username,
            title=entry.reason,
            start=entry.unavailable_date,
        )
