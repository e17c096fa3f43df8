"""
Tickets Domain Layer
====================

Domain layer for the ticket lifecycle and thread ledger.

Contains:
- Entities: Ticket (state machine), Comment, Attachment, CommentReceipt, Unavailability
- Value Objects: AttachmentUpload, duration/status/priority parsing

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.tickets.domain.entities import (
    Ticket,
    Comment,
    Attachment,
    CommentReceipt,
    UserRef,
    Unavailability,
)
from helpdesk.tickets.domain.value_objects import (
    AttachmentUpload,
    TIME_WORKED_PATTERN,
    parse_duration,
    format_duration,
    parse_status,
    parse_priority,
)

__all__ = [
    # Entities
    "Ticket",
    "Comment",
    "Attachment",
    "CommentReceipt",
    "UserRef",
    "Unavailability",
    # Value Objects
    "AttachmentUpload",
    "TIME_WORKED_PATTERN",
    "parse_duration",
    "format_duration",
    "parse_status",
    "parse_priority",
]
