"""
Ticket Value Objects
=====================

Parsing of the wire values the ticket lifecycle accepts, and the immutable
payload of an uploaded attachment.
"""

import re
from dataclasses import dataclass
from datetime import timedelta

from helpdesk.config import Priority, TicketStatus, VALID_PRIORITIES, VALID_STATUSES
from helpdesk.core import (
    InvalidFormatException,
    InvalidPriorityException,
    InvalidStateException,
)

# 00-99 hours, 00-59 minutes, 00-59 seconds
TIME_WORKED_PATTERN = re.compile(r"(\d{2}):([0-5]\d):([0-5]\d)")


def parse_duration(value: str) -> timedelta:
    """
    Parse an ``HH:MM:SS`` duration.

    Raises:
        InvalidFormatException: for anything else, e.g. ``"25:61:00"``
    """
    match = TIME_WORKED_PATTERN.fullmatch(value or "")
    if not match:
        raise InvalidFormatException(
            "Invalid time format. Use HH:MM:SS.",
            {"value": value}
        )
    hours, minutes, seconds = (int(part) for part in match.groups())
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def format_duration(value: timedelta) -> str:
    """Render a duration as ``HH:MM:SS``; hours grow past two digits if needed."""
    total = int(value.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_status(value: str) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        raise InvalidStateException(
            f"Unknown status '{value}'",
            {"allowed": VALID_STATUSES}
        ) from None


def parse_priority(value: str) -> Priority:
    try:
        return Priority(value)
    except ValueError:
        raise InvalidPriorityException(
            f"Unknown priority '{value}'",
            {"allowed": VALID_PRIORITIES}
        ) from None


@dataclass(frozen=True)
class AttachmentUpload:
    """A file submitted alongside a comment."""
    file_name: str
    data: bytes
