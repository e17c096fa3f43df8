"""
SLA Value Objects
==================

Immutable value objects and stateless domain services for SLA deadlines.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from helpdesk.config import TicketStatus, TERMINAL_STATUSES
from helpdesk.core import ValidationException
from helpdesk.sla.domain.entities import SLATier


@dataclass(frozen=True)
class SLADeadlines:
    """Response and resolution deadlines stamped on a ticket at creation."""
    response_due: datetime
    resolution_due: datetime


class DeadlineCalculator:
    """
    Pure functions for SLA deadline math.

    Stateless utility class - all deadline calculation logic in one place.
    """

    @staticmethod
    def compute(tier: SLATier, created_at: datetime) -> SLADeadlines:
        """
        Calculate the deadlines for a ticket created under ``tier``.

        Budgets are hours and are not rounded: a 1.5 hour response budget
        yields a deadline 90 minutes after creation.

        Raises:
            ValidationException: a deadline falls outside the calendar
        """
        try:
            return SLADeadlines(
                response_due=created_at + timedelta(hours=tier.response_time_hours),
                resolution_due=created_at + timedelta(hours=tier.resolution_time_hours),
            )
        except OverflowError:
            raise ValidationException(
                f"SLA tier {tier.id} yields a deadline out of range",
                {"sla_tier_id": tier.id, "created_at": created_at.isoformat()}
            ) from None


def is_breaching(status: TicketStatus, response_due: datetime, now: datetime) -> bool:
    """A ticket breaches once its response deadline passes while still unresolved."""
    return now > response_due and TicketStatus(status) not in TERMINAL_STATUSES
