"""
SLA Domain Entities
====================

Pure Python domain entities for the SLA catalog.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass
from typing import Optional

from helpdesk.config import MAX_SLA_HOURS
from helpdesk.core import ValidationException


@dataclass
class SLATier:
    """
    Named bundle of response/resolution budgets, in hours.

    Tiers are edited by administrators; edits never reach back into the
    deadlines already stamped on existing tickets.
    """

    id: Optional[int]
    name: str
    response_time_hours: float
    resolution_time_hours: float

    def __post_init__(self):
        """Validate budgets on initialization."""
        if not self.name or not self.name.strip():
            raise ValidationException("SLA tier name must not be blank")

        budgets = (self.response_time_hours, self.resolution_time_hours)
        if not all(0 <= hours <= MAX_SLA_HOURS for hours in budgets):
            raise ValidationException(
                f"SLA budgets must be between 0 and {MAX_SLA_HOURS} hours",
                {"response_time_hours": self.response_time_hours,
                 "resolution_time_hours": self.resolution_time_hours}
            )

        if self.resolution_time_hours < self.response_time_hours:
            raise ValidationException(
                "Resolution budget cannot be shorter than response budget",
                {"response_time_hours": self.response_time_hours,
                 "resolution_time_hours": self.resolution_time_hours}
            )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "response_time_hours": self.response_time_hours,
            "resolution_time_hours": self.resolution_time_hours,
        }
