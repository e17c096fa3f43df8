"""
Shared Domain Primitives
========================

Value objects used by every bounded context:
- Clock: source of "now" for all deadline math
- Actor: acting user and role supplied by the identity provider
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from helpdesk.config import Role


class Clock(ABC):
    """Supplies the current time. All timestamps are timezone-aware UTC."""

    @abstractmethod
    def now(self) -> datetime:
        """Current time."""


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    Manually driven clock.

    Used by tests and by replay tooling; ``advance`` moves time forward.
    """

    def __init__(self, start: datetime):
        self._now = ensure_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = ensure_utc(moment)

    def advance(self, **delta) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and normalise aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Actor:
    """
    Identity of the caller of an operation.

    The core trusts this value; authentication happens in the identity
    provider before it reaches us.
    """
    user_id: int
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_agent(self) -> bool:
        return self.role in (Role.AGENT, Role.ADMIN)


__all__ = ["Clock", "SystemClock", "FixedClock", "Actor", "ensure_utc"]
