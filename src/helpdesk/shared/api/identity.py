"""
Request Identity
=================

FastAPI dependencies supplying the acting user and the clock.

Authentication happens in the identity provider in front of this service;
it forwards the caller as ``X-User-Id`` and ``X-User-Role`` headers.
"""

from fastapi import Header

from helpdesk.config import Role, VALID_ROLES
from helpdesk.core import InvalidFormatException
from helpdesk.shared.domain import Actor, Clock, SystemClock

_system_clock = SystemClock()


async def get_actor(
    x_user_id: int = Header(..., description="Acting user id from the identity provider"),
    x_user_role: str = Header(Role.USER.value, description="admin, agent or user"),
) -> Actor:
    """Build the Actor for the current request."""
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise InvalidFormatException(
            f"X-User-Role must be one of {VALID_ROLES}",
            {"x_user_role": x_user_role}
        ) from None
    return Actor(user_id=x_user_id, role=role)


def get_clock() -> Clock:
    """Clock for request handlers; tests override this dependency."""
    return _system_clock
