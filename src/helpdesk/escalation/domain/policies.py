"""
Escalation Policies
====================

Strategies deciding who owns a ticket once it breaches its response SLA.
"""

from abc import ABC, abstractmethod
from typing import Optional

from helpdesk.config import EscalationPolicyName, TicketStatus
from helpdesk.core import ConfigurationException
from helpdesk.tickets.domain import Ticket


class EscalationPolicy(ABC):
    """Computes the assignee a breaching ticket is escalated to."""

    name: EscalationPolicyName

    @abstractmethod
    def next_assignee(self, ticket: Ticket) -> Optional[int]:
        """Assignee after escalation; None means unassigned."""


class ClearAssigneePolicy(EscalationPolicy):
    """
    Clear the assignee so the ticket goes back to triage.

    An InProgress ticket must keep an owner: it goes to the handler when
    one is configured, otherwise its current assignee stays.
    """

    name = EscalationPolicyName.CLEAR

    def __init__(self, handler_id: Optional[int] = None):
        self._handler_id = handler_id

    def next_assignee(self, ticket: Ticket) -> Optional[int]:
        if ticket.status == TicketStatus.IN_PROGRESS:
            return self._handler_id if self._handler_id is not None else ticket.assigned_to
        return None


class HandlerPolicy(EscalationPolicy):
    """Hand the ticket to a fixed escalation handler."""

    name = EscalationPolicyName.HANDLER

    def __init__(self, handler_id: int):
        if handler_id is None:
            raise ConfigurationException(
                "The 'handler' escalation policy needs escalation_handler_id"
            )
        self._handler_id = handler_id

    def next_assignee(self, ticket: Ticket) -> Optional[int]:
        return self._handler_id


def build_escalation_policy(name: str, handler_id: Optional[int] = None) -> EscalationPolicy:
    """Build the policy named in settings."""
    try:
        policy_name = EscalationPolicyName(name)
    except ValueError:
        raise ConfigurationException(
            f"Unknown escalation policy '{name}'",
            {"allowed": [p.value for p in EscalationPolicyName]}
        ) from None

    if policy_name == EscalationPolicyName.HANDLER:
        return HandlerPolicy(handler_id)
    return ClearAssigneePolicy(handler_id)
