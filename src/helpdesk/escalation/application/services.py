"""
Escalation Application Services
================================

EscalationService escalates one ticket inside the caller's transaction.
EscalationScanner walks every breaching ticket, giving each its own
session so one failure cannot undo or block the others.
"""

from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core import ResourceNotFoundException
from helpdesk.escalation.domain import (
    BreachStatus,
    EscalationOutcome,
    EscalationPolicy,
    EscalationResult,
    EscalationScanSummary,
)
from helpdesk.infrastructure.database import SessionScope
from helpdesk.shared.domain import Actor, Clock
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application.services import ICommentRepository, ITicketRepository
from helpdesk.tickets.domain import Comment, Ticket

logger = get_logger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def _describe_assignee(user_id: Optional[int]) -> str:
    return f"user {user_id}" if user_id is not None else "unassigned"


def audit_text(ticket: Ticket, previous: Optional[int], escalated_at: datetime, policy: EscalationPolicy) -> str:
    """Body of the system comment written on escalation."""
    return (
        f"SLA breach: response was due {ticket.response_due.strftime(_TIMESTAMP_FORMAT)}. "
        f"Escalated at {escalated_at.strftime(_TIMESTAMP_FORMAT)} "
        f"(policy: {policy.name.value}). "
        f"Assignee: {_describe_assignee(previous)} -> {_describe_assignee(ticket.assigned_to)}."
    )


class EscalationService:
    """
    Escalation monitor for single tickets.

    A ticket is escalated at most once: the ``escalated_at`` watermark is
    written together with the reassignment and the audit comment.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        comment_repository: ICommentRepository,
        clock: Clock,
        policy: EscalationPolicy,
        system_user_id: int
    ):
        self._ticket_repo = ticket_repository
        self._comment_repo = comment_repository
        self._clock = clock
        self._policy = policy
        self._system_user_id = system_user_id

    async def breach_status(self, ticket_id: int) -> BreachStatus:
        ticket = await self._ticket_repo.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return BreachStatus.of(ticket, self._clock.now())

    async def breaching_ticket_ids(self) -> List[int]:
        return await self._ticket_repo.list_breaching_ids(self._clock.now())

    async def escalate(self, ticket_id: int, actor: Optional[Actor] = None) -> EscalationOutcome:
        """
        Escalate ``ticket_id`` if it is breaching and not yet escalated.

        Returns the outcome; non-breaching and already escalated tickets are
        left untouched.

        Raises:
            ResourceNotFoundException: ticket absent
        """
        ticket = await self._ticket_repo.get_for_update(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        now = self._clock.now()

        if ticket.escalated_at is not None:
            return EscalationOutcome(
                ticket_id=ticket_id,
                result=EscalationResult.ALREADY_ESCALATED,
                previous_assignee=ticket.assigned_to,
                new_assignee=ticket.assigned_to,
                escalated_at=ticket.escalated_at,
            )

        if not ticket.is_breaching(now):
            return EscalationOutcome(
                ticket_id=ticket_id,
                result=EscalationResult.NOT_BREACHING,
                previous_assignee=ticket.assigned_to,
                new_assignee=ticket.assigned_to,
            )

        previous = ticket.assigned_to
        ticket.escalate(self._policy.next_assignee(ticket), now)
        await self._ticket_repo.save(ticket)

        comment = await self._comment_repo.add(Comment(
            id=None,
            ticket_id=ticket_id,
            commenter_id=self._system_user_id,
            text=audit_text(ticket, previous, now, self._policy),
            created_at=now,
        ))

        logger.info(
            "Ticket escalated",
            extra={
                "ticket_id": ticket_id,
                "policy": self._policy.name.value,
                "from_assignee": previous,
                "to_assignee": ticket.assigned_to,
                "response_due": ticket.response_due.isoformat(),
                "triggered_by": actor.user_id if actor else "scheduler",
                "audit_comment_id": comment.id,
            }
        )

        return EscalationOutcome(
            ticket_id=ticket_id,
            result=EscalationResult.ESCALATED,
            previous_assignee=previous,
            new_assignee=ticket.assigned_to,
            escalated_at=now,
            audit_comment_id=comment.id,
        )


class EscalationScanner:
    """Escalates every breaching ticket, one transaction per ticket."""

    def __init__(
        self,
        session_scope: SessionScope,
        service_factory: Callable[[AsyncSession], EscalationService]
    ):
        self._session_scope = session_scope
        self._service_factory = service_factory

    async def escalate_breaching(self) -> EscalationScanSummary:
        async with self._session_scope() as session:
            ticket_ids = await self._service_factory(session).breaching_ticket_ids()

        summary = EscalationScanSummary(scanned=len(ticket_ids))

        for ticket_id in ticket_ids:
            try:
                async with self._session_scope() as session:
                    outcome = await self._service_factory(session).escalate(ticket_id)
            except Exception as e:
                # Counted and logged; the scan moves on to the next ticket
                summary.failed += 1
                summary.failed_ticket_ids.append(ticket_id)
                logger.error(
                    "Escalation failed",
                    extra={
                        "ticket_id": ticket_id,
                        "error_kind": getattr(e, "kind", type(e).__name__),
                        "error": str(e),
                    },
                    exc_info=True,
                )
                continue

            if outcome.escalated:
                summary.escalated += 1
            else:
                summary.skipped += 1

        logger.info("Escalation scan complete", extra=summary.to_dict())
        return summary
