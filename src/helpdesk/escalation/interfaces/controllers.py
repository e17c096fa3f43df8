"""
Escalation Controllers (API Routes)
====================================

FastAPI routes for SLA breach status and escalation.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core import ForbiddenException
from helpdesk.escalation.application import (
    BreachStatusResponse,
    EscalationOutcomeResponse,
    EscalationScanner,
    EscalationScanResponse,
    EscalationService,
)
from helpdesk.escalation.infrastructure import escalation_service_factory
from helpdesk.infrastructure.database import SessionScope, get_session, get_session_scope
from helpdesk.shared.api import get_actor, get_clock
from helpdesk.shared.domain import Actor, Clock
from helpdesk.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)
router = APIRouter(tags=["Escalation"])


ESCALATION_OUTCOME_EXAMPLE = {
    "ticket_id": 42,
    "result": "escalated",
    "escalated": True,
    "previous_assignee": 7,
    "new_assignee": None,
    "escalated_at": "2024-01-15T15:00:00Z",
    "audit_comment_id": 311
}


# ========== Dependencies ==========

async def get_escalation_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> EscalationService:
    """Get escalation service instance."""
    return escalation_service_factory(clock)(session)


async def get_escalation_scanner(
    session_scope: SessionScope = Depends(get_session_scope),
    clock: Clock = Depends(get_clock)
) -> EscalationScanner:
    return EscalationScanner(session_scope, escalation_service_factory(clock))


# ========== Route Handlers ==========

@router.get(
    "/tickets/{ticket_id}/sla",
    response_model=BreachStatusResponse,
    summary="SLA breach status of a ticket",
    description="A ticket breaches when its response deadline has passed and it is neither Resolved nor Closed."
)
async def get_breach_status(
    ticket_id: int,
    service: EscalationService = Depends(get_escalation_service)
):
    return BreachStatusResponse.from_status(await service.breach_status(ticket_id))


@router.post(
    "/tickets/{ticket_id}/escalate",
    response_model=EscalationOutcomeResponse,
    summary="Escalate a breaching ticket",
    description="""
    Apply the configured escalation policy to a breaching ticket and record
    a system audit comment.

    Idempotent: a ticket is escalated once. Non-breaching and already
    escalated tickets come back unchanged with `escalated: false`.
    """,
    responses={200: {"content": {"application/json": {"example": ESCALATION_OUTCOME_EXAMPLE}}}}
)
async def escalate_ticket(
    ticket_id: int,
    actor: Actor = Depends(get_actor),
    service: EscalationService = Depends(get_escalation_service)
):
    return EscalationOutcomeResponse.from_outcome(await service.escalate(ticket_id, actor))


@router.post(
    "/sla/escalations/run",
    response_model=EscalationScanResponse,
    summary="Run the escalation scan now",
    description="""
    Escalate every breaching, not yet escalated ticket. **Administrators only.**

    Each ticket is handled in its own transaction; failures are counted in
    `failed` and do not stop the scan.
    """
)
async def run_escalation_scan(
    actor: Actor = Depends(get_actor),
    scanner: EscalationScanner = Depends(get_escalation_scanner)
):
    if not actor.is_admin:
        raise ForbiddenException("sla:escalations:run")

    with log_latency(logger, "escalation_scan", trigger="api", actor_id=actor.user_id):
        summary = await scanner.escalate_breaching()
    return EscalationScanResponse.from_summary(summary)
