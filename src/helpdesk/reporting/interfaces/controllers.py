"""
Reporting Controllers (API Routes)
===================================
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.infrastructure.database import get_session
from helpdesk.reporting.application import (
    AgentRollupResponse,
    ReportingService,
    SummaryResponse,
    TierRollupResponse,
)
from helpdesk.shared.api import get_clock
from helpdesk.shared.domain import Clock
from helpdesk.sla.infrastructure import SQLAlchemySLATierRepository
from helpdesk.tickets.infrastructure import SQLAlchemyLookupRepository, SQLAlchemyTicketRepository

router = APIRouter(prefix="/reports", tags=["Reports"])


async def get_reporting_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> ReportingService:
    """Get reporting service instance."""
    return ReportingService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        lookup_repository=SQLAlchemyLookupRepository(session),
        tier_repository=SQLAlchemySLATierRepository(session),
        clock=clock,
    )


@router.get(
    "/summary",
    response_model=SummaryResponse,
    summary="Ticket counts and SLA compliance",
    description="""
    Totals per status and priority, the number of tickets currently
    breaching their response SLA, and the compliance percentage.

    `compliance_pct` is `null` when there are no tickets.
    """
)
async def get_summary(service: ReportingService = Depends(get_reporting_service)):
    return SummaryResponse.model_validate(await service.summary())


@router.get("/agents", response_model=List[AgentRollupResponse], summary="Per-agent rollups")
async def get_agent_rollups(service: ReportingService = Depends(get_reporting_service)):
    return [AgentRollupResponse.model_validate(r) for r in await service.agent_rollups()]


@router.get("/sla-tiers", response_model=List[TierRollupResponse], summary="Per-SLA-tier rollups")
async def get_tier_rollups(service: ReportingService = Depends(get_reporting_service)):
    return [TierRollupResponse.model_validate(r) for r in await service.sla_tier_rollups()]
