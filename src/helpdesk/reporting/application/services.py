"""
Reporting Application Services
===============================

Read-only aggregates over the ticket store. Nothing here writes.
"""

from collections import defaultdict
from typing import Dict, List

from helpdesk.reporting.domain import (
    AgentRollup,
    TicketSummary,
    TierRollup,
    rollup_agent,
    rollup_tier,
    summarize,
)
from helpdesk.shared.domain import Clock
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.sla.application import ISLATierRepository
from helpdesk.tickets.application import ILookupRepository, ITicketRepository
from helpdesk.tickets.domain import Ticket

logger = get_logger(__name__)


class ReportingService:
    """Summary, per-agent and per-SLA-tier rollups."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        lookup_repository: ILookupRepository,
        tier_repository: ISLATierRepository,
        clock: Clock
    ):
        self._ticket_repo = ticket_repository
        self._lookup_repo = lookup_repository
        self._tier_repo = tier_repository
        self._clock = clock

    async def summary(self) -> TicketSummary:
        tickets = await self._ticket_repo.list_all()
        return summarize(tickets, self._clock.now())

    async def agent_rollups(self) -> List[AgentRollup]:
        """
        One row per agent in the directory, plus any other user currently
        holding tickets. Agents with no tickets get zero counts and no
        averages.
        """
        now = self._clock.now()
        tickets = await self._ticket_repo.list_all()

        by_assignee: Dict[int, List[Ticket]] = defaultdict(list)
        for ticket in tickets:
            if ticket.assigned_to is not None:
                by_assignee[ticket.assigned_to].append(ticket)

        rollups = []
        seen = set()
        for agent in await self._lookup_repo.list_agents():
            seen.add(agent.id)
            rollups.append(rollup_agent(agent.id, agent.username, by_assignee.get(agent.id, []), now))

        for assignee_id in sorted(set(by_assignee) - seen):
            user = await self._lookup_repo.get_user(assignee_id)
            rollups.append(rollup_agent(
                assignee_id, user.username if user else None, by_assignee[assignee_id], now
            ))

        return rollups

    async def sla_tier_rollups(self) -> List[TierRollup]:
        now = self._clock.now()
        tickets = await self._ticket_repo.list_all()

        by_tier: Dict[int, List[Ticket]] = defaultdict(list)
        for ticket in tickets:
            by_tier[ticket.sla_tier_id].append(ticket)

        return [
            rollup_tier(tier.id, tier.name, by_tier.get(tier.id, []), now)
            for tier in await self._tier_repo.list()
        ]
