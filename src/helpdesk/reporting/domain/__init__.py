"""
Reporting Domain Layer
======================

Read-only rollups over tickets. Pure functions and value objects; the
application layer feeds them tickets loaded through the ticket repository.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from helpdesk.config import Priority, TicketStatus
from helpdesk.tickets.domain import Ticket


@dataclass(frozen=True)
class TicketSummary:
    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int
    breached: int
    sla_met: int
    # None when there are no tickets
    compliance_pct: Optional[float]
    by_priority: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AgentRollup:
    agent_id: int
    username: Optional[str]
    assigned: int
    resolved: int
    breached: int
    avg_response_hours: Optional[float]
    avg_resolution_hours: Optional[float]


@dataclass(frozen=True)
class TierRollup:
    sla_tier_id: int
    name: str
    tickets: int
    breached: int
    compliance_pct: Optional[float]


def _hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600.0


def _average(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def met_response_sla(ticket: Ticket) -> bool:
    """Compliance rule: the ticket was last touched no later than its response deadline."""
    return ticket.response_due >= ticket.updated_at


def compliance_pct(tickets: List[Ticket]) -> Optional[float]:
    if not tickets:
        return None
    met = sum(1 for t in tickets if met_response_sla(t))
    return round(met / len(tickets) * 100, 2)


def summarize(tickets: Iterable[Ticket], now: datetime) -> TicketSummary:
    tickets = list(tickets)
    by_status = {s: 0 for s in TicketStatus}
    by_priority = {p.value: 0 for p in Priority}

    for ticket in tickets:
        by_status[ticket.status] += 1
        by_priority[ticket.priority.value] += 1

    return TicketSummary(
        total=len(tickets),
        open=by_status[TicketStatus.OPEN],
        in_progress=by_status[TicketStatus.IN_PROGRESS],
        resolved=by_status[TicketStatus.RESOLVED],
        closed=by_status[TicketStatus.CLOSED],
        breached=sum(1 for t in tickets if t.is_breaching(now)),
        sla_met=sum(1 for t in tickets if met_response_sla(t)),
        compliance_pct=compliance_pct(tickets),
        by_priority=by_priority,
    )


def rollup_agent(agent_id: int, username: Optional[str], tickets: Iterable[Ticket], now: datetime) -> AgentRollup:
    """
    Rollup of the tickets currently assigned to one agent.

    Latencies are the SLA budgets granted at creation
    (``response_due - created_at`` and ``resolution_due - created_at``).
    """
    tickets = list(tickets)
    return AgentRollup(
        agent_id=agent_id,
        username=username,
        assigned=len(tickets),
        resolved=sum(1 for t in tickets if t.is_resolved),
        breached=sum(1 for t in tickets if t.is_breaching(now)),
        avg_response_hours=_average([_hours(t.response_due - t.created_at) for t in tickets]),
        avg_resolution_hours=_average([_hours(t.resolution_due - t.created_at) for t in tickets]),
    )


def rollup_tier(tier_id: int, name: str, tickets: Iterable[Ticket], now: datetime) -> TierRollup:
    tickets = list(tickets)
    return TierRollup(
        sla_tier_id=tier_id,
        name=name,
        tickets=len(tickets),
        breached=sum(1 for t in tickets if t.is_breaching(now)),
        compliance_pct=compliance_pct(tickets),
    )


__all__ = [
    "TicketSummary",
    "AgentRollup",
    "TierRollup",
    "met_response_sla",
    "compliance_pct",
    "summarize",
    "rollup_agent",
    "rollup_tier",
]
