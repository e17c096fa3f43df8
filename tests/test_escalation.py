"""Breach detection, one-time escalation and the escalation scan."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from helpdesk.config import TicketStatus
from helpdesk.core import ConfigurationException, ResourceNotFoundException, StorageUnavailableException
from helpdesk.escalation.application import EscalationScanner, EscalationService
from helpdesk.escalation.domain import (
    ClearAssigneePolicy,
    EscalationResult,
    HandlerPolicy,
    build_escalation_policy,
)
from helpdesk.shared.domain import FixedClock
from helpdesk.tickets.infrastructure import (
    CommentModel,
    SQLAlchemyCommentRepository,
    SQLAlchemyTicketRepository,
)

from tests.conftest import ADMIN, AGENT, AGENT_ID, IDLE_AGENT_ID, SYSTEM_ID, T0


async def _comments(scope, ticket_id):
    async with scope() as session:
        result = await session.execute(
            select(CommentModel).where(CommentModel.ticket_id == ticket_id).order_by(CommentModel.id)
        )
        return result.scalars().all()


# ========== Policies ==========

def test_build_policy_from_settings_names():
    assert isinstance(build_escalation_policy("clear"), ClearAssigneePolicy)
    assert isinstance(build_escalation_policy("handler", IDLE_AGENT_ID), HandlerPolicy)


def test_handler_policy_needs_a_handler():
    with pytest.raises(ConfigurationException):
        build_escalation_policy("handler", None)


def test_unknown_policy_name():
    with pytest.raises(ConfigurationException):
        build_escalation_policy("page-everyone")


# ========== Single ticket ==========

async def test_breach_status(open_ticket, scope, escalation_service, clock):
    ticket = await open_ticket()

    async with scope() as session:
        before = await escalation_service(session).breach_status(ticket.id)
    clock.set(T0 + timedelta(hours=5))
    async with scope() as session:
        after = await escalation_service(session).breach_status(ticket.id)

    assert not before.is_breaching
    assert after.is_breaching
    assert after.response_due == T0 + timedelta(hours=4)
    assert after.checked_at == T0 + timedelta(hours=5)


async def test_breaching_ticket_escalates_once(open_ticket, scope, escalation_service, ticket_service, clock):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_assignee(ticket.id, AGENT_ID, ADMIN)

    clock.set(T0 + timedelta(hours=5))
    async with scope() as session:
        outcome = await escalation_service(session).escalate(ticket.id)

    assert outcome.result == EscalationResult.ESCALATED
    assert outcome.previous_assignee == AGENT_ID
    assert outcome.new_assignee is None
    assert outcome.escalated_at == T0 + timedelta(hours=5)

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)
    assert loaded.assigned_to is None
    assert loaded.escalated_at == T0 + timedelta(hours=5)
    assert loaded.updated_at == T0 + timedelta(hours=5)

    comments = await _comments(scope, ticket.id)
    assert len(comments) == 1
    assert comments[0].id == outcome.audit_comment_id
    assert comments[0].commenter_id == SYSTEM_ID
    assert "SLA breach" in comments[0].text
    assert "2024-01-15 14:00:00 UTC" in comments[0].text
    assert "user 2 -> unassigned" in comments[0].text

    clock.set(T0 + timedelta(hours=6))
    async with scope() as session:
        again = await escalation_service(session).escalate(ticket.id)

    assert again.result == EscalationResult.ALREADY_ESCALATED
    assert not again.escalated
    assert len(await _comments(scope, ticket.id)) == 1


async def test_ticket_within_deadline_is_not_escalated(open_ticket, scope, escalation_service, clock):
    ticket = await open_ticket()
    clock.set(T0 + timedelta(hours=4))

    async with scope() as session:
        outcome = await escalation_service(session).escalate(ticket.id)

    assert outcome.result == EscalationResult.NOT_BREACHING
    assert await _comments(scope, ticket.id) == []


async def test_resolved_ticket_is_never_escalated(open_ticket, scope, escalation_service, ticket_service, clock):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_status(ticket.id, "Resolved", AGENT)

    clock.set(T0 + timedelta(days=2))
    async with scope() as session:
        outcome = await escalation_service(session).escalate(ticket.id)

    assert outcome.result == EscalationResult.NOT_BREACHING


async def test_clear_policy_keeps_in_progress_owner(open_ticket, scope, escalation_service, ticket_service, clock):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_status(ticket.id, "InProgress", AGENT)

    clock.set(T0 + timedelta(hours=5))
    async with scope() as session:
        outcome = await escalation_service(session).escalate(ticket.id)

    assert outcome.escalated
    assert outcome.new_assignee == AGENT_ID

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)
    assert loaded.status == TicketStatus.IN_PROGRESS
    assert loaded.assigned_to == AGENT_ID


async def test_clear_policy_hands_in_progress_ticket_to_handler(open_ticket, scope, escalation_service, ticket_service, clock):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_status(ticket.id, "InProgress", AGENT)

    clock.set(T0 + timedelta(hours=5))
    async with scope() as session:
        outcome = await escalation_service(session, ClearAssigneePolicy(IDLE_AGENT_ID)).escalate(ticket.id)

    assert outcome.new_assignee == IDLE_AGENT_ID


async def test_handler_policy_reassigns(open_ticket, scope, escalation_service, clock):
    ticket = await open_ticket()

    clock.set(T0 + timedelta(hours=5))
    async with scope() as session:
        outcome = await escalation_service(session, HandlerPolicy(IDLE_AGENT_ID)).escalate(ticket.id, ADMIN)

    assert outcome.previous_assignee is None
    assert outcome.new_assignee == IDLE_AGENT_ID


async def test_escalating_missing_ticket(scope, escalation_service):
    with pytest.raises(ResourceNotFoundException):
        async with scope() as session:
            await escalation_service(session).escalate(404)


# ========== Scan ==========

class FailingTicketRepository(SQLAlchemyTicketRepository):
    """Storage outage for one ticket id."""

    def __init__(self, session, failing_id):
        super().__init__(session)
        self._failing_id = failing_id

    async def get_for_update(self, ticket_id):
        if ticket_id == self._failing_id:
            raise StorageUnavailableException("Storage unavailable during tickets.get_for_update")
        return await super().get_for_update(ticket_id)


async def test_scan_escalates_every_breaching_ticket_once(open_ticket, scope, escalation_service, clock):
    first = await open_ticket(title="first")
    second = await open_ticket(title="second")
    clock.set(T0 + timedelta(hours=3))
    fresh = await open_ticket(title="fresh")

    clock.set(T0 + timedelta(hours=5))
    scanner = EscalationScanner(scope, escalation_service)
    summary = await scanner.escalate_breaching()

    assert summary.scanned == 2
    assert summary.escalated == 2
    assert summary.failed == 0
    assert len(await _comments(scope, first.id)) == 1
    assert len(await _comments(scope, second.id)) == 1
    assert await _comments(scope, fresh.id) == []

    clock.set(T0 + timedelta(hours=6))
    rerun = await scanner.escalate_breaching()

    assert rerun.scanned == 0
    assert rerun.escalated == 0
    assert len(await _comments(scope, first.id)) == 1


async def test_scan_failure_on_one_ticket_does_not_stop_the_rest(open_ticket, scope, clock):
    broken = await open_ticket(title="broken")
    healthy = await open_ticket(title="healthy")
    clock.set(T0 + timedelta(hours=5))

    def factory(session):
        return EscalationService(
            ticket_repository=FailingTicketRepository(session, broken.id),
            comment_repository=SQLAlchemyCommentRepository(session),
            clock=clock,
            policy=ClearAssigneePolicy(),
            system_user_id=SYSTEM_ID,
        )

    summary = await EscalationScanner(scope, factory).escalate_breaching()

    assert summary.scanned == 2
    assert summary.escalated == 1
    assert summary.failed == 1
    assert summary.failed_ticket_ids == [broken.id]
    assert await _comments(scope, broken.id) == []
    assert len(await _comments(scope, healthy.id)) == 1

    async with scope() as session:
        total = (await session.execute(select(func.count(CommentModel.id)))).scalar_one()
    assert total == 1


async def test_scan_with_nothing_to_do(scope, escalation_service):
    summary = await EscalationScanner(scope, escalation_service).escalate_breaching()

    assert summary.to_dict() == {
        "scanned": 0, "escalated": 0, "skipped": 0, "failed": 0, "failed_ticket_ids": [],
    }


def test_fixed_clock_moves_only_when_told():
    clock = FixedClock(T0)
    assert clock.now() == T0
    assert clock.advance(hours=1) == T0 + timedelta(hours=1)
