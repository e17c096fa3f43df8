"""Ticket state machine: creation, transitions, assignment and updates."""

from datetime import timedelta

import pytest

from helpdesk.config import Priority, TicketStatus
from helpdesk.core import (
    ForbiddenException,
    InvalidFormatException,
    InvalidPriorityException,
    InvalidReferenceException,
    InvalidStateException,
    ResourceNotFoundException,
)
from helpdesk.sla.application import SLACatalogService
from helpdesk.sla.infrastructure import SQLAlchemySLATierRepository

from tests.conftest import (
    ADMIN,
    AGENT,
    AGENT_ID,
    EMAIL,
    FRACTIONAL_TIER,
    HARDWARE,
    OTHER_AGENT_ID,
    SOFTWARE,
    STANDARD_TIER,
    T0,
    USER,
    USER_ID,
)


# ========== Creation ==========

async def test_create_stamps_deadlines_from_tier(open_ticket):
    ticket = await open_ticket()

    assert ticket.id is not None
    assert ticket.status == TicketStatus.OPEN
    assert ticket.created_by == USER_ID
    assert ticket.assigned_to is None
    assert ticket.created_at == T0
    assert ticket.updated_at == T0
    assert ticket.response_due == T0 + timedelta(hours=4)
    assert ticket.resolution_due == T0 + timedelta(hours=24)
    assert ticket.time_worked == timedelta()


async def test_create_with_fractional_tier(open_ticket):
    ticket = await open_ticket(sla_tier_id=FRACTIONAL_TIER)

    assert ticket.response_due == T0 + timedelta(minutes=90)
    assert ticket.resolution_due == T0 + timedelta(minutes=150)


async def test_created_ticket_round_trips_through_storage(open_ticket, scope, ticket_service):
    created = await open_ticket()

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(created.id)

    assert loaded == created


@pytest.mark.parametrize("overrides", [
    {"category_id": 999},
    {"sla_tier_id": 999},
    {"priority": "Urgent"},
    {"subcategory_id": 999},
    # Email belongs to Software, not Hardware
    {"category_id": HARDWARE, "subcategory_id": EMAIL},
])
async def test_create_rejects_bad_references(open_ticket, overrides):
    with pytest.raises(InvalidReferenceException) as exc_info:
        await open_ticket(**overrides)
    assert exc_info.value.kind == "InvalidReference"


async def test_subcategory_inside_its_category_is_accepted(open_ticket):
    ticket = await open_ticket(category_id=SOFTWARE, subcategory_id=EMAIL)
    assert ticket.subcategory_id == EMAIL


async def test_tier_edit_does_not_move_existing_deadlines(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    async with scope() as session:
        await SLACatalogService(SQLAlchemySLATierRepository(session)).update_tier(
            ADMIN, STANDARD_TIER, response_time_hours=1, resolution_time_hours=2
        )

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)

    assert loaded.response_due == T0 + timedelta(hours=4)
    assert loaded.resolution_due == T0 + timedelta(hours=24)


# ========== Status ==========

async def test_in_progress_binds_acting_user_when_unassigned(open_ticket, scope, ticket_service, clock):
    ticket = await open_ticket()
    clock.advance(minutes=10)

    async with scope() as session:
        updated = await ticket_service(session).set_status(ticket.id, "InProgress", AGENT)

    assert updated.status == TicketStatus.IN_PROGRESS
    assert updated.assigned_to == AGENT_ID
    assert updated.updated_at == T0 + timedelta(minutes=10)


async def test_in_progress_keeps_existing_assignee(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    async with scope() as session:
        await ticket_service(session).set_assignee(ticket.id, OTHER_AGENT_ID, ADMIN)
    async with scope() as session:
        updated = await ticket_service(session).set_status(ticket.id, "InProgress", AGENT)

    assert updated.assigned_to == OTHER_AGENT_ID


@pytest.mark.parametrize("target", ["Resolved", "Closed"])
async def test_open_may_jump_straight_to_terminal_states(open_ticket, scope, ticket_service, target):
    ticket = await open_ticket()

    async with scope() as session:
        updated = await ticket_service(session).set_status(ticket.id, target, ADMIN)

    assert updated.status == TicketStatus(target)


async def test_closed_ticket_can_be_reopened_to_in_progress(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    async with scope() as session:
        await ticket_service(session).set_status(ticket.id, "Closed", ADMIN)
    async with scope() as session:
        updated = await ticket_service(session).set_status(ticket.id, "InProgress", AGENT)

    assert updated.status == TicketStatus.IN_PROGRESS
    assert updated.assigned_to == AGENT_ID


async def test_no_transition_back_to_open(open_ticket, scope, ticket_service):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_status(ticket.id, "Resolved", AGENT)

    with pytest.raises(InvalidStateException) as exc_info:
        async with scope() as session:
            await ticket_service(session).set_status(ticket.id, "Open", ADMIN)

    assert exc_info.value.illegal_transition

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)
    assert loaded.status == TicketStatus.RESOLVED


async def test_unknown_status_is_invalid_state(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    with pytest.raises(InvalidStateException) as exc_info:
        async with scope() as session:
            await ticket_service(session).set_status(ticket.id, "Pending", AGENT)

    assert not exc_info.value.illegal_transition


async def test_status_change_on_missing_ticket(scope, ticket_service):
    with pytest.raises(ResourceNotFoundException):
        async with scope() as session:
            await ticket_service(session).set_status(404, "Resolved", AGENT)


# ========== Priority, assignee, due date, time worked ==========

async def test_priority_overwrite(open_ticket, scope, ticket_service):
    ticket = await open_ticket(priority="Low")

    async with scope() as session:
        updated = await ticket_service(session).set_priority(ticket.id, "Critical", AGENT)

    assert updated.priority == Priority.CRITICAL


async def test_unknown_priority_on_update(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    with pytest.raises(InvalidPriorityException):
        async with scope() as session:
            await ticket_service(session).set_priority(ticket.id, "Urgent", AGENT)


async def test_assignee_override_is_admin_only(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    with pytest.raises(ForbiddenException):
        async with scope() as session:
            await ticket_service(session).set_assignee(ticket.id, AGENT_ID, AGENT)


async def test_assignee_must_be_known_user(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    with pytest.raises(ResourceNotFoundException):
        async with scope() as session:
            await ticket_service(session).set_assignee(ticket.id, 999, ADMIN)


async def test_assignee_can_be_cleared_when_not_in_progress(open_ticket, scope, ticket_service):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_assignee(ticket.id, AGENT_ID, ADMIN)
    async with scope() as session:
        updated = await ticket_service(session).set_assignee(ticket.id, None, ADMIN)

    assert updated.assigned_to is None


async def test_in_progress_ticket_keeps_an_assignee(open_ticket, scope, ticket_service):
    ticket = await open_ticket()
    async with scope() as session:
        await ticket_service(session).set_status(ticket.id, "InProgress", AGENT)

    with pytest.raises(InvalidStateException):
        async with scope() as session:
            await ticket_service(session).set_assignee(ticket.id, None, ADMIN)

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)
    assert loaded.assigned_to == AGENT_ID


async def test_due_date_is_admin_only_and_independent_of_sla(open_ticket, scope, ticket_service):
    ticket = await open_ticket()
    due = T0 + timedelta(days=3)

    with pytest.raises(ForbiddenException):
        async with scope() as session:
            await ticket_service(session).set_due_date(ticket.id, due, USER)

    async with scope() as session:
        updated = await ticket_service(session).set_due_date(ticket.id, due, ADMIN)

    assert updated.due_date == due
    assert updated.response_due == T0 + timedelta(hours=4)


async def test_time_worked_overwrite(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    async with scope() as session:
        await ticket_service(session).set_time_worked(ticket.id, "08:00:00", AGENT)
    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)

    assert loaded.time_worked == timedelta(hours=8)


async def test_malformed_time_worked_leaves_ticket_untouched(open_ticket, scope, ticket_service):
    ticket = await open_ticket()

    with pytest.raises(InvalidFormatException):
        async with scope() as session:
            await ticket_service(session).set_time_worked(ticket.id, "25:61:00", AGENT)

    async with scope() as session:
        loaded = await ticket_service(session).get_ticket(ticket.id)
    assert loaded.time_worked == timedelta()
    assert loaded.updated_at == T0


# ========== Listings ==========

async def test_queue_lists_own_and_unassigned_tickets(open_ticket, scope, ticket_service):
    mine = await open_ticket(title="mine")
    unassigned = await open_ticket(title="unassigned")
    theirs = await open_ticket(title="theirs")

    async with scope() as session:
        service = ticket_service(session)
        await service.set_assignee(mine.id, AGENT_ID, ADMIN)
        await service.set_assignee(theirs.id, OTHER_AGENT_ID, ADMIN)

    async with scope() as session:
        queue = await ticket_service(session).list_queue(AGENT_ID)

    assert {t.id for t in queue} == {mine.id, unassigned.id}


async def test_list_created_by(open_ticket, scope, ticket_service):
    own = await open_ticket(actor=USER)
    await open_ticket(actor=AGENT)

    async with scope() as session:
        tickets = await ticket_service(session).list_created_by(USER_ID)

    assert [t.id for t in tickets] == [own.id]


async def test_admin_overview_includes_last_replier(open_ticket, scope, ticket_service, thread_service, clock):
    ticket = await open_ticket()
    quiet = await open_ticket(title="no replies")

    async with scope() as session:
        await thread_service(session).add_comment(ticket.id, USER, "any news?")
    clock.advance(minutes=5)
    async with scope() as session:
        await thread_service(session).add_comment(ticket.id, AGENT, "looking now")

    with pytest.raises(ForbiddenException):
        async with scope() as session:
            await ticket_service(session).list_all(AGENT)

    async with scope() as session:
        tickets, repliers = await ticket_service(session).list_all(ADMIN)

    assert {t.id for t in tickets} == {ticket.id, quiet.id}
    assert repliers == {ticket.id: "bob"}


async def test_list_agents(scope, ticket_service):
    async with scope() as session:
        agents = await ticket_service(session).list_agents()

    assert [a.username for a in agents] == ["bob", "dave", "erin"]
