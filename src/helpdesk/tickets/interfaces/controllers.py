"""
Ticket Controllers (API Routes)
================================

FastAPI routes for the ticket lifecycle and the comment thread.

Controllers are thin - they delegate to application services.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import settings
from helpdesk.infrastructure.database import get_session
from helpdesk.shared.api import get_actor, get_clock
from helpdesk.shared.domain import Actor, Clock
from helpdesk.sla.application import SLACatalogService
from helpdesk.sla.infrastructure import SQLAlchemySLATierRepository
from helpdesk.tickets.application import (
    AgentResponse,
    AssigneeUpdateDTO,
    AttachmentResponse,
    AvailabilityService,
    CommentCreatedResponse,
    CommentResponse,
    DueDateUpdateDTO,
    PriorityUpdateDTO,
    StatusUpdateDTO,
    ThreadService,
    TicketCreateDTO,
    TicketOverviewResponse,
    TicketResponse,
    TicketService,
    TimeWorkedUpdateDTO,
    UnavailabilityCreateDTO,
    UnavailabilityResponse,
)
from helpdesk.tickets.domain import AttachmentUpload
from helpdesk.tickets.infrastructure import (
    LocalBlobStore,
    SQLAlchemyCommentRepository,
    SQLAlchemyLookupRepository,
    SQLAlchemyTicketRepository,
    SQLAlchemyUnavailabilityRepository,
)

router = APIRouter(prefix="/tickets", tags=["Tickets"])
thread_router = APIRouter(tags=["Thread"])
directory_router = APIRouter(tags=["Directory"])


# ========== Example payloads for Swagger ==========

TICKET_CREATE_EXAMPLE = {
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN client disconnects roughly every five minutes.",
    "category_id": 1,
    "subcategory_id": 2,
    "priority": "High",
    "sla_tier_id": 1
}

TICKET_RESPONSE_EXAMPLE = {
    "id": 42,
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN client disconnects roughly every five minutes.",
    "category_id": 1,
    "subcategory_id": 2,
    "priority": "High",
    "status": "Open",
    "created_by": 7,
    "assigned_to": None,
    "sla_tier_id": 1,
    "response_due": "2024-01-15T14:00:00Z",
    "resolution_due": "2024-01-16T10:00:00Z",
    "time_worked": "00:00:00",
    "due_date": None,
    "escalated_at": None,
    "created_at": "2024-01-15T10:00:00Z",
    "updated_at": "2024-01-15T10:00:00Z",
    "is_breaching": False
}


# ========== Dependencies ==========

async def get_ticket_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> TicketService:
    """Get ticket service instance."""
    return TicketService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        lookup_repository=SQLAlchemyLookupRepository(session),
        sla_catalog=SLACatalogService(SQLAlchemySLATierRepository(session)),
        clock=clock,
    )


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(settings.attachments_dir)


async def get_thread_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    blob_store: LocalBlobStore = Depends(get_blob_store)
) -> ThreadService:
    """Get thread ledger service instance."""
    return ThreadService(
        ticket_repository=SQLAlchemyTicketRepository(session),
        comment_repository=SQLAlchemyCommentRepository(session),
        blob_store=blob_store,
        clock=clock,
    )


async def get_availability_service(
    session: AsyncSession = Depends(get_session)
) -> AvailabilityService:
    """Get agent calendar service instance."""
    return AvailabilityService(
        unavailability_repository=SQLAlchemyUnavailabilityRepository(session),
        lookup_repository=SQLAlchemyLookupRepository(session),
    )


# ========== Tickets ==========

@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a ticket",
    description="""
    Open a ticket on behalf of the acting user.

    **Priority**: `Low`, `Medium`, `High`, `Critical`

    Response and resolution deadlines are computed from the chosen SLA tier
    at creation and never change afterwards, even if the tier is edited.
    """,
    responses={
        201: {"content": {"application/json": {"example": TICKET_RESPONSE_EXAMPLE}}},
        422: {"description": "Unknown category, subcategory, SLA tier or priority"}
    }
)
async def create_ticket(
    request: TicketCreateDTO,
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.create_ticket(
        actor,
        title=request.title,
        description=request.description,
        category_id=request.category_id,
        subcategory_id=request.subcategory_id,
        priority=request.priority,
        sla_tier_id=request.sla_tier_id,
    )
    return TicketResponse.from_entity(ticket, clock.now())


@router.get(
    "",
    response_model=List[TicketOverviewResponse],
    summary="List every ticket",
    description="Administrator overview with the latest replier per ticket. **Administrators only.**"
)
async def list_tickets(
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    tickets, repliers = await service.list_all(actor)
    now = clock.now()
    return [TicketOverviewResponse.from_overview(t, repliers, now) for t in tickets]


@router.get(
    "/created-by/{user_id}",
    response_model=List[TicketResponse],
    summary="Tickets opened by a user"
)
async def list_created_by(
    user_id: int,
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    now = clock.now()
    return [TicketResponse.from_entity(t, now) for t in await service.list_created_by(user_id)]


@router.get(
    "/queue/{agent_id}",
    response_model=List[TicketResponse],
    summary="Agent work queue",
    description="Tickets assigned to the agent plus every unassigned ticket."
)
async def list_queue(
    agent_id: int,
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    now = clock.now()
    return [TicketResponse.from_entity(t, now) for t in await service.list_queue(agent_id)]


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(
    ticket_id: int,
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    return TicketResponse.from_entity(await service.get_ticket(ticket_id), clock.now())


@router.put(
    "/{ticket_id}/status",
    response_model=TicketResponse,
    summary="Change ticket status",
    description="""
    Move a ticket to `InProgress`, `Resolved` or `Closed`. Any state may
    jump to any other; nothing returns to `Open` (409).

    Entering `InProgress` on an unassigned ticket assigns it to the caller.
    """,
    responses={
        404: {"description": "Ticket not found"},
        409: {"description": "Transition back to Open"},
        422: {"description": "Unknown status"}
    }
)
async def set_status(
    ticket_id: int,
    request: StatusUpdateDTO,
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.set_status(ticket_id, request.status, actor)
    return TicketResponse.from_entity(ticket, clock.now())


@router.put("/{ticket_id}/priority", response_model=TicketResponse, summary="Change ticket priority")
async def set_priority(
    ticket_id: int,
    request: PriorityUpdateDTO,
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.set_priority(ticket_id, request.priority, actor)
    return TicketResponse.from_entity(ticket, clock.now())


@router.put(
    "/{ticket_id}/assignee",
    response_model=TicketResponse,
    summary="Reassign a ticket",
    description="Administrator override of the assignee. `null` unassigns, except on InProgress tickets (409).",
    responses={403: {"description": "Caller is not an administrator"}}
)
async def set_assignee(
    ticket_id: int,
    request: AssigneeUpdateDTO,
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.set_assignee(ticket_id, request.assigned_to, actor)
    return TicketResponse.from_entity(ticket, clock.now())


@router.put(
    "/{ticket_id}/due-date",
    response_model=TicketResponse,
    summary="Set the soft due date",
    responses={403: {"description": "Caller is not an administrator"}}
)
async def set_due_date(
    ticket_id: int,
    request: DueDateUpdateDTO,
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.set_due_date(ticket_id, request.due_date, actor)
    return TicketResponse.from_entity(ticket, clock.now())


@router.put(
    "/{ticket_id}/time-worked",
    response_model=TicketResponse,
    summary="Overwrite time worked",
    responses={422: {"description": "Not in HH:MM:SS format"}}
)
async def set_time_worked(
    ticket_id: int,
    request: TimeWorkedUpdateDTO,
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.set_time_worked(ticket_id, request.time_worked, actor)
    return TicketResponse.from_entity(ticket, clock.now())


# ========== Thread ==========

@thread_router.post(
    "/tickets/{ticket_id}/comments",
    response_model=CommentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a comment",
    description="""
    Append a comment, optionally with files and a time-worked delta
    (`HH:MM:SS`, added onto the ticket's total).

    Files are stored one by one. A file that cannot be stored is listed in
    `failed_attachments`; the comment and the other files are kept.
    """
)
async def add_comment(
    ticket_id: int,
    text: str = Form("", description="Comment text"),
    time_worked: Optional[str] = Form(None, description="HH:MM:SS to add to the ticket"),
    files: Optional[List[UploadFile]] = File(None, description="Attachments"),
    actor: Actor = Depends(get_actor),
    service: ThreadService = Depends(get_thread_service)
):
    uploads = [
        AttachmentUpload(file_name=f.filename or "attachment", data=await f.read())
        for f in files or []
    ]
    receipt = await service.add_comment(
        ticket_id,
        actor,
        text,
        attachments=uploads,
        time_worked=time_worked or None,
    )
    return CommentCreatedResponse.from_receipt(receipt)


@thread_router.get(
    "/tickets/{ticket_id}/comments",
    response_model=List[CommentResponse],
    summary="List a ticket's thread",
    description="Oldest first, each comment with its attachments and author name."
)
async def list_comments(
    ticket_id: int,
    service: ThreadService = Depends(get_thread_service)
):
    return [CommentResponse.from_entity(c) for c in await service.list_comments(ticket_id)]


@thread_router.get(
    "/tickets/{ticket_id}/attachments",
    response_model=List[AttachmentResponse],
    summary="List a ticket's attachments"
)
async def list_ticket_attachments(
    ticket_id: int,
    service: ThreadService = Depends(get_thread_service)
):
    return [AttachmentResponse.from_entity(a) for a in await service.list_attachments(ticket_id)]


@thread_router.get(
    "/comments/{comment_id}/attachments",
    response_model=List[AttachmentResponse],
    summary="List a comment's attachments"
)
async def list_comment_attachments(
    comment_id: int,
    service: ThreadService = Depends(get_thread_service)
):
    return [AttachmentResponse.from_entity(a) for a in await service.list_comment_attachments(comment_id)]


# ========== Directory ==========

@directory_router.get(
    "/agents",
    response_model=List[AgentResponse],
    summary="List agents"
)
async def list_agents(
    service: TicketService = Depends(get_ticket_service)
):
    return [AgentResponse.from_entity(u) for u in await service.list_agents()]


@directory_router.get(
    "/agents/available",
    response_model=List[AgentResponse],
    summary="List agents not marked away on a day"
)
async def list_available_agents(
    on: date = Query(..., description="Day to check (YYYY-MM-DD)"),
    service: AvailabilityService = Depends(get_availability_service)
):
    return [AgentResponse.from_entity(u) for u in await service.available_agents(on)]


@directory_router.get(
    "/unavailability",
    response_model=List[UnavailabilityResponse],
    summary="Agent calendar"
)
async def list_unavailability(
    service: AvailabilityService = Depends(get_availability_service)
):
    return [UnavailabilityResponse.from_entity(e) for e in await service.list_unavailability()]


@directory_router.post(
    "/unavailability",
    response_model=UnavailabilityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Mark the caller unavailable for a day",
    description="""
    Add a day to the caller's calendar. **Agents and administrators only.**

    The reason defaults to `Unavailable`. Marking the same day twice is
    rejected with `AlreadyExists` (409).
    """,
    responses={
        403: {"description": "Caller is not an agent"},
        409: {"description": "Day already marked"}
    }
)
async def mark_unavailable(
    request: UnavailabilityCreateDTO,
    actor: Actor = Depends(get_actor),
    service: AvailabilityService = Depends(get_availability_service)
):
    entry = await service.mark_unavailable(actor, request.day, request.reason)
    return UnavailabilityResponse.from_entity(entry)
