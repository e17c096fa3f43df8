"""
Tickets Application Layer
==========================

Application layer for the ticket lifecycle and thread ledger.

Contains:
- Services: TicketService (state machine), ThreadService (comments),
  AvailabilityService (agent calendar)
- DTOs: Data transfer objects for API serialization
- Repository and blob store interfaces

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.tickets.application.dto import (
    TicketCreateDTO,
    StatusUpdateDTO,
    PriorityUpdateDTO,
    AssigneeUpdateDTO,
    DueDateUpdateDTO,
    TimeWorkedUpdateDTO,
    TicketResponse,
    TicketOverviewResponse,
    AttachmentResponse,
    CommentResponse,
    CommentCreatedResponse,
    AgentResponse,
    UnavailabilityCreateDTO,
    UnavailabilityResponse,
)
from helpdesk.tickets.application.services import (
    TicketService,
    ThreadService,
    AvailabilityService,
    ITicketRepository,
    ICommentRepository,
    ILookupRepository,
    IBlobStore,
    IUnavailabilityRepository,
)

__all__ = [
    # DTOs
    "TicketCreateDTO",
    "StatusUpdateDTO",
    "PriorityUpdateDTO",
    "AssigneeUpdateDTO",
    "DueDateUpdateDTO",
    "TimeWorkedUpdateDTO",
    "TicketResponse",
    "TicketOverviewResponse",
    "AttachmentResponse",
    "CommentResponse",
    "CommentCreatedResponse",
    "AgentResponse",
    "UnavailabilityCreateDTO",
    "UnavailabilityResponse",
    # Services
    "TicketService",
    "ThreadService",
    "AvailabilityService",
    # Interfaces
    "ITicketRepository",
    "ICommentRepository",
    "ILookupRepository",
    "IBlobStore",
    "IUnavailabilityRepository",
]
