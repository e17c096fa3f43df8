"""
Ticket Application Services
============================

Application services orchestrate the ticket lifecycle and the thread
ledger, coordinating domain entities, repositories and the SLA catalog.

Following SOLID principles:
- Single Responsibility: TicketService owns lifecycle transitions,
  ThreadService owns comments and attachments, AvailabilityService owns
  the agent calendar
- Dependency Inversion: depend on repository abstractions declared here
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from helpdesk.config import Priority, VALID_PRIORITIES
from helpdesk.core import (
    AlreadyExistsException,
    ApplicationException,
    EmptyCommentException,
    ForbiddenException,
    InvalidReferenceException,
    ResourceNotFoundException,
)
from helpdesk.shared.domain import Actor, Clock
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.sla.application import SLACatalogService
from helpdesk.tickets.domain import (
    Attachment,
    AttachmentUpload,
    Comment,
    CommentReceipt,
    Ticket,
    Unavailability,
    UserRef,
    format_duration,
    parse_duration,
    parse_priority,
    parse_status,
)

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get(self, ticket_id: int) -> Optional[Ticket]:
        """Get ticket by id."""

    @abstractmethod
    async def get_for_update(self, ticket_id: int) -> Optional[Ticket]:
        """Get ticket by id and lock its row until the transaction ends."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket and return it with its id."""

    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        """Write the mutable fields of a previously loaded ticket."""

    @abstractmethod
    async def exists(self, ticket_id: int) -> bool:
        """Check whether a ticket exists."""

    @abstractmethod
    async def list_by_creator(self, user_id: int) -> List[Ticket]:
        """Tickets created by ``user_id``, newest first."""

    @abstractmethod
    async def list_queue(self, agent_id: int) -> List[Ticket]:
        """Tickets assigned to ``agent_id`` or to nobody, newest first."""

    @abstractmethod
    async def list_all(self) -> List[Ticket]:
        """Every ticket, most recently updated first."""

    @abstractmethod
    async def list_breaching_ids(self, now: datetime) -> List[int]:
        """Ids of unresolved, not yet escalated tickets past their response deadline."""

    @abstractmethod
    async def last_repliers(self, ticket_ids: Sequence[int]) -> Dict[int, str]:
        """Username of the latest commenter per ticket."""


class ICommentRepository(ABC):
    """Interface for thread ledger data access."""

    @abstractmethod
    async def add(self, comment: Comment) -> Comment:
        """Persist a comment and return it with its id."""

    @abstractmethod
    async def add_attachment(self, attachment: Attachment) -> Attachment:
        """Persist one attachment row; failures leave earlier rows intact."""

    @abstractmethod
    async def get(self, comment_id: int) -> Optional[Comment]:
        """Get a comment without its attachments."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: int) -> List[Comment]:
        """Comments of a ticket, oldest first, each with its attachments."""

    @abstractmethod
    async def list_attachments_for_ticket(self, ticket_id: int) -> List[Attachment]:
        """Attachments of every comment on a ticket."""

    @abstractmethod
    async def list_attachments_for_comment(self, comment_id: int) -> List[Attachment]:
        """Attachments of one comment."""


class ILookupRepository(ABC):
    """Read-only access to lookup tables maintained outside the core."""

    @abstractmethod
    async def category_exists(self, category_id: int) -> bool:
        """Check whether a category exists."""

    @abstractmethod
    async def subcategory_parent(self, subcategory_id: int) -> Optional[int]:
        """Category id owning the subcategory, or None when it does not exist."""

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRef]:
        """Get a user from the directory."""

    @abstractmethod
    async def list_agents(self) -> List[UserRef]:
        """Users holding the agent role."""


class IBlobStore(ABC):
    """Storage for attachment bytes."""

    @abstractmethod
    async def store(self, ticket_id: int, comment_id: int, file_name: str, data: bytes) -> str:
        """Write the bytes and return the storage path to record."""


class IUnavailabilityRepository(ABC):
    """Interface for the agent calendar."""

    @abstractmethod
    async def list_all(self) -> List[Unavailability]:
        """Every entry with its username, ordered by day."""

    @abstractmethod
    async def exists(self, user_id: int, day: date) -> bool:
        """Whether the user already marked ``day``."""

    @abstractmethod
    async def users_away(self, day: date) -> Set[int]:
        """Ids of users marked unavailable on ``day``."""

    @abstractmethod
    async def add(self, entry: Unavailability) -> Unavailability:
        """Persist an entry; a duplicate user/day raises AlreadyExistsException."""


# ========== Application Services ==========

class TicketService:
    """
    Ticket state machine.

    Every mutation loads the ticket under a row lock, applies one domain
    transition (which refreshes ``updated_at``) and writes it back inside
    the caller's transaction.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        lookup_repository: ILookupRepository,
        sla_catalog: SLACatalogService,
        clock: Clock
    ):
        self._ticket_repo = ticket_repository
        self._lookup_repo = lookup_repository
        self._sla_catalog = sla_catalog
        self._clock = clock

    async def create_ticket(
        self,
        actor: Actor,
        title: str,
        description: str,
        category_id: int,
        priority: str,
        sla_tier_id: int,
        subcategory_id: Optional[int] = None
    ) -> Ticket:
        """
        Open a ticket for ``actor``.

        Raises:
            InvalidReferenceException: unknown category, subcategory outside
                the category, unknown SLA tier or unrecognised priority
        """
        try:
            ticket_priority = Priority(priority)
        except ValueError:
            raise InvalidReferenceException(
                f"Unknown priority '{priority}'",
                {"allowed": VALID_PRIORITIES}
            ) from None

        if not await self._lookup_repo.category_exists(category_id):
            raise InvalidReferenceException(
                f"Category {category_id} does not exist",
                {"category_id": category_id}
            )

        if subcategory_id is not None:
            parent_id = await self._lookup_repo.subcategory_parent(subcategory_id)
            if parent_id is None:
                raise InvalidReferenceException(
                    f"Subcategory {subcategory_id} does not exist",
                    {"subcategory_id": subcategory_id}
                )
            if parent_id != category_id:
                raise InvalidReferenceException(
                    f"Subcategory {subcategory_id} does not belong to category {category_id}",
                    {"subcategory_id": subcategory_id, "category_id": category_id}
                )

        now = self._clock.now()
        deadlines = await self._sla_catalog.deadlines_for(sla_tier_id, now)

        ticket = Ticket.open(
            title=title,
            description=description,
            category_id=category_id,
            subcategory_id=subcategory_id,
            priority=ticket_priority,
            sla_tier_id=sla_tier_id,
            created_by=actor.user_id,
            deadlines=deadlines,
            now=now,
        )
        ticket = await self._ticket_repo.create(ticket)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket.id,
                "created_by": actor.user_id,
                "sla_tier_id": sla_tier_id,
                "response_due": ticket.response_due.isoformat(),
                "resolution_due": ticket.resolution_due.isoformat(),
            }
        )
        return ticket

    async def get_ticket(self, ticket_id: int) -> Ticket:
        ticket = await self._ticket_repo.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def list_created_by(self, user_id: int) -> List[Ticket]:
        return await self._ticket_repo.list_by_creator(user_id)

    async def list_queue(self, agent_id: int) -> List[Ticket]:
        return await self._ticket_repo.list_queue(agent_id)

    async def list_all(self, actor: Actor) -> Tuple[List[Ticket], Dict[int, str]]:
        """Administrator overview: every ticket plus its latest replier."""
        if not actor.is_admin:
            raise ForbiddenException("tickets:list_all")

        tickets = await self._ticket_repo.list_all()
        repliers = await self._ticket_repo.last_repliers([t.id for t in tickets])
        return tickets, repliers

    async def list_agents(self) -> List[UserRef]:
        return await self._lookup_repo.list_agents()

    async def set_status(self, ticket_id: int, new_status: str, actor: Actor) -> Ticket:
        """
        Move a ticket to ``new_status``.

        Raises:
            InvalidStateException: unrecognised status or a move back to Open
            ResourceNotFoundException: ticket absent
        """
        status = parse_status(new_status)
        ticket = await self._load_for_update(ticket_id)

        previous_status = ticket.status
        previous_assignee = ticket.assigned_to
        ticket.change_status(status, actor.user_id, self._clock.now())
        ticket = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket status changed",
            extra={
                "ticket_id": ticket_id,
                "actor_id": actor.user_id,
                "from_status": previous_status.value,
                "to_status": ticket.status.value,
                "assigned_to": ticket.assigned_to,
                "auto_assigned": previous_assignee is None and ticket.assigned_to is not None,
            }
        )
        return ticket

    async def set_priority(self, ticket_id: int, priority: str, actor: Actor) -> Ticket:
        new_priority = parse_priority(priority)
        ticket = await self._load_for_update(ticket_id)

        previous = ticket.priority
        ticket.change_priority(new_priority, self._clock.now())
        ticket = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket priority changed",
            extra={"ticket_id": ticket_id, "actor_id": actor.user_id,
                   "from_priority": previous.value, "to_priority": new_priority.value}
        )
        return ticket

    async def set_assignee(self, ticket_id: int, agent_id: Optional[int], actor: Actor) -> Ticket:
        """Administrator override of the assignee, regardless of status."""
        if not actor.is_admin:
            raise ForbiddenException("tickets:assign")

        if agent_id is not None and await self._lookup_repo.get_user(agent_id) is None:
            raise ResourceNotFoundException("User", agent_id)

        ticket = await self._load_for_update(ticket_id)
        previous = ticket.assigned_to
        ticket.assign(agent_id, self._clock.now())
        ticket = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket assignee changed",
            extra={"ticket_id": ticket_id, "actor_id": actor.user_id,
                   "from_assignee": previous, "to_assignee": agent_id}
        )
        return ticket

    async def set_due_date(self, ticket_id: int, due_date: Optional[datetime], actor: Actor) -> Ticket:
        """Administrator soft deadline; independent of the SLA deadlines."""
        if not actor.is_admin:
            raise ForbiddenException("tickets:set_due_date")

        ticket = await self._load_for_update(ticket_id)
        ticket.set_due_date(due_date, self._clock.now())
        ticket = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket due date changed",
            extra={"ticket_id": ticket_id, "actor_id": actor.user_id,
                   "due_date": due_date.isoformat() if due_date else None}
        )
        return ticket

    async def set_time_worked(self, ticket_id: int, duration: str, actor: Actor) -> Ticket:
        """
        Overwrite the time worked.

        Raises:
            InvalidFormatException: ``duration`` is not ``HH:MM:SS``
        """
        worked = parse_duration(duration)
        ticket = await self._load_for_update(ticket_id)
        ticket.set_time_worked(worked, self._clock.now())
        ticket = await self._ticket_repo.save(ticket)

        logger.info(
            "Ticket time worked set",
            extra={"ticket_id": ticket_id, "actor_id": actor.user_id,
                   "time_worked": format_duration(ticket.time_worked)}
        )
        return ticket

    async def _load_for_update(self, ticket_id: int) -> Ticket:
        ticket = await self._ticket_repo.get_for_update(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket


class ThreadService:
    """
    Thread ledger: append-only comments with their attachments.

    The comment row is written first so attachments can reference it; each
    attachment is then stored on its own, and a failing file is logged and
    reported without undoing the comment or the files before it.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        comment_repository: ICommentRepository,
        blob_store: IBlobStore,
        clock: Clock
    ):
        self._ticket_repo = ticket_repository
        self._comment_repo = comment_repository
        self._blob_store = blob_store
        self._clock = clock

    async def add_comment(
        self,
        ticket_id: int,
        actor: Actor,
        text: str,
        attachments: Iterable[AttachmentUpload] = (),
        time_worked: Optional[str] = None
    ) -> CommentReceipt:
        """
        Append a comment to a ticket's thread.

        Raises:
            EmptyCommentException: ``text`` is blank
            InvalidFormatException: ``time_worked`` is not ``HH:MM:SS``
            ResourceNotFoundException: ticket absent (nothing is written)
        """
        if not text or not text.strip():
            raise EmptyCommentException({"ticket_id": ticket_id})

        worked = parse_duration(time_worked) if time_worked else None
        uploads = list(attachments)

        ticket = await self._ticket_repo.get_for_update(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        now = self._clock.now()
        comment = await self._comment_repo.add(Comment(
            id=None,
            ticket_id=ticket_id,
            commenter_id=actor.user_id,
            text=text,
            created_at=now,
        ))

        failed: List[str] = []
        for upload in uploads:
            attachment = await self._store_attachment(comment, upload, now)
            if attachment is None:
                failed.append(upload.file_name)
            else:
                comment.attachments.append(attachment)

        if worked is not None:
            ticket.add_time_worked(worked, now)
        else:
            ticket.touch(now)
        await self._ticket_repo.save(ticket)

        logger.info(
            "Comment added",
            extra={
                "ticket_id": ticket_id,
                "comment_id": comment.id,
                "commenter_id": actor.user_id,
                "attachments_saved": len(comment.attachments),
                "attachments_failed": len(failed),
                "time_worked_delta": format_duration(worked) if worked else None,
            }
        )
        return CommentReceipt(comment=comment, failed_attachments=failed)

    async def _store_attachment(
        self,
        comment: Comment,
        upload: AttachmentUpload,
        now: datetime
    ) -> Optional[Attachment]:
        try:
            path = await self._blob_store.store(
                comment.ticket_id, comment.id, upload.file_name, upload.data
            )
            return await self._comment_repo.add_attachment(Attachment(
                id=None,
                comment_id=comment.id,
                ticket_id=comment.ticket_id,
                file_name=upload.file_name,
                storage_path=path,
                uploaded_at=now,
            ))
        except ApplicationException as e:
            logger.warning(
                "Attachment not saved",
                extra={
                    "ticket_id": comment.ticket_id,
                    "comment_id": comment.id,
                    "file_name": upload.file_name,
                    "error_kind": e.kind,
                    "error": e.message,
                }
            )
            return None

    async def list_comments(self, ticket_id: int) -> List[Comment]:
        await self._require_ticket(ticket_id)
        return await self._comment_repo.list_for_ticket(ticket_id)

    async def list_attachments(self, ticket_id: int) -> List[Attachment]:
        await self._require_ticket(ticket_id)
        return await self._comment_repo.list_attachments_for_ticket(ticket_id)

    async def list_comment_attachments(self, comment_id: int) -> List[Attachment]:
        if await self._comment_repo.get(comment_id) is None:
            raise ResourceNotFoundException("Comment", comment_id)
        return await self._comment_repo.list_attachments_for_comment(comment_id)

    async def _require_ticket(self, ticket_id: int) -> None:
        if not await self._ticket_repo.exists(ticket_id):
            raise ResourceNotFoundException("Ticket", ticket_id)


class AvailabilityService:
    """
    Agent calendar: days an agent is away.

    Only agents and administrators keep a calendar. Each user marks a given
    day at most once.
    """

    DEFAULT_REASON = "Unavailable"

    def __init__(
        self,
        unavailability_repository: IUnavailabilityRepository,
        lookup_repository: ILookupRepository
    ):
        self._calendar_repo = unavailability_repository
        self._lookup_repo = lookup_repository

    async def list_unavailability(self) -> List[Unavailability]:
        return await self._calendar_repo.list_all()

    async def mark_unavailable(self, actor: Actor, day: date, reason: Optional[str] = None) -> Unavailability:
        if not actor.is_agent:
            raise ForbiddenException("calendar:mark_unavailable", role="agent")

        if await self._calendar_repo.exists(actor.user_id, day):
            raise AlreadyExistsException(
                f"Already marked unavailable on {day.isoformat()}",
                {"user_id": actor.user_id, "date": day.isoformat()}
            )

        reason = (reason or "").strip() or self.DEFAULT_REASON
        entry = await self._calendar_repo.add(
            Unavailability(id=None, user_id=actor.user_id, unavailable_date=day, reason=reason)
        )
        user = await self._lookup_repo.get_user(actor.user_id)
        entry.username = user.username if user else None
        logger.info(
            "Agent marked unavailable",
            extra={"user_id": actor.user_id, "date": day.isoformat(), "entry_id": entry.id}
        )
        return entry

    async def available_agents(self, day: date) -> List[UserRef]:
        """Agents with no calendar entry on ``day``."""
        away = await self._calendar_repo.users_away(day)
        return [agent for agent in await self._lookup_repo.list_agents() if agent.id not in away]
