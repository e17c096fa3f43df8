"""
Ticket Infrastructure Repositories
====================================

Concrete implementations of the ticket, thread and lookup repository
interfaces, plus the agent calendar, using SQLAlchemy.

Timestamps are normalised to UTC on the way in and on the way out, since
SQLite stores them without an offset.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.config import Priority, Role, TicketStatus, TERMINAL_STATUSES
from helpdesk.core import AlreadyExistsException, RepositoryException, ResourceNotFoundException
from helpdesk.infrastructure.database import storage_call
from helpdesk.shared.domain import ensure_utc
from helpdesk.tickets.application.services import (
    ICommentRepository,
    ILookupRepository,
    ITicketRepository,
    IUnavailabilityRepository,
)
from helpdesk.tickets.domain import Attachment, Comment, Ticket, Unavailability, UserRef
from helpdesk.tickets.infrastructure.models import (
    AttachmentModel,
    CategoryModel,
    CommentModel,
    SubcategoryModel,
    TicketModel,
    UnavailabilityModel,
    UserModel,
)


def _optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return ensure_utc(value) if value is not None else None


def _ticket_to_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=model.id,
        title=model.title,
        description=model.description,
        category_id=model.category_id,
        subcategory_id=model.subcategory_id,
        priority=Priority(model.priority),
        status=TicketStatus(model.status),
        created_by=model.created_by,
        sla_tier_id=model.sla_tier_id,
        response_due=ensure_utc(model.response_due),
        resolution_due=ensure_utc(model.resolution_due),
        created_at=ensure_utc(model.created_at),
        updated_at=ensure_utc(model.updated_at),
        assigned_to=model.assigned_to,
        time_worked=timedelta(seconds=model.time_worked_seconds),
        due_date=_optional_utc(model.due_date),
        escalated_at=_optional_utc(model.escalated_at),
    )


def _attachment_to_entity(model: AttachmentModel) -> Attachment:
    return Attachment(
        id=model.id,
        comment_id=model.comment_id,
        ticket_id=model.ticket_id,
        file_name=model.file_name,
        storage_path=model.storage_path,
        uploaded_at=ensure_utc(model.uploaded_at),
    )


def _comment_to_entity(model: CommentModel, commenter_name: Optional[str] = None,
                       with_attachments: bool = False) -> Comment:
    return Comment(
        id=model.id,
        ticket_id=model.ticket_id,
        commenter_id=model.commenter_id,
        text=model.text,
        created_at=ensure_utc(model.created_at),
        commenter_name=commenter_name,
        attachments=[_attachment_to_entity(a) for a in model.attachments] if with_attachments else [],
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_call("tickets.get")
    async def get(self, ticket_id: int) -> Optional[Ticket]:
        model = await self._session.get(TicketModel, ticket_id, populate_existing=True)
        return _ticket_to_entity(model) if model else None

    @storage_call("tickets.get_for_update")
    async def get_for_update(self, ticket_id: int) -> Optional[Ticket]:
        # FOR UPDATE is ignored by SQLite, which serialises writers anyway
        stmt = (
            select(TicketModel)
            .where(TicketModel.id == ticket_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _ticket_to_entity(model) if model else None

    @storage_call("tickets.create")
    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            title=ticket.title,
            description=ticket.description,
            category_id=ticket.category_id,
            subcategory_id=ticket.subcategory_id,
            created_by=ticket.created_by,
            sla_tier_id=ticket.sla_tier_id,
            response_due=ensure_utc(ticket.response_due),
            resolution_due=ensure_utc(ticket.resolution_due),
            created_at=ensure_utc(ticket.created_at),
        )
        self._apply(model, ticket)

        try:
            self._session.add(model)
            await self._session.flush()
        except IntegrityError as e:
            raise RepositoryException(
                "Ticket violates a reference constraint",
                {"error": str(e.orig)}
            ) from e

        ticket.id = model.id
        return ticket

    @storage_call("tickets.save")
    async def save(self, ticket: Ticket) -> Ticket:
        model = await self._session.get(TicketModel, ticket.id)
        if model is None:
            raise ResourceNotFoundException("Ticket", ticket.id)

        self._apply(model, ticket)
        await self._session.flush()
        return ticket

    @staticmethod
    def _apply(model: TicketModel, ticket: Ticket) -> None:
        """Copy the mutable fields of ``ticket`` onto ``model``."""
        model.priority = ticket.priority.value
        model.status = ticket.status.value
        model.assigned_to = ticket.assigned_to
        model.time_worked_seconds = int(ticket.time_worked.total_seconds())
        model.due_date = _optional_utc(ticket.due_date)
        model.escalated_at = _optional_utc(ticket.escalated_at)
        model.updated_at = ensure_utc(ticket.updated_at)

    @storage_call("tickets.exists")
    async def exists(self, ticket_id: int) -> bool:
        result = await self._session.execute(
            select(TicketModel.id).where(TicketModel.id == ticket_id)
        )
        return result.scalar_one_or_none() is not None

    @storage_call("tickets.list_by_creator")
    async def list_by_creator(self, user_id: int) -> List[Ticket]:
        stmt = (
            select(TicketModel)
            .where(TicketModel.created_by == user_id)
            .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        )
        result = await self._session.execute(stmt)
        return [_ticket_to_entity(m) for m in result.scalars().all()]

    @storage_call("tickets.list_queue")
    async def list_queue(self, agent_id: int) -> List[Ticket]:
        stmt = (
            select(TicketModel)
            .where(or_(TicketModel.assigned_to == agent_id, TicketModel.assigned_to.is_(None)))
            .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        )
        result = await self._session.execute(stmt)
        return [_ticket_to_entity(m) for m in result.scalars().all()]

    @storage_call("tickets.list_all")
    async def list_all(self) -> List[Ticket]:
        stmt = select(TicketModel).order_by(TicketModel.updated_at.desc(), TicketModel.id.desc())
        result = await self._session.execute(stmt)
        return [_ticket_to_entity(m) for m in result.scalars().all()]

    @storage_call("tickets.list_breaching_ids")
    async def list_breaching_ids(self, now: datetime) -> List[int]:
        stmt = (
            select(TicketModel.id)
            .where(
                TicketModel.status.notin_([s.value for s in TERMINAL_STATUSES]),
                TicketModel.response_due < ensure_utc(now),
                TicketModel.escalated_at.is_(None),
            )
            .order_by(TicketModel.response_due, TicketModel.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @storage_call("tickets.last_repliers")
    async def last_repliers(self, ticket_ids: Sequence[int]) -> Dict[int, str]:
        if not ticket_ids:
            return {}

        stmt = (
            select(CommentModel.ticket_id, CommentModel.commenter_id, UserModel.username)
            .outerjoin(UserModel, UserModel.id == CommentModel.commenter_id)
            .where(CommentModel.ticket_id.in_(ticket_ids))
            .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
        )
        result = await self._session.execute(stmt)

        repliers: Dict[int, str] = {}
        for ticket_id, commenter_id, username in result.all():
            if ticket_id not in repliers:
                repliers[ticket_id] = username or f"user-{commenter_id}"
        return repliers


class SQLAlchemyCommentRepository(ICommentRepository):
    """
    SQLAlchemy implementation of the thread ledger.

    Each attachment row is inserted inside its own SAVEPOINT so a failing
    row rolls back alone.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_call("comments.add")
    async def add(self, comment: Comment) -> Comment:
        model = CommentModel(
            ticket_id=comment.ticket_id,
            commenter_id=comment.commenter_id,
            text=comment.text,
            created_at=ensure_utc(comment.created_at),
        )
        try:
            self._session.add(model)
            await self._session.flush()
        except IntegrityError as e:
            raise RepositoryException(
                "Comment references a missing ticket",
                {"ticket_id": comment.ticket_id}
            ) from e

        comment.id = model.id
        return comment

    @storage_call("comments.add_attachment")
    async def add_attachment(self, attachment: Attachment) -> Attachment:
        model = AttachmentModel(
            comment_id=attachment.comment_id,
            ticket_id=attachment.ticket_id,
            file_name=attachment.file_name,
            storage_path=attachment.storage_path,
            uploaded_at=ensure_utc(attachment.uploaded_at),
        )
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError as e:
            raise RepositoryException(
                f"Attachment '{attachment.file_name}' could not be recorded",
                {"comment_id": attachment.comment_id, "file_name": attachment.file_name}
            ) from e

        attachment.id = model.id
        return attachment

    @storage_call("comments.get")
    async def get(self, comment_id: int) -> Optional[Comment]:
        model = await self._session.get(CommentModel, comment_id)
        return _comment_to_entity(model) if model else None

    @storage_call("comments.list_for_ticket")
    async def list_for_ticket(self, ticket_id: int) -> List[Comment]:
        stmt = (
            select(CommentModel, UserModel.username)
            .outerjoin(UserModel, UserModel.id == CommentModel.commenter_id)
            .where(CommentModel.ticket_id == ticket_id)
            .options(selectinload(CommentModel.attachments))
            .order_by(CommentModel.created_at, CommentModel.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [
            _comment_to_entity(model, commenter_name=username, with_attachments=True)
            for model, username in result.all()
        ]

    @storage_call("comments.list_attachments_for_ticket")
    async def list_attachments_for_ticket(self, ticket_id: int) -> List[Attachment]:
        stmt = (
            select(AttachmentModel)
            .where(AttachmentModel.ticket_id == ticket_id)
            .order_by(AttachmentModel.uploaded_at, AttachmentModel.id)
        )
        result = await self._session.execute(stmt)
        return [_attachment_to_entity(m) for m in result.scalars().all()]

    @storage_call("comments.list_attachments_for_comment")
    async def list_attachments_for_comment(self, comment_id: int) -> List[Attachment]:
        stmt = (
            select(AttachmentModel)
            .where(AttachmentModel.comment_id == comment_id)
            .order_by(AttachmentModel.id)
        )
        result = await self._session.execute(stmt)
        return [_attachment_to_entity(m) for m in result.scalars().all()]


class SQLAlchemyLookupRepository(ILookupRepository):
    """Reads categories, subcategories and users."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_call("lookups.category_exists")
    async def category_exists(self, category_id: int) -> bool:
        result = await self._session.execute(
            select(CategoryModel.id).where(CategoryModel.id == category_id)
        )
        return result.scalar_one_or_none() is not None

    @storage_call("lookups.subcategory_parent")
    async def subcategory_parent(self, subcategory_id: int) -> Optional[int]:
        result = await self._session.execute(
            select(SubcategoryModel.category_id).where(SubcategoryModel.id == subcategory_id)
        )
        return result.scalar_one_or_none()

    @storage_call("lookups.get_user")
    async def get_user(self, user_id: int) -> Optional[UserRef]:
        model = await self._session.get(UserModel, user_id)
        return UserRef(id=model.id, username=model.username, role=model.role) if model else None

    @storage_call("lookups.list_agents")
    async def list_agents(self) -> List[UserRef]:
        stmt = select(UserModel).where(UserModel.role == Role.AGENT.value).order_by(UserModel.username)
        result = await self._session.execute(stmt)
        return [UserRef(id=m.id, username=m.username, role=m.role) for m in result.scalars().all()]


class SQLAlchemyUnavailabilityRepository(IUnavailabilityRepository):
    """Agent calendar backed by the calendar_unavailability table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_call("calendar.list")
    async def list_all(self) -> List[Unavailability]:
        stmt = (
            select(UnavailabilityModel, UserModel.username)
            .join(UserModel, UserModel.id == UnavailabilityModel.user_id)
            .order_by(UnavailabilityModel.unavailable_date, UserModel.username)
        )
        result = await self._session.execute(stmt)
        return [
            Unavailability(
                id=model.id,
                user_id=model.user_id,
                unavailable_date=model.unavailable_date,
                reason=model.reason_desc,
                username=username,
            )
            for model, username in result.all()
        ]

    @storage_call("calendar.exists")
    async def exists(self, user_id: int, day: date) -> bool:
        result = await self._session.execute(
            select(UnavailabilityModel.id).where(
                UnavailabilityModel.user_id == user_id,
                UnavailabilityModel.unavailable_date == day,
            )
        )
        return result.scalar_one_or_none() is not None

    @storage_call("calendar.users_away")
    async def users_away(self, day: date) -> Set[int]:
        result = await self._session.execute(
            select(UnavailabilityModel.user_id).where(UnavailabilityModel.unavailable_date == day)
        )
        return set(result.scalars().all())

    @storage_call("calendar.add")
    async def add(self, entry: Unavailability) -> Unavailability:
        model = UnavailabilityModel(
            user_id=entry.user_id,
            unavailable_date=entry.unavailable_date,
            reason_desc=entry.reason,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError as e:
            raise AlreadyExistsException(
                f"User {entry.user_id} is already marked unavailable on {entry.unavailable_date.isoformat()}",
                {"user_id": entry.user_id, "date": entry.unavailable_date.isoformat()}
            ) from e

        entry.id = model.id
        return entry
