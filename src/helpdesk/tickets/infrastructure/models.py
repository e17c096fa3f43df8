"""
Ticket Infrastructure Models
=============================

SQLAlchemy ORM models for tickets, their thread, and the read-only lookup
tables (categories, subcategories, users) the lifecycle validates against.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from helpdesk.config import Priority, Role, TicketStatus
from helpdesk.infrastructure.database import Base


# ========== Lookup tables (maintained outside the core) ==========

class CategoryModel(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class SubcategoryModel(Base):
    __tablename__ = "subcategories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)


# ========== Tickets ==========

class TicketModel(Base):
    """
    Database model for Ticket entity.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    subcategory_id: Mapped[Optional[int]] = mapped_column(ForeignKey("subcategories.id"), nullable=True)

    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=Priority.MEDIUM.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TicketStatus.OPEN.value, index=True)

    # Identity provider user ids
    created_by: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    # Fixed SLA contract
    sla_tier_id: Mapped[int] = mapped_column(ForeignKey("sla_tiers.id"), nullable=False)
    response_due: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    resolution_due: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    time_worked_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    escalated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    comments: Mapped[List["CommentModel"]] = relationship(back_populates="ticket", cascade="all, delete-orphan")

    __table_args__ = (
        # Escalation scan: unresolved tickets ordered by response deadline
        Index("ix_tickets_status_response_due", "status", "response_due"),
    )


class CommentModel(Base):
    """
    Database model for Comment entity.

    Maps to the 'ticket_comments' table.
    """
    __tablename__ = "ticket_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    commenter_id: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    ticket: Mapped[TicketModel] = relationship(back_populates="comments")
    attachments: Mapped[List["AttachmentModel"]] = relationship(
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="AttachmentModel.id",
    )


class AttachmentModel(Base):
    """
    Database model for Attachment entity.

    Maps to the 'ticket_attachments' table. ``ticket_id`` is denormalised
    for direct per-ticket lookups.
    """
    __tablename__ = "ticket_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_id: Mapped[int] = mapped_column(ForeignKey("ticket_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    comment: Mapped[CommentModel] = relationship(back_populates="attachments")


# ========== Agent calendar ==========

class UnavailabilityModel(Base):
    """
    Database model for Unavailability entity.

    Maps to the 'calendar_unavailability' table; one row per user per day.
    """
    __tablename__ = "calendar_unavailability"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    unavailable_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reason_desc: Mapped[str] = mapped_column(String(255), nullable=False, default="Unavailable")

    __table_args__ = (
        UniqueConstraint("user_id", "unavailable_date", name="uq_calendar_unavailability_user_day"),
    )
