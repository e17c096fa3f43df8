"""
Tickets Infrastructure Layer
=============================

Concrete implementations for persistence and attachment storage.

Contains:
- ORM models for tickets, comments, attachments, lookup tables and the
  agent calendar
- SQLAlchemy repository implementations
- Local filesystem blob store
"""

from helpdesk.tickets.infrastructure.models import (
    TicketModel,
    CommentModel,
    AttachmentModel,
    CategoryModel,
    SubcategoryModel,
    UserModel,
    UnavailabilityModel,
)
from helpdesk.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyCommentRepository,
    SQLAlchemyLookupRepository,
    SQLAlchemyUnavailabilityRepository,
)
from helpdesk.tickets.infrastructure.external import LocalBlobStore

__all__ = [
    # Models
    "TicketModel",
    "CommentModel",
    "AttachmentModel",
    "CategoryModel",
    "SubcategoryModel",
    "UserModel",
    "UnavailabilityModel",
    # Repositories
    "SQLAlchemyTicketRepository",
    "SQLAlchemyCommentRepository",
    "SQLAlchemyLookupRepository",
    "SQLAlchemyUnavailabilityRepository",
    # External
    "LocalBlobStore",
]
