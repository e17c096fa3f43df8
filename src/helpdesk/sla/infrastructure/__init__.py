"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for the SLA catalog:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer and the YAML catalog seed loader
"""

from helpdesk.sla.infrastructure.models import SLATierModel
from helpdesk.sla.infrastructure.repositories import (
    SQLAlchemySLATierRepository,
    YAMLCatalogLoader,
)

__all__ = [
    "SLATierModel",
    "SQLAlchemySLATierRepository",
    "YAMLCatalogLoader",
]
