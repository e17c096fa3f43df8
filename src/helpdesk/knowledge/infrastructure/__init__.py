"""
Knowledge Base Infrastructure Layer
===================================

- Models: SQLAlchemy ORM model for articles
- Repositories: Data access layer
"""

from helpdesk.knowledge.infrastructure.models import KnowledgeArticleModel
from helpdesk.knowledge.infrastructure.repositories import SQLAlchemyArticleRepository

__all__ = [
    "KnowledgeArticleModel",
    "SQLAlchemyArticleRepository",
]
