"""
Knowledge Base Application Layer
================================

Contains:
- Services: KnowledgeBaseService
- DTOs: ArticleResponse
"""

from helpdesk.knowledge.application.dto import ArticleResponse
from helpdesk.knowledge.application.services import IArticleRepository, KnowledgeBaseService

__all__ = [
    "ArticleResponse",
    "KnowledgeBaseService",
    "IArticleRepository",
]
