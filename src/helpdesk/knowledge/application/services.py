"""
Knowledge Base Application Services
====================================

Read-only access to the article list.
"""

from abc import ABC, abstractmethod
from typing import List

from helpdesk.knowledge.domain import Article
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class IArticleRepository(ABC):
    """Interface for article data access."""

    @abstractmethod
    async def list_newest_first(self) -> List[Article]:
        """All articles, most recently created first."""


class KnowledgeBaseService:
    def __init__(self, article_repository: IArticleRepository):
        self._article_repo = article_repository

    async def list_articles(self) -> List[Article]:
        articles = await self._article_repo.list_newest_first()
        logger.debug("Knowledge base listed", extra={"articles": len(articles)})
        return articles
