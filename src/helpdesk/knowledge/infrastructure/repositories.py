"""
Knowledge Base Repositories
===========================

SQLAlchemy implementation of the article repository.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.infrastructure.database import storage_call
from helpdesk.knowledge.application import IArticleRepository
from helpdesk.knowledge.domain import Article
from helpdesk.knowledge.infrastructure.models import KnowledgeArticleModel
from helpdesk.shared.domain import ensure_utc


class SQLAlchemyArticleRepository(IArticleRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_call("knowledge_base.list")
    async def list_newest_first(self) -> List[Article]:
        stmt = select(KnowledgeArticleModel).order_by(
            KnowledgeArticleModel.created_at.desc(),
            KnowledgeArticleModel.id.desc(),
        )
        result = await self._session.execute(stmt)
        return [
            Article(
                id=m.id,
                title=m.title,
                problem_desc=m.problem_desc or "",
                solution_desc=m.solution_desc or "",
                category_id=m.category_id,
                created_at=ensure_utc(m.created_at),
            )
            for m in result.scalars().all()
        ]
