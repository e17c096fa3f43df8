"""
Knowledge Base Controllers (API Routes)
========================================

FastAPI routes for the knowledge base.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.infrastructure.database import get_session
from helpdesk.knowledge.application import ArticleResponse, KnowledgeBaseService
from helpdesk.knowledge.infrastructure import SQLAlchemyArticleRepository

router = APIRouter(prefix="/knowledge-base", tags=["Knowledge Base"])


async def get_knowledge_service(
    session: AsyncSession = Depends(get_session)
) -> KnowledgeBaseService:
    """Get knowledge base service instance."""
    return KnowledgeBaseService(SQLAlchemyArticleRepository(session))


@router.get(
    "",
    response_model=List[ArticleResponse],
    summary="List knowledge base articles",
    description="Every article, most recently created first.",
)
async def list_articles(
    service: KnowledgeBaseService = Depends(get_knowledge_service)
):
    return [ArticleResponse.model_validate(a) for a in await service.list_articles()]
