"""SQLAlchemy ORM model for knowledge base articles."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from helpdesk.infrastructure.database import Base


class KnowledgeArticleModel(Base):
    """
    Database model for Article entity.

    Maps to the 'knowledge_base' table. Problem and solution bodies are
    free text of any length.
    """
    __tablename__ = "knowledge_base"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    problem_desc: Mapped[str] = mapped_column(Text, nullable=False, default="")
    solution_desc: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
