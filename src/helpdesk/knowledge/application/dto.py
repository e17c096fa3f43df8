"""
Knowledge Base DTOs
===================

Response models for the article list.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ArticleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    problem_desc: str
    solution_desc: str
    category_id: Optional[int]
    created_at: datetime
