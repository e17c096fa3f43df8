"""Knowledge base entities."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Article:
    """A known problem and its fix."""

    id: int
    title: str
    problem_desc: str
    solution_desc: str
    created_at: datetime
    category_id: Optional[int] = None
