"""
Knowledge Base Domain Layer
===========================

Contains:
- Entities: Article
"""

from helpdesk.knowledge.domain.entities import Article

__all__ = ["Article"]
