"""
Knowledge Base Interfaces Layer
===============================

Interface adapters (controllers) for the knowledge base.
"""

from helpdesk.knowledge.interfaces.controllers import router as knowledge_router, get_knowledge_service

__all__ = ["knowledge_router", "get_knowledge_service"]
