"""
Knowledge Base Module
=====================

Bounded Context for the problem/solution articles agents point users at.

Responsibilities:
- Serve the article list, newest first

Articles are authored outside this service; the API is read-only.
"""

__version__ = "1.0.0"
