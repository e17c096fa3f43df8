"""
Tickets Module
==============

Bounded Context for the ticket lifecycle and the comment thread.

Responsibilities:
- Open tickets with SLA deadlines fixed at creation
- Enforce status transitions and the InProgress assignment rule
- Priority, assignee, soft due date and time-worked updates
- Append-only comments with attachments
"""

__version__ = "1.0.0"
