"""
Tickets Interfaces Layer
=========================

Interface adapters (controllers) for the ticket lifecycle and thread.
"""

from helpdesk.tickets.interfaces.controllers import (
    router as tickets_router,
    thread_router,
    directory_router,
    get_blob_store,
    get_ticket_service,
    get_thread_service,
    get_availability_service,
)

__all__ = [
    "tickets_router",
    "thread_router",
    "directory_router",
    "get_blob_store",
    "get_ticket_service",
    "get_thread_service",
    "get_availability_service",
]
