"""
Help Desk - Main Application
=============================

Ticket lifecycle and SLA engine for a help-desk tracker.

Modules:
- Tickets: lifecycle state machine, the comment/attachment thread and
  the agent calendar
- SLA: tier catalog and deadline computation
- Escalation: breach detection and one-time escalation
- Reporting: read-only rollups
- Knowledge: read-only problem/solution articles

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, blob store, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from helpdesk.config import settings
from helpdesk.core import ApplicationException

# Infrastructure
from helpdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    get_session_scope,
    init_database,
)

# SLA catalog seeding
from helpdesk.sla.application import SLACatalogService
from helpdesk.sla.infrastructure import SQLAlchemySLATierRepository, YAMLCatalogLoader

# Escalation
from helpdesk.escalation.application import EscalationScanner
from helpdesk.escalation.infrastructure import EscalationScheduler, configured_policy, escalation_service_factory
from helpdesk.shared.domain import SystemClock

# Module Routers
from helpdesk.escalation.interfaces import escalation_router
from helpdesk.knowledge.interfaces import knowledge_router
from helpdesk.reporting.interfaces import reporting_router
from helpdesk.sla.interfaces import sla_router
from helpdesk.tickets.interfaces import directory_router, thread_router, tickets_router

# Middleware and logging
from helpdesk.shared.api import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
    request_validation_exception_handler,
)
from helpdesk.shared.infrastructure.logging import get_logger, log_latency, setup_logging

logger = get_logger(__name__)

escalation_scheduler: Optional[EscalationScheduler] = None


async def seed_sla_catalog() -> int:
    """Load the YAML tier catalog into an empty sla_tiers table."""
    tiers = YAMLCatalogLoader(settings.sla_catalog_path).load()
    async with get_session_context() as session:
        return await SLACatalogService(SQLAlchemySLATierRepository(session)).seed(tiers)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Seed the SLA catalog
    4. Start the escalation scheduler

    SHUTDOWN:
    1. Stop the escalation scheduler
    2. Close database connections
    """
    global escalation_scheduler

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Help Desk service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use migrations in production)
    await create_tables()

    seeded = await seed_sla_catalog()
    logger.info("SLA catalog ready", extra={"tiers_seeded": seeded})

    # Fail fast on a misconfigured policy
    policy = configured_policy()

    if settings.escalation_interval_seconds > 0:
        scanner = EscalationScanner(
            get_session_scope(),
            escalation_service_factory(SystemClock(), policy),
        )

        async def escalation_job():
            """Background escalation scan."""
            with log_latency(logger, "escalation_scan", trigger="scheduler"):
                await scanner.escalate_breaching()

        escalation_scheduler = EscalationScheduler(interval_seconds=settings.escalation_interval_seconds)
        await escalation_scheduler.start(escalation_job)
    else:
        logger.info("Escalation scheduler disabled")

    logger.info("Help Desk service started", extra={"escalation_policy": policy.name.value})

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Help Desk service")

    if escalation_scheduler:
        await escalation_scheduler.stop()
        escalation_scheduler = None

    await close_database()

    logger.info("Help Desk service shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Help Desk API",
    description="""
    ## Ticket Lifecycle & SLA Engine

    Users open tickets, agents work them under time-bound SLAs,
    administrators manage SLA tiers and read the reports.

    ---

    ### Identity

    Every request carries the caller as set by the identity provider:
    - `X-User-Id` - acting user id
    - `X-User-Role` - `admin`, `agent` or `user`

    ### Lifecycle

    `Open` -> `InProgress` -> `Resolved` -> `Closed`. Any state may jump to
    any other except `Open`. Entering `InProgress` assigns an unassigned
    ticket to the caller.

    ### SLA

    Response and resolution deadlines are fixed at creation from the chosen
    tier. A ticket breaches when its response deadline passes while it is
    neither Resolved nor Closed; breaching tickets are escalated once.

    ### Errors

    `{"error": kind, "detail": message, "correlation_id": ...}` with kinds
    `NotFound` (404), `InvalidReference`, `InvalidPriority`, `InvalidFormat`,
    `EmptyComment` (422), `InvalidState` (409/422), `Forbidden` (403),
    `AlreadyExists` (409) and
    `StorageUnavailable` (503, retry later).
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(tickets_router)
app.include_router(thread_router)
app.include_router(directory_router)
app.include_router(escalation_router)
app.include_router(sla_router)
app.include_router(reporting_router)
app.include_router(knowledge_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "escalation_scheduler": "running",
                        "escalation_policy": "clear"
                    }
                }
            }
        }
    }
})
async def health_check():
    """Health check endpoint for load balancers and orchestrators."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {
            "escalation_scheduler": (
                "running" if escalation_scheduler and escalation_scheduler.is_running else "stopped"
            ),
            "escalation_policy": settings.escalation_policy,
        }
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Help Desk",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "tickets": {"prefix": "/tickets"},
            "sla": {"prefix": "/sla"},
            "reports": {"prefix": "/reports"},
            "knowledge_base": {"prefix": "/knowledge-base"}
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "helpdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
