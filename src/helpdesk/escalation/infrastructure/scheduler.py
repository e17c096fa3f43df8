"""
Escalation Scheduler
=====================

APScheduler wrapper running the escalation scan in the background, plus
the factory that wires an EscalationService onto a session.
"""

from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import settings
from helpdesk.escalation.application import EscalationService
from helpdesk.escalation.domain import EscalationPolicy, build_escalation_policy
from helpdesk.shared.domain import Clock
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.infrastructure import SQLAlchemyCommentRepository, SQLAlchemyTicketRepository

logger = get_logger(__name__)


def configured_policy() -> EscalationPolicy:
    return build_escalation_policy(settings.escalation_policy, settings.escalation_handler_id)


def escalation_service_factory(
    clock: Clock,
    policy: Optional[EscalationPolicy] = None
) -> Callable[[AsyncSession], EscalationService]:
    """Return a callable building an EscalationService bound to a session."""
    policy = policy or configured_policy()

    def build(session: AsyncSession) -> EscalationService:
        return EscalationService(
            ticket_repository=SQLAlchemyTicketRepository(session),
            comment_repository=SQLAlchemyCommentRepository(session),
            clock=clock,
            policy=policy,
            system_user_id=settings.system_user_id,
        )

    return build


class EscalationScheduler:
    """
    Wrapper for APScheduler for the background escalation scan.

    Manages the lifecycle of the scheduler and its single job.
    """

    def __init__(self, interval_seconds: int = 300):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[object]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("Escalation scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="escalation_scan",
            name="SLA Escalation Scan",
            misfire_grace_time=60,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self._scheduler.start()
        self._running = True

        logger.info(
            "Escalation scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("Escalation scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running
