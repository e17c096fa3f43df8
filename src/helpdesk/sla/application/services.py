"""
SLA Application Services
=========================

Application services for the SLA catalog.

Following SOLID principles:
- Single Responsibility: the catalog service owns tier lookup and editing
- Dependency Inversion: depends on the repository interface, not SQLAlchemy
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from helpdesk.core import (
    ForbiddenException,
    InvalidReferenceException,
    ResourceNotFoundException,
)
from helpdesk.shared.domain import Actor
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.sla.domain import DeadlineCalculator, SLADeadlines, SLATier

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISLATierRepository(ABC):
    """Interface for SLA tier data access."""

    @abstractmethod
    async def get(self, tier_id: int) -> Optional[SLATier]:
        """Get tier by id."""

    @abstractmethod
    async def list(self) -> List[SLATier]:
        """List all tiers ordered by id."""

    @abstractmethod
    async def create(self, tier: SLATier) -> SLATier:
        """Persist a new tier and return it with its id."""

    @abstractmethod
    async def update(self, tier: SLATier) -> SLATier:
        """Overwrite an existing tier."""

    @abstractmethod
    async def count(self) -> int:
        """Number of tiers in the catalog."""


# ========== Application Services ==========

class SLACatalogService:
    """
    SLA catalog: tier lookup for ticket creation plus administrator edits.

    Tier edits only change future tickets; deadlines already stamped on a
    ticket are never recomputed.
    """

    def __init__(self, tier_repository: ISLATierRepository):
        self._tier_repo = tier_repository

    async def list_tiers(self) -> List[SLATier]:
        return await self._tier_repo.list()

    async def get_tier(self, tier_id: int) -> SLATier:
        tier = await self._tier_repo.get(tier_id)
        if tier is None:
            raise ResourceNotFoundException("SLA tier", tier_id)
        return tier

    async def resolve(self, tier_id: int) -> SLATier:
        """Look up a tier referenced by another record."""
        tier = await self._tier_repo.get(tier_id)
        if tier is None:
            raise InvalidReferenceException(
                f"SLA tier {tier_id} does not exist",
                {"sla_tier_id": tier_id}
            )
        return tier

    async def deadlines_for(self, tier_id: int, created_at: datetime) -> SLADeadlines:
        """Resolve ``tier_id`` and compute the deadlines for ``created_at``."""
        tier = await self.resolve(tier_id)
        return DeadlineCalculator.compute(tier, created_at)

    async def create_tier(
        self,
        actor: Actor,
        name: str,
        response_time_hours: float,
        resolution_time_hours: float
    ) -> SLATier:
        if not actor.is_admin:
            raise ForbiddenException("sla_tiers:create")

        tier = await self._tier_repo.create(SLATier(
            id=None,
            name=name.strip(),
            response_time_hours=response_time_hours,
            resolution_time_hours=resolution_time_hours,
        ))
        logger.info(
            "SLA tier created",
            extra={"sla_tier_id": tier.id, "tier_name": tier.name, "actor_id": actor.user_id}
        )
        return tier

    async def update_tier(
        self,
        actor: Actor,
        tier_id: int,
        name: Optional[str] = None,
        response_time_hours: Optional[float] = None,
        resolution_time_hours: Optional[float] = None
    ) -> SLATier:
        if not actor.is_admin:
            raise ForbiddenException("sla_tiers:update")

        current = await self.get_tier(tier_id)
        updated = SLATier(
            id=current.id,
            name=name.strip() if name is not None else current.name,
            response_time_hours=(
                response_time_hours if response_time_hours is not None
                else current.response_time_hours
            ),
            resolution_time_hours=(
                resolution_time_hours if resolution_time_hours is not None
                else current.resolution_time_hours
            ),
        )
        updated = await self._tier_repo.update(updated)
        logger.info(
            "SLA tier updated",
            extra={
                "sla_tier_id": tier_id,
                "actor_id": actor.user_id,
                "tier_name": updated.name,
                "response_time_hours": updated.response_time_hours,
                "resolution_time_hours": updated.resolution_time_hours,
            }
        )
        return updated

    async def seed(self, tiers: Iterable[SLATier]) -> int:
        """Load tiers into an empty catalog. Returns the number inserted."""
        if await self._tier_repo.count() > 0:
            return 0

        inserted = 0
        for tier in tiers:
            await self._tier_repo.create(tier)
            inserted += 1

        logger.info("SLA catalog seeded", extra={"tiers": inserted})
        return inserted
