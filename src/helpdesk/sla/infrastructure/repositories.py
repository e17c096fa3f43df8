"""
SLA Infrastructure Repositories
=================================

Concrete implementations of the SLA repository interface using SQLAlchemy,
plus the YAML loader that seeds the catalog on first start.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core import ConfigurationException, RepositoryException, ResourceNotFoundException
from helpdesk.infrastructure.database import storage_call
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.sla.application import ISLATierRepository
from helpdesk.sla.domain import SLATier
from helpdesk.sla.infrastructure.models import SLATierModel

logger = get_logger(__name__)


def _to_entity(model: SLATierModel) -> SLATier:
    return SLATier(
        id=model.id,
        name=model.name,
        response_time_hours=model.response_time_hours,
        resolution_time_hours=model.resolution_time_hours,
    )


class SQLAlchemySLATierRepository(ISLATierRepository):
    """
    SQLAlchemy implementation of the SLA tier repository.

    Handles persistence of SLATier entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @storage_call("sla_tiers.get")
    async def get(self, tier_id: int) -> Optional[SLATier]:
        model = await self._session.get(SLATierModel, tier_id)
        return _to_entity(model) if model else None

    @storage_call("sla_tiers.list")
    async def list(self) -> List[SLATier]:
        result = await self._session.execute(select(SLATierModel).order_by(SLATierModel.id))
        return [_to_entity(m) for m in result.scalars().all()]

    @storage_call("sla_tiers.create")
    async def create(self, tier: SLATier) -> SLATier:
        model = SLATierModel(
            name=tier.name,
            response_time_hours=tier.response_time_hours,
            resolution_time_hours=tier.resolution_time_hours,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError as e:
            raise RepositoryException(
                f"SLA tier '{tier.name}' already exists",
                {"name": tier.name}
            ) from e

        tier.id = model.id
        return tier

    @storage_call("sla_tiers.update")
    async def update(self, tier: SLATier) -> SLATier:
        model = await self._session.get(SLATierModel, tier.id)
        if model is None:
            raise ResourceNotFoundException("SLA tier", tier.id)

        try:
            async with self._session.begin_nested():
                model.name = tier.name
                model.response_time_hours = tier.response_time_hours
                model.resolution_time_hours = tier.resolution_time_hours
        except IntegrityError as e:
            raise RepositoryException(
                f"SLA tier '{tier.name}' already exists",
                {"name": tier.name}
            ) from e

        return _to_entity(model)

    @storage_call("sla_tiers.count")
    async def count(self) -> int:
        result = await self._session.execute(select(func.count(SLATierModel.id)))
        return result.scalar_one()


class YAMLCatalogLoader:
    """
    Reads SLA tier definitions from YAML.

    Expected layout:

        sla_tiers:
          - name: Standard
            response_time_hours: 4
            resolution_time_hours: 24
    """

    def __init__(self, catalog_path: Path):
        self._catalog_path = Path(catalog_path)

    def load(self) -> List[SLATier]:
        if not self._catalog_path.exists():
            logger.warning(f"SLA catalog file not found: {self._catalog_path}, nothing to seed")
            return []

        with open(self._catalog_path, "r") as f:
            data = yaml.safe_load(f) or {}

        try:
            return [
                SLATier(
                    id=None,
                    name=str(entry["name"]),
                    response_time_hours=float(entry["response_time_hours"]),
                    resolution_time_hours=float(entry["resolution_time_hours"]),
                )
                for entry in data.get("sla_tiers", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationException(
                f"Malformed SLA catalog {self._catalog_path}: {e}"
            ) from e
