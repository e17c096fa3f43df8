"""
SLA Controllers (API Routes)
=============================

FastAPI routes for the SLA tier catalog.

Controllers are thin - they delegate to application services.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.infrastructure.database import get_session
from helpdesk.shared.api import get_actor
from helpdesk.shared.domain import Actor
from helpdesk.sla.application import (
    SLACatalogService,
    SLATierCreateDTO,
    SLATierResponse,
    SLATierUpdateDTO,
)
from helpdesk.sla.infrastructure import SQLAlchemySLATierRepository

router = APIRouter(prefix="/sla", tags=["SLA Catalog"])


# ========== Example payloads for Swagger ==========

SLA_TIER_EXAMPLE = {
    "id": 1,
    "name": "Standard",
    "response_time_hours": 4.0,
    "resolution_time_hours": 24.0
}


# ========== Dependencies ==========

async def get_catalog_service(
    session: AsyncSession = Depends(get_session)
) -> SLACatalogService:
    """Get SLA catalog service instance."""
    return SLACatalogService(SQLAlchemySLATierRepository(session))


# ========== Route Handlers ==========

@router.get(
    "/tiers",
    response_model=List[SLATierResponse],
    summary="List SLA tiers",
)
async def list_tiers(
    catalog: SLACatalogService = Depends(get_catalog_service)
):
    return [SLATierResponse.model_validate(t) for t in await catalog.list_tiers()]


@router.get(
    "/tiers/{tier_id}",
    response_model=SLATierResponse,
    summary="Get an SLA tier",
    responses={
        200: {"content": {"application/json": {"example": SLA_TIER_EXAMPLE}}},
        404: {"description": "SLA tier not found"}
    }
)
async def get_tier(
    tier_id: int,
    catalog: SLACatalogService = Depends(get_catalog_service)
):
    return SLATierResponse.model_validate(await catalog.get_tier(tier_id))


@router.post(
    "/tiers",
    response_model=SLATierResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an SLA tier",
    description="""
    Add a tier to the catalog. **Administrators only.**

    Budgets are hours and may be fractional; the resolution budget must be
    at least the response budget. Tickets pick a tier at creation and keep
    the deadlines computed then.
    """,
    responses={403: {"description": "Caller is not an administrator"}}
)
async def create_tier(
    request: SLATierCreateDTO,
    actor: Actor = Depends(get_actor),
    catalog: SLACatalogService = Depends(get_catalog_service)
):
    tier = await catalog.create_tier(
        actor,
        name=request.name,
        response_time_hours=request.response_time_hours,
        resolution_time_hours=request.resolution_time_hours,
    )
    return SLATierResponse.model_validate(tier)


@router.put(
    "/tiers/{tier_id}",
    response_model=SLATierResponse,
    summary="Edit an SLA tier",
    description="""
    Edit a tier. **Administrators only.**

    Existing tickets keep their response and resolution deadlines; only
    tickets created afterwards use the new budgets.
    """,
    responses={403: {"description": "Caller is not an administrator"}}
)
async def update_tier(
    tier_id: int,
    request: SLATierUpdateDTO,
    actor: Actor = Depends(get_actor),
    catalog: SLACatalogService = Depends(get_catalog_service)
):
    tier = await catalog.update_tier(
        actor,
        tier_id,
        name=request.name,
        response_time_hours=request.response_time_hours,
        resolution_time_hours=request.resolution_time_hours,
    )
    return SLATierResponse.model_validate(tier)
