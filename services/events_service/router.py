"""Public and organization endpoints for events and opportunities."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.events_service.models import (
    Event,
    Opportunity,
    OpportunityStatus,
    OpportunityVisibility,
)
from services.events_service.schemas import (
    EventCreate,
    EventResponse,
    EventUpdate,
    OpportunityCreate,
    OpportunityPublish,
    OpportunityResponse,
    OpportunityUpdate,
)
from services.events_service.services import (
    create_event,
    create_opportunity,
    get_event_or_404,
    get_opportunity_or_404,
    set_opportunity_status,
    update_event,
    update_opportunity,
)
from services.organizations_service.permissions import org_manager_user, org_team_user
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["events"])


# ── Public listings ─────────────────────────────────────────────────


@router.get("/events", response_model=Page[EventResponse])
async def list_events(
    organization_id: Optional[uuid.UUID] = None,
    upcoming: bool = True,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    """List published events, soonest first."""
    query = select(Event).where(Event.is_published.is_(True))
    if organization_id:
        query = query.where(Event.organization_id == organization_id)
    if upcoming:
        query = query.where(Event.start_at >= utc_now())
    rows, total = await paginate(db, query.order_by(Event.start_at), params)
    return build_page([EventResponse.model_validate(e) for e in rows], total, params)


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(event_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    return await get_event_or_404(db, event_id)


@router.get("/opportunities", response_model=Page[OpportunityResponse])
async def list_opportunities(
    organization_id: Optional[uuid.UUID] = None,
    event_id: Optional[uuid.UUID] = None,
    q: Optional[str] = None,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_async_db),
):
    """List published public opportunities."""
    query = select(Opportunity).where(
        Opportunity.status == OpportunityStatus.PUBLISHED,
        Opportunity.visibility == OpportunityVisibility.PUBLIC,
    )
    if organization_id:
        query = query.where(Opportunity.organization_id == organization_id)
    if event_id:
        query = query.where(Opportunity.event_id == event_id)
    if q:
        query = query.where(Opportunity.title.ilike(f"%{q}%"))
    rows, total = await paginate(db, query.order_by(Opportunity.start_at), params)
    return build_page([OpportunityResponse.model_validate(o) for o in rows], total, params)


@router.get("/opportunities/{opportunity_id}", response_model=OpportunityResponse)
async def get_opportunity(
    opportunity_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)
):
    return await get_opportunity_or_404(db, opportunity_id)


# ── Organization events ─────────────────────────────────────────────


@router.get("/organizations/{organization_id}/events", response_model=Page[EventResponse])
async def list_org_events(
    organization_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Event).where(Event.organization_id == organization_id)
    rows, total = await paginate(db, query.order_by(Event.start_at.desc()), params)
    return build_page([EventResponse.model_validate(e) for e in rows], total, params)


@router.post(
    "/organizations/{organization_id}/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_org_event(
    organization_id: uuid.UUID,
    data: EventCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_event(db, organization_id, current_user.id, **data.model_dump())


@router.patch("/organizations/{organization_id}/events/{event_id}", response_model=EventResponse)
async def update_org_event(
    organization_id: uuid.UUID,
    event_id: uuid.UUID,
    data: EventUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    event = await get_event_or_404(db, event_id, organization_id)
    return await update_event(db, event, **data.model_dump(exclude_unset=True))


@router.delete("/organizations/{organization_id}/events/{event_id}", status_code=204)
async def delete_org_event(
    organization_id: uuid.UUID,
    event_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    event = await get_event_or_404(db, event_id, organization_id)
    await db.delete(event)
    await db.commit()


# ── Organization opportunities ──────────────────────────────────────


@router.get(
    "/organizations/{organization_id}/opportunities",
    response_model=Page[OpportunityResponse],
)
async def list_org_opportunities(
    organization_id: uuid.UUID,
    status_filter: Optional[OpportunityStatus] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    """All of the organization's opportunities, drafts included."""
    query = select(Opportunity).where(Opportunity.organization_id == organization_id)
    if status_filter:
        query = query.where(Opportunity.status == status_filter)
    rows, total = await paginate(db, query.order_by(Opportunity.start_at.desc()), params)
    return build_page([OpportunityResponse.model_validate(o) for o in rows], total, params)


@router.post(
    "/organizations/{organization_id}/opportunities",
    response_model=OpportunityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_org_opportunity(
    organization_id: uuid.UUID,
    data: OpportunityCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_opportunity(db, organization_id, current_user.id, **data.model_dump())


@router.patch(
    "/organizations/{organization_id}/opportunities/{opportunity_id}",
    response_model=OpportunityResponse,
)
async def update_org_opportunity(
    organization_id: uuid.UUID,
    opportunity_id: uuid.UUID,
    data: OpportunityUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    opportunity = await get_opportunity_or_404(db, opportunity_id, organization_id)
    return await update_opportunity(db, opportunity, **data.model_dump(exclude_unset=True))


@router.post(
    "/organizations/{organization_id}/opportunities/{opportunity_id}/publish",
    response_model=OpportunityResponse,
)
async def publish_opportunity(
    organization_id: uuid.UUID,
    opportunity_id: uuid.UUID,
    data: OpportunityPublish = OpportunityPublish(),
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Publish, or with ``{"publish": false}`` return to draft."""
    opportunity = await get_opportunity_or_404(db, opportunity_id, organization_id)
    new_status = OpportunityStatus.PUBLISHED if data.publish else OpportunityStatus.DRAFT
    return await set_opportunity_status(db, opportunity, new_status)


@router.post(
    "/organizations/{organization_id}/opportunities/{opportunity_id}/close",
    response_model=OpportunityResponse,
)
async def close_opportunity(
    organization_id: uuid.UUID,
    opportunity_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    opportunity = await get_opportunity_or_404(db, opportunity_id, organization_id)
    return await set_opportunity_status(db, opportunity, OpportunityStatus.CLOSED)


@router.delete(
    "/organizations/{organization_id}/opportunities/{opportunity_id}", status_code=204
)
async def delete_org_opportunity(
    organization_id: uuid.UUID,
    opportunity_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    opportunity = await get_opportunity_or_404(db, opportunity_id, organization_id)
    await db.delete(opportunity)
    await db.commit()
