"""Organization-scoped communication endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.communications_service.models import Communication, CommunicationStatus
from services.communications_service.schemas import (
    CommunicationCreate,
    CommunicationResponse,
    CommunicationSchedule,
    CommunicationUpdate,
)
from services.communications_service.services.communications import (
    cancel_communication,
    create_communication,
    get_communication_or_404,
    schedule_communication,
    update_communication,
)
from services.communications_service.tasks.communications import send_now
from services.organizations_service.permissions import org_manager_user, org_team_user
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/organizations/{organization_id}/communications",
    tags=["communications"],
)


@router.get("/", response_model=Page[CommunicationResponse])
async def list_communications(
    organization_id: uuid.UUID,
    status_filter: Optional[CommunicationStatus] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Communication).where(Communication.organization_id == organization_id)
    if status_filter:
        query = query.where(Communication.status == status_filter)
    rows, total = await paginate(db, query.order_by(Communication.created_at.desc()), params)
    return build_page([CommunicationResponse.model_validate(c) for c in rows], total, params)


@router.post("/", response_model=CommunicationResponse, status_code=status.HTTP_201_CREATED)
async def create(
    organization_id: uuid.UUID,
    data: CommunicationCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a draft, or a scheduled communication when ``send_at`` is given."""
    return await create_communication(
        db,
        organization_id,
        current_user.id,
        is_admin=current_user.is_admin,
        **data.model_dump(),
    )


@router.get("/{communication_id}", response_model=CommunicationResponse)
async def get_one(
    organization_id: uuid.UUID,
    communication_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_communication_or_404(db, communication_id, organization_id)


@router.patch("/{communication_id}", response_model=CommunicationResponse)
async def update(
    organization_id: uuid.UUID,
    communication_id: uuid.UUID,
    data: CommunicationUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    communication = await get_communication_or_404(db, communication_id, organization_id)
    return await update_communication(
        db,
        communication,
        is_admin=current_user.is_admin,
        **data.model_dump(exclude_unset=True),
    )


@router.post("/{communication_id}/schedule", response_model=CommunicationResponse)
async def schedule(
    organization_id: uuid.UUID,
    communication_id: uuid.UUID,
    data: CommunicationSchedule,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    communication = await get_communication_or_404(db, communication_id, organization_id)
    return await schedule_communication(db, communication, data.send_at)


@router.post("/{communication_id}/cancel", response_model=CommunicationResponse)
async def cancel(
    organization_id: uuid.UUID,
    communication_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    communication = await get_communication_or_404(db, communication_id, organization_id)
    return await cancel_communication(db, communication)


@router.post("/{communication_id}/send", response_model=CommunicationResponse)
async def send(
    organization_id: uuid.UUID,
    communication_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Deliver now instead of waiting for the sender loop."""
    communication = await get_communication_or_404(db, communication_id, organization_id)
    return await send_now(db, communication)
