"""Organization resource inventory and lending."""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.organizations_service.permissions import org_manager_user, org_team_user
from services.resources_service.models import (
    Resource,
    ResourceAssignment,
    ResourceAssignmentStatus,
    ResourceAssignmentType,
    ResourceStatus,
)
from services.resources_service.schemas import (
    MaintenanceRecord,
    ResourceAssign,
    ResourceAssignmentResponse,
    ResourceCreate,
    ResourceResponse,
    ResourceReturn,
    ResourceUpdate,
)
from services.resources_service.services import (
    assign_resource,
    cancel_resource_assignment,
    create_resource,
    delete_resource,
    get_resource_assignment_or_404,
    get_resource_or_404,
    record_maintenance,
    return_resource,
    update_resource,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["resources"])

ORG = "/organizations/{organization_id}"


async def _org_assignment(
    db: AsyncSession, organization_id: uuid.UUID, assignment_id: uuid.UUID
) -> ResourceAssignment:
    assignment = await get_resource_assignment_or_404(db, assignment_id)
    resource = await db.get(Resource, assignment.resource_id)
    if resource is None or resource.organization_id != organization_id:
        raise NotFoundError("Resource assignment not found")
    return assignment


# ── Resources ───────────────────────────────────────────────────────


@router.get(f"{ORG}/resources", response_model=Page[ResourceResponse])
async def list_resources(
    organization_id: uuid.UUID,
    status_filter: Optional[ResourceStatus] = None,
    category: Optional[str] = None,
    q: Optional[str] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Resource).where(Resource.organization_id == organization_id)
    if status_filter:
        query = query.where(Resource.status == status_filter)
    if category:
        query = query.where(Resource.category == category)
    if q:
        query = query.where(Resource.name.ilike(f"%{q}%"))
    rows, total = await paginate(db, query.order_by(Resource.name), params)
    return build_page([ResourceResponse.model_validate(r) for r in rows], total, params)


@router.post(
    f"{ORG}/resources", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED
)
async def add_resource(
    organization_id: uuid.UUID,
    data: ResourceCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_resource(db, organization_id, **data.model_dump())


@router.get(f"{ORG}/resources/{{resource_id}}", response_model=ResourceResponse)
async def get_resource(
    organization_id: uuid.UUID,
    resource_id: uuid.UUID,
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_resource_or_404(db, resource_id, organization_id)


@router.patch(f"{ORG}/resources/{{resource_id}}", response_model=ResourceResponse)
async def edit_resource(
    organization_id: uuid.UUID,
    resource_id: uuid.UUID,
    data: ResourceUpdate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    resource = await get_resource_or_404(db, resource_id, organization_id)
    return await update_resource(db, resource, **data.model_dump(exclude_unset=True))


@router.delete(f"{ORG}/resources/{{resource_id}}", status_code=204)
async def remove_resource(
    organization_id: uuid.UUID,
    resource_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    resource = await get_resource_or_404(db, resource_id, organization_id)
    await delete_resource(db, resource)


@router.post(f"{ORG}/resources/{{resource_id}}/maintenance", response_model=ResourceResponse)
async def log_maintenance(
    organization_id: uuid.UUID,
    resource_id: uuid.UUID,
    data: MaintenanceRecord,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    resource = await get_resource_or_404(db, resource_id, organization_id)
    return await record_maintenance(db, resource, data.interval_days, data.technician_id)


# ── Loans ───────────────────────────────────────────────────────────


@router.post(
    f"{ORG}/resources/{{resource_id}}/assign",
    response_model=ResourceAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def lend_resource(
    organization_id: uuid.UUID,
    resource_id: uuid.UUID,
    data: ResourceAssign,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    resource = await get_resource_or_404(db, resource_id, organization_id)
    return await assign_resource(
        db, resource, assigned_by=current_user.id, **data.model_dump()
    )


@router.get(
    f"{ORG}/resource-assignments", response_model=Page[ResourceAssignmentResponse]
)
async def list_loans(
    organization_id: uuid.UUID,
    status_filter: Optional[ResourceAssignmentStatus] = None,
    resource_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(ResourceAssignment)
        .join(Resource, Resource.id == ResourceAssignment.resource_id)
        .where(Resource.organization_id == organization_id)
    )
    if status_filter:
        query = query.where(ResourceAssignment.status == status_filter)
    if resource_id:
        query = query.where(ResourceAssignment.resource_id == resource_id)
    query = query.order_by(ResourceAssignment.assigned_at.desc())
    rows, total = await paginate(db, query, params)
    return build_page(
        [ResourceAssignmentResponse.model_validate(a) for a in rows], total, params
    )


@router.post(
    f"{ORG}/resource-assignments/{{assignment_id}}/return",
    response_model=ResourceAssignmentResponse,
)
async def return_loan(
    organization_id: uuid.UUID,
    assignment_id: uuid.UUID,
    data: ResourceReturn,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Confirm the return. A ``damaged`` condition sends the resource to maintenance."""
    assignment = await _org_assignment(db, organization_id, assignment_id)
    return await return_resource(db, assignment, data.condition, data.notes)


@router.post(
    f"{ORG}/resource-assignments/{{assignment_id}}/cancel",
    response_model=ResourceAssignmentResponse,
)
async def cancel_loan(
    organization_id: uuid.UUID,
    assignment_id: uuid.UUID,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    assignment = await _org_assignment(db, organization_id, assignment_id)
    return await cancel_resource_assignment(db, assignment)


@router.get("/resource-assignments/me", response_model=list[ResourceAssignmentResponse])
async def my_loans(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(ResourceAssignment)
        .where(
            ResourceAssignment.assignment_type == ResourceAssignmentType.VOLUNTEER,
            ResourceAssignment.related_id == current_user.id,
        )
        .order_by(ResourceAssignment.assigned_at.desc())
    )
    return result.scalars().all()
