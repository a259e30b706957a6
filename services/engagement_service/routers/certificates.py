"""Certificate issue, revocation and public verification."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.common.rate_limit import public_limit
from libs.db.session import get_async_db
from services.engagement_service.models import Certificate, CertificateStatus
from services.engagement_service.schemas import (
    CertificateCreate,
    CertificateResponse,
    CertificateRevoke,
    CertificateVerification,
)
from services.engagement_service.services import (
    get_certificate_or_404,
    issue_certificate,
    revoke_certificate,
    verify_certificate,
)
from services.organizations_service.permissions import org_manager_user, org_team_user
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["certificates"])


@router.get("/certificates/me", response_model=list[CertificateResponse])
async def my_certificates(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(Certificate)
        .where(
            Certificate.user_id == current_user.id,
            Certificate.status == CertificateStatus.ACTIVE,
        )
        .order_by(Certificate.issued_at.desc())
    )
    return result.scalars().all()


@router.get("/certificates/verify/{verification_id}", response_model=CertificateVerification)
@public_limit
async def verify(
    request: Request,
    verification_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Public: anyone holding the certificate id can check it."""
    return await verify_certificate(db, verification_id)


@router.get(
    "/organizations/{organization_id}/certificates",
    response_model=Page[CertificateResponse],
)
async def list_org_certificates(
    organization_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(org_team_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Certificate)
        .where(Certificate.organization_id == organization_id)
        .order_by(Certificate.issued_at.desc())
    )
    rows, total = await paginate(db, query, params)
    return build_page([CertificateResponse.model_validate(c) for c in rows], total, params)


@router.post(
    "/organizations/{organization_id}/certificates",
    response_model=CertificateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def issue(
    organization_id: uuid.UUID,
    data: CertificateCreate,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await issue_certificate(
        db,
        organization_id,
        data.user_id,
        data.title,
        issued_by=current_user.id,
        description=data.description,
        hours=data.hours,
    )


@router.post(
    "/organizations/{organization_id}/certificates/{certificate_id}/revoke",
    response_model=CertificateResponse,
)
async def revoke(
    organization_id: uuid.UUID,
    certificate_id: uuid.UUID,
    data: CertificateRevoke,
    current_user: AuthUser = Depends(org_manager_user),
    db: AsyncSession = Depends(get_async_db),
):
    certificate = await get_certificate_or_404(db, certificate_id, organization_id)
    return await revoke_certificate(db, certificate, current_user.id, data.reason)
