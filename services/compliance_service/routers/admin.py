"""Admin review of compliance documents and background checks."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.pagination import Page, PageParams, build_page, page_params, paginate
from libs.db.session import get_async_db
from services.compliance_service.models import (
    BackgroundCheck,
    BackgroundCheckStatus,
    ComplianceDocument,
    DocumentStatus,
)
from services.compliance_service.schemas import (
    BackgroundCheckResponse,
    BackgroundCheckUpdate,
    DocumentReject,
    DocumentResponse,
    ExpiryCheckResponse,
)
from services.compliance_service.services import (
    get_check_or_404,
    get_document_or_404,
    reject_document,
    update_background_check,
    verify_document,
)
from services.compliance_service.tasks import check_compliance_expiry
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/compliance", tags=["admin-compliance"])


@router.get("/documents", response_model=Page[DocumentResponse])
async def list_documents(
    status_filter: Optional[DocumentStatus] = None,
    user_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(ComplianceDocument)
    if status_filter:
        query = query.where(ComplianceDocument.status == status_filter)
    if user_id:
        query = query.where(ComplianceDocument.user_id == user_id)
    query = query.order_by(ComplianceDocument.created_at.desc())
    rows, total = await paginate(db, query, params)
    return build_page([DocumentResponse.model_validate(d) for d in rows], total, params)


@router.post("/documents/{document_id}/verify", response_model=DocumentResponse)
async def verify(
    document_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    document = await get_document_or_404(db, document_id)
    return await verify_document(db, document, current_user.id)


@router.post("/documents/{document_id}/reject", response_model=DocumentResponse)
async def reject(
    document_id: uuid.UUID,
    data: DocumentReject,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    document = await get_document_or_404(db, document_id)
    return await reject_document(db, document, current_user.id, data.reason)


@router.get("/background-checks", response_model=Page[BackgroundCheckResponse])
async def list_checks(
    status_filter: Optional[BackgroundCheckStatus] = None,
    params: PageParams = Depends(page_params),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(BackgroundCheck)
    if status_filter:
        query = query.where(BackgroundCheck.status == status_filter)
    rows, total = await paginate(db, query.order_by(BackgroundCheck.requested_at.desc()), params)
    return build_page([BackgroundCheckResponse.model_validate(c) for c in rows], total, params)


@router.patch("/background-checks/{check_id}", response_model=BackgroundCheckResponse)
async def update_check(
    check_id: uuid.UUID,
    data: BackgroundCheckUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    check = await get_check_or_404(db, check_id)
    return await update_background_check(db, check, data.status, data.result)


@router.post("/expiry-check", response_model=ExpiryCheckResponse)
async def run_expiry_check(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Run the daily expiry sweep now."""
    return await check_compliance_expiry(db)
