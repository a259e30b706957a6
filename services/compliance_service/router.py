"""Volunteer compliance endpoints and the public validators."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.compliance_service.models import BackgroundCheck, ComplianceDocument
from services.compliance_service.schemas import (
    ABNValidationRequest,
    BackgroundCheckCreate,
    BackgroundCheckResponse,
    DocumentCreate,
    DocumentResponse,
    MobileValidationRequest,
    ValidationResponse,
    WWCCValidationRequest,
)
from services.compliance_service.services import (
    request_background_check,
    upload_document,
)
from services.compliance_service.validators import (
    format_wwcc,
    validate_abn,
    validate_mobile,
    validate_wwcc,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.post(
    "/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED
)
async def upload(
    data: DocumentCreate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    """Submit a document for review. WWCC numbers are checked against their state."""
    return await upload_document(db, current_user.id, **data.model_dump())


@router.get("/documents/me", response_model=list[DocumentResponse])
async def my_documents(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(ComplianceDocument)
        .where(ComplianceDocument.user_id == current_user.id)
        .order_by(ComplianceDocument.created_at.desc())
    )
    return result.scalars().all()


@router.post(
    "/background-checks",
    response_model=BackgroundCheckResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_check(
    data: BackgroundCheckCreate,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    return await request_background_check(db, current_user.id, **data.model_dump())


@router.get("/background-checks/me", response_model=list[BackgroundCheckResponse])
async def my_checks(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(BackgroundCheck)
        .where(BackgroundCheck.user_id == current_user.id)
        .order_by(BackgroundCheck.requested_at.desc())
    )
    return result.scalars().all()


# ── Validators ──────────────────────────────────────────────────────


@router.post("/validate/wwcc", response_model=ValidationResponse)
async def check_wwcc(data: WWCCValidationRequest):
    result = validate_wwcc(data.number, data.state)
    return ValidationResponse(
        valid=result.valid,
        message=result.message,
        formatted=format_wwcc(data.number, data.state) if result.valid else None,
    )


@router.post("/validate/abn", response_model=ValidationResponse)
async def check_abn(data: ABNValidationRequest):
    result = validate_abn(data.abn)
    return ValidationResponse(valid=result.valid, message=result.message)


@router.post("/validate/mobile", response_model=ValidationResponse)
async def check_mobile(data: MobileValidationRequest):
    result = validate_mobile(data.phone)
    return ValidationResponse(valid=result.valid, message=result.message)
