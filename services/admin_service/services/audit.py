import uuid
from typing import Any, Optional

from libs.common.logging import get_logger
from services.admin_service.models import AuditLog
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def record_audit(
    db: AsyncSession,
    user_id: Optional[uuid.UUID],
    action: str,
    target_type: Optional[str] = None,
    target_id: Any = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Add an audit entry to the session.

    The entry is flushed but not committed; it lands with the caller's
    transaction so an audited change and its log row commit together.
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        details=details,
        ip_address=ip_address,
    )
    db.add(entry)
    await db.flush()
    logger.info(f"Audit: {action} {target_type}:{target_id} by {user_id}")
    return entry
