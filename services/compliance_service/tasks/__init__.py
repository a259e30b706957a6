"""Compliance service background tasks."""

from libs.db.session import get_async_db
from services.compliance_service.tasks.expiry import check_compliance_expiry


async def run_compliance_expiry() -> dict[str, int]:
    """Worker entrypoint: daily expiry sweep."""
    async for db in get_async_db():
        return await check_compliance_expiry(db)
    return {}


__all__ = ["check_compliance_expiry", "run_compliance_expiry"]
