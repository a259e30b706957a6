"""Resources service background tasks."""

from libs.db.session import get_async_db
from services.resources_service.services.notifier import (
    check_maintenance_due,
    check_overdue_assignments,
)


async def run_resource_checks() -> dict[str, int]:
    """Worker entrypoint: overdue loans then maintenance reminders."""
    async for db in get_async_db():
        overdue = await check_overdue_assignments(db)
        maintenance = await check_maintenance_due(db)
        return {"overdue": overdue, "maintenance": maintenance}
    return {}


__all__ = ["run_resource_checks"]
