"""FastAPI application for the Communications Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.communications_service.routers.admin import router as admin_router
from services.communications_service.routers.communications import (
    router as communications_router,
)
from services.communications_service.routers.notifications import (
    router as notifications_router,
)
from services.communications_service.routers.realtime import router as realtime_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Volunteer Hub Communications Service",
        version="0.1.0",
        description="Notifications, realtime push, communications and scheduled jobs.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "service": "communications"}

    app.include_router(notifications_router)
    app.include_router(communications_router)
    app.include_router(admin_router)
    app.include_router(realtime_router)

    return app


app = create_app()
