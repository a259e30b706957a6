"""FastAPI application for the Organizations Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.organizations_service.router import router as organizations_router
from services.organizations_service.routers.admin import router as admin_router
from services.organizations_service.routers.invites import router as invites_router
from services.organizations_service.routers.reports import router as reports_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Volunteer Hub Organizations Service",
        version="0.1.0",
        description="Organizations, teams, volunteer memberships and invites.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "service": "organizations"}

    app.include_router(organizations_router)
    app.include_router(invites_router)
    app.include_router(reports_router)
    app.include_router(admin_router)

    return app


app = create_app()
