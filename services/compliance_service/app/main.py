"""FastAPI application for the Compliance Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.compliance_service.router import router as compliance_router
from services.compliance_service.routers.admin import router as admin_router
from services.compliance_service.routers.organization import router as organization_router


def create_app() -> FastAPI:
    """Create and configure the Compliance Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Compliance Service",
        version="0.1.0",
        description="Working with Children Checks, police checks and other clearances.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "compliance"}

    app.include_router(compliance_router)
    app.include_router(organization_router)
    app.include_router(admin_router)

    return app


app = create_app()
