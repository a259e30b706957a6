"""FastAPI application for the Admin Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.admin_service.router import router as admin_router


def create_app() -> FastAPI:
    """Create and configure the Admin Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Admin Service",
        version="0.1.0",
        description="Audit logs, system monitoring and the admin dashboard.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "admin"}

    app.include_router(admin_router)

    return app


app = create_app()
