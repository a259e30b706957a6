"""FastAPI application for the Engagement Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.engagement_service.router import router as achievements_router
from services.engagement_service.routers.certificates import router as certificates_router


def create_app() -> FastAPI:
    """Create and configure the Engagement Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Engagement Service",
        version="0.1.0",
        description="Achievements, milestone progress and certificates.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "engagement"}

    app.include_router(achievements_router)
    app.include_router(certificates_router)

    return app


app = create_app()
