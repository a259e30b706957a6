"""FastAPI application for the Resources Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.resources_service.router import router as resources_router


def create_app() -> FastAPI:
    """Create and configure the Resources Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Resources Service",
        version="0.1.0",
        description="Equipment inventory, loans and maintenance.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "resources"}

    app.include_router(resources_router)

    return app


app = create_app()
