"""FastAPI application for the Events Service."""

from dotenv import load_dotenv
from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers

load_dotenv()

from services.events_service.router import router as events_router  # noqa: E402
from services.events_service.routers.applications import (  # noqa: E402
    router as applications_router,
)


def create_app() -> FastAPI:
    """Create and configure the Events Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Events Service",
        version="0.1.0",
        description="Events, volunteering opportunities and applications.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "events"}

    app.include_router(events_router)
    app.include_router(applications_router)

    return app


app = create_app()
