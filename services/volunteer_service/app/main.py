"""FastAPI application for the Volunteer Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.volunteer_service.router import router as volunteer_router
from services.volunteer_service.routers.hours import router as hours_router
from services.volunteer_service.routers.shifts import router as shifts_router


def create_app() -> FastAPI:
    """Create and configure the Volunteer Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Volunteer Service",
        version="0.1.0",
        description="Shifts, rostering, check-in/out and volunteer hours.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "volunteer"}

    app.include_router(volunteer_router)
    app.include_router(shifts_router)
    app.include_router(hours_router)

    return app


app = create_app()
