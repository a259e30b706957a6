"""FastAPI application for the Users Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from services.users_service.router import router as users_router
from services.users_service.routers.admin import router as admin_router


def create_app() -> FastAPI:
    """Create and configure the Users Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hub Users Service",
        version="0.1.0",
        description="Accounts, authentication and admin account controls.",
    )
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "users"}

    app.include_router(users_router)
    app.include_router(admin_router)

    return app


app = create_app()
