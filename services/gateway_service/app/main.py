"""FastAPI entrypoint for the Volunteer Hub API.

Every service router is mounted into this one application under ``/api/v1``.
The services share the database, so nothing is proxied over HTTP.
"""

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

load_dotenv()

from libs.common.config import get_settings  # noqa: E402
from libs.common.error_handler import add_exception_handlers  # noqa: E402
from libs.common.middleware import add_observability_middleware  # noqa: E402
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler  # noqa: E402
from services.admin_service.router import router as admin_router  # noqa: E402
from services.communications_service.routers.admin import (  # noqa: E402
    router as scheduled_jobs_router,
)
from services.communications_service.routers.communications import (  # noqa: E402
    router as communications_router,
)
from services.communications_service.routers.notifications import (  # noqa: E402
    router as notifications_router,
)
from services.communications_service.routers.realtime import (  # noqa: E402
    router as realtime_router,
)
from services.compliance_service.router import router as compliance_router  # noqa: E402
from services.compliance_service.routers.admin import (  # noqa: E402
    router as compliance_admin_router,
)
from services.compliance_service.routers.organization import (  # noqa: E402
    router as compliance_org_router,
)
from services.engagement_service.router import router as achievements_router  # noqa: E402
from services.engagement_service.routers.certificates import (  # noqa: E402
    router as certificates_router,
)
from services.events_service.router import router as events_router  # noqa: E402
from services.events_service.routers.applications import (  # noqa: E402
    router as applications_router,
)
from services.organizations_service.router import (  # noqa: E402
    router as organizations_router,
)
from services.organizations_service.routers.admin import (  # noqa: E402
    router as organizations_admin_router,
)
from services.organizations_service.routers.invites import (  # noqa: E402
    router as invites_router,
)
from services.organizations_service.routers.reports import (  # noqa: E402
    router as reports_router,
)
from services.resources_service.router import router as resources_router  # noqa: E402
from services.users_service.router import router as users_router  # noqa: E402
from services.users_service.routers.admin import router as users_admin_router  # noqa: E402
from services.volunteer_service.router import router as volunteer_router  # noqa: E402
from services.volunteer_service.routers.hours import router as hours_router  # noqa: E402
from services.volunteer_service.routers.shifts import router as shifts_router  # noqa: E402

API_PREFIX = "/api/v1"

API_ROUTERS = [
    users_router,
    users_admin_router,
    organizations_router,
    invites_router,
    organizations_admin_router,
    reports_router,
    events_router,
    applications_router,
    volunteer_router,
    shifts_router,
    hours_router,
    notifications_router,
    communications_router,
    scheduled_jobs_router,
    compliance_router,
    compliance_org_router,
    compliance_admin_router,
    achievements_router,
    certificates_router,
    resources_router,
    admin_router,
]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    app = FastAPI(
        title="Volunteer Hub API",
        version="0.1.0",
        description="Volunteer management: organizations, opportunities, shifts and hours.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    for router in API_ROUTERS:
        app.include_router(router, prefix=API_PREFIX)
    app.include_router(realtime_router)

    return app


app = create_app()
