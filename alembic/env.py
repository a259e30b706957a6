import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from libs.common.config import get_settings
from libs.db.base import Base

# Import all models here so they are registered with Base.metadata
from services.users_service.models import User  # noqa: F401
from services.admin_service.models import AuditLog  # noqa: F401
from services.organizations_service.models import (  # noqa: F401
    InviteSendJob,
    Organization,
    OrganizationInvite,
    OrganizationTeamMember,
    OrganizationVolunteer,
)
from services.events_service.models import Application, Event, Opportunity  # noqa: F401
from services.volunteer_service.models import (  # noqa: F401
    Shift,
    ShiftAssignment,
    ShiftTask,
    VolunteerHour,
)
from services.communications_service.models import (  # noqa: F401
    Communication,
    Notification,
    NotificationPreference,
    ScheduledJob,
)
from services.compliance_service.models import (  # noqa: F401
    BackgroundCheck,
    ComplianceDocument,
    ComplianceRequirement,
)
from services.engagement_service.models import (  # noqa: F401
    Achievement,
    AchievementProgress,
    Certificate,
    UserAchievement,
)
from services.resources_service.models import Resource, ResourceAssignment  # noqa: F401

settings = get_settings()

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# The application settings own the database URL
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL.replace("%", "%%"))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL without a DBAPI."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
