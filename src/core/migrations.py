"""Database migration utilities.

Run ``python -m src.core.migrations`` before starting uvicorn to bring
the schema to head. The readiness probe uses ``is_schema_current`` so a
pod is not routed traffic against a stale schema.
"""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.database import get_engine
from src.logging_config import get_logger

logger = get_logger(__name__)

APP_ROOT = Path(__file__).resolve().parent.parent.parent


def get_alembic_config() -> Config:
    """Get Alembic configuration."""
    alembic_ini = APP_ROOT / "alembic.ini"

    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(APP_ROOT / "migrations"))

    return config


def get_head_revision() -> str | None:
    """Get the newest revision shipped with the application."""
    script = ScriptDirectory.from_config(get_alembic_config())
    return script.get_current_head()


async def get_database_revision() -> str | None:
    """Get the revision the database is stamped with, if any."""
    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(
                text("SELECT version_num FROM alembic_version LIMIT 1")
            )
            row = result.fetchone()
    except SQLAlchemyError:
        return None
    return row[0] if row else None


async def is_schema_current() -> bool:
    """Check whether the database is at the latest migration."""
    current = await get_database_revision()
    if current is None:
        return False
    return current == get_head_revision()


def run_migrations() -> None:
    """Run all pending database migrations synchronously.

    Must be called outside a running event loop: the Alembic env drives
    its own async engine.
    """
    logger.info("Running database migrations")

    try:
        command.upgrade(get_alembic_config(), "head")
    except Exception:
        logger.exception("Database migration failed")
        raise

    logger.info("Database migrations completed", revision=get_head_revision())


if __name__ == "__main__":
    from src.config import settings
    from src.logging_config import setup_logging

    setup_logging(
        log_format=settings.log_format,
        log_level=settings.log_level,
        service_name=settings.service_name,
    )
    run_migrations()
