"""Database migration utilities for the 'postgres' grant store backend."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from pet_access.config import settings
from pet_access.logging_config import get_logger

logger = get_logger(__name__)


def get_alembic_config() -> Config:
    """Get Alembic configuration."""
    app_root = Path(__file__).parent.parent.parent
    alembic_ini = app_root / "alembic.ini"

    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(app_root / "migrations"))
    config.set_main_option("sqlalchemy.url", settings.database_url)
    return config


def run_migrations() -> None:
    """Upgrade the database to the latest revision."""
    logger.info("Running database migrations...")
    try:
        command.upgrade(get_alembic_config(), "head")
    except Exception as exc:
        logger.error("Database migration failed", error=str(exc))
        raise
    logger.info("Database migrations completed successfully")


def get_head_revision() -> str | None:
    """The newest revision shipped with the code."""
    script = ScriptDirectory.from_config(get_alembic_config())
    return script.get_current_head()


if __name__ == "__main__":
    run_migrations()
