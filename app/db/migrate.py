"""Apply pending schema migrations: ``python -m app.db.migrate``.

Runs ``alembic upgrade head`` against ``settings.database_url``. Safe to run
on every deploy; revisions already applied are skipped.
"""
import logging

from alembic import command
from alembic.config import Config

from app.core.config import BASE_DIR, settings

logger = logging.getLogger(__name__)


def alembic_config(database_url: str | None = None) -> Config:
    cfg = Config(str(BASE_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BASE_DIR / "alembic"))
    cfg.attributes["database_url"] = database_url or settings.database_url
    return cfg


def upgrade(database_url: str | None = None, revision: str = "head") -> None:
    logger.info("Upgrading schema to %s", revision)
    command.upgrade(alembic_config(database_url), revision)


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    upgrade()
