"""Alembic helpers shared by ``alembic/env.py`` and the maintenance scripts."""

import logging
from typing import Any, Optional

from alembic import command
from alembic.config import Config

from .engine import DEFAULT_SQLITE_URL, ROOT_DIR

logger = logging.getLogger(__name__)

ALEMBIC_DIR = ROOT_DIR / "alembic"

# Bookkeeping table owned by Alembic, not by the lottery models.
IGNORED_TABLES = {"alembic_version"}


def include_object(
    obj: Any, name: Optional[str], type_: str, reflected: bool, compare_to: Any
) -> bool:
    return not (type_ == "table" and name in IGNORED_TABLES)


def comparison_options(dialect_name: str) -> dict[str, Any]:
    """Return the autogenerate options used for migrations and drift checks.

    SQLite cannot alter constraints in place, so batch mode is enabled there.
    """
    return {
        "compare_type": True,
        "compare_server_default": True,
        "include_object": include_object,
        "render_as_batch": dialect_name == "sqlite",
    }


def alembic_config(database_url: Optional[str] = None) -> Config:
    """Build an Alembic :class:`Config` for this project without reading an ini file."""
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    url = database_url or DEFAULT_SQLITE_URL
    # Percent signs need to be escaped due to ConfigParser interpolation rules.
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return cfg


def upgrade(database_url: Optional[str] = None, revision: str = "head") -> None:
    """Apply the lottery schema migrations up to ``revision``."""
    cfg = alembic_config(database_url)
    logger.info("Upgrading lottery schema to %s", revision)
    command.upgrade(cfg, revision)


__all__ = [
    "ALEMBIC_DIR",
    "IGNORED_TABLES",
    "include_object",
    "comparison_options",
    "alembic_config",
    "upgrade",
]
