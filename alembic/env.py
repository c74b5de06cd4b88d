from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))
load_dotenv(ROOT_DIR / ".env")

from honorlottery.db.engine import DEFAULT_SQLITE_URL, make_engine  # noqa: E402
from honorlottery.db.migrations import comparison_options  # noqa: E402
from honorlottery.db.utils import resolve_sqlite_url  # noqa: E402
from honorlottery.models import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    """Pick the URL from the Alembic config, then ``DB_URL``, then the default."""
    configured = config.get_main_option("sqlalchemy.url")
    if configured:
        return configured
    env_url = os.getenv("DB_URL")
    if env_url:
        return resolve_sqlite_url(env_url, ROOT_DIR)
    return DEFAULT_SQLITE_URL


def _skip_empty_autogenerate(context_, revision, directives) -> None:
    # An autogenerate run against an up-to-date lottery schema writes no file.
    if getattr(config.cmd_opts, "autogenerate", False):
        script = directives[0]
        if script.upgrade_ops.is_empty():
            directives[:] = []


def run_migrations_offline() -> None:
    url = _database_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **comparison_options(url.split(":", 1)[0].split("+", 1)[0]),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = make_engine(database_url=_database_url())
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                process_revision_directives=_skip_empty_autogenerate,
                **comparison_options(connection.dialect.name),
            )

            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
