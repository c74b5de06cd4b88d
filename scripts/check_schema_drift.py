from __future__ import annotations

import argparse
import sys
from typing import Any, Optional

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Engine

from honorlottery.db.engine import make_engine
from honorlottery.db.migrations import comparison_options
from honorlottery.models import Base


def schema_differences(engine: Engine) -> list[Any]:
    """Return the Alembic operations needed to bring ``engine`` up to the models."""
    with engine.connect() as connection:
        context = MigrationContext.configure(
            connection=connection,
            opts=comparison_options(connection.dialect.name),
        )
        migration = ag_api.produce_migrations(context, Base.metadata)
    upgrade_ops = migration.upgrade_ops
    if upgrade_ops is None:
        raise RuntimeError("Alembic produced no upgrade operations")
    return list(upgrade_ops.ops or [])


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        sub_ops = getattr(op, "ops", None)
        if sub_ops:
            _print_ops(sub_ops, indent + 1)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compare a lottery database against the current models."
    )
    parser.add_argument("--url", help="database URL (defaults to DB_URL)")
    args = parser.parse_args(argv)

    engine = make_engine(database_url=args.url)
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        ops = schema_differences(engine)
    except Exception as exc:
        print(f"Schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if not ops:
        print(f"Schema drift check: OK (no differences) for {url_display}.")
        return 0
    print(f"Schema drift check: FAILED for {url_display}. {len(ops)} difference(s):")
    _print_ops(ops)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
