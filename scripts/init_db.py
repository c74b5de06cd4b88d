from __future__ import annotations

import logging

from sqlalchemy import inspect

from honorlottery.db.engine import make_engine
from honorlottery.db.migrations import upgrade


def print_tables() -> None:
    """Inspect the configured database and print all table names."""
    engine = make_engine()
    insp = inspect(engine)
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))


def main() -> None:
    """Apply the lottery migrations (default to head) and report the resulting schema."""
    logging.basicConfig(level=logging.INFO)
    upgrade()
    print_tables()


if __name__ == "__main__":
    main()
