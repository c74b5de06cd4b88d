import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .utils import resolve_sqlite_url

logger = logging.getLogger(__name__)

# Get DB url
load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    url = database_url or DEFAULT_SQLITE_URL
    return create_engine(url, echo=echo, future=True)


def get_sessionmaker(engine: Engine):
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep objects accessible after commit
        future=True,
    )


def create_schema(engine: Engine) -> None:
    """Create every table known to the model metadata on ``engine``."""
    from ..models import Base  # import populates metadata

    Base.metadata.create_all(engine)
    logger.info("Schema created on %s", engine.url.render_as_string(hide_password=True))
