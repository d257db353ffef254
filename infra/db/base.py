# infra/db/base.py
from __future__ import annotations
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from infra.path import default_db_path

logger = logging.getLogger(__name__)

Base = declarative_base()


def default_db_url() -> str:
    db_path = default_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path.as_posix()}"


def create_db_engine(db_url: str | None = None, **engine_kwargs) -> Engine:
    url = db_url or default_db_url()
    logger.info("Using analytics database at: %s", url)
    return create_engine(url, echo=False, future=True, **engine_kwargs)


def create_session_factory(db_url: str | None = None, *, engine: Engine | None = None) -> sessionmaker:
    """Session factory bound to the dashboard database.

    The analytics side only reads; schema and writes belong to the
    application that owns the database.
    """
    bind = engine or create_db_engine(db_url)
    return sessionmaker(bind=bind, autoflush=False, autocommit=False)


__all__ = ["Base", "default_db_url", "create_db_engine", "create_session_factory"]
