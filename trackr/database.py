# trackr/database.py
"""SQLModel engine construction and per-request sessions."""

import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for *database_url*.

    In-memory SQLite URLs share one connection so every session sees the
    same database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)
    return create_engine(database_url, echo=False)


def create_db_and_tables(engine: Engine) -> None:
    """Create the task table if it is missing."""
    SQLModel.metadata.create_all(engine)
    logger.info("Database schema ready at %s", engine.url.render_as_string(hide_password=True))


def get_session(request: Request) -> Iterator[Session]:
    """Open a session on ``request.app.state.engine`` for the duration of one request."""
    with Session(request.app.state.engine) as session:
        yield session
