"""Engine and session construction.

Each application instance owns its engine (see ``create_app``); routes get a
session per request through the ``SessionDep`` dependency.
"""

from __future__ import annotations

from typing import Annotated, Iterator

from fastapi import Depends, Request
from sqlalchemy import Engine, create_engine, make_url, text
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import DatabaseSettings
from app.db.models import Base


def is_in_memory_sqlite(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:" or "mode=memory" in url


def build_engine(db_settings: DatabaseSettings) -> Engine:
    """Create the SQLAlchemy engine described by the settings.

    SQLite connections are pooled per session rather than shared, so closing
    one session never rolls back another session's pending writes.

    Raises:
        ValueError: If the URL names an in-memory SQLite database.
    """
    url = db_settings.url
    if url.startswith("sqlite"):
        if is_in_memory_sqlite(url):
            raise ValueError(
                "In-memory SQLite cannot be shared between pooled connections; "
                "use a file-backed URL such as sqlite:///./todo.db"
            )
        return create_engine(
            url,
            echo=db_settings.echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(url, echo=db_settings.echo, pool_pre_ping=True)


def get_session_maker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create missing tables."""
    Base.metadata.create_all(engine)


def ping(engine: Engine) -> None:
    """Run a trivial query; raises SQLAlchemyError when the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding a session bound to the app's engine."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


# Usage: def handler(session: SessionDep)
SessionDep = Annotated[Session, Depends(get_db)]
