"""
Database handle for leaderhud.
SQLite through SQLAlchemy; a Database is only handed out once its engine has
answered a first query, and is disposed when the surrounding `with` ends.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import MEMORY_DB

log = logging.getLogger(__name__)

Base = declarative_base()


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_path: str) -> Engine:
    if db_path == MEMORY_DB:
        # one shared connection, otherwise every session would see its own empty db
        engine = create_engine(
            "sqlite://",
            echo=False,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{db_path}", echo=False, future=True)
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


class Database:
    """An initialized engine plus its session factory."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    @contextmanager
    def session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
        finally:
            s.close()

    def close(self) -> None:
        self.engine.dispose()


@contextmanager
def open_database(db_path: str) -> Iterator[Database]:
    engine = make_engine(db_path)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        engine.dispose()
        raise
    log.debug("database ready: %s", db_path)
    db = Database(engine)
    try:
        yield db
    finally:
        db.close()


def create_schema(db: Database) -> None:
    # models must be imported so their tables are registered on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=db.engine)
