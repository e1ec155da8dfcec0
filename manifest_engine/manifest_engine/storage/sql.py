"""SQLAlchemy-backed blob store.

Stores every blob as one row of the ``manifest_blobs`` table, keyed by
``(namespace, key)``.  Uses synchronous sessions because the engine itself
issues no concurrent I/O.  SQLite URLs get their parent directory created
automatically; ``sqlite://`` (no path) gives an in-memory database shared by
all sessions of this store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import DateTime, Index, String, Text, create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from manifest_engine.storage.base import fail

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base for the manifest engine tables."""


class BlobTable(Base):
    """One persisted document per ``(namespace, key)``."""

    __tablename__ = "manifest_blobs"

    namespace: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (Index("ix_manifest_blobs_namespace", "namespace"),)


def create_blob_engine(url: str) -> Engine:
    """Create a synchronous engine for ``url`` and ensure the table exists."""
    parsed = make_url(url)
    kwargs: dict[str, object] = {}
    if parsed.get_backend_name() == "sqlite":
        database = parsed.database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        else:
            # Share one connection so every session sees the same in-memory DB.
            kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_engine(url, **kwargs)
    Base.metadata.create_all(engine)
    logger.info("Created blob store engine: %s", parsed.render_as_string(hide_password=True))
    return engine


class SqlBlobStore:
    """Persist blobs in a relational database through the SQLAlchemy ORM.

    Parameters
    ----------
    url:
        SQLAlchemy database URL, e.g. ``sqlite:///.manifest_engine/state.db``.
    engine:
        An existing engine to reuse instead of creating one from ``url``.
    """

    def __init__(self, url: str = "sqlite://", engine: Engine | None = None) -> None:
        self._engine = engine if engine is not None else create_blob_engine(url)
        if engine is not None:
            Base.metadata.create_all(engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def read_text(self, namespace: str, key: str) -> str | None:
        try:
            with self._session() as session:
                row = session.get(BlobTable, (namespace, key))
                return row.payload if row is not None else None
        except SQLAlchemyError as exc:
            raise fail("read", namespace, key, exc) from exc

    def write_text(self, namespace: str, key: str, text: str) -> None:
        try:
            with self._session() as session:
                row = session.get(BlobTable, (namespace, key))
                if row is None:
                    session.add(BlobTable(namespace=namespace, key=key, payload=text))
                else:
                    row.payload = text
        except SQLAlchemyError as exc:
            raise fail("write", namespace, key, exc) from exc

    def delete(self, namespace: str, key: str) -> bool:
        try:
            with self._session() as session:
                row = session.get(BlobTable, (namespace, key))
                if row is None:
                    return False
                session.delete(row)
                return True
        except SQLAlchemyError as exc:
            raise fail("delete", namespace, key, exc) from exc

    def list_keys(self, namespace: str) -> list[str]:
        stmt = select(BlobTable.key).where(BlobTable.namespace == namespace).order_by(BlobTable.key)
        try:
            with self._session() as session:
                return list(session.scalars(stmt))
        except SQLAlchemyError as exc:
            raise fail("list", namespace, None, exc) from exc

    def dispose(self) -> None:
        self._engine.dispose()
