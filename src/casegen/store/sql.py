"""SQLAlchemy metadata, engine helpers and the SQL-backed context store."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.engine import URL
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from casegen.settings import Settings, get_settings
from casegen.store.context_store import ContextStore, ContextStoreError, StoredRecord

LOGGER = logging.getLogger(__name__)

TIMESTAMP = sa.DateTime(timezone=True)

METADATA = sa.MetaData()

context_items = sa.Table(
    "context_items",
    METADATA,
    sa.Column("case_id", sa.Text(), nullable=False),
    sa.Column("path", sa.Text(), nullable=False),
    sa.Column("payload", sa.Text(), nullable=False),
    sa.Column("size_bytes", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("created_at", TIMESTAMP, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    sa.Column("updated_at", TIMESTAMP, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    sa.PrimaryKeyConstraint("case_id", "path", name="pk_context_items"),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _resolve_database_url(settings: Settings | None = None) -> str:
    """Return the SQLAlchemy URL considering overrides and configured backend."""

    url_override = os.getenv("CASEGEN_DATABASE_URL")
    if url_override:
        return url_override

    resolved = settings or get_settings()
    sqlite_path = Path(resolved.storage.sqlite_path)
    sqlite_path.parent.mkdir(parents=True, exist_ok=True)
    return URL.create("sqlite", database=sqlite_path.as_posix()).render_as_string(hide_password=False)


def build_engine(*, echo: bool = False, settings: Settings | None = None) -> Engine:
    """Instantiate a SQLAlchemy engine aligned with project settings."""

    url = _resolve_database_url(settings)
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite:///"):
        connect_args["check_same_thread"] = False
    return sa.create_engine(url, echo=echo, future=True, pool_pre_ping=True, connect_args=connect_args)


def session_factory(*, settings: Settings | None = None) -> sessionmaker:
    """Return a configured sessionmaker bound to the active engine with tables created."""

    engine = build_engine(settings=settings)
    METADATA.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


default_session_factory = session_factory


class SqlContextStore(ContextStore):
    """Persist case context as rows keyed by ``(case_id, path)``."""

    backend_name = "sqlite"

    def __init__(self, *, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or default_session_factory()

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _write(self, case_id: str, path: str, payload: str) -> str:
        values = {
            "payload": payload,
            "size_bytes": len(payload.encode("utf-8")),
            "updated_at": _utcnow(),
        }
        try:
            try:
                with self._session_scope() as session:
                    self._upsert(session, case_id, path, values)
            except IntegrityError:
                # A concurrent writer inserted the row first; overwrite it.
                with self._session_scope() as session:
                    self._upsert(session, case_id, path, values)
        except SQLAlchemyError as exc:
            raise ContextStoreError(f"Failed to save context {path} for case {case_id}") from exc
        return f"{case_id}/{path}"

    @staticmethod
    def _upsert(session: Session, case_id: str, path: str, values: dict[str, Any]) -> None:
        result = session.execute(
            sa.update(context_items)
            .where(context_items.c.case_id == case_id)
            .where(context_items.c.path == path)
            .values(**values)
        )
        if result.rowcount == 0:
            session.execute(
                sa.insert(context_items).values(case_id=case_id, path=path, created_at=values["updated_at"], **values)
            )

    def _read(self, case_id: str, path: str) -> str | None:
        try:
            with self._session_scope() as session:
                return session.execute(
                    sa.select(context_items.c.payload)
                    .where(context_items.c.case_id == case_id)
                    .where(context_items.c.path == path)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise ContextStoreError(f"Failed to load context {path} for case {case_id}") from exc

    def _scan(self, case_id: str, prefix: str, *, with_payload: bool) -> Iterator[StoredRecord]:
        columns = [context_items.c.path, context_items.c.size_bytes, context_items.c.updated_at]
        if with_payload:
            columns.append(context_items.c.payload)
        stmt = sa.select(*columns).where(context_items.c.case_id == case_id)
        if prefix:
            stmt = stmt.where(context_items.c.path.startswith(f"{prefix}/", autoescape=True))
        try:
            with self._session_scope() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise ContextStoreError(f"Failed to scan context {prefix or '<root>'} for case {case_id}") from exc
        for row in rows:
            yield StoredRecord(
                path=row.path,
                size_bytes=row.size_bytes or 0,
                last_modified=row.updated_at,
                payload=row.payload if with_payload else None,
            )

    def _remove(self, case_id: str, path: str) -> bool:
        try:
            with self._session_scope() as session:
                result = session.execute(
                    sa.delete(context_items)
                    .where(context_items.c.case_id == case_id)
                    .where(context_items.c.path == path)
                )
        except SQLAlchemyError as exc:
            raise ContextStoreError(f"Failed to delete context {path} for case {case_id}") from exc
        return bool(result.rowcount)


__all__ = [
    "METADATA",
    "SqlContextStore",
    "build_engine",
    "context_items",
    "session_factory",
]
