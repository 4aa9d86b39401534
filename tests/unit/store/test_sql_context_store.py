"""Unit tests specific to the SQL-backed context store."""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from casegen.store import sql as sql_schema
from casegen.store.sql import SqlContextStore


def _session_factory() -> sessionmaker:
    engine = sa.create_engine("sqlite:///:memory:", future=True)
    sql_schema.METADATA.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def test_upsert_keeps_single_row_per_path():
    factory = _session_factory()
    store = SqlContextStore(session_factory=factory)

    assert store.save("CASE-1", "manifest.json", {"version": 1}) == "CASE-1/manifest"
    store.save("CASE-1", "manifest", {"version": 2})

    with factory() as session:
        rows = session.execute(
            sa.select(sql_schema.context_items.c.path, sql_schema.context_items.c.size_bytes)
        ).all()

    assert len(rows) == 1
    assert rows[0].path == "manifest"
    assert rows[0].size_bytes > 0
    assert store.load("CASE-1", "manifest") == {"version": 2}


def test_like_wildcards_in_prefix_are_escaped():
    store = SqlContextStore(session_factory=_session_factory())
    store.save("CASE-1", "entities/suspects/S001", {"suspectId": "S001"})
    store.save("CASE-1", "entities_suspects/S002", {"suspectId": "S002"})

    assert store.list_paths("CASE-1", "entities_suspects") == ["entities_suspects/S002"]


def test_save_retries_after_concurrent_insert(monkeypatch):
    store = SqlContextStore(session_factory=_session_factory())
    store.save("CASE-1", "plan/core", {"version": 1})
    original_upsert = SqlContextStore._upsert
    calls = []

    def racing_upsert(session, case_id, path, values):
        calls.append(path)
        if len(calls) == 1:
            raise IntegrityError("INSERT INTO context_items", {}, Exception("UNIQUE constraint failed"))
        original_upsert(session, case_id, path, values)

    monkeypatch.setattr(SqlContextStore, "_upsert", staticmethod(racing_upsert))

    store.save("CASE-1", "plan/core", {"version": 2})

    assert calls == ["plan/core", "plan/core"]
    assert store.load("CASE-1", "plan/core") == {"version": 2}
