"""Unit tests specific to the filesystem context store."""

from __future__ import annotations

import json

import pytest

from casegen.store import ContextStoreError
from casegen.store.local import LocalContextStore


def test_files_land_under_case_context_dir(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)

    location = store.save("CASE-1", "@entities/suspects/S001.json", {"suspectId": "S001", "name": "Zoë"})

    target = tmp_path / "CASE-1" / "context" / "entities" / "suspects" / "S001.json"
    assert location == str(target)
    assert json.loads(target.read_text(encoding="utf-8")) == {"suspectId": "S001", "name": "Zoë"}
    # No temporary files are left behind after the atomic replace.
    assert [path.name for path in target.parent.iterdir()] == ["S001.json"]


def test_corrupt_file_raises_on_load_and_is_skipped_by_query(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    store.save("CASE-1", "entities/suspects/S001", {"suspectId": "S001"})
    broken = tmp_path / "CASE-1" / "context" / "entities" / "suspects" / "S002.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(ContextStoreError):
        store.load("CASE-1", "entities/suspects/S002")

    results = store.query("CASE-1", "entities/suspects/*")
    assert [item.path for item in results] == ["entities/suspects/S001"]


def test_query_on_missing_case_returns_empty(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)

    assert store.query("UNKNOWN", "expand/suspects/*") == []
    assert store.list_paths("UNKNOWN") == []
