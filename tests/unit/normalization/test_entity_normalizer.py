"""Unit tests for EntityNormalizer."""

from __future__ import annotations

import pytest

from casegen.normalization import EntityNormalizer
from casegen.store import ContextStoreError
from casegen.store.local import LocalContextStore


def _seed_drafts(store: LocalContextStore, case_id: str = "CASE-1") -> None:
    store.save(case_id, "expand/suspects/S001", {"suspectId": "S001", "name": "Ada Crane", "alibi": "Library"})
    store.save(case_id, "expand/suspects/S002", {"suspectId": "S002", "name": "Ben Holt"})
    store.save(case_id, "expand/evidence/E001", {"evidenceId": "E001", "label": "Muddy boot"})


def test_zero_drafts_writes_nothing(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)

    counts = EntityNormalizer(store).normalize("CASE-1")

    assert counts.to_payload() == {"suspects": 0, "evidence": 0, "witnesses": 0}
    assert store.list_paths("CASE-1") == []


def test_drafts_are_copied_whole_to_canonical_paths(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    _seed_drafts(store)

    counts = EntityNormalizer(store).normalize("CASE-1")

    assert (counts.suspects, counts.evidence, counts.witnesses) == (2, 1, 0)
    assert store.load("CASE-1", "entities/suspects/S001") == {
        "suspectId": "S001",
        "name": "Ada Crane",
        "alibi": "Library",
    }
    assert store.load("CASE-1", "entities/evidence/E001") == {"evidenceId": "E001", "label": "Muddy boot"}


def test_normalize_is_idempotent(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    _seed_drafts(store)
    normalizer = EntityNormalizer(store)

    first = normalizer.normalize("CASE-1")
    snapshot = {path: store.load("CASE-1", path) for path in store.list_paths("CASE-1", "entities")}
    second = normalizer.normalize("CASE-1")

    assert first == second
    assert {path: store.load("CASE-1", path) for path in store.list_paths("CASE-1", "entities")} == snapshot


def test_drafts_without_id_are_skipped(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    store.save("CASE-1", "expand/suspects/S001", {"suspectId": "S001"})
    store.save("CASE-1", "expand/suspects/bad", {"name": "No id"})
    store.save("CASE-1", "expand/suspects/blank", {"suspectId": "   "})
    store.save("CASE-1", "expand/evidence/list", ["not", "an", "object"])

    counts = EntityNormalizer(store).normalize("CASE-1")

    assert (counts.suspects, counts.evidence) == (1, 0)
    assert store.list_paths("CASE-1", "entities") == ["entities/suspects/S001"]


def test_per_item_save_failure_does_not_abort(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    _seed_drafts(store)
    original_save = store.save

    def flaky_save(case_id, path, value):
        if "S001" in str(getattr(path, "path", path)) and "entities" in str(getattr(path, "path", path)):
            raise ContextStoreError("disk full")
        return original_save(case_id, path, value)

    store.save = flaky_save

    counts = EntityNormalizer(store).normalize("CASE-1")

    assert (counts.suspects, counts.evidence) == (1, 1)
    assert store.exists("CASE-1", "entities/suspects/S002")
    assert not store.exists("CASE-1", "entities/suspects/S001")


def test_query_failure_propagates(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)

    def broken_query(case_id, pattern, model=None):
        raise ContextStoreError("backend offline")

    store.query = broken_query

    with pytest.raises(ContextStoreError):
        EntityNormalizer(store).normalize("CASE-1")
