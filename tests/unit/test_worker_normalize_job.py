"""Unit tests for the normalize batch job entrypoint."""

from __future__ import annotations

import json

from casegen.store.local import LocalContextStore
from casegen.worker.jobs import normalize as normalize_job


def _reset_env(monkeypatch):
    for key in ["CASEGEN_JOB__CASE_ID", "CASEGEN_JOB__DOC_IDS"]:
        monkeypatch.delenv(key, raising=False)


def test_main_requires_case_id(monkeypatch):
    _reset_env(monkeypatch)

    assert normalize_job.main() == 1


def test_main_runs_full_normalization(monkeypatch, tmp_path):
    _reset_env(monkeypatch)
    monkeypatch.setenv("CASEGEN_JOB__CASE_ID", "CASE-1")
    monkeypatch.setenv("CASEGEN_JOB__DOC_IDS", "DOC_A, ,DOC_MISSING")

    store = LocalContextStore(root_dir=tmp_path / "context")
    store.save("CASE-1", "expand/suspects/S001", {"suspectId": "S001"})
    bundle = tmp_path / "bundles" / "CASE-1" / "documents" / "DOC_A.json"
    bundle.parent.mkdir(parents=True)
    bundle.write_text(json.dumps({"docId": "DOC_A", "sections": [{"content": "see S001"}]}), encoding="utf-8")

    from casegen.services import factories

    monkeypatch.setattr(normalize_job, "build_context_store", lambda: store)
    monkeypatch.setattr(
        normalize_job,
        "build_document_normalizer",
        lambda s: factories.build_document_normalizer(s, factories.build_bundle_storage(tmp_path / "bundles")),
    )

    assert normalize_job.main() == 0

    manifest = store.load("CASE-1", "manifest.json")
    assert manifest["entities"]["suspects"] == ["@entities/suspects/S001"]
    assert manifest["documents"]["items"] == ["@documents/DOC_A"]
    assert store.load("CASE-1", "documents/DOC_A")["entityReferences"]["suspects"] == ["S001"]


def test_main_reports_store_failure(monkeypatch, tmp_path):
    _reset_env(monkeypatch)
    monkeypatch.setenv("CASEGEN_JOB__CASE_ID", "CASE-1")

    class BrokenNormalizer:
        def normalize(self, case_id):
            raise RuntimeError("store offline")

    monkeypatch.setattr(normalize_job, "build_context_store", lambda: LocalContextStore(root_dir=tmp_path))
    monkeypatch.setattr(normalize_job, "build_entity_normalizer", lambda store: BrokenNormalizer())

    assert normalize_job.main() == 1
