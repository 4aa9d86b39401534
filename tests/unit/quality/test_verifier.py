"""Unit tests for QualityVerifier."""

from __future__ import annotations

import json

from casegen.normalization import ManifestBuilder
from casegen.quality import QualityVerifier, ScriptedOracle
from casegen.quality.oracle import OracleError
from casegen.store.local import LocalContextStore

ISSUES = ["S002 alibi contradicts timeline", "E004 missing chain of custody"]


def _store_with_manifest(tmp_path) -> LocalContextStore:
    store = LocalContextStore(root_dir=tmp_path)
    store.save("CASE-1", "entities/suspects/S002", {"suspectId": "S002"})
    store.save("CASE-1", "entities/evidence/E004", {"evidenceId": "E004"})
    ManifestBuilder(store).build("CASE-1")
    return store


def test_missing_manifest_skips_oracle(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    oracle = ScriptedOracle()

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert oracle.calls == []
    assert result.is_clean is False
    assert result.remaining_issues == ISSUES
    assert result.total_checked == 2
    assert result.resolved_count == 0
    assert result.message == "Manifest not found"


def test_empty_manifest_is_treated_as_missing(tmp_path):
    store = LocalContextStore(root_dir=tmp_path)
    store.save("CASE-1", "manifest.json", {})
    oracle = ScriptedOracle()

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert oracle.calls == []
    assert result.is_clean is False


def test_clean_response(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle.from_responses(
        ['Sure.\n{"isClean": true, "remainingIssues": [], "verificationNotes": "All good"}']
    )

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert result.is_clean is True
    assert result.resolved_count == 2
    assert result.remaining_issues == []
    assert result.message == "All issues resolved. Case is ready."
    assert result.to_payload() == {
        "isClean": True,
        "totalChecked": 2,
        "resolvedCount": 2,
        "remainingIssues": [],
        "message": "All issues resolved. Case is ready.",
    }


def test_prompt_carries_numbered_issues_and_manifest(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle.from_responses(['{"isClean": true, "remainingIssues": []}'])

    QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    call = oracle.calls[0]
    assert "quality assurance verifier" in call.system_prompt
    assert "1. S002 alibi contradicts timeline" in call.user_prompt
    assert "2. E004 missing chain of custody" in call.user_prompt
    assert "@entities/suspects/S002" in call.user_prompt
    assert "CONSERVATIVE" in call.user_prompt
    # Only the manifest is sent, never entity bodies.
    assert '"suspectId"' not in call.user_prompt


def test_partial_resolution(tmp_path):
    store = _store_with_manifest(tmp_path)
    response = json.dumps({"isClean": False, "remainingIssues": [ISSUES[1]], "verificationNotes": "E004 unchanged"})
    oracle = ScriptedOracle.from_responses([response])

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert result.is_clean is False
    assert result.remaining_issues == [ISSUES[1]]
    assert result.resolved_count == 1
    assert result.message == "1 issue(s) still need attention."


def test_clean_claim_with_remaining_issues_is_not_clean(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle.from_responses(['{"isClean": true, "remainingIssues": ["E004 missing chain of custody"]}'])

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert result.is_clean is False
    assert result.resolved_count == 1


def test_unparseable_response_keeps_all_issues(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle.from_responses(["Everything looks fine to me!"])

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert len(oracle.calls) == 1
    assert result.is_clean is False
    assert result.remaining_issues == ISSUES
    assert result.resolved_count == 0


def test_oracle_error_keeps_all_issues(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle.from_responses([OracleError("timeout")])

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert result.is_clean is False
    assert result.remaining_issues == ISSUES


def test_not_clean_without_list_keeps_all_issues(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle.from_responses(['{"isClean": false}'])

    result = QualityVerifier(store, oracle).verify("CASE-1", ISSUES)

    assert result.remaining_issues == ISSUES
    assert result.resolved_count == 0


def test_empty_issue_list_is_clean_without_oracle(tmp_path):
    store = _store_with_manifest(tmp_path)
    oracle = ScriptedOracle()

    result = QualityVerifier(store, oracle).verify("CASE-1", [])

    assert oracle.calls == []
    assert result.is_clean is True
    assert result.total_checked == 0
