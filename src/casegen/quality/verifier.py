"""Cheap, manifest-only check of whether reported issues were resolved.

The verifier never loads entity bodies: it prompts the oracle with the issue
list and the manifest, and treats anything it cannot confirm (missing
manifest, oracle failure, unparseable reply) as "not clean".
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

from casegen.normalization.schema import MANIFEST_PATH
from casegen.observability import Observability, get_observability
from casegen.quality.extraction import extract_json_object
from casegen.quality.models import VerificationResult
from casegen.quality.oracle import Oracle
from casegen.quality.prompts import VERIFY_SYSTEM_PROMPT, build_verification_prompt
from casegen.store import ContextNotFoundError, ContextStore, ContextStoreError

LOGGER = logging.getLogger(__name__)

CLEAN_MESSAGE = "All issues resolved. Case is ready."
MANIFEST_MISSING_MESSAGE = "Manifest not found"
VERIFICATION_FAILED_MESSAGE = "Could not verify issues; assuming they remain."


class QualityVerifier:
    """Ask the oracle whether ``issues`` are resolved according to the manifest."""

    def __init__(
        self,
        store: ContextStore,
        oracle: Oracle,
        *,
        observability: Observability | None = None,
    ) -> None:
        self.store = store
        self.oracle = oracle
        self.observability = observability or get_observability(component="quality")

    def verify(self, case_id: str, issues: Sequence[str]) -> VerificationResult:
        """Return a :class:`VerificationResult`; never raises for oracle or parse errors."""

        issue_list = [str(issue) for issue in issues]
        LOGGER.info("Verifying %s issue(s) for case %s", len(issue_list), case_id)

        manifest = self._load_manifest(case_id)
        if manifest is None:
            result = _not_clean(issue_list, MANIFEST_MISSING_MESSAGE)
        elif not issue_list:
            result = VerificationResult(is_clean=True, message=CLEAN_MESSAGE)
        else:
            result = self._ask_oracle(case_id, issue_list, manifest)

        LOGGER.info(
            "Case %s is %s; %s issue(s) remaining",
            case_id,
            "clean" if result.is_clean else "not clean",
            len(result.remaining_issues),
        )
        self.observability.emit_event(
            "quality.verify",
            case_id=case_id,
            is_clean=result.is_clean,
            total_checked=result.total_checked,
            remaining=len(result.remaining_issues),
        )
        self.observability.increment("quality.verify", tags={"clean": str(result.is_clean).lower()})
        return result

    def _load_manifest(self, case_id: str) -> Any | None:
        try:
            manifest = self.store.load(case_id, MANIFEST_PATH)
        except ContextNotFoundError:
            LOGGER.warning("Manifest not found for case %s", case_id)
            return None
        except ContextStoreError:
            LOGGER.exception("Failed to load manifest for case %s", case_id)
            return None
        if not manifest:
            LOGGER.warning("Manifest is empty for case %s", case_id)
            return None
        return manifest

    def _ask_oracle(self, case_id: str, issues: List[str], manifest: Any) -> VerificationResult:
        prompt = build_verification_prompt(issues, manifest)
        try:
            response = self.oracle.generate(case_id, VERIFY_SYSTEM_PROMPT, prompt)
        except Exception:
            LOGGER.exception("Verification oracle call failed for case %s", case_id)
            return _not_clean(issues, VERIFICATION_FAILED_MESSAGE)

        parsed = extract_json_object(response)
        if parsed is None:
            LOGGER.warning("Could not parse verification result for case %s; assuming not clean", case_id)
            return _not_clean(issues, VERIFICATION_FAILED_MESSAGE)

        claimed_clean = parsed.get("isClean") is True
        raw_remaining = parsed.get("remainingIssues")
        if isinstance(raw_remaining, list):
            remaining = [str(item) for item in raw_remaining if item is not None]
        else:
            remaining = [] if claimed_clean else list(issues)
        if not claimed_clean and not remaining:
            remaining = list(issues)

        is_clean = claimed_clean and not remaining
        notes = parsed.get("verificationNotes")
        if notes:
            LOGGER.debug("Verification notes for case %s: %s", case_id, notes)

        return VerificationResult(
            is_clean=is_clean,
            total_checked=len(issues),
            resolved_count=max(0, len(issues) - len(remaining)),
            remaining_issues=remaining,
            message=CLEAN_MESSAGE if is_clean else _remaining_message(len(remaining)),
        )


def _remaining_message(count: int) -> str:
    return f"{count} issue(s) still need attention."


def _not_clean(issues: List[str], message: str) -> VerificationResult:
    return VerificationResult(
        is_clean=False,
        total_checked=len(issues),
        resolved_count=0,
        remaining_issues=list(issues),
        message=message,
    )


__all__ = ["QualityVerifier"]
