"""Result models returned by the quality components."""

from __future__ import annotations

from typing import List

from pydantic import Field

from casegen.normalization.schema import CamelModel
from casegen.quality.entity_types import EntityType


class VerificationResult(CamelModel):
    """Outcome of a manifest-only verification pass.

    Attributes:
        is_clean: True only when every checked issue is confirmed resolved.
        total_checked: Number of issues submitted for verification.
        resolved_count: Issues no longer reported as remaining.
        remaining_issues: Issues still needing attention.
        message: Human-readable summary.
    """

    is_clean: bool = False
    total_checked: int = 0
    resolved_count: int = 0
    remaining_issues: List[str] = Field(default_factory=list)
    message: str = ""


class RepairResult(CamelModel):
    """Outcome of a single-entity repair."""

    success: bool = False
    entity_id: str
    entity_type: EntityType = EntityType.UNKNOWN
    save_path: str | None = None
    changes_summary: str | None = None
    message: str = ""


__all__ = ["RepairResult", "VerificationResult"]
