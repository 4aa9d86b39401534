"""Promote expand-stage entity drafts into the canonical entity store."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from casegen.normalization.schema import EntityCounts
from casegen.observability import Observability, get_observability
from casegen.store import ContextCategory, ContextKey, ContextStore

LOGGER = logging.getLogger(__name__)

# Draft query pattern and id field per canonical category. Witness drafts are
# not produced upstream yet; add ``("expand/witnesses/*", "witnessId")`` here
# once they are.
DRAFT_SOURCES: dict[ContextCategory, tuple[str, str]] = {
    ContextCategory.SUSPECTS: ("expand/suspects/*", "suspectId"),
    ContextCategory.EVIDENCE: ("expand/evidence/*", "evidenceId"),
}


class EntityNormalizer:
    """Copy every identifiable draft entity to ``entities/{category}/{id}``."""

    def __init__(self, store: ContextStore, *, observability: Observability | None = None) -> None:
        self.store = store
        self.observability = observability or get_observability(component="normalize")

    def normalize(self, case_id: str) -> EntityCounts:
        """Normalize all suspect and evidence drafts for ``case_id``.

        Individual drafts that lack an id or fail to save are logged and
        skipped. Query failures are not caught.

        Returns:
            :class:`EntityCounts` with the number of entities written per category.
        """

        LOGGER.info("Normalizing entities for case %s", case_id)
        counts = {category: 0 for category in ContextCategory}
        for category, (pattern, id_field) in DRAFT_SOURCES.items():
            drafts = self.store.query(case_id, pattern)
            for draft in drafts:
                if self._normalize_draft(case_id, category, id_field, draft.path, draft.data):
                    counts[category] += 1

        result = EntityCounts(
            suspects=counts[ContextCategory.SUSPECTS],
            evidence=counts[ContextCategory.EVIDENCE],
            witnesses=counts[ContextCategory.WITNESSES],
        )
        LOGGER.info(
            "Normalized %s suspects, %s evidence, %s witnesses for case %s",
            result.suspects,
            result.evidence,
            result.witnesses,
            case_id,
        )
        self.observability.emit_event("normalize.entities", case_id=case_id, **result.to_payload())
        self.observability.increment("normalize.entities", value=result.total)
        return result

    def _normalize_draft(
        self,
        case_id: str,
        category: ContextCategory,
        id_field: str,
        source_path: str,
        draft: Any,
    ) -> bool:
        entity_id = _draft_id(draft, id_field)
        if entity_id is None:
            LOGGER.warning("Skipping draft %s for case %s: missing %s", source_path, case_id, id_field)
            return False
        try:
            self.store.save(case_id, ContextKey.for_entity(case_id, category, entity_id), draft)
        except Exception:
            LOGGER.exception("Failed to normalize %s %s for case %s", category.short_name, entity_id, case_id)
            return False
        LOGGER.debug("Normalized %s %s for case %s", category.short_name, entity_id, case_id)
        return True


def _draft_id(draft: Any, id_field: str) -> str | None:
    if not isinstance(draft, Mapping):
        return None
    value = draft.get(id_field)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


__all__ = ["DRAFT_SOURCES", "EntityNormalizer"]
