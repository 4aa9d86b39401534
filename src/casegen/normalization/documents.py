"""Canonicalize generated documents and tag the entities they mention."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Sequence

from casegen.normalization.schema import CanonicalDocument, DocumentNormalizationResult, EntityReferences
from casegen.observability import Observability, get_observability
from casegen.storage import BundleStorage
from casegen.store import ContextKey, ContextStore

LOGGER = logging.getLogger(__name__)

SUSPECT_PATTERN = re.compile(r"\bS\d{3}\b", re.IGNORECASE)
EVIDENCE_PATTERN = re.compile(r"\bE\d{3}\b", re.IGNORECASE)
WITNESS_PATTERN = re.compile(r"\bW\d{3}\b", re.IGNORECASE)


def extract_entity_references(sections: Any) -> EntityReferences:
    """Return the entity ids mentioned in the ``content`` of ``sections``.

    Matches are uppercased, deduplicated and sorted. Sections that are not
    mappings or whose ``content`` is not a string are ignored, as is a
    ``sections`` value that is not a list.

    Example:
        >>> extract_entity_references([{"content": "s001 suspect"}, {"content": "Evidence E010 found"}])
        EntityReferences(suspects=['S001'], evidence=['E010'], witnesses=[])
    """

    parts = []
    if not isinstance(sections, (list, tuple)):
        sections = ()
    for section in sections:
        if not isinstance(section, Mapping):
            continue
        content = section.get("content")
        if isinstance(content, str):
            parts.append(content)
    text = "\n".join(parts)

    return EntityReferences(
        suspects=_scan(SUSPECT_PATTERN, text),
        evidence=_scan(EVIDENCE_PATTERN, text),
        witnesses=_scan(WITNESS_PATTERN, text),
    )


def _scan(pattern: re.Pattern[str], text: str) -> list[str]:
    return sorted({match.upper() for match in pattern.findall(text)})


class DocumentNormalizer:
    """Load draft documents from the bundle storage and store canonical copies."""

    def __init__(
        self,
        store: ContextStore,
        bundles: BundleStorage,
        *,
        observability: Observability | None = None,
    ) -> None:
        self.store = store
        self.bundles = bundles
        self.observability = observability or get_observability(component="normalize")

    def normalize(self, case_id: str, doc_ids: Sequence[str]) -> DocumentNormalizationResult:
        """Normalize the requested documents; failures are logged per document."""

        LOGGER.info("Normalizing %s document(s) for case %s", len(doc_ids), case_id)
        normalized = 0
        for doc_id in doc_ids:
            if self._normalize_document(case_id, doc_id):
                normalized += 1

        result = DocumentNormalizationResult(normalized_count=normalized, total_requested=len(doc_ids))
        LOGGER.info("Normalized %s/%s documents for case %s", normalized, len(doc_ids), case_id)
        self.observability.emit_event("normalize.documents", case_id=case_id, **result.to_payload())
        self.observability.increment("normalize.documents", value=normalized)
        return result

    def _normalize_document(self, case_id: str, doc_id: str) -> bool:
        try:
            raw = self.bundles.read_document(case_id, doc_id)
            if raw is None:
                LOGGER.warning("Document %s not found for case %s", doc_id, case_id)
                return False

            draft = json.loads(raw)
            if not isinstance(draft, Mapping):
                raise ValueError(f"Document {doc_id} is not a JSON object")

            document = CanonicalDocument.model_validate({"docId": doc_id, **draft})
            document.entity_references = extract_entity_references(document.sections)
            self.store.save(case_id, ContextKey.for_document(case_id, doc_id), document)
        except Exception:
            LOGGER.exception("Failed to normalize document %s for case %s", doc_id, case_id)
            return False

        refs = document.entity_references
        LOGGER.debug(
            "Normalized document %s for case %s: %s suspects, %s evidence, %s witnesses",
            doc_id,
            case_id,
            len(refs.suspects),
            len(refs.evidence),
            len(refs.witnesses),
        )
        return True


__all__ = ["DocumentNormalizer", "extract_entity_references"]
