"""Build the reference-only case manifest from the canonical store."""

from __future__ import annotations

import logging

from casegen.normalization.schema import MANIFEST_PATH, Manifest, ManifestDocuments, ManifestEntities
from casegen.observability import Observability, get_observability
from casegen.store import ContextCategory, ContextStore
from casegen.store.paths import resource_id_from_path

LOGGER = logging.getLogger(__name__)


class ManifestBuilder:
    """Index canonical entities and documents into ``manifest.json``."""

    def __init__(self, store: ContextStore, *, observability: Observability | None = None) -> None:
        self.store = store
        self.observability = observability or get_observability(component="manifest")

    def references(self, case_id: str, category: ContextCategory) -> list[str]:
        """Return sorted ``@{category}/{id}`` references for every stored resource."""

        results = self.store.query(case_id, f"{category.value}/*")
        ids = {resource_id_from_path(item.path) for item in results}
        return sorted(f"@{category.value}/{resource_id}" for resource_id in ids if resource_id)

    def build(self, case_id: str) -> Manifest:
        """Rebuild and save the manifest for ``case_id``.

        Query and save failures propagate to the caller.
        """

        suspects = self.references(case_id, ContextCategory.SUSPECTS)
        evidence = self.references(case_id, ContextCategory.EVIDENCE)
        witnesses = self.references(case_id, ContextCategory.WITNESSES)
        documents = self.references(case_id, ContextCategory.DOCUMENTS)

        manifest = Manifest(
            case_id=case_id,
            entities=ManifestEntities(
                suspects=suspects,
                evidence=evidence,
                witnesses=witnesses,
                total=len(suspects) + len(evidence) + len(witnesses),
            ),
            documents=ManifestDocuments(items=documents, total=len(documents)),
        )
        self.store.save(case_id, MANIFEST_PATH, manifest)

        LOGGER.info(
            "Built manifest for case %s: %s entities, %s documents",
            case_id,
            manifest.entities.total,
            manifest.documents.total,
        )
        self.observability.emit_event(
            "manifest.built",
            case_id=case_id,
            entities=manifest.entities.total,
            documents=manifest.documents.total,
        )
        self.observability.increment("manifest.built")
        return manifest


__all__ = ["ManifestBuilder"]
