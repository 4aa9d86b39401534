"""Pydantic models for canonical documents, the manifest and normalizer results.

Python attributes are snake_case; every model serializes with camelCase keys
(``model_dump(by_alias=True)``) to match the stored JSON resources.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MANIFEST_VERSION = "v2-hierarchical"
MANIFEST_PATH = "manifest.json"


class CamelModel(BaseModel):
    """Base model serializing field names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready, camelCase representation."""

        return self.model_dump(mode="json", by_alias=True)


class EntityReferences(CamelModel):
    """Entity ids mentioned in a document, uppercased and sorted."""

    suspects: List[str] = Field(default_factory=list)
    evidence: List[str] = Field(default_factory=list)
    witnesses: List[str] = Field(default_factory=list)


class CanonicalDocument(CamelModel):
    """Draft document enriched with its entity references.

    Unknown draft fields (``words``, ``metadata`` ...) are carried through
    unchanged, and so are ``type``, ``title`` and ``sections`` whatever their
    JSON type.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    doc_id: str
    type: Any = None
    title: Any = None
    sections: Any = Field(default_factory=list)
    entity_references: EntityReferences = Field(default_factory=EntityReferences)


class EntityCounts(CamelModel):
    """Number of canonical entities written per category."""

    suspects: int = 0
    evidence: int = 0
    witnesses: int = 0

    @property
    def total(self) -> int:
        return self.suspects + self.evidence + self.witnesses


class DocumentNormalizationResult(CamelModel):
    normalized_count: int = 0
    total_requested: int = 0


class ManifestEntities(CamelModel):
    suspects: List[str] = Field(default_factory=list)
    evidence: List[str] = Field(default_factory=list)
    witnesses: List[str] = Field(default_factory=list)
    total: int = 0


class ManifestDocuments(CamelModel):
    items: List[str] = Field(default_factory=list)
    total: int = 0


class PlanPointers(CamelModel):
    core: str = "@plan/core"
    suspects: str = "@plan/suspects"
    timeline: str = "@plan/timeline"
    evidence: str = "@plan/evidence"


class ExpandPointers(CamelModel):
    timeline: str = "@expand/timeline"
    relations: str = "@expand/relations"


class ContextPointers(CamelModel):
    plan: PlanPointers = Field(default_factory=PlanPointers)
    expand: ExpandPointers = Field(default_factory=ExpandPointers)


class Manifest(CamelModel):
    """Reference-only index of a case's canonical store."""

    case_id: str
    version: str = MANIFEST_VERSION
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    entities: ManifestEntities = Field(default_factory=ManifestEntities)
    documents: ManifestDocuments = Field(default_factory=ManifestDocuments)
    context: ContextPointers = Field(default_factory=ContextPointers)


__all__ = [
    "CamelModel",
    "CanonicalDocument",
    "ContextPointers",
    "DocumentNormalizationResult",
    "EntityCounts",
    "EntityReferences",
    "ExpandPointers",
    "MANIFEST_PATH",
    "MANIFEST_VERSION",
    "Manifest",
    "ManifestDocuments",
    "ManifestEntities",
    "PlanPointers",
]
