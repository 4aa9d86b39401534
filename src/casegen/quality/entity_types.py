"""Classify entity ids and resolve them to their canonical store location."""

from __future__ import annotations

import re
from enum import Enum

from casegen.store import ContextCategory, ContextKey


class EntityType(str, Enum):
    """Kinds of repairable case entities."""

    SUSPECT = "suspect"
    EVIDENCE = "evidence"
    WITNESS = "witness"
    DOCUMENT = "document"
    UNKNOWN = "unknown"


_ID_PATTERNS: tuple[tuple[re.Pattern[str], EntityType], ...] = (
    (re.compile(r"^S\d+$", re.IGNORECASE), EntityType.SUSPECT),
    (re.compile(r"^E\d+$", re.IGNORECASE), EntityType.EVIDENCE),
    (re.compile(r"^W\d+$", re.IGNORECASE), EntityType.WITNESS),
)

_CATEGORY_BY_TYPE = {
    EntityType.SUSPECT: ContextCategory.SUSPECTS,
    EntityType.EVIDENCE: ContextCategory.EVIDENCE,
    EntityType.WITNESS: ContextCategory.WITNESSES,
    EntityType.DOCUMENT: ContextCategory.DOCUMENTS,
}

# Field that carries the entity id inside a stored entity or document.
ID_FIELDS = {
    EntityType.SUSPECT: "suspectId",
    EntityType.EVIDENCE: "evidenceId",
    EntityType.WITNESS: "witnessId",
    EntityType.DOCUMENT: "docId",
}


def classify_entity_id(entity_id: str | None) -> EntityType:
    """Return the :class:`EntityType` implied by ``entity_id``.

    ``S001`` is a suspect, ``E002`` evidence, ``W003`` a witness and any id
    starting with ``DOC`` a document; everything else is unknown.
    """

    value = (entity_id or "").strip()
    if not value:
        return EntityType.UNKNOWN
    for pattern, entity_type in _ID_PATTERNS:
        if pattern.match(value):
            return entity_type
    if value.upper().startswith("DOC"):
        return EntityType.DOCUMENT
    return EntityType.UNKNOWN


def category_for(entity_type: EntityType) -> ContextCategory | None:
    """Return the store category holding ``entity_type`` or ``None`` for unknown."""

    return _CATEGORY_BY_TYPE.get(entity_type)


def canonical_entity_id(entity_id: str) -> str:
    """Return ``entity_id`` in its stored form.

    Suspect, evidence and witness ids are uppercased (``s001`` -> ``S001``) so
    that a category and id always resolve to one path. Document ids are kept
    as given.
    """

    value = entity_id.strip()
    if classify_entity_id(value) in (EntityType.SUSPECT, EntityType.EVIDENCE, EntityType.WITNESS):
        return value.upper()
    return value


def context_key_for(case_id: str, entity_id: str) -> ContextKey | None:
    """Return the canonical key of ``entity_id`` or ``None`` when unclassifiable."""

    category = category_for(classify_entity_id(entity_id))
    if category is None:
        return None
    return ContextKey(case_id=case_id, category=category, entity_id=canonical_entity_id(entity_id))


__all__ = [
    "ID_FIELDS",
    "EntityType",
    "canonical_entity_id",
    "category_for",
    "classify_entity_id",
    "context_key_for",
]
