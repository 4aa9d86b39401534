"""Addressing helpers for the case context store.

Every resource in a case is addressed by a slash-separated path relative to
the case root (``plan/core``, ``expand/suspects/S001``, ``manifest``). Entity
and document resources additionally have a composite key
``{case_id, category, id}``; :class:`ContextKey` maps that key onto its single
canonical path so a category+id pair can never resolve to two locations.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from posixpath import basename, splitext

JSON_SUFFIX = ".json"
WILDCARD_SUFFIX = "/*"


class ContextCategory(str, Enum):
    """Canonical resource groups that hold one resource per id."""

    SUSPECTS = "entities/suspects"
    EVIDENCE = "entities/evidence"
    WITNESSES = "entities/witnesses"
    DOCUMENTS = "documents"

    @property
    def short_name(self) -> str:
        """str: Trailing path segment (``suspects``, ``documents`` ...)."""

        return self.value.rsplit("/", 1)[-1]


ENTITY_CATEGORIES: tuple[ContextCategory, ...] = (
    ContextCategory.SUSPECTS,
    ContextCategory.EVIDENCE,
    ContextCategory.WITNESSES,
)


@dataclass(frozen=True)
class ContextKey:
    """Composite key for a canonical entity or document."""

    case_id: str
    category: ContextCategory
    entity_id: str

    def __post_init__(self) -> None:
        if not self.case_id:
            raise ValueError("case_id is required")
        if not self.entity_id or "/" in self.entity_id or "*" in self.entity_id:
            raise ValueError(f"Invalid resource id '{self.entity_id}'")

    @property
    def path(self) -> str:
        """str: Normalized context path for this key."""

        return f"{self.category.value}/{self.entity_id}"

    @property
    def reference(self) -> str:
        """str: Manifest reference token (``@entities/suspects/S001``)."""

        return f"@{self.path}"

    @classmethod
    def for_entity(cls, case_id: str, category: ContextCategory, entity_id: str) -> "ContextKey":
        """Return the key of a canonical entity."""

        if category not in ENTITY_CATEGORIES:
            raise ValueError(f"'{category.value}' is not an entity category")
        return cls(case_id=case_id, category=category, entity_id=entity_id)

    @classmethod
    def for_document(cls, case_id: str, doc_id: str) -> "ContextKey":
        return cls(case_id=case_id, category=ContextCategory.DOCUMENTS, entity_id=doc_id)

    @classmethod
    def parse(cls, case_id: str, path: str) -> "ContextKey":
        """Return the key addressed by ``path``.

        Raises:
            ValueError: If ``path`` does not sit directly under a known category.
        """

        normalized = normalize_path(path)
        parent, _, resource_id = normalized.rpartition("/")
        for category in ContextCategory:
            if parent == category.value:
                return cls(case_id=case_id, category=category, entity_id=resource_id)
        raise ValueError(f"Path '{path}' is not a canonical entity or document path")


def normalize_path(path: "str | ContextKey") -> str:
    """Return the canonical form of a context path.

    Leading ``@`` and ``/`` markers, trailing slashes and a trailing ``.json``
    extension are stripped so that ``@manifest.json`` and ``manifest`` address
    the same resource.
    """

    if isinstance(path, ContextKey):
        return path.path
    normalized = (path or "").strip().lstrip("@/").rstrip("/")
    if normalized.lower().endswith(JSON_SUFFIX):
        normalized = normalized[: -len(JSON_SUFFIX)]
    if not normalized:
        raise ValueError("Context path must not be empty")
    if "*" in normalized:
        raise ValueError(f"Wildcards are only supported in query patterns: '{path}'")
    if any(part in {"", ".", ".."} for part in normalized.split("/")):
        raise ValueError(f"Invalid context path '{path}'")
    return normalized


def parse_query_pattern(pattern: str) -> str:
    """Return the parent prefix for a one-level ``prefix/*`` query.

    A bare ``*`` selects the direct children of the case root and yields an
    empty prefix.

    Raises:
        ValueError: If the pattern is not of the supported ``prefix/*`` form.
    """

    raw = (pattern or "").strip().lstrip("@/")
    if raw == "*":
        return ""
    if not raw.endswith(WILDCARD_SUFFIX):
        raise ValueError(f"Query pattern must end with '/*': '{pattern}'")
    prefix = raw[: -len(WILDCARD_SUFFIX)].rstrip("/")
    if not prefix or "*" in prefix:
        raise ValueError(f"Only a single trailing wildcard is supported: '{pattern}'")
    return prefix


def is_direct_child(path: str, prefix: str) -> bool:
    """Return True when ``path`` sits exactly one level below ``prefix``."""

    if not prefix:
        return "/" not in path
    head = f"{prefix}/"
    if not path.startswith(head):
        return False
    return "/" not in path[len(head) :]


def resource_id_from_path(path: str) -> str:
    """Return the base name of ``path`` with any extension stripped.

    ``entities/suspects/S001.json`` -> ``S001``.
    """

    stem, _ = splitext(basename(path.rstrip("/")))
    return stem


__all__ = [
    "ContextCategory",
    "ContextKey",
    "ENTITY_CATEGORIES",
    "is_direct_child",
    "normalize_path",
    "parse_query_pattern",
    "resource_id_from_path",
]
