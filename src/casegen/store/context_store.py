"""Path-addressed persistence contract for case-scoped JSON resources.

Backends only implement four primitives (write, read, scan, remove); path
normalization, JSON encoding, one-level query filtering and snapshot assembly
live here so every backend shares the same semantics:

- ``save`` always overwrites the whole resource (last writer wins).
- ``load`` raises :class:`ContextNotFoundError` for absent resources.
- ``query`` accepts only ``prefix/*`` and returns direct children in no
  particular order; callers that need determinism sort explicitly.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, Iterator, List, Sequence, Type, TypeVar

from pydantic import BaseModel

from casegen.store.paths import ContextKey, is_direct_child, normalize_path, parse_query_pattern

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


class ContextStoreError(RuntimeError):
    """Raised when the backing store cannot complete an operation."""


class ContextNotFoundError(ContextStoreError, LookupError):
    """Raised when a requested context resource does not exist."""

    def __init__(self, case_id: str, path: str) -> None:
        super().__init__(f"Context '{path}' not found for case '{case_id}'")
        self.case_id = case_id
        self.path = path


@dataclass
class StoredRecord:
    """Raw resource as returned by a backend scan."""

    path: str
    size_bytes: int
    last_modified: datetime | None
    payload: str | None = None


@dataclass
class ContextQueryResult(Generic[T]):
    """One resource matched by :meth:`ContextStore.query`."""

    path: str
    data: T
    size_bytes: int = 0
    last_modified: datetime | None = None


@dataclass
class ContextSnapshot:
    """Several resources loaded together for a single prompt."""

    case_id: str
    items: Dict[str, Any] = field(default_factory=dict)
    requested_paths: List[str] = field(default_factory=list)
    loaded_paths: List[str] = field(default_factory=list)
    failed_paths: List[str] = field(default_factory=list)
    total_size_bytes: int = 0

    @property
    def estimated_tokens(self) -> int:
        """int: Rough prompt cost, assuming ~4 characters per token."""

        return self.total_size_bytes // 4


class ContextStore(ABC):
    """Base class for case context stores."""

    backend_name = "abstract"

    def save(self, case_id: str, path: str | ContextKey, value: Any) -> str:
        """Write ``value`` at ``path``, replacing any previous resource.

        Args:
            case_id: Case the resource belongs to.
            path: Context path or :class:`ContextKey`.
            value: JSON-compatible data or a pydantic model.

        Returns:
            Backend-specific location of the written resource.
        """

        _require_case_id(case_id)
        normalized = normalize_path(path)
        payload = encode_payload(value)
        location = self._write(case_id, normalized, payload)
        LOGGER.info("Saved context %s for case %s (%s bytes)", normalized, case_id, len(payload.encode("utf-8")))
        return location

    def load(self, case_id: str, path: str | ContextKey, model: Type[ModelT] | None = None) -> Any:
        """Return the resource at ``path``.

        Args:
            case_id: Case the resource belongs to.
            path: Context path or :class:`ContextKey`.
            model: Optional pydantic model used to validate the payload.

        Raises:
            ContextNotFoundError: If nothing is stored at ``path``.
            ContextStoreError: If the stored payload is not valid JSON.
        """

        _require_case_id(case_id)
        normalized = normalize_path(path)
        payload = self._read(case_id, normalized)
        if payload is None:
            raise ContextNotFoundError(case_id, normalized)
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ContextStoreError(f"Stored context '{normalized}' for case '{case_id}' is not valid JSON") from exc
        return _coerce(data, model)

    def query(self, case_id: str, pattern: str, model: Type[ModelT] | None = None) -> List[ContextQueryResult]:
        """Return every resource directly under a ``prefix/*`` pattern.

        The query is one level deep: ``entities/*`` does not return
        ``entities/suspects/S001``. Resources that fail to decode are skipped.
        """

        _require_case_id(case_id)
        prefix = parse_query_pattern(pattern)
        results: List[ContextQueryResult] = []
        for record in self._scan(case_id, prefix, with_payload=True):
            if not is_direct_child(record.path, prefix):
                continue
            try:
                data = _coerce(json.loads(record.payload or ""), model)
            except ValueError:
                LOGGER.warning("Failed to decode context %s for case %s", record.path, case_id)
                continue
            results.append(
                ContextQueryResult(
                    path=record.path,
                    data=data,
                    size_bytes=record.size_bytes,
                    last_modified=record.last_modified,
                )
            )
        LOGGER.debug("Query %s returned %s result(s) for case %s", pattern, len(results), case_id)
        return results

    def exists(self, case_id: str, path: str | ContextKey) -> bool:
        """Return True when a resource is stored at ``path``."""

        _require_case_id(case_id)
        return self._read(case_id, normalize_path(path)) is not None

    def delete(self, case_id: str, path: str | ContextKey) -> int:
        """Delete one resource, or every direct child for a ``prefix/*`` path.

        Returns:
            Number of resources removed.
        """

        _require_case_id(case_id)
        if isinstance(path, str) and path.rstrip().endswith("*"):
            prefix = parse_query_pattern(path)
            targets = [
                record.path
                for record in self._scan(case_id, prefix, with_payload=False)
                if is_direct_child(record.path, prefix)
            ]
        else:
            targets = [normalize_path(path)]
        deleted = sum(1 for target in targets if self._remove(case_id, target))
        LOGGER.info("Deleted %s context item(s) matching %s for case %s", deleted, path, case_id)
        return deleted

    def list_paths(self, case_id: str, prefix: str | None = None) -> List[str]:
        """Return every stored path under ``prefix`` (recursive), sorted."""

        _require_case_id(case_id)
        normalized = normalize_path(prefix) if prefix else ""
        return sorted(record.path for record in self._scan(case_id, normalized, with_payload=False))

    def build_snapshot(self, case_id: str, paths: Sequence[str | ContextKey]) -> ContextSnapshot:
        """Load several resources best-effort into one :class:`ContextSnapshot`."""

        snapshot = ContextSnapshot(case_id=case_id)
        for path in paths:
            label = path.path if isinstance(path, ContextKey) else str(path)
            snapshot.requested_paths.append(label)
            try:
                data = self.load(case_id, path)
            except (ContextStoreError, ValueError) as exc:
                LOGGER.warning("Snapshot skipped %s for case %s: %s", label, case_id, exc)
                snapshot.failed_paths.append(label)
                continue
            normalized = normalize_path(path)
            snapshot.items[normalized] = data
            snapshot.loaded_paths.append(normalized)
            snapshot.total_size_bytes += len(json.dumps(data, ensure_ascii=False))
        LOGGER.info(
            "Built snapshot for case %s: %s/%s items, ~%s tokens",
            case_id,
            len(snapshot.loaded_paths),
            len(snapshot.requested_paths),
            snapshot.estimated_tokens,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Backend primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _write(self, case_id: str, path: str, payload: str) -> str:
        """Persist ``payload`` at ``path`` and return its location."""

    @abstractmethod
    def _read(self, case_id: str, path: str) -> str | None:
        """Return the raw payload at ``path`` or ``None``."""

    @abstractmethod
    def _scan(self, case_id: str, prefix: str, *, with_payload: bool) -> Iterator[StoredRecord]:
        """Yield every record at any depth under ``prefix`` (``""`` = whole case)."""

    @abstractmethod
    def _remove(self, case_id: str, path: str) -> bool:
        """Delete the resource at ``path``; return True if it existed."""


def encode_payload(value: Any) -> str:
    """Serialize a resource for storage."""

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    return json.dumps(value, indent=2, ensure_ascii=False)


def _coerce(data: Any, model: Type[ModelT] | None) -> Any:
    if model is None:
        return data
    return model.model_validate(data)


def _require_case_id(case_id: str) -> None:
    if not case_id or "/" in case_id or case_id in {".", ".."}:
        raise ValueError(f"Invalid case id '{case_id}'")


__all__ = [
    "ContextNotFoundError",
    "ContextQueryResult",
    "ContextSnapshot",
    "ContextStore",
    "ContextStoreError",
    "StoredRecord",
    "encode_payload",
]
