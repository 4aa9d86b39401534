"""Factory helpers that instantiate core services based on configuration.

These helpers centralize the logic for honoring the settings declared in
:mod:`casegen.settings`. They return the concrete store, oracle and pipeline
components for the current environment profile, raising
``NotImplementedError`` when a backend is declared but not implemented.
"""

from __future__ import annotations

from pathlib import Path

from casegen.normalization import DocumentNormalizer, EntityNormalizer, ManifestBuilder
from casegen.quality import EntityRepairer, LangChainOracle, Oracle, QualityVerifier, ScriptedOracle
from casegen.settings import get_settings
from casegen.storage import BundleStorage
from casegen.store import ContextStore
from casegen.store.local import LocalContextStore
from casegen.store.sql import SqlContextStore
from casegen.store.sql import session_factory as build_sql_session_factory


def build_context_store(*, backend: str | None = None, root_dir: str | Path | None = None) -> ContextStore:
    """Return a context store matching the configured backend.

    Args:
        backend: Explicit backend (``local`` or ``sqlite``); defaults to
            ``settings.storage.backend``.
        root_dir: Optional directory override for the local backend.

    Raises:
        NotImplementedError: If the backend lacks an implementation.
    """

    settings = get_settings()
    resolved_backend = (backend or settings.storage.backend).lower()
    if resolved_backend == "local":
        return LocalContextStore(root_dir=root_dir)

    if resolved_backend == "sqlite":
        return SqlContextStore(session_factory=build_sql_session_factory(settings=settings))

    raise NotImplementedError(f"Unsupported context store backend '{resolved_backend}'")


def build_bundle_storage(local_dir: str | Path | None = None) -> BundleStorage:
    """Return the bundle storage rooted at ``settings.storage.bundles_dir``."""

    return BundleStorage(local_dir=Path(local_dir) if local_dir else None)


def build_oracle(provider: str | None = None) -> Oracle:
    """Return the oracle for the configured LLM provider."""

    settings = get_settings()
    resolved_provider = (provider or settings.llm.provider).lower()
    if resolved_provider == "ollama":
        return LangChainOracle(settings=settings)

    if resolved_provider == "mock":
        return ScriptedOracle()

    raise NotImplementedError(f"Unsupported LLM provider '{resolved_provider}'")


def build_entity_normalizer(store: ContextStore | None = None) -> EntityNormalizer:
    return EntityNormalizer(store or build_context_store())


def build_document_normalizer(
    store: ContextStore | None = None, bundles: BundleStorage | None = None
) -> DocumentNormalizer:
    return DocumentNormalizer(store or build_context_store(), bundles or build_bundle_storage())


def build_manifest_builder(store: ContextStore | None = None) -> ManifestBuilder:
    return ManifestBuilder(store or build_context_store())


def build_quality_verifier(store: ContextStore | None = None, oracle: Oracle | None = None) -> QualityVerifier:
    return QualityVerifier(store or build_context_store(), oracle or build_oracle())


def build_entity_repairer(store: ContextStore | None = None, oracle: Oracle | None = None) -> EntityRepairer:
    """Return an :class:`EntityRepairer` using the ``quality`` settings section."""

    settings = get_settings()
    return EntityRepairer(
        store or build_context_store(),
        oracle or build_oracle(),
        related_limit=settings.quality.related_entity_limit,
        summary_chars=settings.quality.summary_chars,
    )


__all__ = [
    "build_bundle_storage",
    "build_context_store",
    "build_document_normalizer",
    "build_entity_normalizer",
    "build_entity_repairer",
    "build_manifest_builder",
    "build_oracle",
    "build_quality_verifier",
]
