"""Case context store package for casegen.

Path-addressed persistence for case-scoped JSON resources (plan, expand,
canonical entities, documents and the manifest), with interchangeable local
filesystem and SQL backends.
"""

from casegen.store.context_store import (
    ContextNotFoundError,
    ContextQueryResult,
    ContextSnapshot,
    ContextStore,
    ContextStoreError,
)
from casegen.store.paths import ContextCategory, ContextKey

__all__ = [
    "ContextCategory",
    "ContextKey",
    "ContextNotFoundError",
    "ContextQueryResult",
    "ContextSnapshot",
    "ContextStore",
    "ContextStoreError",
]
