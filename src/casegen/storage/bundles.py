"""Access to the document bundles written by the upstream generate stage."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from casegen.settings import get_settings

LOGGER = logging.getLogger(__name__)


class BundleStorage:
    """Read generated draft documents from the local bundles directory.

    Bundles are laid out as ``{bundles_dir}/{case_id}/documents/{doc_id}.json``.
    """

    def __init__(self, *, local_dir: Optional[Path] = None) -> None:
        self._settings = get_settings()
        self._local_dir = Path(local_dir or self._settings.storage.bundles_dir)

    @property
    def root_dir(self) -> Path:
        return self._local_dir

    def document_path(self, case_id: str, doc_id: str) -> Path:
        """Return the on-disk location of a draft document."""

        clean_id = os.path.basename(doc_id)
        if not clean_id or clean_id != doc_id:
            raise ValueError(f"Invalid document id '{doc_id}'")
        return self._local_dir / case_id / "documents" / f"{clean_id}.json"

    def read_document(self, case_id: str, doc_id: str) -> str | None:
        """Return the raw JSON text of a draft document, or ``None`` if absent."""

        path = self.document_path(case_id, doc_id)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        if not text.strip():
            LOGGER.debug("Bundle document %s for case %s is empty", doc_id, case_id)
            return None
        return text


__all__ = ["BundleStorage"]
