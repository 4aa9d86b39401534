"""Filesystem-backed context store.

Resources live at ``{root}/{case_id}/context/{path}.json``. Writes go through a
temporary file in the target directory followed by ``os.replace`` so readers
never observe a half-written resource and concurrent writers to one path
resolve as last-writer-wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from casegen.settings import get_settings
from casegen.store.context_store import ContextStore, ContextStoreError, StoredRecord
from casegen.store.paths import JSON_SUFFIX

LOGGER = logging.getLogger(__name__)

CONTEXT_DIR_NAME = "context"


class LocalContextStore(ContextStore):
    """Persist case context as JSON files on local disk."""

    backend_name = "local"

    def __init__(self, root_dir: Path | str | None = None) -> None:
        base_dir = Path(root_dir) if root_dir else Path(get_settings().storage.context_dir)
        try:
            base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ContextStoreError(f"Cannot create context directory {base_dir}") from exc
        self.root_dir = base_dir

    def _case_dir(self, case_id: str) -> Path:
        return self.root_dir / case_id / CONTEXT_DIR_NAME

    def _file_for(self, case_id: str, path: str) -> Path:
        return self._case_dir(case_id) / f"{path}{JSON_SUFFIX}"

    def _write(self, case_id: str, path: str, payload: str) -> str:
        target = self._file_for(case_id, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-", suffix=".part")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ContextStoreError(f"Failed to save context {path} for case {case_id}") from exc
        return str(target)

    def _read(self, case_id: str, path: str) -> str | None:
        target = self._file_for(case_id, path)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ContextStoreError(f"Failed to load context {path} for case {case_id}") from exc

    def _scan(self, case_id: str, prefix: str, *, with_payload: bool) -> Iterator[StoredRecord]:
        case_dir = self._case_dir(case_id)
        base = case_dir / prefix if prefix else case_dir
        if not base.is_dir():
            return
        try:
            candidates = sorted(base.rglob(f"*{JSON_SUFFIX}"))
        except OSError as exc:
            raise ContextStoreError(f"Failed to scan context {prefix or '<root>'} for case {case_id}") from exc
        for file_path in candidates:
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(case_dir).as_posix()[: -len(JSON_SUFFIX)]
            try:
                stat = file_path.stat()
                payload = file_path.read_text(encoding="utf-8") if with_payload else None
            except FileNotFoundError:
                # Removed by a concurrent delete between listing and reading.
                LOGGER.debug("Context %s vanished during scan for case %s", relative, case_id)
                continue
            except OSError as exc:
                raise ContextStoreError(f"Failed to read context {relative} for case {case_id}") from exc
            yield StoredRecord(
                path=relative,
                size_bytes=stat.st_size,
                last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                payload=payload,
            )

    def _remove(self, case_id: str, path: str) -> bool:
        target = self._file_for(case_id, path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise ContextStoreError(f"Failed to delete context {path} for case {case_id}") from exc
        return True


__all__ = ["LocalContextStore"]
