"""Batch job entrypoint: normalize entities, then documents, then build the manifest."""

from __future__ import annotations

import logging
import os
import sys
from typing import List

from casegen.services.factories import (
    build_context_store,
    build_document_normalizer,
    build_entity_normalizer,
    build_manifest_builder,
)

LOGGER = logging.getLogger("casegen.worker.jobs.normalize")


def _configure_logging() -> None:
    level_name = os.getenv("CASEGEN_RUNTIME__LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _resolve_doc_ids() -> List[str]:
    explicit = os.getenv("CASEGEN_JOB__DOC_IDS", "")
    return [value.strip() for value in explicit.split(",") if value.strip()]


def main() -> int:
    """Entry point executed by the batch job container."""

    _configure_logging()

    case_id = (os.getenv("CASEGEN_JOB__CASE_ID") or "").strip()
    if not case_id:
        LOGGER.error("CASEGEN_JOB__CASE_ID is required")
        return 1

    doc_ids = _resolve_doc_ids()
    LOGGER.info("Starting normalize job: case_id=%s documents=%s", case_id, len(doc_ids))

    store = build_context_store()
    try:
        counts = build_entity_normalizer(store).normalize(case_id)
        documents = build_document_normalizer(store).normalize(case_id, doc_ids)
        manifest = build_manifest_builder(store).build(case_id)
    except Exception:
        LOGGER.exception("Normalize job failed for case %s", case_id)
        return 1

    LOGGER.info(
        "Normalize job complete: case_id=%s entities=%s documents=%s/%s manifest_entities=%s",
        case_id,
        counts.total,
        documents.normalized_count,
        documents.total_requested,
        manifest.entities.total,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
