"""Administrative CLI over the normalization and quality operations.

Every subcommand prints its result as camelCase JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Callable, Dict

from casegen.services.factories import (
    build_document_normalizer,
    build_entity_normalizer,
    build_entity_repairer,
    build_manifest_builder,
    build_quality_verifier,
)
from casegen.settings import get_settings

LOGGER = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments.

    Args:
        argv: Optional list of CLI arguments. When ``None``, defaults to ``sys.argv``.
    """

    parser = argparse.ArgumentParser(prog="casegen-admin", description="casegen case store administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    entities = subparsers.add_parser("normalize-entities", help="Promote expand drafts to canonical entities")
    entities.add_argument("case_id")

    documents = subparsers.add_parser("normalize-documents", help="Canonicalize generated documents")
    documents.add_argument("case_id")
    documents.add_argument("doc_ids", nargs="+", help="Document ids to normalize")

    manifest = subparsers.add_parser("build-manifest", help="Rebuild the case manifest")
    manifest.add_argument("case_id")

    verify = subparsers.add_parser("verify", help="Check whether issues are resolved")
    verify.add_argument("case_id")
    verify.add_argument("--issue", dest="issues", action="append", default=[], help="Issue to verify (repeatable)")

    repair = subparsers.add_parser("repair", help="Apply a surgical fix to one entity")
    repair.add_argument("case_id")
    repair.add_argument("entity_id")
    repair.add_argument("issue")

    return parser.parse_args(argv)


def _run_normalize_entities(args: argparse.Namespace) -> Dict[str, Any]:
    return build_entity_normalizer().normalize(args.case_id).to_payload()


def _run_normalize_documents(args: argparse.Namespace) -> Dict[str, Any]:
    return build_document_normalizer().normalize(args.case_id, args.doc_ids).to_payload()


def _run_build_manifest(args: argparse.Namespace) -> Dict[str, Any]:
    return build_manifest_builder().build(args.case_id).to_payload()


def _run_verify(args: argparse.Namespace) -> Dict[str, Any]:
    return build_quality_verifier().verify(args.case_id, args.issues).to_payload()


def _run_repair(args: argparse.Namespace) -> Dict[str, Any]:
    return build_entity_repairer().repair(args.case_id, args.entity_id, args.issue).to_payload()


COMMANDS: Dict[str, Callable[[argparse.Namespace], Dict[str, Any]]] = {
    "normalize-entities": _run_normalize_entities,
    "normalize-documents": _run_normalize_documents,
    "build-manifest": _run_build_manifest,
    "verify": _run_verify,
    "repair": _run_repair,
}


def main(argv: list[str] | None = None) -> int:
    """Run the requested subcommand and return the process exit code."""

    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    payload = COMMANDS[args.command](args)
    print(json.dumps(payload, indent=2, ensure_ascii=False))

    if args.command == "verify":
        return 0 if payload.get("isClean") else 2
    if args.command == "repair":
        return 0 if payload.get("success") else 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
