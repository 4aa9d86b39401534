"""Single-entity surgical repair driven by a focused context window.

Instead of sending the whole case to the oracle, the repairer loads only the
target entity, the timeline, a few sibling entities and the core plan. The
oracle reply is written back only when it extracts to a JSON object that
still carries the entity id.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from casegen.observability import Observability, get_observability
from casegen.quality.entity_types import ID_FIELDS, EntityType, classify_entity_id, context_key_for
from casegen.quality.extraction import extract_json_object
from casegen.quality.models import RepairResult
from casegen.quality.oracle import Oracle
from casegen.quality.prompts import REPAIR_SYSTEM_PROMPT, build_repair_prompt
from casegen.store import ContextKey, ContextNotFoundError, ContextStore, ContextStoreError
from casegen.store.paths import ENTITY_CATEGORIES

LOGGER = logging.getLogger(__name__)

TIMELINE_PATH = "expand/timeline"
PLAN_CORE_PATH = "plan/core"
DEFAULT_RELATED_LIMIT = 3
DEFAULT_SUMMARY_CHARS = 100


class EntityRepairer:
    """Apply an oracle-generated fix to one entity and save it in place."""

    def __init__(
        self,
        store: ContextStore,
        oracle: Oracle,
        *,
        related_limit: int = DEFAULT_RELATED_LIMIT,
        summary_chars: int = DEFAULT_SUMMARY_CHARS,
        observability: Observability | None = None,
    ) -> None:
        self.store = store
        self.oracle = oracle
        self.related_limit = max(0, related_limit)
        self.summary_chars = max(0, summary_chars)
        self.observability = observability or get_observability(component="quality")

    def repair(self, case_id: str, entity_id: str, issue: str) -> RepairResult:
        """Repair ``entity_id`` so that ``issue`` is addressed.

        Unknown ids and unusable oracle output produce a failed
        :class:`RepairResult`; nothing is written in either case. Store write
        failures propagate.
        """

        entity_type = classify_entity_id(entity_id)
        LOGGER.info("Repairing %s %s for case %s", entity_type.value, entity_id, case_id)

        try:
            key = context_key_for(case_id, entity_id)
        except ValueError:
            key = None
            entity_type = EntityType.UNKNOWN
        if key is None:
            LOGGER.error("Could not determine entity type for %s in case %s", entity_id, case_id)
            return self._finish(
                case_id,
                RepairResult(
                    success=False,
                    entity_id=entity_id,
                    entity_type=entity_type,
                    message=f"Unknown entity type: {entity_type.value}",
                ),
            )

        context = self.load_focused_context(case_id, key)
        prompt = build_repair_prompt(
            entity_id=key.entity_id,
            entity_type=entity_type.value,
            id_field=ID_FIELDS[entity_type],
            issue=issue,
            current_entity=context.get("current_entity"),
            timeline=context.get("timeline"),
            related_entities=context.get("related_entities"),
            plan_core=context.get("plan_core"),
        )

        try:
            response = self.oracle.generate(case_id, REPAIR_SYSTEM_PROMPT, prompt)
        except Exception:
            LOGGER.exception("Repair oracle call failed for %s in case %s", entity_id, case_id)
            return self._finish(
                case_id,
                RepairResult(
                    success=False,
                    entity_id=entity_id,
                    entity_type=entity_type,
                    message="Oracle call failed",
                ),
            )

        fixed = extract_json_object(response)
        if fixed is None:
            LOGGER.error("Failed to extract fixed entity %s from oracle response for case %s", entity_id, case_id)
            return self._finish(
                case_id,
                RepairResult(
                    success=False,
                    entity_id=entity_id,
                    entity_type=entity_type,
                    message="Failed to extract fixed entity from oracle response",
                ),
            )

        if not _keeps_identity(fixed, ID_FIELDS[entity_type], key.entity_id):
            LOGGER.error(
                "Oracle response for %s in case %s is empty or lacks %s=%s; not saving",
                entity_id,
                case_id,
                ID_FIELDS[entity_type],
                key.entity_id,
            )
            return self._finish(
                case_id,
                RepairResult(
                    success=False,
                    entity_id=entity_id,
                    entity_type=entity_type,
                    message=f"Fixed entity must keep {ID_FIELDS[entity_type]} {key.entity_id}",
                ),
            )

        self.store.save(case_id, key, fixed)
        LOGGER.info("Saved fixed %s %s to %s for case %s", entity_type.value, entity_id, key.path, case_id)
        return self._finish(
            case_id,
            RepairResult(
                success=True,
                entity_id=entity_id,
                entity_type=entity_type,
                save_path=key.path,
                changes_summary=(
                    f"Applied surgical fix to {entity_type.value} {entity_id} "
                    f"based on issue: {issue[: self.summary_chars]}..."
                ),
                message="Entity fixed successfully",
            ),
        )

    def load_focused_context(self, case_id: str, key: ContextKey) -> Dict[str, Any]:
        """Collect the minimal context needed to fix the entity at ``key``.

        Every piece is optional and loaded independently; failures are logged
        and leave the corresponding entry out.
        """

        context: Dict[str, Any] = {}

        current = self._load_optional(case_id, key.path, label="current entity")
        if current is None:
            LOGGER.warning("Entity %s not found for case %s; repairing from empty data", key.path, case_id)
        else:
            context["current_entity"] = current

        timeline = self._load_optional(case_id, TIMELINE_PATH, label="timeline")
        if timeline is not None:
            context["timeline"] = timeline

        if key.category in ENTITY_CATEGORIES and self.related_limit:
            related = self._load_related(case_id, key)
            if related:
                context["related_entities"] = related

        plan_core = self._load_optional(case_id, PLAN_CORE_PATH, label="plan core")
        if plan_core is not None:
            context["plan_core"] = plan_core

        LOGGER.debug("Loaded %s focused context item(s) for %s in case %s", len(context), key.path, case_id)
        return context

    def _load_optional(self, case_id: str, path: str, *, label: str) -> Any | None:
        try:
            return self.store.load(case_id, path)
        except ContextNotFoundError:
            LOGGER.debug("No %s at %s for case %s", label, path, case_id)
        except ContextStoreError:
            LOGGER.warning("Could not load %s from %s for case %s", label, path, case_id, exc_info=True)
        return None

    def _load_related(self, case_id: str, key: ContextKey) -> List[Any]:
        try:
            results = self.store.query(case_id, f"{key.category.value}/*")
        except (ContextStoreError, ValueError):
            LOGGER.warning("Could not load related entities for %s in case %s", key.path, case_id, exc_info=True)
            return []
        siblings = sorted(
            (item for item in results if item.path.lower() != key.path.lower()),
            key=lambda item: item.path,
        )
        return [item.data for item in siblings[: self.related_limit]]

    def _finish(self, case_id: str, result: RepairResult) -> RepairResult:
        self.observability.emit_event(
            "quality.repair",
            case_id=case_id,
            entity_id=result.entity_id,
            entity_type=result.entity_type.value,
            success=result.success,
        )
        self.observability.increment("quality.repair", tags={"success": str(result.success).lower()})
        return result


def _keeps_identity(fixed: Dict[str, Any], id_field: str, entity_id: str) -> bool:
    value = fixed.get(id_field)
    return isinstance(value, str) and value.strip().upper() == entity_id.upper()


__all__ = ["EntityRepairer"]
