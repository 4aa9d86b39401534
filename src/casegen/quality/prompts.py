"""Prompt builders for the verify and repair quality steps."""

from __future__ import annotations

import json
from typing import Any, Sequence

VERIFY_SYSTEM_PROMPT = (
    "You are a quality assurance verifier. Check if previously identified issues "
    "have been resolved based on the case manifest."
)

REPAIR_SYSTEM_PROMPT = (
    "You are an expert case editor. Apply precise, surgical fixes to case entities "
    "while maintaining consistency with the rest of the case."
)

_VERIFY_TEMPLATE = """You are checking whether issues previously found in a detective case have been resolved.

# ISSUES TO VERIFY
These issues were reported and should now be fixed:
{issue_list}

# CURRENT CASE MANIFEST
```json
{manifest}
```

# VERIFICATION TASK
Decide for EACH issue above whether it is resolved, using only the manifest.

The manifest lists:
- every entity (suspects, evidence, witnesses) by reference
- every document by reference
- pointers to the plan and expand context

Check that the entities or areas named in each issue exist and look properly structured.

# VERIFICATION CRITERIA
An issue is RESOLVED when:
- the entity or area it names is present in the manifest
- that part of the manifest has the expected structure
- no obvious structural problem is visible

An issue is NOT RESOLVED when:
- the entity or area it names is missing from the manifest
- that part of the manifest shows structural problems
- the fix cannot be confirmed from the manifest alone

# OUTPUT FORMAT
Return ONLY valid JSON shaped like this:
```json
{{
  "isClean": true | false,
  "remainingIssues": [
    "issue_area_1",
    "issue_area_2"
  ],
  "verificationNotes": "Short explanation of any remaining issues"
}}
```

When every issue is resolved set isClean=true and remainingIssues=[].
When any issue remains set isClean=false and list it in remainingIssues.

IMPORTANT: Be CONSERVATIVE. If a fix cannot be verified from the manifest, list the issue as remaining."""

_REPAIR_HEADER = """You are applying a SURGICAL FIX to one entity of a detective case.

# TARGET ENTITY
**Entity ID**: {entity_id}
**Entity Type**: {entity_type}
**Issue to Fix**: {issue}

# CURRENT ENTITY DATA
```json
{current_entity}
```
"""

_REPAIR_SECTION = """

# {title}
```json
{body}
```
"""

_REPAIR_FOOTER = """

# FIX INSTRUCTIONS

1. **Apply only the fix** the issue describes
2. **Stay consistent** with the timeline and related entities
3. **Preserve every field** unrelated to the issue, including the entity id
4. **Keep details realistic** and do not over-polish
5. **Keep the same JSON structure** as the current entity

# OUTPUT FORMAT
Return ONLY the COMPLETE fixed entity as a single valid JSON object, with no explanation or markdown.
Include ALL fields of the original entity with only the required corrections.

Example shape (keep every original field):
```json
{{
  "{id_field}": "{entity_id}",
  ...
}}
```

CRITICAL: Return ONLY valid JSON. The output is saved to storage as-is."""


def render_json(value: Any) -> str:
    """Pretty-print a context value for embedding in a prompt."""

    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False)


def build_verification_prompt(issues: Sequence[str], manifest: Any) -> str:
    """Return the user prompt asking the oracle to re-check ``issues``."""

    issue_list = "\n".join(f"{index}. {issue}" for index, issue in enumerate(issues, start=1))
    return _VERIFY_TEMPLATE.format(issue_list=issue_list, manifest=render_json(manifest))


def build_repair_prompt(
    *,
    entity_id: str,
    entity_type: str,
    issue: str,
    id_field: str = "id",
    current_entity: Any,
    timeline: Any = None,
    related_entities: Sequence[Any] | None = None,
    plan_core: Any = None,
) -> str:
    """Return the user prompt for a single-entity surgical fix.

    Optional context sections are left out when their value is empty.
    """

    prompt = _REPAIR_HEADER.format(
        entity_id=entity_id,
        entity_type=entity_type,
        issue=issue,
        current_entity=render_json(current_entity if current_entity is not None else {}),
    )
    if timeline:
        prompt += _REPAIR_SECTION.format(title="TIMELINE CONTEXT (for consistency)", body=render_json(timeline))
    if related_entities:
        prompt += _REPAIR_SECTION.format(
            title="RELATED ENTITIES (for consistency)", body=render_json(list(related_entities))
        )
    if plan_core:
        prompt += _REPAIR_SECTION.format(title="CASE REQUIREMENTS", body=render_json(plan_core))
    prompt += _REPAIR_FOOTER.format(entity_id=entity_id, id_field=id_field)
    return prompt


__all__ = [
    "REPAIR_SYSTEM_PROMPT",
    "VERIFY_SYSTEM_PROMPT",
    "build_repair_prompt",
    "build_verification_prompt",
    "render_json",
]
