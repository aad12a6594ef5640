"""Document shapes for projects and their child entities.

Projects are stored and served as plain JSON objects with camelCase
keys. This module fixes the field order of a project document, names
the enumerated requirement values, and provides the canonicalization
step that turns whatever was parsed from disk or received over HTTP
into the strict project shape.

Public API
----------
- ``canonicalize_project`` - map a parsed value onto the project shape
- ``PROJECT_FIELDS`` / ``LIST_FIELDS`` / ``REQUIREMENT_FIELDS``
- ``VERIFICATION_METHODS`` / ``REQUIREMENT_STATUSES`` / ``PRIORITIES`` / ``SCOPES``
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

# Scalar project fields, in on-disk order.
SCALAR_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "missionPhase",
    "lifecycleState",
    "sponsor",
    "summary",
)

# List-typed project fields; canonicalization guarantees these are lists.
LIST_FIELDS: tuple[str, ...] = (
    "tags",
    "functionalDecomposition",
    "physicalDecomposition",
    "requirements",
    "bom",
    "subsystems",
    "interfaces",
)

PROJECT_FIELDS: tuple[str, ...] = SCALAR_FIELDS + LIST_FIELDS + ("lastUpdated",)

REQUIREMENT_FIELDS: tuple[str, ...] = (
    "title",
    "statement",
    "rationale",
    "verificationMethod",
    "status",
    "owner",
    "priority",
    "scope",
)

VERIFICATION_METHODS: tuple[str, ...] = ("Analysis", "Inspection", "Test", "Demonstration")
REQUIREMENT_STATUSES: tuple[str, ...] = ("Proposed", "Draft", "Baseline")
PRIORITIES: tuple[str, ...] = ("High", "Medium", "Low")
SCOPES: tuple[str, ...] = ("system", "subsystem")

DEFAULT_REQUIREMENT_VALUES: dict[str, str] = {
    "status": "Draft",
    "priority": "Medium",
    "scope": "system",
}


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def canonicalize_project(raw: Any) -> dict[str, Any]:
    """Map a loosely-typed parsed document onto the strict project shape.

    Scalar fields are copied as-is (absent ones become None). List fields
    that are absent or not lists become empty lists, so consumers never
    need to null-check them. Unknown keys are dropped.

    Args:
        raw: Anything produced by ``json.loads`` or received as a payload.
            Non-mapping values produce a document of all-empty fields.

    Returns:
        A new dict with exactly the keys of ``PROJECT_FIELDS``, in order.
    """
    source: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    document: dict[str, Any] = {}
    for key in SCALAR_FIELDS:
        document[key] = source.get(key)
    for key in LIST_FIELDS:
        document[key] = _as_list(source.get(key))
    document["lastUpdated"] = source.get("lastUpdated")
    return document
