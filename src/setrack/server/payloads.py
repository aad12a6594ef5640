"""Request-body shaping for the REST API.

Accepts camelCase or snake_case field names, fills requirement defaults,
checks required fields and enumerated values, and hands the repository
payloads in its camelCase document shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from setrack.errors import ValidationError
from setrack.models import (
    DEFAULT_REQUIREMENT_VALUES,
    PRIORITIES,
    REQUIREMENT_FIELDS,
    REQUIREMENT_STATUSES,
    SCOPES,
    VERIFICATION_METHODS,
)

_MISSING = object()

# Canonical field name -> accepted snake_case alias.
_ALIASES: dict[str, str] = {
    "missionPhase": "mission_phase",
    "lifecycleState": "lifecycle_state",
    "functionalDecomposition": "functional_decomposition",
    "physicalDecomposition": "physical_decomposition",
    "verificationMethod": "verification_method",
}

_PROJECT_SCALARS = ("name", "missionPhase", "lifecycleState", "sponsor", "summary")
_PROJECT_LISTS = (
    "tags",
    "functionalDecomposition",
    "physicalDecomposition",
    "bom",
    "subsystems",
    "interfaces",
)

_REQUIRED_REQUIREMENT_KEYS = (
    "title",
    "statement",
    "rationale",
    "verificationMethod",
    "status",
    "owner",
)

_ENUMERATIONS: dict[str, tuple[str, ...]] = {
    "verificationMethod": VERIFICATION_METHODS,
    "status": REQUIREMENT_STATUSES,
    "priority": PRIORITIES,
    "scope": SCOPES,
}


def _require_object(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return body


def _lookup(body: Mapping[str, Any], key: str) -> Any:
    """Value of ``key`` or its snake_case alias; ``_MISSING`` if neither is set."""
    value = body.get(key)
    if value is None and key in _ALIASES:
        value = body.get(_ALIASES[key])
    if value is None and key not in body and _ALIASES.get(key) not in body:
        return _MISSING
    return value


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_enumerations(payload: Mapping[str, Any]) -> None:
    for key, allowed in _ENUMERATIONS.items():
        value = payload.get(key)
        if value is not None and value not in allowed:
            raise ValidationError(
                f"Invalid {key}: {value!r} (expected one of: {', '.join(allowed)})"
            )


def normalize_requirement(
    body: Any,
    allow_partial: bool = False,
    keep_id: bool = False,
) -> dict[str, Any]:
    """Shape a requirement payload.

    Args:
        body: Parsed JSON body.
        allow_partial: Skip defaults and required-field checks (updates).
        keep_id: Preserve an ``id`` field (requirement lists in project
            updates); otherwise ids are always assigned by the repository.

    Raises:
        ValidationError: On missing required fields or invalid enum values.
    """
    body = _require_object(body)
    payload: dict[str, Any] = {}
    if keep_id and body.get("id"):
        payload["id"] = body["id"]
    for key in REQUIREMENT_FIELDS:
        value = _lookup(body, key)
        if value is _MISSING or (value is None and not allow_partial):
            if allow_partial or key not in DEFAULT_REQUIREMENT_VALUES:
                continue
            value = DEFAULT_REQUIREMENT_VALUES[key]
        payload[key] = value

    if not allow_partial:
        missing = [
            key for key in _REQUIRED_REQUIREMENT_KEYS if not _is_non_empty_string(payload.get(key))
        ]
        if missing:
            raise ValidationError(f"Missing required requirement fields: {', '.join(missing)}")

    _check_enumerations(payload)
    return payload


def normalize_project_create(body: Any, require_id: bool = True) -> dict[str, Any]:
    """Shape a full project payload (POST and PUT).

    Args:
        body: Parsed JSON body.
        require_id: Whether ``id`` must be present (PUT takes it from the URL).

    Raises:
        ValidationError: On missing required fields or malformed requirements.
    """
    body = _require_object(body)
    project: dict[str, Any] = {"id": body.get("id")}
    for key in _PROJECT_SCALARS:
        value = _lookup(body, key)
        project[key] = None if value is _MISSING else value
    for key in _PROJECT_LISTS:
        value = _lookup(body, key)
        project[key] = [] if value is _MISSING else _as_list(value)
    project["requirements"] = [
        normalize_requirement(item) for item in _as_list(body.get("requirements"))
    ]

    required = (("id",) if require_id else ()) + _PROJECT_SCALARS
    missing = [key for key in required if not _is_non_empty_string(project.get(key))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    return project


def normalize_project_update(body: Any) -> dict[str, Any]:
    """Shape a partial project update (PATCH); only given fields are returned."""
    body = _require_object(body)
    updates: dict[str, Any] = {}
    for key in _PROJECT_SCALARS:
        value = _lookup(body, key)
        if value is not _MISSING:
            updates[key] = value
    for key in _PROJECT_LISTS:
        value = _lookup(body, key)
        if value is not _MISSING:
            updates[key] = _as_list(value)
    if "requirements" in body:
        updates["requirements"] = [
            normalize_requirement(item, allow_partial=True, keep_id=True)
            for item in _as_list(body["requirements"])
        ]
    return updates
