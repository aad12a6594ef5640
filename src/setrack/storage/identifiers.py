"""Requirement identifier generation.

Requirement ids are scoped to their owning project and look like
``RPA-REQ-001``: up to three alphanumeric characters of the project id,
uppercased, then ``-REQ-`` and a zero-padded sequence number.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from setrack.models import REQUIREMENT_FIELDS

DEFAULT_PREFIX = "PRJ"

_ALNUM_RE = re.compile(r"[A-Za-z0-9]")
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def requirement_prefix(project_id: str) -> str:
    """Return the id prefix for requirements of ``project_id``.

    Example: "rpa-probe" -> "RPA", "42x" -> "42X", "--" -> "PRJ"
    """
    chars = _ALNUM_RE.findall(project_id or "")
    return "".join(chars[:3]).upper() or DEFAULT_PREFIX


def extract_numeric_suffix(identifier: str | None) -> int:
    """Parse the sequence number after the final ``-`` of an identifier.

    Leading digits are parsed the way a lenient integer parser would
    ("007b" -> 7). Missing, non-numeric or non-positive suffixes count
    as 0.
    """
    if not identifier or not isinstance(identifier, str):
        return 0
    suffix = identifier.rsplit("-", 1)[-1]
    match = _LEADING_INT_RE.match(suffix)
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def build_requirement_id(
    project_id: str,
    existing_requirements: Iterable[Any],
    index_hint: int,
) -> str:
    """Compute the next requirement id for a project.

    The sequence number is one past the highest numeric suffix among
    ``existing_requirements``, raised to ``index_hint`` when that is
    larger. Callers processing a batch pass the 1-based position in the
    batch as the hint and extend ``existing_requirements`` with every id
    assigned so far, so ids within a batch never collide.

    Args:
        project_id: Owning project id; source of the prefix.
        existing_requirements: Requirements already owned by the project.
        index_hint: Lower bound for the sequence number.

    Returns:
        Identifier such as ``RPA-REQ-003``.
    """
    highest = 0
    for requirement in existing_requirements or ():
        if not isinstance(requirement, Mapping):
            continue
        number = extract_numeric_suffix(requirement.get("id"))
        if number > highest:
            highest = number
    sequence = max(highest + 1, index_hint)
    return f"{requirement_prefix(project_id)}-REQ-{sequence:03d}"


def build_requirement(
    project_id: str,
    payload: Mapping[str, Any],
    index_hint: int,
    existing_requirements: Iterable[Any] = (),
) -> dict[str, Any]:
    """Build a requirement record with a freshly assigned id.

    Any id already present in ``payload`` is ignored.
    """
    if not isinstance(payload, Mapping):
        payload = {}
    record: dict[str, Any] = {
        "id": build_requirement_id(project_id, existing_requirements, index_hint),
    }
    for key in REQUIREMENT_FIELDS:
        record[key] = payload.get(key)
    return record


def build_requirement_batch(
    project_id: str,
    payloads: Iterable[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Assign ids to a batch of new requirements in payload order."""
    prepared: list[dict[str, Any]] = []
    for index, payload in enumerate(payloads, start=1):
        prepared.append(build_requirement(project_id, payload, index, prepared))
    return prepared
