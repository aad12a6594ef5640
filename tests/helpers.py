"""Test helpers shared across setrack test modules."""

from __future__ import annotations

import itertools
import threading


class FixedClock:
    """Deterministic, strictly increasing ISO-8601 timestamps."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            tick = next(self._counter)
        return f"2026-01-01T{tick // 3600:02d}:{tick // 60 % 60:02d}:{tick % 60:02d}.000Z"


def make_requirement_payload(title: str = "Thermal margin", **overrides):
    """Build a complete requirement payload in document (camelCase) shape."""
    payload = {
        "title": title,
        "statement": f"The system SHALL satisfy {title.lower()}.",
        "rationale": "Derived from mission constraints.",
        "verificationMethod": "Analysis",
        "status": "Draft",
        "owner": "Systems",
        "priority": "Medium",
        "scope": "system",
    }
    payload.update(overrides)
    return payload


def make_project_payload(project_id: str = "rpa-probe", **overrides):
    """Build a complete project payload in document (camelCase) shape."""
    payload = {
        "id": project_id,
        "name": "RPA Probe",
        "missionPhase": "Phase B",
        "lifecycleState": "Preliminary Design",
        "sponsor": "Deep Space Office",
        "summary": "Radiation probe for the outer belt.",
        "tags": ["probe"],
        "functionalDecomposition": [],
        "physicalDecomposition": [],
        "requirements": [],
        "bom": [],
        "subsystems": ["Power", "Thermal"],
        "interfaces": [],
    }
    payload.update(overrides)
    return payload


def snapshot(directory):
    """Map of file name -> bytes for every file in ``directory``."""
    if not directory.exists():
        return {}
    return {p.name: p.read_bytes() for p in sorted(directory.iterdir()) if p.is_file()}
