"""Project repository - the public face of the storage layer.

Composes the document store, change log, identifier builder and legacy
migrator behind one object. Every mutation runs on the repository's own
``MutationQueue``; reads go straight to disk once the store has been
initialized.

Public API
----------
- ``list_projects`` / ``get_project`` / ``read_log``     - reads
- ``create_project`` / ``replace_project`` / ``update_project`` / ``delete_project``
- ``add_requirement`` / ``update_requirement`` / ``delete_requirement``
- ``submit``  - enqueue a mutation without waiting for it
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Mapping
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable

from setrack.errors import ConflictError, NotFoundError, ValidationError
from setrack.models import LIST_FIELDS, PROJECT_FIELDS, SCALAR_FIELDS
from setrack.storage.changelog import ChangeLog, utc_timestamp
from setrack.storage.documents import DocumentStore
from setrack.storage.identifiers import build_requirement, build_requirement_batch
from setrack.storage.migration import MigrationReport, migrate_legacy_aggregate
from setrack.storage.queue import MutationQueue

MUTATIONS: tuple[str, ...] = (
    "create_project",
    "replace_project",
    "update_project",
    "delete_project",
    "add_requirement",
    "update_requirement",
    "delete_requirement",
)


def _describe_fields(keys: Iterable[str]) -> str:
    return ", ".join(keys) or "no fields"


def _without_id(updates: Mapping[str, Any] | None) -> dict[str, Any]:
    return {key: value for key, value in (updates or {}).items() if key != "id"}


def _project_changes(updates: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep only the stored project fields an update may set."""
    return {
        key: value
        for key, value in (updates or {}).items()
        if key in PROJECT_FIELDS and key not in ("id", "lastUpdated")
    }


class ProjectRepository:
    """File-backed store of projects with serialized mutations.

    Example:
        >>> repo = ProjectRepository("data")
        >>> repo.create_project({"id": "rpa-probe", "name": "Probe"})["id"]
        'rpa-probe'
        >>> repo.close()
    """

    def __init__(
        self,
        storage_dir: Path | str,
        clock: Callable[[], str] | None = None,
    ) -> None:
        """Create the repository and schedule store initialization.

        Args:
            storage_dir: Directory holding the per-project files. Created
                on initialization if missing.
            clock: Returns the ISO-8601 timestamp used for ``lastUpdated``
                and change-log lines. Defaults to the current UTC time.
        """
        self.storage_dir = Path(storage_dir)
        self._clock = clock or utc_timestamp
        self.store = DocumentStore(self.storage_dir)
        self.changelog = ChangeLog(self.store, clock=self._clock)
        self.migration_report: MigrationReport | None = None
        self._queue = MutationQueue(self._initialize)

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def _initialize(self) -> MigrationReport:
        self.store.ensure_directory()
        self.migration_report = migrate_legacy_aggregate(self.store, self.changelog)
        return self.migration_report

    def wait_ready(self) -> MigrationReport:
        """Block until the store is initialized; re-raises its failure."""
        return self._queue.wait_ready()

    def close(self) -> None:
        """Finish queued mutations and stop the mutation worker."""
        self._queue.close()

    def __enter__(self) -> ProjectRepository:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ─────────────────────────────────────────────────────────────────
    # Reads (not queued)
    # ─────────────────────────────────────────────────────────────────

    def list_projects(self) -> list[dict[str, Any]]:
        """Return every project document in the store."""
        self.wait_ready()
        return list(self.store.iter_documents())

    def get_project(self, project_id: str) -> dict[str, Any] | None:
        """Return one project, or None if it does not exist.

        Ids that cannot name a document (reserved or path-like) are
        reported as absent.
        """
        self.wait_ready()
        try:
            return self.store.read_document(project_id)
        except ValidationError:
            return None

    def read_log(self, project_id: str) -> str:
        """Return a project's change log ("" when there is none)."""
        self.wait_ready()
        return self.changelog.read(project_id)

    # ─────────────────────────────────────────────────────────────────
    # Mutations (queued)
    # ─────────────────────────────────────────────────────────────────

    def submit(self, operation: str, *args: Any) -> Future[Any]:
        """Enqueue a mutation by name and return its future.

        Args:
            operation: One of ``MUTATIONS``.
            *args: The operation's positional arguments.
        """
        if operation not in MUTATIONS:
            raise ValueError(f"Unknown repository mutation: {operation}")
        action = getattr(self, f"_{operation}")
        return self._queue.enqueue(functools.partial(action, *args))

    def create_project(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Create a project; embedded requirements get fresh ids.

        Raises:
            ConflictError: If a project with this id already exists.
        """
        return self.submit("create_project", payload).result()

    def replace_project(self, project_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Overwrite every field but the id; requirement ids are rebuilt.

        Raises:
            NotFoundError: If the project does not exist.
        """
        return self.submit("replace_project", project_id, payload).result()

    def update_project(self, project_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Shallow-merge ``updates`` over the stored project.

        Raises:
            NotFoundError: If the project does not exist.
        """
        return self.submit("update_project", project_id, updates).result()

    def delete_project(self, project_id: str) -> None:
        """Delete a project document and its change log.

        Raises:
            NotFoundError: If the project does not exist.
        """
        return self.submit("delete_project", project_id).result()

    def add_requirement(self, project_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Append a requirement with the next free id and return it.

        Raises:
            NotFoundError: If the project does not exist.
        """
        return self.submit("add_requirement", project_id, payload).result()

    def update_requirement(
        self,
        project_id: str,
        requirement_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Shallow-merge ``updates`` over one requirement and return it.

        Raises:
            NotFoundError: If the project or requirement does not exist.
        """
        return self.submit("update_requirement", project_id, requirement_id, updates).result()

    def delete_requirement(self, project_id: str, requirement_id: str) -> None:
        """Remove one requirement from a project.

        Raises:
            NotFoundError: If the project or requirement does not exist.
        """
        return self.submit("delete_requirement", project_id, requirement_id).result()

    # ─────────────────────────────────────────────────────────────────
    # Queued actions (run on the mutation worker only)
    # ─────────────────────────────────────────────────────────────────

    def _require_project(self, project_id: str) -> dict[str, Any]:
        project = self.store.read_document(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    def _compose(self, project_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        project: dict[str, Any] = {key: payload.get(key) for key in SCALAR_FIELDS}
        project["id"] = project_id
        for key in LIST_FIELDS:
            project[key] = payload.get(key) or []
        project["requirements"] = build_requirement_batch(
            project_id, payload.get("requirements") or []
        )
        project["lastUpdated"] = self._clock()
        return project

    def _create_project(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        project_id = payload.get("id")
        if self.store.exists(project_id):
            raise ConflictError(f"Project {project_id} already exists")

        written = self.store.write_document(project_id, self._compose(project_id, payload))
        self.changelog.append(project_id, f"CREATE project {project_id}")
        return written

    def _replace_project(self, project_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        self._require_project(project_id)

        written = self.store.write_document(project_id, self._compose(project_id, payload))
        self.changelog.append(project_id, f"REPLACE project {project_id}")
        return written

    def _assign_missing_requirement_ids(
        self, project_id: str, requirements: Any
    ) -> list[Any]:
        """Give ids to requirement entries of a partial update that lack one.

        The first entry carrying a given id keeps it. Entries without an
        id, or repeating an id already taken, get a new id numbered past
        every id in the list.
        """
        if not isinstance(requirements, list):
            return []
        known = [r for r in requirements if isinstance(r, Mapping) and r.get("id")]
        seen: set[str] = set()
        prepared: list[Any] = []
        for index, requirement in enumerate(requirements, start=1):
            requirement_id = requirement.get("id") if isinstance(requirement, Mapping) else None
            if requirement_id and isinstance(requirement_id, str) and requirement_id not in seen:
                seen.add(requirement_id)
                prepared.append(dict(requirement))
                continue
            created = build_requirement(project_id, requirement, index, known)
            seen.add(created["id"])
            known.append(created)
            prepared.append(created)
        return prepared

    def _update_project(self, project_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        project = self._require_project(project_id)

        changes = _project_changes(updates)
        if "requirements" in changes:
            changes["requirements"] = self._assign_missing_requirement_ids(
                project_id, changes["requirements"]
            )
        updated = {**project, **changes, "lastUpdated": self._clock()}

        written = self.store.write_document(project_id, updated)
        self.changelog.append(
            project_id, f"UPDATE project {project_id} fields: {_describe_fields(changes)}"
        )
        return written

    def _delete_project(self, project_id: str) -> None:
        if not self.store.exists(project_id):
            raise NotFoundError(f"Project {project_id} not found")

        self.store.delete_document(project_id)
        self.changelog.remove(project_id)

    def _add_requirement(self, project_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        project = self._require_project(project_id)

        existing = project["requirements"]
        requirement = build_requirement(project_id, payload, len(existing) + 1, existing)
        project["requirements"] = [*existing, requirement]
        project["lastUpdated"] = self._clock()

        self.store.write_document(project_id, project)
        self.changelog.append(project_id, f"ADD requirement {requirement['id']}")
        return requirement

    def _find_requirement(self, project: Mapping[str, Any], requirement_id: str) -> int:
        for index, requirement in enumerate(project["requirements"]):
            if isinstance(requirement, Mapping) and requirement.get("id") == requirement_id:
                return index
        raise NotFoundError(f"Requirement {project['id']}:{requirement_id} not found")

    def _update_requirement(
        self,
        project_id: str,
        requirement_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any]:
        project = self._require_project(project_id)
        index = self._find_requirement(project, requirement_id)

        changes = _without_id(updates)
        requirements = list(project["requirements"])
        updated_requirement = {**requirements[index], **changes}
        requirements[index] = updated_requirement
        project["requirements"] = requirements
        project["lastUpdated"] = self._clock()

        self.store.write_document(project_id, project)
        self.changelog.append(
            project_id,
            f"UPDATE requirement {requirement_id} fields: {_describe_fields(changes)}",
        )
        return updated_requirement

    def _delete_requirement(self, project_id: str, requirement_id: str) -> None:
        project = self._require_project(project_id)
        self._find_requirement(project, requirement_id)

        project["requirements"] = [
            requirement
            for requirement in project["requirements"]
            if not (isinstance(requirement, Mapping) and requirement.get("id") == requirement_id)
        ]
        project["lastUpdated"] = self._clock()

        self.store.write_document(project_id, project)
        self.changelog.append(project_id, f"DELETE requirement {requirement_id}")
