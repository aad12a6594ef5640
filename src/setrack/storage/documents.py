"""Document store - one JSON file per project in a storage directory.

File absence is not an error here: readers get ``None`` back and decide
what a missing document means. Every document read or written passes
through ``canonicalize_project`` so list fields are always present.

Every file operation uses ``encoding="utf-8"`` explicitly.

Public API
----------
- ``DocumentStore.read_json``       - parse any JSON file, ``None`` if missing
- ``DocumentStore.read_document``   - canonical project document or ``None``
- ``DocumentStore.write_document``  - canonicalize and overwrite a document
- ``DocumentStore.iter_documents``  - every project document in the directory
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from setrack.errors import CorruptDataError, ValidationError
from setrack.models import canonicalize_project

AGGREGATE_FILENAME = "projects.json"
ARCHIVE_FILENAME = "projects.legacy.json"

DOCUMENT_SUFFIX = ".json"
LOG_SUFFIX = ".log"

_BOM = "\ufeff"
_RESERVED_STEMS = frozenset({"projects", "projects.legacy"})
_RESERVED_FILENAMES = frozenset({AGGREGATE_FILENAME, ARCHIVE_FILENAME})


def _check_document_id(doc_id: Any) -> str:
    """Reject ids that cannot safely be used as a file-name stem."""
    if not isinstance(doc_id, str) or not doc_id.strip():
        raise ValidationError("Project id must be a non-empty string")
    if "/" in doc_id or "\\" in doc_id or "\x00" in doc_id or doc_id in (".", ".."):
        raise ValidationError(f"Invalid project id: {doc_id!r}")
    if doc_id.lower() in _RESERVED_STEMS:
        raise ValidationError(f"Project id {doc_id!r} is reserved")
    return doc_id


class DocumentStore:
    """Reads and writes project documents under ``storage_dir``.

    Layout::

        <storage_dir>/<id>.json          project document
        <storage_dir>/<id>.log           change log (see ChangeLog)
        <storage_dir>/projects.json      legacy aggregate (migration input)
        <storage_dir>/projects.legacy.json  archived aggregate
    """

    def __init__(self, storage_dir: Path | str) -> None:
        self.storage_dir = Path(storage_dir)

    @property
    def aggregate_path(self) -> Path:
        return self.storage_dir / AGGREGATE_FILENAME

    @property
    def archive_path(self) -> Path:
        return self.storage_dir / ARCHIVE_FILENAME

    def ensure_directory(self) -> None:
        """Create the storage directory (and parents) if needed."""
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, doc_id: str) -> Path:
        """Return the document path for ``doc_id``.

        Raises:
            ValidationError: If the id cannot be used as a file name.
        """
        return self.storage_dir / f"{_check_document_id(doc_id)}{DOCUMENT_SUFFIX}"

    def log_path_for(self, doc_id: str) -> Path:
        """Return the change-log path for ``doc_id``."""
        return self.storage_dir / f"{_check_document_id(doc_id)}{LOG_SUFFIX}"

    def exists(self, doc_id: str) -> bool:
        return self.path_for(doc_id).exists()

    def read_json(self, path: Path) -> Any | None:
        """Parse a JSON file.

        A leading byte-order mark is stripped before parsing.

        Args:
            path: File to read.

        Returns:
            The parsed value, or None when the file does not exist.

        Raises:
            CorruptDataError: If the content is not valid UTF-8 JSON.
            OSError: For any other I/O failure.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise CorruptDataError(path, str(e)) from e

        if raw.startswith(_BOM):
            raw = raw[len(_BOM) :]
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(path, str(e)) from e

    def read_document(self, doc_id: str) -> dict[str, Any] | None:
        """Read one project document.

        Array-shaped files (an older layout) yield the item whose id
        matches ``doc_id``.

        Returns:
            The canonical document, or None if there is no such document.
        """
        parsed = self.read_json(self.path_for(doc_id))
        if parsed is None:
            return None
        if isinstance(parsed, list):
            for item in parsed:
                if isinstance(item, Mapping) and item.get("id") == doc_id:
                    return canonicalize_project(item)
            return None
        return canonicalize_project(parsed)

    def write_document(self, doc_id: str, document: Mapping[str, Any]) -> dict[str, Any]:
        """Canonicalize ``document`` and overwrite the file for ``doc_id``.

        Output is indented by two spaces, keeps the canonical field order
        and preserves non-ASCII text.

        Returns:
            The canonical document that was written.
        """
        canonical = canonicalize_project(document)
        payload = json.dumps(canonical, indent=2, ensure_ascii=False) + "\n"
        self.path_for(doc_id).write_text(payload, encoding="utf-8")
        return canonical

    def delete_document(self, doc_id: str) -> None:
        """Remove the document file. Raises FileNotFoundError if absent."""
        self.path_for(doc_id).unlink()

    def iter_documents(self) -> Iterator[dict[str, Any]]:
        """Yield every project document in the storage directory.

        The legacy aggregate and its archive are not project documents
        and are skipped. Parsed values without an id are ignored.
        """
        if not self.storage_dir.is_dir():
            return

        for path in sorted(self.storage_dir.iterdir()):
            name = path.name.lower()
            if not name.endswith(DOCUMENT_SUFFIX) or name in _RESERVED_FILENAMES:
                continue
            if not path.is_file():
                continue
            parsed = self.read_json(path)
            if isinstance(parsed, list):
                for item in parsed:
                    if isinstance(item, Mapping) and item.get("id"):
                        yield canonicalize_project(item)
            elif isinstance(parsed, Mapping) and parsed.get("id"):
                yield canonicalize_project(parsed)
