"""Per-project change log.

Each project has an append-only text log beside its document. Every
line looks like ``[2026-01-01T00:00:00.000Z] CREATE project rpa-probe``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from setrack.storage.documents import DocumentStore

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChangeLog:
    """Appends and reads the ``<id>.log`` files of a document store."""

    def __init__(self, store: DocumentStore, clock: Callable[[], str] | None = None) -> None:
        self._store = store
        self._clock = clock or utc_timestamp

    def append(self, project_id: str, message: str) -> str:
        """Append one timestamped line, creating the log if needed.

        Returns:
            The line that was written, without the trailing newline.
        """
        line = f"[{self._clock()}] {message}"
        with open(self._store.log_path_for(project_id), "a", encoding="utf-8") as f:
            f.write(line + "\n")
        return line

    def read(self, project_id: str) -> str:
        """Return the whole log, or an empty string if there is none."""
        try:
            return self._store.log_path_for(project_id).read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def remove(self, project_id: str) -> None:
        """Delete the log file. Best-effort: failures are only logged."""
        path = self._store.log_path_for(project_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove change log %s: %s", path, e)
