"""
Operation history — append-only NDJSON ledger.

Each install / configure / uninstall / import writes one line to
``<root>/history.ndjson``.  Entries are never rewritten; ``hudo history``
reads the tail.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

HISTORY_FILE = "history.ndjson"


class HistoryEntry(BaseModel):
    """A single history line."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation: str = ""            # install, configure, uninstall, import, export
    tool_id: str = ""
    status: str = ""               # ok, already_managed, repaired, skipped, failed
    version: str | None = None
    error_kind: str | None = None
    message: str = ""
    duration_ms: int = 0
    context: dict[str, Any] = Field(default_factory=dict)


class HistoryWriter:
    """Append-only history ledger.

    Writes are serialized with a lock; batch installs may finish tools
    from worker threads.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: HistoryEntry) -> None:
        """Append an entry.  Failures are logged, not raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                logger.error("Failed to write history entry: %s", e)
                return
        logger.debug("History entry written: %s/%s", entry.operation, entry.tool_id)

    def read_all(self) -> list[HistoryEntry]:
        """Read all entries, oldest first.  Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries: list[HistoryEntry] = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(HistoryEntry.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt history entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read history: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[HistoryEntry]:
        return self.read_all()[-n:]
