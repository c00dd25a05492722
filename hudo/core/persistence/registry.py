"""
State registry — the only writer of install records.

Every mutation runs inside ``transaction()``: the lock is taken, a
deep copy of the current state is handed out, and on a clean exit the
copy is saved atomically and becomes the live state.  If the body or
the save raises, the live state is untouched.

Ordering rules callers rely on:

- ``record_install`` (``configured=False``) happens before configure.
- ``mark_configured`` follows a successful configure.
- ``remove`` happens only after uninstall succeeded (or was forced).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from hudo.core.models.state import InstallRecord, RegistryState
from hudo.core.persistence.state_file import load_registry, save_registry

logger = logging.getLogger(__name__)


class StateRegistry:
    """Install records keyed by tool id, persisted to ``state.json``."""

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.RLock()
        self._state = load_registry(path)

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def transaction(self) -> Iterator[RegistryState]:
        """Yield a mutable draft of the registry; commit it on exit."""
        with self._lock:
            draft = self._state.model_copy(deep=True)
            yield draft
            save_registry(draft, self._path)
            self._state = draft

    # ── Reads ───────────────────────────────────────────────────

    def get(self, tool_id: str) -> InstallRecord | None:
        with self._lock:
            record = self._state.tools.get(tool_id)
            return record.model_copy() if record else None

    def records(self) -> dict[str, InstallRecord]:
        with self._lock:
            return {k: v.model_copy() for k, v in sorted(self._state.tools.items())}

    def __contains__(self, tool_id: str) -> bool:
        with self._lock:
            return tool_id in self._state.tools

    # ── Writes ──────────────────────────────────────────────────

    def record_install(self, tool_id: str, version: str, install_path: str) -> InstallRecord:
        """Persist a fresh record with ``configured=False``."""
        record = InstallRecord(
            tool_id=tool_id,
            version=version,
            install_path=install_path,
            managed=True,
            configured=False,
        )
        with self.transaction() as state:
            state.tools[tool_id] = record
        logger.info("Recorded %s %s at %s", tool_id, version, install_path)
        return record.model_copy()

    def mark_configured(self, tool_id: str) -> None:
        with self.transaction() as state:
            record = state.tools.get(tool_id)
            if record is None:
                raise KeyError(tool_id)
            record.configured = True
        logger.info("Marked %s configured", tool_id)

    def remove(self, tool_id: str) -> bool:
        """Drop a record. Returns False if there was nothing to drop."""
        with self.transaction() as state:
            existed = state.tools.pop(tool_id, None) is not None
        if existed:
            logger.info("Removed record for %s", tool_id)
        return existed
