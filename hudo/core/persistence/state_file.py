"""
State file persistence — atomic read/write for the install registry.

The registry lives at ``<root>/state.json``.  Writes go to a temp file
in the same directory and are renamed over the target, so a reader
sees either the old document or the new one, never a partial write.

A file that cannot be parsed is moved aside to
``state.json.corrupt-<timestamp>`` and replaced by an empty registry.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from hudo.core.models.state import RegistryState

logger = logging.getLogger(__name__)

STATE_FILE = "state.json"


def load_registry(path: Path) -> RegistryState:
    """Load the registry from a JSON file.

    Args:
        path: Path to ``state.json``.

    Returns:
        RegistryState. A missing or corrupt file yields a fresh state.
    """
    if not path.is_file():
        logger.info("No state file at %s, starting with an empty registry", path)
        return RegistryState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        state = RegistryState.model_validate(data)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        backup = _quarantine(path)
        logger.warning(
            "Corrupt state file %s (%s), moved to %s and starting fresh",
            path, e, backup,
        )
        return RegistryState()

    logger.debug("Loaded registry from %s (%d tools)", path, len(state.tools))
    return state


def save_registry(state: RegistryState, path: Path) -> None:
    """Save the registry (atomic write).

    Args:
        state: The registry to save.
        path: Target path for ``state.json``.
    """
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".state_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save registry to %s", path)
        raise
    logger.debug("Registry saved to %s", path)


def _quarantine(path: Path) -> Path:
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt-{stamp}")
    try:
        path.replace(backup)
    except OSError as e:
        logger.warning("Could not move corrupt state file aside: %s", e)
    return backup
