"""
L4 Execution — core subprocess runner.

The single place where installers' side-effecting commands
(``git config``, ``initdb``, ``mysqld --initialize``, elevation
wrappers) are spawned.  Logging and error shaping are centralised here.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

_TAIL = 2000


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: float | None = 120,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before giving up, or None to wait forever
            (elevation prompts).
        env_overrides: Extra env vars layered over ``os.environ``.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": bool, "returncode": N, "stdout": ..., "stderr": ...,
        "elapsed_ms": N}``; ``"error"`` is set when ``ok`` is False.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running: %s", " ".join(cmd))
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "returncode": None, "error": f"Command timed out ({timeout}s)"}
    except OSError as e:
        return {"ok": False, "returncode": None, "error": f"Cannot run {cmd[0]}: {e}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    out = {
        "ok": result.returncode == 0,
        "returncode": result.returncode,
        "stdout": (result.stdout or "")[-_TAIL:],
        "stderr": (result.stderr or "")[-_TAIL:],
        "elapsed_ms": elapsed_ms,
    }
    if result.returncode != 0:
        out["error"] = f"Command failed (exit {result.returncode})"
        logger.debug("%s exited %d: %s", cmd[0], result.returncode, out["stderr"].strip())
    return out
