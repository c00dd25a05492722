"""
L4 Execution — privileged operations with independent verification.

``run_elevated`` spawns a command with higher privileges:

- Windows: ``Start-Process -Verb RunAs`` through PowerShell.  A
  declined UAC prompt surfaces as exit 1223 (ERROR_CANCELLED).
- POSIX: run directly when already root, otherwise through ``sudo``.

Exit codes of elevated children are unreliable (``pg_ctl register``
returns 0 without rights), so service operations go through
``run_service_operation``, which ignores the exit code and polls the
service manager until the expected state shows up or the deadline
passes.  Only the poll is bounded; the prompt itself is not.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import time
from collections.abc import Callable, Iterable
from typing import Any

from hudo.core.services.tool_install.detection import service_status
from hudo.core.services.tool_install.detection.service_status import ServiceState
from hudo.core.services.tool_install.errors import (
    ElevationDenied,
    ElevationVerificationTimeout,
)
from hudo.core.services.tool_install.execution.subprocess_runner import _run_subprocess

logger = logging.getLogger(__name__)

ERROR_CANCELLED = 1223

_SUDO_DENIED_MARKERS = (
    "incorrect password",
    "sorry, try again",
    "a password is required",
    "is not in the sudoers file",
)


def _is_windows() -> bool:
    return sys.platform == "win32"


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _powershell_runas(cmd: list[str]) -> list[str]:
    """Wrap ``cmd`` in a RunAs launch that reports the child's exit code."""
    file_path = _ps_quote(cmd[0])
    args = subprocess.list2cmdline(cmd[1:])
    arg_list = f" -ArgumentList {_ps_quote(args)}" if args else ""
    script = (
        "try { "
        f"$p = Start-Process -FilePath {file_path}{arg_list} "
        "-Verb RunAs -WindowStyle Hidden -Wait -PassThru -ErrorAction Stop; "
        "exit $p.ExitCode "
        "} catch { "
        # only a declined UAC prompt carries ERROR_CANCELLED
        "$e = $_.Exception; "
        "while ($e) { "
        f"if ($e.NativeErrorCode -eq {ERROR_CANCELLED}) {{ exit {ERROR_CANCELLED} }} "
        "$e = $e.InnerException "
        "}; "
        "[Console]::Error.WriteLine($_.Exception.Message); "
        "exit 1 "
        "}"
    )
    return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]


def _elevated_command(cmd: list[str]) -> list[str]:
    if _is_windows():
        return _powershell_runas(cmd)
    if _is_root():
        return list(cmd)
    return ["sudo", "--", *cmd]


def _is_denied(result: dict[str, Any]) -> bool:
    if _is_windows():
        return result.get("returncode") == ERROR_CANCELLED
    if _is_root():
        return False
    stderr = (result.get("stderr") or "").lower()
    return result.get("returncode") == 1 and any(m in stderr for m in _SUDO_DENIED_MARKERS)


def run_elevated(cmd: list[str], *, tool_id: str = "") -> dict[str, Any]:
    """Run ``cmd`` with elevated privileges and wait for it.

    Returns:
        The runner's result dict.  A non-zero exit is *not* an error
        here; callers verify the effect themselves.

    Raises:
        ElevationDenied: The user declined the prompt / authentication.
    """
    logger.info("Requesting elevation for: %s", " ".join(cmd))
    result = _run_subprocess(_elevated_command(cmd), timeout=None)
    if _is_denied(result):
        raise ElevationDenied(
            f"Elevation was declined for {os.path.basename(cmd[0])}",
            tool_id=tool_id,
        )
    logger.debug("Elevated %s exited %s", cmd[0], result.get("returncode"))
    return result


def wait_for_service_state(
    service: str,
    targets: Iterable[ServiceState],
    *,
    timeout: float = 30,
    interval: float = 1,
    tool_id: str = "",
    sleep: Callable[[float], None] = time.sleep,
) -> ServiceState:
    """Poll until ``service`` reaches one of ``targets``.

    Raises:
        ElevationVerificationTimeout: Deadline passed first.
    """
    wanted = set(targets)
    deadline = time.monotonic() + timeout
    state = service_status.query_service_state(service)
    while state not in wanted:
        if time.monotonic() >= deadline:
            raise ElevationVerificationTimeout(
                f"Service {service} is {state.value}, expected "
                f"{'/'.join(sorted(s.value for s in wanted))} after {timeout:g}s",
                tool_id=tool_id,
            )
        sleep(interval)
        state = service_status.query_service_state(service)
    logger.debug("Service %s reached %s", service, state.value)
    return state


def run_service_operation(
    cmd: list[str],
    service: str,
    targets: Iterable[ServiceState],
    *,
    timeout: float = 30,
    interval: float = 1,
    tool_id: str = "",
) -> ServiceState:
    """Run a privileged service command, then verify by polling.

    The child's exit code is only logged; success is decided by the
    observed service state.
    """
    result = run_elevated(cmd, tool_id=tool_id)
    if not result.get("ok"):
        logger.info(
            "%s exited %s; verifying service state anyway",
            os.path.basename(cmd[0]), result.get("returncode"),
        )
    return wait_for_service_state(
        service, targets, timeout=timeout, interval=interval, tool_id=tool_id,
    )
