"""
L3 Detection — OS service state.

Read-only probes: ``sc query`` on Windows, ``systemctl show`` on systemd.
Used by the database probes and by the elevated-operation verifier,
which never trusts an exit code on its own.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import sys
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

# sc.exe: "The specified service does not exist as an installed service."
_SC_NOT_FOUND = 1060
_SC_STATE_RE = re.compile(r"STATE\s*:\s*\d+\s+(\w+)")


class ServiceState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    PENDING = "pending"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


def _is_windows() -> bool:
    return sys.platform == "win32"


def _detect_init_system() -> str:
    """Detect the init system (systemd, openrc, initd, or unknown)."""
    if Path("/run/systemd/system").exists():
        return "systemd"
    if shutil.which("rc-service"):
        return "openrc"
    if Path("/etc/init.d").exists():
        return "initd"
    return "unknown"


def query_service_state(service: str, *, timeout: float = 5) -> ServiceState:
    """Current state of an OS service."""
    if _is_windows():
        return _query_sc(service, timeout)
    if _detect_init_system() == "systemd":
        return _query_systemd(service, timeout)
    return ServiceState.UNKNOWN


def _query_sc(service: str, timeout: float) -> ServiceState:
    try:
        r = subprocess.run(
            ["sc", "query", service], capture_output=True, text=True, timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("sc query %s failed: %s", service, e)
        return ServiceState.UNKNOWN

    if r.returncode == _SC_NOT_FOUND or "1060" in (r.stdout or ""):
        return ServiceState.NOT_FOUND
    return parse_sc_output(r.stdout or "")


def parse_sc_output(output: str) -> ServiceState:
    m = _SC_STATE_RE.search(output)
    if not m:
        return ServiceState.UNKNOWN
    word = m.group(1).upper()
    if word == "RUNNING":
        return ServiceState.RUNNING
    if word == "STOPPED":
        return ServiceState.STOPPED
    if word.endswith("_PENDING"):
        return ServiceState.PENDING
    return ServiceState.UNKNOWN


def _query_systemd(service: str, timeout: float) -> ServiceState:
    props: dict[str, str] = {}
    try:
        r = subprocess.run(
            ["systemctl", "show", service, "--property=ActiveState,LoadState"],
            capture_output=True, text=True, timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("systemctl show %s failed: %s", service, e)
        return ServiceState.UNKNOWN

    for line in (r.stdout or "").splitlines():
        key, _, val = line.strip().partition("=")
        props[key.lower()] = val
    return parse_systemd_props(props)


def parse_systemd_props(props: dict[str, str]) -> ServiceState:
    if props.get("loadstate") == "not-found":
        return ServiceState.NOT_FOUND
    active = props.get("activestate", "")
    if active == "active":
        return ServiceState.RUNNING
    if active in ("inactive", "failed"):
        return ServiceState.STOPPED
    if active in ("activating", "deactivating", "reloading"):
        return ServiceState.PENDING
    return ServiceState.UNKNOWN
