"""
L3 Detection — reconcile the registry with what is actually on disk.

Two modes:

- ``fast``: registry only, no I/O.  Used by ``list``, idempotent
  install and profile-import skip checks.
- ``thorough``: probe the filesystem, PATH and service manager, then
  classify against the registry.  A record whose files vanished is
  reported as a stale record; a tool found without a record is
  external, even if it sits inside hudo's own directory.

``detect_all`` fans thorough probes out over a bounded thread pool and
joins every probe before returning.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from hudo.core.models.state import InstallRecord
from hudo.core.models.tool import (
    DetectResult,
    InstalledByHudo,
    InstalledExternal,
    NotInstalled,
)

if TYPE_CHECKING:
    from hudo.core.models.config import HudoConfig
    from hudo.core.persistence.registry import StateRegistry
    from hudo.core.services.tool_install.domain.platform import Platform
    from hudo.core.services.tool_install.installers.base import ToolInstaller

logger = logging.getLogger(__name__)

DetectMode = Literal["fast", "thorough"]


@dataclass
class Probe:
    """Raw findings of a thorough probe, before classification."""

    owned: bool = False          # binary present under the record's install path
    found: bool = False          # anything found anywhere
    version: str | None = None
    path: str | None = None


def classify(record: InstallRecord | None, probe: Probe) -> DetectResult:
    """Combine a registry record with probe findings."""
    if record is not None:
        if probe.owned:
            return InstalledByHudo(
                version=record.version,
                path=record.install_path,
                configured=record.configured,
            )
        return NotInstalled(stale_record=True)

    if probe.found:
        return InstalledExternal(version=probe.version or "unknown", path=probe.path or "")
    return NotInstalled()


def from_record(record: InstallRecord | None) -> DetectResult:
    """Fast-mode answer: the registry's word, nothing else."""
    if record is None:
        return NotInstalled()
    return InstalledByHudo(
        version=record.version,
        path=record.install_path,
        configured=record.configured,
    )


def detect_all(
    installers: list[ToolInstaller],
    registry: StateRegistry,
    config: HudoConfig,
    *,
    mode: DetectMode = "thorough",
    platform: Platform | None = None,
    max_workers: int | None = None,
) -> dict[str, DetectResult]:
    """Detect every tool; results keep the order of ``installers``.

    A probe that raises yields ``NotInstalled(error=...)`` for that
    tool only.
    """
    if mode == "fast":
        return {i.id: i.detect("fast", registry, config, platform=platform) for i in installers}

    workers = min(max_workers or config.max_probe_workers, max(len(installers), 1))
    results: dict[str, DetectResult] = {}

    def _probe(installer: ToolInstaller) -> DetectResult:
        return installer.detect("thorough", registry, config, platform=platform)

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="hudo-detect",
    ) as pool:
        futures = {pool.submit(_probe, inst): inst.id for inst in installers}
        for future in concurrent.futures.as_completed(futures):
            tool_id = futures[future]
            try:
                results[tool_id] = future.result()
            except Exception as e:
                logger.warning("Detection of %s failed: %s", tool_id, e)
                results[tool_id] = NotInstalled(error=str(e))

    return {i.id: results[i.id] for i in installers}
