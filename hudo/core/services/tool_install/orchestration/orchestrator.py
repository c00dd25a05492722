"""
L5 Orchestration — install, repair, uninstall and list tools.

Install pipeline for one tool::

    fast detect ─┬─ managed, same version, configured ──► already_managed
                 ├─ managed, binary missing ───────────► reinstall recorded version
                 ├─ managed, configured=False ─────────► repair (env + configure)
                 ├─ external (thorough probe) ─────────► skipped (unless take_over)
                 └─ otherwise
                      resolve → fetch → install → record(configured=False)
                      → apply env → configure → mark configured

A batch expands prerequisites, orders tools topologically, optionally
prefetches artifacts in parallel, then installs one tool at a time.
Every tool yields a ``ToolOutcome``; a failure does not stop the batch,
but tools that require a failed tool are skipped.
"""

from __future__ import annotations

import concurrent.futures
import logging
import shutil
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from hudo.core.models.state import InstallRecord
from hudo.core.models.tool import (
    DetectResult,
    InstallOutcome,
    InstalledByHudo,
    InstalledExternal,
    OutcomeStatus,
    ResolvedDownload,
    ToolOutcome,
)
from hudo.core.persistence.audit import HistoryEntry
from hudo.core.services.tool_install.detection.detector import detect_all
from hudo.core.services.tool_install.domain.dag import dependents, install_order
from hudo.core.services.tool_install.errors import (
    AlreadyManaged,
    ConfigureFailed,
    ExternallyManaged,
    ExtractFailed,
    HudoError,
    NotManaged,
    UninstallFailed,
)
from hudo.core.services.tool_install.execution.download import fetch_artifact, invalidate_artifact
from hudo.core.services.tool_install.installers import INSTALLERS, PREREQUISITES, get_installer
from hudo.core.services.tool_install.installers.base import ToolInstaller

if TYPE_CHECKING:
    from hudo.core.context import InstallContext

logger = logging.getLogger(__name__)

# Plan actions
_INSTALL = "install"
_REPAIR = "repair"
_ALREADY = "already"
_RESTORE = "restore"
_EXTERNAL = "external"

Prefetched = tuple[ResolvedDownload, Path] | Exception


# ── Planning ────────────────────────────────────────────────────


def _plan(
    ctx: InstallContext,
    installer: ToolInstaller,
    version_override: str | None,
    take_over: bool,
) -> tuple[str, DetectResult]:
    current = installer.detect("fast", ctx.registry, ctx.config, platform=ctx.platform)
    if isinstance(current, InstalledByHudo):
        wanted = version_override or ctx.config.lock_for(installer.id)
        if not installer.files_present(current.path, ctx.platform):
            logger.warning("%s: files missing from %s, reinstalling", installer.id, current.path)
            if wanted and wanted != current.version:
                return _INSTALL, current
            return _RESTORE, current
        if wanted and wanted != current.version:
            logger.info("%s: %s installed, %s requested", installer.id, current.version, wanted)
            return _INSTALL, current
        if not current.configured:
            return _REPAIR, current
        return _ALREADY, current

    if not take_over:
        found = installer.detect("thorough", ctx.registry, ctx.config, platform=ctx.platform)
        if isinstance(found, InstalledExternal):
            return _EXTERNAL, found
    return _INSTALL, current


def _version_for(plan: tuple[str, DetectResult], override: str | None) -> str | None:
    """Version to fetch: the override, or the recorded one when restoring."""
    action, current = plan
    if override is None and action == _RESTORE:
        assert isinstance(current, InstalledByHudo)
        return current.version
    return override


# ── Pipeline steps ──────────────────────────────────────────────


def fetch_for(
    ctx: InstallContext,
    installer: ToolInstaller,
    version_override: str | None = None,
) -> tuple[ResolvedDownload, Path]:
    """Resolve and fetch the artifact for one install attempt."""
    download = installer.resolve_download(
        ctx.config, ctx.resolver, version_override, platform=ctx.platform,
    )
    logger.info(
        "%s %s (%s%s)", installer.id, download.resolved_version,
        download.version_source.value, ", mirror" if download.mirrored else "",
    )
    return download, fetch_artifact(download, ctx.config.cache_dir)


def _finish(ctx: InstallContext, installer: ToolInstaller, outcome: InstallOutcome, configure: bool) -> bool:
    """Apply env and configure.  Returns True if configure ran."""
    actions = installer.env_actions(outcome, ctx.config, platform=ctx.platform)
    try:
        ctx.env.apply(installer.id, actions)
    except OSError as e:
        raise ConfigureFailed(f"Cannot update environment: {e}", tool_id=installer.id) from e
    if not configure:
        return False
    installer.configure(outcome, ctx.config, platform=ctx.platform)
    ctx.registry.mark_configured(installer.id)
    return True


def _install_fresh(
    ctx: InstallContext,
    installer: ToolInstaller,
    version_override: str | None,
    configure: bool,
    prefetched: Prefetched | None,
) -> ToolOutcome:
    if isinstance(prefetched, Exception):
        raise prefetched
    download, artifact = prefetched or fetch_for(ctx, installer, version_override)

    try:
        outcome = installer.install(download, artifact, ctx.config)
    except ExtractFailed:
        invalidate_artifact(artifact)
        raise

    # persisted before configure so a failed configure stays repairable
    ctx.registry.record_install(installer.id, outcome.version, outcome.path)
    configured = _finish(ctx, installer, outcome, configure)

    return ToolOutcome(
        tool_id=installer.id,
        operation="install",
        status=OutcomeStatus.OK,
        version=outcome.version,
        path=outcome.path,
        message="installed" if configured else "installed (not configured)",
    )


def _repair(ctx: InstallContext, installer: ToolInstaller, record: InstallRecord) -> ToolOutcome:
    outcome = InstallOutcome(path=record.install_path, version=record.version)
    logger.info("%s: finishing configuration of %s", installer.id, record.version)
    _finish(ctx, installer, outcome, configure=True)
    return ToolOutcome(
        tool_id=installer.id,
        operation="configure",
        status=OutcomeStatus.REPAIRED,
        version=record.version,
        path=record.install_path,
        message="configuration completed",
    )


def _install_one(
    ctx: InstallContext,
    installer: ToolInstaller,
    plan: tuple[str, DetectResult],
    *,
    version_override: str | None,
    configure: bool,
    prefetched: Prefetched | None,
) -> ToolOutcome:
    action, current = plan

    if action == _ALREADY:
        assert isinstance(current, InstalledByHudo)
        raise AlreadyManaged(
            f"{installer.display_name} {current.version} is already installed",
            tool_id=installer.id,
        )
    if action == _EXTERNAL:
        assert isinstance(current, InstalledExternal)
        raise ExternallyManaged(
            f"{installer.display_name} {current.version} found at {current.path}, not managed by hudo",
            tool_id=installer.id,
        )
    if action == _REPAIR:
        record = ctx.registry.get(installer.id)
        assert record is not None
        return _repair(ctx, installer, record)
    outcome = _install_fresh(ctx, installer, version_override, configure, prefetched)
    if action == _RESTORE:
        outcome.message = outcome.message.replace("installed", "restored", 1)
    return outcome


# ── Receipts ────────────────────────────────────────────────────


def _receipt(
    ctx: InstallContext,
    operation: str,
    tool_id: str,
    fn: Callable[[], ToolOutcome],
) -> ToolOutcome:
    start = time.monotonic()
    try:
        outcome = fn()
    except AlreadyManaged as e:
        record = ctx.registry.get(tool_id)
        outcome = ToolOutcome(
            tool_id=tool_id, operation=operation, status=OutcomeStatus.ALREADY_MANAGED,
            version=record.version if record else None,
            path=record.install_path if record else None,
            message=e.message,
        )
    except ExternallyManaged as e:
        logger.warning("%s", e.message)
        outcome = ToolOutcome(
            tool_id=tool_id, operation=operation, status=OutcomeStatus.SKIPPED,
            message=e.message, error_kind=e.kind, hint=e.hint,
        )
    except HudoError as e:
        logger.error("%s %s failed: %s", operation, tool_id, e.message)
        outcome = ToolOutcome(
            tool_id=tool_id, operation=operation, status=OutcomeStatus.FAILED,
            message=e.message, error_kind=e.kind, hint=e.hint,
        )
    except Exception as e:
        logger.exception("%s %s failed unexpectedly", operation, tool_id)
        outcome = ToolOutcome(
            tool_id=tool_id, operation=operation, status=OutcomeStatus.FAILED,
            message=f"{type(e).__name__}: {e}", error_kind="internal",
            hint="Unexpected error; re-run with --debug and report the log.",
        )
    outcome.duration_ms = int((time.monotonic() - start) * 1000)
    _log_history(ctx, outcome)
    return outcome


def _log_history(ctx: InstallContext, outcome: ToolOutcome) -> None:
    ctx.history.write(HistoryEntry(
        operation=outcome.operation,
        tool_id=outcome.tool_id,
        status=outcome.status.value,
        version=outcome.version,
        error_kind=outcome.error_kind,
        message=outcome.message,
        duration_ms=outcome.duration_ms,
    ))


# ── Public operations ───────────────────────────────────────────


def install_tools(
    ctx: InstallContext,
    tool_ids: list[str],
    *,
    take_over: bool = False,
    configure: bool = True,
    overrides: dict[str, str] | None = None,
    include_prerequisites: bool = True,
    prefetch: bool = True,
) -> list[ToolOutcome]:
    """Install several tools in prerequisite order.

    Args:
        ctx: Install context.
        tool_ids: Requested tools.
        take_over: Install even if an external copy is on PATH.
        configure: Run each tool's configure step.
        overrides: ``{tool_id: version}`` for this run only (profile import).
        include_prerequisites: Also install missing prerequisites.
        prefetch: Download artifacts concurrently before installing.

    Returns:
        One outcome per tool, in install order.

    Raises:
        UnknownTool: Before anything runs, if any id is unknown.
    """
    for tid in tool_ids:
        get_installer(tid)
    overrides = overrides or {}

    order = install_order(tool_ids, PREREQUISITES, include_prerequisites=include_prerequisites)
    plans = {
        tid: _plan(ctx, INSTALLERS[tid], overrides.get(tid), take_over)
        for tid in order
    }
    versions = {tid: _version_for(plans[tid], overrides.get(tid)) for tid in order}

    prefetched: dict[str, Prefetched] = {}
    to_fetch = [tid for tid in order if plans[tid][0] in (_INSTALL, _RESTORE)]
    if prefetch and len(to_fetch) > 1:
        prefetched = _prefetch(ctx, to_fetch, versions)

    outcomes: list[ToolOutcome] = []
    failed: set[str] = set()
    for tid in order:
        installer = INSTALLERS[tid]
        blocked = sorted(installer.prerequisites & failed)
        if blocked:
            failed.add(tid)
            outcome = ToolOutcome(
                tool_id=tid, operation="install", status=OutcomeStatus.SKIPPED,
                message=f"prerequisite failed: {', '.join(blocked)}",
            )
            _log_history(ctx, outcome)
            outcomes.append(outcome)
            continue

        outcome = _receipt(ctx, "install", tid, lambda inst=installer, t=tid: _install_one(
            ctx, inst, plans[t],
            version_override=versions[t],
            configure=configure,
            prefetched=prefetched.get(t),
        ))
        if outcome.status == OutcomeStatus.FAILED:
            failed.add(tid)
        outcomes.append(outcome)

    return outcomes


def install_tool(
    ctx: InstallContext,
    tool_id: str,
    *,
    version_override: str | None = None,
    take_over: bool = False,
    configure: bool = True,
) -> ToolOutcome:
    """Install a single tool (prerequisites are not pulled in)."""
    overrides = {tool_id: version_override} if version_override else None
    return install_tools(
        ctx, [tool_id],
        take_over=take_over,
        configure=configure,
        overrides=overrides,
        include_prerequisites=False,
        prefetch=False,
    )[0]


def _prefetch(
    ctx: InstallContext,
    tool_ids: list[str],
    overrides: dict[str, str | None],
) -> dict[str, Prefetched]:
    """Download several artifacts concurrently.  Errors are kept per tool."""
    results: dict[str, Prefetched] = {}
    workers = min(ctx.config.max_download_workers, len(tool_ids))

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="hudo-fetch",
    ) as pool:
        futures = {
            pool.submit(fetch_for, ctx, INSTALLERS[tid], overrides.get(tid)): tid
            for tid in tool_ids
        }
        for future in concurrent.futures.as_completed(futures):
            tid = futures[future]
            try:
                results[tid] = future.result()
            except HudoError as e:
                if not e.tool_id:
                    e.tool_id = tid
                results[tid] = e
            except Exception as e:
                logger.exception("Prefetch of %s failed", tid)
                results[tid] = e
    return results


def configure_tool(ctx: InstallContext, tool_id: str) -> ToolOutcome:
    """Re-run env + configure for a managed tool (repair)."""
    installer = get_installer(tool_id)

    def _run() -> ToolOutcome:
        record = ctx.registry.get(tool_id)
        if record is None:
            raise NotManaged(f"{installer.display_name} is not managed by hudo", tool_id=tool_id)
        if not installer.files_present(record.install_path, ctx.platform):
            raise ConfigureFailed(
                f"{installer.display_name} files are missing from {record.install_path}",
                tool_id=tool_id,
                hint=f"Run 'hudo install {tool_id}' to restore them.",
            )
        return _repair(ctx, installer, record)

    return _receipt(ctx, "configure", tool_id, _run)


def uninstall_tool(ctx: InstallContext, tool_id: str, *, force: bool = False) -> ToolOutcome:
    """Tear down, revert env, delete files, then drop the record.

    With ``force`` the record is dropped even if a step failed.
    """
    installer = get_installer(tool_id)

    def _run() -> ToolOutcome:
        record = ctx.registry.get(tool_id)
        if record is None:
            raise NotManaged(f"{installer.display_name} is not managed by hudo", tool_id=tool_id)

        still_needed = sorted(t for t in dependents(tool_id, PREREQUISITES) if t in ctx.registry)
        if still_needed:
            logger.warning("%s is required by %s", tool_id, ", ".join(still_needed))

        outcome = InstallOutcome(path=record.install_path, version=record.version)
        problems: list[str] = []

        try:
            installer.teardown(outcome, ctx.config, platform=ctx.platform)
        except HudoError as e:
            if not force:
                raise
            problems.append(e.message)

        try:
            ctx.env.revert(tool_id, installer.env_actions(outcome, ctx.config, platform=ctx.platform))
        except OSError as e:
            if not force:
                raise UninstallFailed(f"Cannot revert environment: {e}", tool_id=tool_id) from e
            problems.append(str(e))

        path = Path(record.install_path)
        if path.exists():
            try:
                shutil.rmtree(path)
            except OSError as e:
                if not force:
                    raise UninstallFailed(f"Cannot remove {path}: {e}", tool_id=tool_id) from e
                problems.append(str(e))

        ctx.registry.remove(tool_id)
        message = "uninstalled"
        if problems:
            message += " (forced: " + "; ".join(problems) + ")"
        return ToolOutcome(
            tool_id=tool_id, operation="uninstall", status=OutcomeStatus.OK,
            version=record.version, path=record.install_path, message=message,
        )

    return _receipt(ctx, "uninstall", tool_id, _run)


def list_tools(ctx: InstallContext, *, thorough: bool = False) -> dict[str, DetectResult]:
    """Fast: managed tools from the registry.  Thorough: every known tool."""
    if not thorough:
        return {
            tid: InstalledByHudo(version=r.version, path=r.install_path, configured=r.configured)
            for tid, r in ctx.registry.records().items()
        }
    return detect_tools(ctx)


def detect_tools(ctx: InstallContext, tool_ids: list[str] | None = None) -> dict[str, DetectResult]:
    """Thorough detection, probes run concurrently."""
    installers = [get_installer(t) for t in tool_ids] if tool_ids else list(INSTALLERS.values())
    return detect_all(
        installers, ctx.registry, ctx.config,
        mode="thorough", platform=ctx.platform,
    )
