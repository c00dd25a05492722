"""
Profile export / import.

A profile is a YAML snapshot of the managed tools and their portable
settings.  Export reads the registry; import feeds the profile versions
through the normal install pipeline as one-run overrides, then applies
the settings to every tool that ended up managed.

Secrets never leave the machine: any settings key matching
``SECRET_PATTERNS`` is dropped on export and ignored on import.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import ValidationError

from hudo import __version__
from hudo.core.models.profile import Profile
from hudo.core.models.tool import InstallOutcome, OutcomeStatus, ToolOutcome
from hudo.core.persistence.audit import HistoryEntry
from hudo.core.services.tool_install.errors import HudoError, ProfileError
from hudo.core.services.tool_install.installers import INSTALLERS, get_installer
from hudo.core.services.tool_install.orchestration.orchestrator import install_tools

if TYPE_CHECKING:
    from hudo.core.context import InstallContext

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "hudo-profile.yml"

SECRET_PATTERNS = ("token", "password", "secret", "credential", "auth", "session", "key")

_MANAGED = {OutcomeStatus.OK, OutcomeStatus.ALREADY_MANAGED, OutcomeStatus.REPAIRED}


def is_secret(key: str) -> bool:
    lowered = key.lower()
    return any(p in lowered for p in SECRET_PATTERNS)


def _public(settings: dict[str, str]) -> dict[str, str]:
    return {k: v for k, v in settings.items() if not is_secret(k)}


# ── Export ──────────────────────────────────────────────────────


def build_profile(ctx: InstallContext) -> Profile:
    """Snapshot every managed tool and its exportable settings."""
    tools: dict[str, str] = {}
    tool_config: dict[str, dict[str, str]] = {}

    for tool_id, record in ctx.registry.records().items():
        tools[tool_id] = record.version
        installer = INSTALLERS.get(tool_id)
        if installer is None:
            logger.warning("Registry has unknown tool %r, exporting version only", tool_id)
            continue
        outcome = InstallOutcome(path=record.install_path, version=record.version)
        settings = _public(installer.export_settings(outcome, platform=ctx.platform))
        if settings:
            tool_config[tool_id] = settings

    return Profile(hudo_version=__version__, tools=tools, tool_config=tool_config)


def export_profile(ctx: InstallContext, path: Path) -> Profile:
    """Write the current profile to *path* as YAML (atomic)."""
    profile = build_profile(ctx)
    data = profile.model_dump(mode="json")

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".profile_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
        Path(tmp).replace(path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise

    logger.info("Exported %d tool(s) to %s", len(profile.tools), path)
    ctx.history.write(HistoryEntry(
        operation="export",
        status="ok",
        message=str(path),
        context={"tools": sorted(profile.tools)},
    ))
    return profile


# ── Import ──────────────────────────────────────────────────────


def load_profile(path: Path) -> Profile:
    """Read and validate a profile file.

    Raises:
        ProfileError: Missing file, bad YAML, or invalid structure.
    """
    if not path.is_file():
        raise ProfileError(f"Profile not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ProfileError(f"Profile must be a mapping, got {type(raw).__name__}")

    try:
        return Profile.model_validate(raw)
    except ValidationError as e:
        raise ProfileError(f"Invalid profile {path}: {e}") from e


def import_profile(
    ctx: InstallContext,
    profile: Profile | Path,
    *,
    take_over: bool = False,
) -> list[ToolOutcome]:
    """Install everything in a profile, then apply its settings.

    Profile versions override config locks for this run only.  Tools
    already managed at the same version come back ``already_managed``.

    Raises:
        ProfileError: The profile could not be read.
        UnknownTool: The profile names a tool hudo does not know.
    """
    if isinstance(profile, Path):
        profile = load_profile(profile)

    if profile.hudo_version and profile.hudo_version != __version__:
        logger.info("Profile was exported by hudo %s", profile.hudo_version)

    outcomes = install_tools(
        ctx,
        list(profile.tools),
        take_over=take_over,
        overrides={tid: v for tid, v in profile.tools.items() if v},
    )

    for outcome in outcomes:
        settings = _public(profile.tool_config.get(outcome.tool_id, {}))
        if not settings or outcome.status not in _MANAGED:
            continue
        record = ctx.registry.get(outcome.tool_id)
        if record is None:
            continue
        installer = get_installer(outcome.tool_id)
        try:
            installer.import_settings(
                InstallOutcome(path=record.install_path, version=record.version),
                settings,
                ctx.config,
                platform=ctx.platform,
            )
        except HudoError as e:
            logger.error("Settings for %s not applied: %s", outcome.tool_id, e.message)
            outcome.status = OutcomeStatus.FAILED
            outcome.message = f"installed, settings not applied: {e.message}"
            outcome.error_kind = e.kind
            outcome.hint = e.hint

    ctx.history.write(HistoryEntry(
        operation="import",
        status="failed" if any(o.status == OutcomeStatus.FAILED for o in outcomes) else "ok",
        context={o.tool_id: o.status.value for o in outcomes},
    ))
    return outcomes
