"""
Install context — the handles every operation needs, passed explicitly.

Built once per CLI invocation from the loaded config.  Nothing in the
core keeps module-level state; tests build their own context pointing
at a temporary root.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hudo.core.models.config import HudoConfig
from hudo.core.persistence.audit import HistoryWriter
from hudo.core.persistence.registry import StateRegistry
from hudo.core.services.tool_install.domain.platform import Platform, current_platform
from hudo.core.services.tool_install.execution.env_applier import EnvApplier, default_env_applier
from hudo.core.services.tool_install.resolver.version_resolution import VersionResolver


@dataclass
class InstallContext:
    config: HudoConfig
    registry: StateRegistry
    resolver: VersionResolver
    env: EnvApplier
    history: HistoryWriter
    platform: Platform = field(default_factory=current_platform)


def build_context(
    config: HudoConfig,
    *,
    env: EnvApplier | None = None,
    platform: Platform | None = None,
) -> InstallContext:
    """Create the root layout and wire up all handles."""
    config.ensure_dirs()
    return InstallContext(
        config=config,
        registry=StateRegistry(config.state_path),
        resolver=VersionResolver(),
        env=env or default_env_applier(config),
        history=HistoryWriter(config.history_path),
        platform=platform or current_platform(),
    )
