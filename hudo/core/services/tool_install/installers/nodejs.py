"""Node.js — latest LTS from nodejs.org."""

from __future__ import annotations

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import EnvAction, InstallOutcome, PrependPath, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform, current_platform
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

_OS_NAMES = {"windows": "win", "linux": "linux", "darwin": "darwin"}
_ARCH_NAMES = {"amd64": "x64", "arm64": "arm64"}


class NodejsInstaller(ArchiveInstaller):
    id = "nodejs"
    display_name = "Node.js"
    description = "JavaScript runtime (LTS)"
    category = ToolCategory.LANGUAGE
    dir_name = "node"
    official_base = "https://nodejs.org/dist"
    fallback_version = "22.14.0"
    binary = "bin/node"

    def remote_version(self) -> str | None:
        return version_sources.nodejs_latest_lts()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        ext = {"windows": "zip", "linux": "tar.xz", "darwin": "tar.gz"}[platform.os]
        name = f"node-v{version}-{_OS_NAMES[platform.os]}-{_ARCH_NAMES[platform.arch]}"
        return f"v{version}/{name}.{ext}"

    def binary_relpath(self, platform: Platform) -> str:
        # the Windows zip keeps node.exe at the top level
        return "node.exe" if platform.is_windows else self.binary

    @property
    def command(self) -> str:
        return "node"

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        plat = platform or current_platform()
        if plat.is_windows:
            return [PrependPath(dir=outcome.path)]
        return super().env_actions(outcome, config, platform=plat)
