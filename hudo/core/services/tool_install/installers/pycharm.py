"""PyCharm Community Edition."""

from __future__ import annotations

from hudo.core.models.tool import ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources


class PycharmInstaller(ArchiveInstaller):
    id = "pycharm"
    display_name = "PyCharm"
    description = "PyCharm Community Edition IDE"
    category = ToolCategory.IDE
    platforms = frozenset({"windows", "linux"})
    official_base = "https://download.jetbrains.com"
    fallback_version = "2024.3.5"
    binary = "bin/pycharm64"

    def remote_version(self) -> str | None:
        return version_sources.pycharm_latest()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        if platform.is_windows:
            return f"python/pycharm-community-{version}.win.zip"
        suffix = "-aarch64" if platform.arch == "arm64" else ""
        return f"python/pycharm-community-{version}{suffix}.tar.gz"

    def binary_relpath(self, platform: Platform) -> str:
        return self.binary + ".exe" if platform.is_windows else "bin/pycharm.sh"

    @property
    def command(self) -> str:
        return "pycharm"
