"""GitHub CLI."""

from __future__ import annotations

from hudo.core.models.tool import ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.domain.versions import strip_prefix
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

_OS_NAMES = {"windows": "windows", "linux": "linux", "darwin": "macOS"}


class GhInstaller(ArchiveInstaller):
    id = "gh"
    display_name = "GitHub CLI"
    description = "GitHub on the command line"
    category = ToolCategory.TOOL
    prerequisites = frozenset({"git"})
    official_base = "https://github.com/cli/cli/releases/download"
    fallback_version = "2.87.3"
    binary = "bin/gh"

    def remote_version(self) -> str | None:
        return strip_prefix(version_sources.github_latest_tag("cli/cli"), "v")

    def asset_suffix(self, version: str, platform: Platform) -> str:
        ext = "tar.gz" if platform.os == "linux" else "zip"
        return f"v{version}/gh_{version}_{_OS_NAMES[platform.os]}_{platform.arch}.{ext}"
