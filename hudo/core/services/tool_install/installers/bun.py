"""Bun — JavaScript runtime and toolkit."""

from __future__ import annotations

from hudo.core.models.tool import ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.domain.versions import strip_prefix
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

_ARCH_NAMES = {"amd64": "x64", "arm64": "aarch64"}


class BunInstaller(ArchiveInstaller):
    id = "bun"
    display_name = "Bun"
    description = "JavaScript runtime, bundler and package manager"
    category = ToolCategory.TOOL
    official_base = "https://github.com/oven-sh/bun/releases/download"
    fallback_version = "1.2.4"
    binary = "bun"
    path_dirs = ("",)

    def remote_version(self) -> str | None:
        return strip_prefix(version_sources.github_latest_tag("oven-sh/bun"), "bun-v")

    def asset_suffix(self, version: str, platform: Platform) -> str:
        return f"bun-v{version}/bun-{platform.os}-{_ARCH_NAMES[platform.arch]}.zip"
