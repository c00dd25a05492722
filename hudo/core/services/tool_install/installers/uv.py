"""uv — Python package and project manager.

Python interpreters, uv tools and the uv cache are kept under the hudo
root instead of the user profile.
"""

from __future__ import annotations

from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import EnvAction, InstallOutcome, PrependPath, SetVariable, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

_TRIPLES = {
    ("windows", "amd64"): "x86_64-pc-windows-msvc",
    ("windows", "arm64"): "aarch64-pc-windows-msvc",
    ("linux", "amd64"): "x86_64-unknown-linux-gnu",
    ("linux", "arm64"): "aarch64-unknown-linux-gnu",
    ("darwin", "amd64"): "x86_64-apple-darwin",
    ("darwin", "arm64"): "aarch64-apple-darwin",
}


class UvInstaller(ArchiveInstaller):
    id = "uv"
    display_name = "uv"
    description = "Python package and project manager"
    category = ToolCategory.TOOL
    official_base = "https://github.com/astral-sh/uv/releases/download"
    fallback_version = "0.6.3"
    binary = "uv"
    path_dirs = ("",)

    def remote_version(self) -> str | None:
        return version_sources.github_latest_tag("astral-sh/uv")

    def asset_suffix(self, version: str, platform: Platform) -> str:
        triple = _TRIPLES[(platform.os, platform.arch)]
        return f"{version}/uv-{triple}.{platform.archive_ext}"

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        return [
            PrependPath(dir=str(Path(outcome.path))),
            SetVariable(name="UV_PYTHON_INSTALL_DIR", value=str(config.lang_dir / "python")),
            SetVariable(name="UV_TOOL_DIR", value=str(config.tools_dir / "uv-tools")),
            SetVariable(name="UV_CACHE_DIR", value=str(config.cache_dir / "uv")),
        ]
