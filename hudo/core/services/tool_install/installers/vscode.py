"""Visual Studio Code — portable archive build.

The portable ``data/`` directory (settings, extensions) survives
reinstalls.
"""

from __future__ import annotations

from hudo.core.models.tool import ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

_TARGETS = {
    ("windows", "amd64"): ("win32-x64-archive", "zip"),
    ("windows", "arm64"): ("win32-arm64-archive", "zip"),
    ("linux", "amd64"): ("linux-x64", "tar.gz"),
    ("linux", "arm64"): ("linux-arm64", "tar.gz"),
    ("darwin", "amd64"): ("darwin-universal", "zip"),
    ("darwin", "arm64"): ("darwin-universal", "zip"),
}


class VscodeInstaller(ArchiveInstaller):
    id = "vscode"
    display_name = "VS Code"
    description = "Visual Studio Code editor"
    category = ToolCategory.IDE
    official_base = "https://update.code.visualstudio.com"
    fallback_version = "1.97.2"
    binary = "bin/code"
    preserved_dirs = ("data",)

    def remote_version(self) -> str | None:
        return version_sources.vscode_latest()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        target, _ext = _TARGETS[(platform.os, platform.arch)]
        return f"{version}/{target}/stable"

    def asset_filename(self, version: str, platform: Platform) -> str:
        target, ext = _TARGETS[(platform.os, platform.arch)]
        return f"vscode-{version}-{target}.{ext}"

    def binary_relpath(self, platform: Platform) -> str:
        # bin/code.cmd on Windows is a shim around Code.exe
        return "bin/code.cmd" if platform.is_windows else self.binary

    @property
    def command(self) -> str:
        return "code"
