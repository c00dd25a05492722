"""MinGW-w64 — standalone WinLibs GCC build (UCRT runtime).

Versions are full WinLibs release strings such as
``14.2.0-19.1.7-12.0.0-ucrt-r2``: GCC, LLVM, MinGW-w64, runtime and
build revision.  WinLibs publishes no machine-readable "latest", so the
fallback release is used unless one is locked.
"""

from __future__ import annotations

from hudo.core.models.tool import ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.installers.base import ArchiveInstaller


class MingwInstaller(ArchiveInstaller):
    id = "mingw"
    display_name = "MinGW-w64"
    description = "GCC toolchain for Windows (WinLibs build)"
    category = ToolCategory.TOOL
    platforms = frozenset({"windows"})
    official_base = "https://github.com/brechtsanders/winlibs_mingw/releases/download"
    fallback_version = "14.2.0-19.1.7-12.0.0-ucrt-r2"
    dir_name = "mingw64"
    binary = "bin/gcc"

    def asset_suffix(self, version: str, platform: Platform) -> str:
        gcc = version.split("-", 1)[0]
        revision = version.rsplit("-", 1)[-1]
        tag = f"{gcc}-posix-seh-ucrt-{revision}"
        return f"{tag}/winlibs-x86_64-posix-seh-gcc-{version}-mingw-w64ucrt.zip"
