"""Eclipse Temurin JDK via the Adoptium API.

Versions are feature releases (``21``); the API redirects
``/binary/latest/<major>/ga/...`` to the newest build of that major.
"""

from __future__ import annotations

from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import EnvAction, InstallOutcome, PrependPath, SetVariable, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

_OS_NAMES = {"windows": "windows", "linux": "linux", "darwin": "mac"}
_ARCH_NAMES = {"amd64": "x64", "arm64": "aarch64"}


class JdkInstaller(ArchiveInstaller):
    id = "jdk"
    display_name = "Java JDK"
    description = "Eclipse Temurin OpenJDK"
    category = ToolCategory.LANGUAGE
    dir_name = "java"
    official_base = "https://api.adoptium.net/v3/binary/latest"
    fallback_version = "21"
    binary = "bin/java"

    def remote_version(self) -> str | None:
        return version_sources.adoptium_latest_lts()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        os_name = _OS_NAMES[platform.os]
        arch = _ARCH_NAMES[platform.arch]
        return f"{version}/ga/{os_name}/{arch}/jdk/hotspot/normal/eclipse"

    def asset_filename(self, version: str, platform: Platform) -> str:
        return f"jdk-{version}-{_OS_NAMES[platform.os]}-{_ARCH_NAMES[platform.arch]}.{platform.archive_ext}"

    def binary_relpath(self, platform: Platform) -> str:
        # macOS bundles nest the home under Contents/Home
        if platform.os == "darwin":
            return "Contents/Home/bin/java"
        return super().binary_relpath(platform)

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        home = Path(outcome.path)
        if platform is not None and platform.os == "darwin":
            home = home / "Contents" / "Home"
        return [
            SetVariable(name="JAVA_HOME", value=str(home)),
            PrependPath(dir=str(home / "bin")),
        ]
