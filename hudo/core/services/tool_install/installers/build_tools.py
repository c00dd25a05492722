"""JVM build tools — Maven and Gradle.  Both require a JDK."""

from __future__ import annotations

from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import EnvAction, InstallOutcome, PrependPath, SetVariable, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.domain.versions import strip_prefix
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources


class _JvmBuildTool(ArchiveInstaller):
    category = ToolCategory.TOOL
    prerequisites = frozenset({"jdk"})
    home_variable = ""
    launcher_ext = ".bat"  # Windows launchers are scripts

    def binary_relpath(self, platform: Platform) -> str:
        return self.binary + self.launcher_ext if platform.is_windows else self.binary

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        root = Path(outcome.path)
        return [
            SetVariable(name=self.home_variable, value=str(root)),
            PrependPath(dir=str(root / "bin")),
        ]


class MavenInstaller(_JvmBuildTool):
    id = "maven"
    display_name = "Maven"
    description = "Apache Maven build tool"
    official_base = "https://downloads.apache.org/maven/maven-3"
    fallback_version = "3.9.9"
    binary = "bin/mvn"
    home_variable = "MAVEN_HOME"
    launcher_ext = ".cmd"

    def remote_version(self) -> str | None:
        return strip_prefix(version_sources.github_latest_tag("apache/maven"), "maven-")

    def asset_suffix(self, version: str, platform: Platform) -> str:
        return f"{version}/binaries/apache-maven-{version}-bin.zip"


class GradleInstaller(_JvmBuildTool):
    id = "gradle"
    display_name = "Gradle"
    description = "Gradle build tool"
    official_base = "https://services.gradle.org/distributions"
    fallback_version = "8.12.1"
    binary = "bin/gradle"
    home_variable = "GRADLE_HOME"

    def remote_version(self) -> str | None:
        return version_sources.gradle_current()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        return f"gradle-{version}-bin.zip"
