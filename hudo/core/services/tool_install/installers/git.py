"""
Git — MinGit build of git-for-windows.

Release tags look like ``v2.47.1.windows.2``; hudo versions drop the
``windows`` part (``2.47.1.2``) and the build number when it is 1.
"""

from __future__ import annotations

import logging

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import InstallOutcome, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.domain.versions import git_tag_for, parse_git_tag
from hudo.core.services.tool_install.errors import ConfigureFailed, VersionUnavailable
from hudo.core.services.tool_install.execution.subprocess_runner import _run_subprocess
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

logger = logging.getLogger(__name__)

# profile/config key → git config key
GIT_SETTINGS = {
    "user_name": "user.name",
    "user_email": "user.email",
}


class GitInstaller(ArchiveInstaller):
    id = "git"
    display_name = "Git"
    description = "Distributed version control"
    category = ToolCategory.TOOL
    platforms = frozenset({"windows"})
    official_base = "https://github.com/git-for-windows/git/releases/download"
    fallback_version = "2.47.1.2"
    binary = "cmd/git"
    path_dirs = ("cmd",)

    def remote_version(self) -> str | None:
        tag = version_sources.github_latest_tag("git-for-windows/git")
        version = parse_git_tag(tag)
        if version is None:
            raise VersionUnavailable(f"Unrecognized git-for-windows tag {tag!r}", tool_id=self.id)
        return version

    def asset_suffix(self, version: str, platform: Platform) -> str:
        arch = "arm64" if platform.arch == "arm64" else "64-bit"
        return f"{git_tag_for(version)}/MinGit-{version}-{arch}.zip"

    def configure(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        settings = config.settings_for(self.id)
        if not settings:
            logger.info("No git identity configured; set settings.git.user_name / user_email")
            return
        self._apply(outcome, settings, platform)

    def export_settings(
        self,
        outcome: InstallOutcome,
        *,
        platform: Platform | None = None,
    ) -> dict[str, str]:
        git = self._exe(outcome, platform)
        exported: dict[str, str] = {}
        for key, git_key in GIT_SETTINGS.items():
            result = _run_subprocess([git, "config", "--global", "--get", git_key], timeout=10)
            value = (result.get("stdout") or "").strip()
            if result.get("ok") and value:
                exported[key] = value
        return exported

    def import_settings(
        self,
        outcome: InstallOutcome,
        settings: dict[str, str],
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        self._apply(outcome, settings, platform)

    def _apply(
        self,
        outcome: InstallOutcome,
        settings: dict[str, str],
        platform: Platform | None,
    ) -> None:
        git = self._exe(outcome, platform)
        for key, value in settings.items():
            git_key = GIT_SETTINGS.get(key)
            if git_key is None:
                logger.warning("Ignoring unknown git setting %r", key)
                continue
            result = _run_subprocess([git, "config", "--global", git_key, value], timeout=30)
            if not result["ok"]:
                raise ConfigureFailed(
                    f"git config {git_key} failed: {result.get('stderr') or result.get('error')}",
                    tool_id=self.id,
                )
            logger.info("git %s set", git_key)
