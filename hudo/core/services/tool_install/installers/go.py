"""Go toolchain.  GOPATH lives next to GOROOT under the hudo lang dir."""

from __future__ import annotations

from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import EnvAction, InstallOutcome, PrependPath, SetVariable, ToolCategory
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.errors import ConfigureFailed
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources


class GoInstaller(ArchiveInstaller):
    id = "go"
    display_name = "Go"
    description = "Go programming language"
    category = ToolCategory.LANGUAGE
    official_base = "https://go.dev/dl"
    fallback_version = "1.24.0"
    binary = "bin/go"

    def remote_version(self) -> str | None:
        return version_sources.go_latest()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        return f"go{version}.{platform.os}-{platform.arch}.{platform.archive_ext}"

    @staticmethod
    def gopath(config: HudoConfig) -> Path:
        return config.lang_dir / "gopath"

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        root = Path(outcome.path)
        gopath = self.gopath(config)
        return [
            SetVariable(name="GOROOT", value=str(root)),
            SetVariable(name="GOPATH", value=str(gopath)),
            PrependPath(dir=str(root / "bin")),
            PrependPath(dir=str(gopath / "bin")),
        ]

    def configure(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        try:
            (self.gopath(config) / "bin").mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigureFailed(f"Cannot create GOPATH: {e}", tool_id=self.id) from e
