"""
HudoConfig — user configuration model.

Loaded once per process from ``~/.hudo/config.yml`` and treated as
read-only afterwards.  Every key is optional: a missing version lock
means "resolve automatically", a missing mirror means "official URL".

Example config.yml::

    root_dir: D:/hudo
    versions:
      go: "1.23.0"
    mirrors:
      go: https://mirrors.aliyun.com/golang
    checksums:
      go: sha256:4e4c...
    settings:
      git:
        user_name: Ada
        user_email: ada@example.com
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


def _default_root() -> str:
    return str(Path.home() / "hudo")


class HudoConfig(BaseModel):
    """Workstation-level hudo configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_dir: str = Field(default_factory=_default_root)

    # Per-tool overrides, keyed by tool id
    versions: dict[str, str] = Field(default_factory=dict)
    mirrors: dict[str, str] = Field(default_factory=dict)
    checksums: dict[str, str] = Field(default_factory=dict)
    settings: dict[str, dict[str, str]] = Field(default_factory=dict)

    # Bounds
    probe_timeout: float = Field(default=10.0, gt=0)
    service_timeout: float = Field(default=30.0, gt=0)
    max_probe_workers: int = Field(default=8, ge=1)
    max_download_workers: int = Field(default=4, ge=1)

    # ── Derived layout ──────────────────────────────────────────

    @property
    def root_path(self) -> Path:
        return Path(self.root_dir).expanduser()

    @property
    def tools_dir(self) -> Path:
        return self.root_path / "tools"

    @property
    def lang_dir(self) -> Path:
        return self.root_path / "lang"

    @property
    def ide_dir(self) -> Path:
        return self.root_path / "ide"

    @property
    def cache_dir(self) -> Path:
        return self.root_path / "cache"

    @property
    def state_path(self) -> Path:
        return self.root_path / "state.json"

    @property
    def history_path(self) -> Path:
        return self.root_path / "history.ndjson"

    @property
    def env_script_path(self) -> Path:
        return self.root_path / "env.sh"

    def lock_for(self, tool_id: str) -> str | None:
        """Return the pinned version for a tool, or None if unpinned.

        ``latest`` and empty strings count as unpinned.
        """
        value = (self.versions.get(tool_id) or "").strip()
        if not value or value.lower() == "latest":
            return None
        return value

    def settings_for(self, tool_id: str) -> dict[str, str]:
        return dict(self.settings.get(tool_id, {}))

    def ensure_dirs(self) -> None:
        """Create the root layout if missing."""
        for path in (self.tools_dir, self.lang_dir, self.ide_dir, self.cache_dir):
            path.mkdir(parents=True, exist_ok=True)
