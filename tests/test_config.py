"""
Tests for configuration loading and dotted-key edits.
"""

from pathlib import Path

import pytest

from hudo.core.config.loader import (
    ConfigError,
    config_path,
    load_config,
    reset_config,
    save_config,
    set_config_value,
    unset_config_value,
)
from hudo.core.models.config import HudoConfig


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "config.yml")
        assert config.versions == {}
        assert config.max_download_workers == 4

    def test_loads_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text(
            "root_dir: /opt/hudo\n"
            "versions:\n  go: '1.23.0'\n"
            "mirrors:\n  go: https://mirrors.aliyun.com/golang\n"
        )
        config = load_config(path)
        assert config.root_dir == "/opt/hudo"
        assert config.lock_for("go") == "1.23.0"
        assert config.mirrors["go"].startswith("https://mirrors")

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert load_config(path).versions == {}

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("versions: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("colour: blue\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HUDO_CONFIG", str(tmp_path / "alt.yml"))
        assert config_path() == tmp_path / "alt.yml"


class TestLocks:
    """'latest' and empty locks mean auto-resolve."""

    @pytest.mark.parametrize("value", ["latest", "LATEST", "", "  "])
    def test_unpinned(self, value: str):
        assert HudoConfig(versions={"go": value}).lock_for("go") is None

    def test_pinned(self):
        assert HudoConfig(versions={"go": "1.23.0"}).lock_for("go") == "1.23.0"


class TestEditConfig:
    """Tests for set/unset and atomic save."""

    def test_set_and_save(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        config = set_config_value(load_config(path), "versions.go", "1.23.0")
        config = set_config_value(config, "settings.git.user_name", "Ada")
        save_config(config, path)

        reloaded = load_config(path)
        assert reloaded.versions == {"go": "1.23.0"}
        assert reloaded.settings_for("git") == {"user_name": "Ada"}
        assert list(tmp_path.glob(".config_*.tmp")) == []

    def test_original_unchanged(self):
        original = HudoConfig()
        set_config_value(original, "mirrors.go", "https://example.test/go")
        assert original.mirrors == {}

    def test_scalar_is_validated(self):
        config = set_config_value(HudoConfig(), "max_download_workers", "8")
        assert config.max_download_workers == 8
        with pytest.raises(ConfigError):
            set_config_value(HudoConfig(), "max_download_workers", "0")

    def test_unset(self):
        config = HudoConfig(versions={"go": "1.23.0"}, settings={"git": {"user_name": "Ada"}})
        config = unset_config_value(config, "versions.go")
        config = unset_config_value(config, "settings.git.user_name")
        assert config.versions == {}
        assert config.settings == {}

    @pytest.mark.parametrize("key", ["colour", "versions", "settings.git", "versions.go.extra"])
    def test_unknown_key(self, key: str):
        with pytest.raises(ConfigError, match="Unknown config key"):
            set_config_value(HudoConfig(), key, "x")

    def test_reset_back_to_defaults(self, tmp_path: Path):
        path = save_config(HudoConfig(versions={"go": "1.23.0"}), tmp_path / "config.yml")

        assert reset_config(path) is True
        assert load_config(path) == load_config(tmp_path / "missing.yml")
        assert reset_config(path) is False


class TestLayout:
    """Derived paths."""

    def test_paths(self, tmp_path: Path):
        config = HudoConfig(root_dir=str(tmp_path))
        assert config.state_path == tmp_path / "state.json"
        assert config.history_path == tmp_path / "history.ndjson"
        assert config.cache_dir == tmp_path / "cache"

    def test_ensure_dirs(self, tmp_path: Path):
        config = HudoConfig(root_dir=str(tmp_path / "root"))
        config.ensure_dirs()
        for name in ("tools", "lang", "ide", "cache"):
            assert (tmp_path / "root" / name).is_dir()
