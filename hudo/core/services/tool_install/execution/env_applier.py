"""
L4 Execution — apply installer ``EnvAction``s to the user environment.

Backends:

- Windows: ``HKCU\\Environment`` via ``winreg`` (``REG_EXPAND_SZ``),
  followed by a ``WM_SETTINGCHANGE`` broadcast so new shells see it.
- POSIX: a managed ``<root>/env.sh`` with one marked block per tool,
  sourced once from the user's shell profile.

Applying the same actions twice changes nothing the second time.
Each applied action is mirrored into ``os.environ`` so configure
steps later in the same run find the tool.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import EnvAction, PrependPath, SetVariable

logger = logging.getLogger(__name__)


# ── PATH string helpers (pure) ──────────────────────────────────


def _norm_entry(entry: str, *, case_insensitive: bool) -> str:
    entry = entry.strip().rstrip("/\\")
    return entry.lower() if case_insensitive else entry


def prepend_path_entry(
    path_value: str,
    entry: str,
    *,
    sep: str = os.pathsep,
    case_insensitive: bool = False,
) -> str:
    """Put ``entry`` first in a PATH string, without duplicates."""
    target = _norm_entry(entry, case_insensitive=case_insensitive)
    parts = [
        p for p in path_value.split(sep)
        if p and _norm_entry(p, case_insensitive=case_insensitive) != target
    ]
    return sep.join([entry, *parts])


def remove_path_entry(
    path_value: str,
    entry: str,
    *,
    sep: str = os.pathsep,
    case_insensitive: bool = False,
) -> str:
    target = _norm_entry(entry, case_insensitive=case_insensitive)
    return sep.join(
        p for p in path_value.split(sep)
        if p and _norm_entry(p, case_insensitive=case_insensitive) != target
    )


def _shell_config_line(
    *,
    path_entry: str | None = None,
    env_var: tuple[str, str] | None = None,
) -> str:
    """POSIX export line for a PATH entry or a variable."""
    if path_entry:
        return f'export PATH="{path_entry}:$PATH"'
    if env_var:
        return f'export {env_var[0]}="{env_var[1]}"'
    return ""


def _apply_to_process(actions: list[EnvAction]) -> None:
    # prepend in reverse so the first PrependPath ends up first on PATH
    for action in reversed(actions):
        if isinstance(action, PrependPath):
            os.environ["PATH"] = prepend_path_entry(
                os.environ.get("PATH", ""), action.dir,
                case_insensitive=sys.platform == "win32",
            )
        elif isinstance(action, SetVariable):
            os.environ[action.name] = action.value


def _revert_in_process(actions: Iterable[EnvAction]) -> None:
    for action in actions:
        if isinstance(action, PrependPath):
            os.environ["PATH"] = remove_path_entry(
                os.environ.get("PATH", ""), action.dir,
                case_insensitive=sys.platform == "win32",
            )
        elif isinstance(action, SetVariable) and os.environ.get(action.name) == action.value:
            del os.environ[action.name]


class EnvApplier:
    """Backend interface."""

    def apply(self, tool_id: str, actions: list[EnvAction]) -> bool:
        """Apply actions; return True if persistent state changed."""
        raise NotImplementedError

    def revert(self, tool_id: str, actions: list[EnvAction]) -> bool:
        """Undo what ``apply`` did for this tool."""
        raise NotImplementedError


# ── POSIX: managed env.sh ───────────────────────────────────────


class PosixEnvApplier(EnvApplier):
    """Keeps one marked block per tool in ``env.sh``."""

    def __init__(self, script_path: Path, profile_path: Path | None = None):
        self.script_path = script_path
        self.profile_path = profile_path

    @staticmethod
    def _markers(tool_id: str) -> tuple[str, str]:
        return f"# >>> hudo:{tool_id} >>>", f"# <<< hudo:{tool_id} <<<"

    def _render_block(self, tool_id: str, actions: list[EnvAction]) -> list[str]:
        lines: list[str] = []
        # later PrependPath wins, so emit in reverse to keep action order on PATH
        for action in actions:
            if isinstance(action, SetVariable):
                lines.append(_shell_config_line(env_var=(action.name, action.value)))
        for action in reversed(actions):
            if isinstance(action, PrependPath):
                lines.append(_shell_config_line(path_entry=action.dir))
        if not lines:
            return []
        start, end = self._markers(tool_id)
        return [start, *lines, end]

    def _read_lines(self) -> list[str]:
        if not self.script_path.is_file():
            return []
        return self.script_path.read_text(encoding="utf-8").splitlines()

    def _strip_block(self, lines: list[str], tool_id: str) -> list[str]:
        start, end = self._markers(tool_id)
        out: list[str] = []
        inside = False
        for line in lines:
            if line == start:
                inside = True
                continue
            if line == end:
                inside = False
                continue
            if not inside:
                out.append(line)
        return out

    def _write(self, lines: list[str]) -> None:
        self.script_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.script_path.with_name(self.script_path.name + ".tmp")
        tmp.write_text("\n".join(lines) + "\n" if lines else "", encoding="utf-8")
        tmp.replace(self.script_path)

    def apply(self, tool_id: str, actions: list[EnvAction]) -> bool:
        _apply_to_process(actions)
        block = self._render_block(tool_id, actions)
        current = self._read_lines()
        new = self._strip_block(current, tool_id) + block
        changed = new != current
        if changed:
            self._write(new)
            logger.info("Updated %s for %s", self.script_path, tool_id)
        if block:
            self._ensure_sourced()
        return changed

    def revert(self, tool_id: str, actions: list[EnvAction]) -> bool:
        _revert_in_process(actions)
        current = self._read_lines()
        new = self._strip_block(current, tool_id)
        if new == current:
            return False
        self._write(new)
        logger.info("Removed %s entries from %s", tool_id, self.script_path)
        return True

    def _ensure_sourced(self) -> None:
        if self.profile_path is None:
            return
        line = f'[ -f "{self.script_path}" ] && . "{self.script_path}"'
        existing = ""
        if self.profile_path.is_file():
            existing = self.profile_path.read_text(encoding="utf-8")
            if line in existing.splitlines():
                return
        with self.profile_path.open("a", encoding="utf-8") as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            f.write(f"# hudo\n{line}\n")
        logger.info("Added hudo env hook to %s", self.profile_path)


# ── Windows: HKCU\Environment ───────────────────────────────────


class WindowsEnvApplier(EnvApplier):
    """User-scope registry environment."""

    _KEY = "Environment"

    def apply(self, tool_id: str, actions: list[EnvAction]) -> bool:
        import winreg

        _apply_to_process(actions)
        changed = False
        with winreg.OpenKey(
            winreg.HKEY_CURRENT_USER, self._KEY, 0,
            winreg.KEY_READ | winreg.KEY_WRITE,
        ) as key:
            for action in reversed(actions):
                if isinstance(action, PrependPath):
                    current = self._read(key, "Path")
                    updated = prepend_path_entry(current, action.dir, sep=";", case_insensitive=True)
                    if updated != current:
                        winreg.SetValueEx(key, "Path", 0, winreg.REG_EXPAND_SZ, updated)
                        changed = True
                elif isinstance(action, SetVariable):
                    if self._read(key, action.name) != action.value:
                        winreg.SetValueEx(key, action.name, 0, winreg.REG_EXPAND_SZ, action.value)
                        changed = True
        if changed:
            logger.info("Updated user environment for %s", tool_id)
            _broadcast_settings_change()
        return changed

    def revert(self, tool_id: str, actions: list[EnvAction]) -> bool:
        import winreg

        _revert_in_process(actions)
        changed = False
        with winreg.OpenKey(
            winreg.HKEY_CURRENT_USER, self._KEY, 0,
            winreg.KEY_READ | winreg.KEY_WRITE,
        ) as key:
            for action in actions:
                if isinstance(action, PrependPath):
                    current = self._read(key, "Path")
                    updated = remove_path_entry(current, action.dir, sep=";", case_insensitive=True)
                    if updated != current:
                        winreg.SetValueEx(key, "Path", 0, winreg.REG_EXPAND_SZ, updated)
                        changed = True
                elif isinstance(action, SetVariable) and self._read(key, action.name) == action.value:
                    winreg.DeleteValue(key, action.name)
                    changed = True
        if changed:
            _broadcast_settings_change()
        return changed

    @staticmethod
    def _read(key, name: str) -> str:
        import winreg

        try:
            value, _type = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return ""
        return str(value)


def _broadcast_settings_change() -> None:
    """Tell Explorer and new shells that the environment changed."""
    import ctypes

    hwnd_broadcast = 0xFFFF
    wm_settingchange = 0x001A
    smto_abortifhung = 0x0002
    result = ctypes.c_ulong()
    ctypes.windll.user32.SendMessageTimeoutW(
        hwnd_broadcast, wm_settingchange, 0, "Environment",
        smto_abortifhung, 5000, ctypes.byref(result),
    )


def default_env_applier(config: HudoConfig) -> EnvApplier:
    if sys.platform == "win32":
        return WindowsEnvApplier()
    return PosixEnvApplier(config.env_script_path, Path.home() / ".profile")
