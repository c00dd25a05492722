"""
Tests for the environment applier — PATH helpers and the POSIX backend.
"""

import os
from pathlib import Path

from hudo.core.models.tool import PrependPath, SetVariable
from hudo.core.services.tool_install.execution.env_applier import (
    PosixEnvApplier,
    prepend_path_entry,
    remove_path_entry,
)


class TestPathHelpers:
    def test_prepend_moves_existing_entry_first(self):
        assert prepend_path_entry("/usr/bin:/opt/go/bin", "/opt/go/bin", sep=":") == "/opt/go/bin:/usr/bin"

    def test_prepend_case_insensitive(self):
        value = prepend_path_entry(r"C:\Windows;C:\HUDO\go\bin\\", r"C:\hudo\go\bin", sep=";", case_insensitive=True)
        assert value == r"C:\hudo\go\bin;C:\Windows"

    def test_remove(self):
        assert remove_path_entry("/a:/b:/a/", "/a", sep=":") == "/b"


class TestPosixEnvApplier:
    def _applier(self, tmp_path: Path) -> PosixEnvApplier:
        return PosixEnvApplier(tmp_path / "env.sh", tmp_path / ".profile")

    def _actions(self, root: str):
        return [
            SetVariable(name="GOROOT", value=root),
            PrependPath(dir=f"{root}/bin"),
            PrependPath(dir=f"{root}/gopath/bin"),
        ]

    def test_apply_writes_block_and_hook(self, tmp_path: Path):
        applier = self._applier(tmp_path)
        assert applier.apply("go", self._actions("/h/go")) is True

        script = (tmp_path / "env.sh").read_text()
        assert "# >>> hudo:go >>>" in script
        assert 'export GOROOT="/h/go"' in script
        # first action ends up first on PATH
        assert script.index("/h/go/gopath/bin") < script.index('"/h/go/bin:')
        assert str(tmp_path / "env.sh") in (tmp_path / ".profile").read_text()

    def test_apply_is_idempotent(self, tmp_path: Path):
        applier = self._applier(tmp_path)
        applier.apply("go", self._actions("/h/go"))
        script = (tmp_path / "env.sh").read_text()
        profile = (tmp_path / ".profile").read_text()

        assert applier.apply("go", self._actions("/h/go")) is False
        assert (tmp_path / "env.sh").read_text() == script
        assert (tmp_path / ".profile").read_text() == profile

    def test_process_environment_updated(self, tmp_path: Path):
        self._applier(tmp_path).apply("go", self._actions("/h/go"))
        assert os.environ["GOROOT"] == "/h/go"
        assert os.environ["PATH"].split(os.pathsep)[:2] == ["/h/go/bin", "/h/go/gopath/bin"]

    def test_revert_removes_only_that_tool(self, tmp_path: Path):
        applier = self._applier(tmp_path)
        applier.apply("go", self._actions("/h/go"))
        applier.apply("uv", [PrependPath(dir="/h/uv")])

        assert applier.revert("go", self._actions("/h/go")) is True
        script = (tmp_path / "env.sh").read_text()
        assert "hudo:go" not in script
        assert "hudo:uv" in script
        assert "GOROOT" not in os.environ
        assert applier.revert("go", self._actions("/h/go")) is False
