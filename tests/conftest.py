"""
Shared test fixtures and configuration.
"""

import io
import logging
import os
import urllib.error
import zipfile
from pathlib import Path
from types import SimpleNamespace

import pytest

from hudo.core.context import InstallContext, build_context
from hudo.core.models.config import HudoConfig
from hudo.core.services.tool_install.detection import service_status
from hudo.core.services.tool_install.detection.service_status import ServiceState
from hudo.core.services.tool_install.domain.platform import Platform
from hudo.core.services.tool_install.errors import VersionUnavailable
from hudo.core.services.tool_install.execution import download as download_mod
from hudo.core.services.tool_install.execution.env_applier import PosixEnvApplier
from hudo.core.services.tool_install.resolver import version_sources

WINDOWS = Platform(os="windows", arch="amd64")

# MinGit release layout: no wrapper directory
GIT_LATEST_URL = "https://api.github.com/repos/git-for-windows/git/releases/latest"
GIT_TAG_PAYLOAD = {"tag_name": "v2.47.1.windows.2"}
MINGIT_ZIP = "MinGit-2.47.1.2-64-bit.zip"
MINGIT_FILES = {
    "cmd/git.exe": "fake git",
    "mingw64/bin/git.exe": "fake git",
}


@pytest.fixture(autouse=True)
def _restore_environ():
    """Env appliers mirror actions into os.environ; undo that per test."""
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """The CLI reconfigures the root logger on every invocation."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def hudo_root(tmp_path: Path) -> Path:
    """Return a temporary hudo root directory."""
    return tmp_path / "hudo"


@pytest.fixture
def hudo_config(hudo_root: Path) -> HudoConfig:
    return HudoConfig(root_dir=str(hudo_root))


@pytest.fixture
def make_context(tmp_path: Path):
    """Build an install context targeting Windows archives under tmp_path."""

    def _make(config: HudoConfig | None = None, *, name: str = "hudo") -> InstallContext:
        config = config or HudoConfig(root_dir=str(tmp_path / name))
        env = PosixEnvApplier(config.env_script_path, tmp_path / f"{name}.profile")
        return build_context(config, env=env, platform=WINDOWS)

    return _make


@pytest.fixture
def install_ctx(make_context) -> InstallContext:
    return make_context()


@pytest.fixture
def isolated_system(monkeypatch):
    """Nothing on PATH, no OS services."""
    monkeypatch.setattr("shutil.which", lambda *a, **kw: None)
    monkeypatch.setattr(
        service_status, "query_service_state",
        lambda *a, **kw: ServiceState.NOT_FOUND,
    )


@pytest.fixture
def zip_bytes():
    """Build an in-memory zip from ``{member: text}``."""

    def _build(files: dict[str, str]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for name, content in files.items():
                zf.writestr(name, content)
        return buf.getvalue()

    return _build


@pytest.fixture
def fake_download(monkeypatch):
    """Replace the network fetch; serve ``payloads`` by file name.

    Unknown names fail like an unreachable host.
    """
    served = SimpleNamespace(payloads={}, calls=[])

    def _download(url: str, dest: Path, *, timeout: float = 60) -> None:
        served.calls.append(url)
        name = url.rsplit("/", 1)[-1]
        if name not in served.payloads:
            raise urllib.error.URLError("no route to host")
        dest.write_bytes(served.payloads[name])

    monkeypatch.setattr(download_mod, "_download_file", _download)
    return served


@pytest.fixture
def fake_remote(monkeypatch):
    """Replace remote version lookups; ``responses`` maps URL to JSON."""
    remote = SimpleNamespace(responses={}, calls=[])

    def _get_json(url: str, *, timeout: float = 5):
        remote.calls.append(url)
        if url not in remote.responses:
            raise VersionUnavailable(f"Cannot reach {url}")
        return remote.responses[url]

    monkeypatch.setattr(version_sources, "_get_json", _get_json)
    return remote


@pytest.fixture
def mingit(fake_remote, fake_download, zip_bytes):
    """Serve git-for-windows 2.47.1.2 (MinGit) as the latest release."""
    fake_remote.responses[GIT_LATEST_URL] = GIT_TAG_PAYLOAD
    fake_download.payloads[MINGIT_ZIP] = zip_bytes(MINGIT_FILES)
    return SimpleNamespace(remote=fake_remote, download=fake_download, version="2.47.1.2")
