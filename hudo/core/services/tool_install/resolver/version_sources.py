"""
L2 Resolver — remote "latest version" lookups.

Every lookup is a single GET with a short timeout.  Any failure
(network, HTTP error, rate limit, unexpected JSON) raises
``VersionUnavailable``; the resolver decides whether to fall back.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from hudo import __version__
from hudo.core.services.tool_install.domain.versions import strip_prefix
from hudo.core.services.tool_install.errors import VersionUnavailable

logger = logging.getLogger(__name__)

REMOTE_TIMEOUT = 5

GO_RELEASES_URL = "https://go.dev/dl/?mode=json"
NODE_INDEX_URL = "https://nodejs.org/dist/index.json"
POSTGRES_VERSIONS_URL = "https://www.postgresql.org/versions.json"
GRADLE_CURRENT_URL = "https://services.gradle.org/versions/current"
ADOPTIUM_RELEASES_URL = "https://api.adoptium.net/v3/info/available_releases"
VSCODE_RELEASES_URL = "https://update.code.visualstudio.com/api/releases/stable"
PYCHARM_RELEASES_URL = (
    "https://data.services.jetbrains.com/products/releases?code=PCC&latest=true&type=release"
)


def _get_json(url: str, *, timeout: float = REMOTE_TIMEOUT) -> Any:
    req = urllib.request.Request(
        url,
        headers={
            "Accept": "application/json",
            "User-Agent": f"hudo/{__version__}",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read())
    except urllib.error.HTTPError as e:
        if e.code in (403, 429):
            raise VersionUnavailable(f"Rate limited by {url} (HTTP {e.code})") from e
        raise VersionUnavailable(f"HTTP {e.code} from {url}") from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise VersionUnavailable(f"Cannot reach {url}: {e}") from e
    except ValueError as e:
        raise VersionUnavailable(f"Malformed JSON from {url}: {e}") from e


def _require(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise VersionUnavailable(f"Unexpected response shape: missing {what}")
    return value.strip()


def github_latest_tag(repo: str) -> str:
    """``tag_name`` of the latest GitHub release of ``owner/repo``."""
    data = _get_json(f"https://api.github.com/repos/{repo}/releases/latest")
    if not isinstance(data, dict):
        raise VersionUnavailable(f"Unexpected release payload for {repo}")
    return _require(data.get("tag_name"), "tag_name")


def go_latest() -> str:
    data = _get_json(GO_RELEASES_URL)
    if not isinstance(data, list):
        raise VersionUnavailable("Unexpected go.dev payload")
    for release in data:
        if isinstance(release, dict) and release.get("stable"):
            return strip_prefix(_require(release.get("version"), "version"), "go")
    raise VersionUnavailable("No stable Go release listed")


def nodejs_latest_lts() -> str:
    data = _get_json(NODE_INDEX_URL)
    if not isinstance(data, list):
        raise VersionUnavailable("Unexpected nodejs.org payload")
    for release in data:
        if isinstance(release, dict) and release.get("lts"):
            return strip_prefix(_require(release.get("version"), "version"), "v")
    raise VersionUnavailable("No LTS Node.js release listed")


def postgresql_latest() -> str:
    """``major.latestMinor`` of the current PostgreSQL release."""
    data = _get_json(POSTGRES_VERSIONS_URL)
    if not isinstance(data, list):
        raise VersionUnavailable("Unexpected postgresql.org payload")
    for release in data:
        if isinstance(release, dict) and release.get("current"):
            major = release.get("major")
            minor = release.get("latestMinor")
            if major is None or minor is None:
                break
            return f"{major}.{minor}"
    raise VersionUnavailable("No current PostgreSQL release listed")


def gradle_current() -> str:
    data = _get_json(GRADLE_CURRENT_URL)
    if not isinstance(data, dict):
        raise VersionUnavailable("Unexpected services.gradle.org payload")
    return _require(data.get("version"), "version")


def adoptium_latest_lts() -> str:
    data = _get_json(ADOPTIUM_RELEASES_URL)
    if not isinstance(data, dict) or not isinstance(data.get("most_recent_lts"), int):
        raise VersionUnavailable("Unexpected adoptium payload")
    return str(data["most_recent_lts"])


def vscode_latest() -> str:
    data = _get_json(VSCODE_RELEASES_URL)
    if not isinstance(data, list) or not data:
        raise VersionUnavailable("Unexpected VS Code releases payload")
    return _require(data[0], "version")


def pycharm_latest() -> str:
    data = _get_json(PYCHARM_RELEASES_URL)
    releases = data.get("PCC") if isinstance(data, dict) else None
    if not isinstance(releases, list) or not releases or not isinstance(releases[0], dict):
        raise VersionUnavailable("Unexpected JetBrains releases payload")
    return _require(releases[0].get("version"), "version")
