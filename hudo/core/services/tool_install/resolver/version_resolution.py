"""
L2 Resolver — pick the version (and URL) for an install attempt.

Resolution order:

1. explicit override (profile import), used verbatim
2. lock from config (``versions.<id>``), used verbatim
3. the tool's remote source, memoized for the life of the resolver
4. the tool's static fallback version, with a warning

Mirror substitution is separate: a mirror replaces the base URL only,
the version-addressed suffix is kept.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from hudo.core.models.config import HudoConfig
from hudo.core.models.tool import ResolvedVersion, VersionSource
from hudo.core.services.tool_install.errors import VersionUnavailable

if TYPE_CHECKING:
    from hudo.core.services.tool_install.installers.base import ToolInstaller

logger = logging.getLogger(__name__)


def join_url(base: str, suffix: str) -> str:
    return f"{base.rstrip('/')}/{suffix.lstrip('/')}"


class VersionResolver:
    """Resolves versions; remote answers are cached per process."""

    def __init__(self) -> None:
        self._remote: dict[str, str] = {}
        self._lock = threading.Lock()

    def resolve(
        self,
        installer: ToolInstaller,
        config: HudoConfig,
        override: str | None = None,
    ) -> ResolvedVersion:
        """Resolve the version to install for ``installer``.

        Raises:
            VersionUnavailable: Only when the remote failed and the tool
                declares no fallback version.
        """
        tool_id = installer.id

        if override:
            logger.debug("%s: using override version %s", tool_id, override)
            return ResolvedVersion(version=override, source=VersionSource.OVERRIDE)

        lock = config.lock_for(tool_id)
        if lock:
            logger.debug("%s: using locked version %s", tool_id, lock)
            return ResolvedVersion(version=lock, source=VersionSource.LOCK)

        remote = self._remote_version(installer)
        if remote:
            return ResolvedVersion(version=remote, source=VersionSource.REMOTE)

        if installer.fallback_version:
            logger.warning(
                "Could not determine latest %s version, using %s",
                installer.describe().display_name, installer.fallback_version,
            )
            return ResolvedVersion(version=installer.fallback_version, source=VersionSource.FALLBACK)

        raise VersionUnavailable(
            f"No version available for {tool_id}",
            tool_id=tool_id,
        )

    def _remote_version(self, installer: ToolInstaller) -> str | None:
        tool_id = installer.id
        with self._lock:
            cached = self._remote.get(tool_id)
        if cached:
            return cached

        try:
            version = installer.remote_version()
        except VersionUnavailable as e:
            logger.info("%s: remote version lookup failed: %s", tool_id, e)
            return None

        if not version:
            return None
        logger.info("%s: latest version is %s", tool_id, version)
        with self._lock:
            self._remote[tool_id] = version
        return version

    def resolve_base(self, installer: ToolInstaller, config: HudoConfig) -> tuple[str, bool]:
        """Base URL for downloads: ``(base, mirrored)``."""
        mirror = (config.mirrors.get(installer.id) or "").strip()
        if mirror:
            return mirror, True
        return installer.official_base, False
