"""
Installer contract — one subclass per tool.

Capabilities:

    describe()           pure, no I/O
    detect(mode, ...)    read-only; fast = registry, thorough = probe
    resolve_download()   version + URL, may hit the network for "latest"
    install()            extract a fetched artifact (or run a fetched
                         setup program) into the hudo root
    env_actions()        pure function of the install outcome
    configure()          post-install setup, safe to re-run
    teardown()           pre-uninstall cleanup (services, ...)
    export_settings() / import_settings()
                         tool settings carried by profiles

Only ``install``, ``configure``, ``teardown`` and ``import_settings``
touch the system; everything else is safe to call speculatively.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from hudo.core.models.config import HudoConfig
from hudo.core.models.state import InstallRecord
from hudo.core.models.tool import (
    DetectResult,
    EnvAction,
    InstallOutcome,
    PrependPath,
    ResolvedDownload,
    ToolCategory,
    ToolDescriptor,
)
from hudo.core.services.tool_install.detection.detector import (
    DetectMode,
    Probe,
    classify,
    from_record,
)
from hudo.core.services.tool_install.detection.tool_version import get_tool_version
from hudo.core.services.tool_install.domain.platform import Platform, current_platform
from hudo.core.services.tool_install.errors import InstallFailed, UnsupportedPlatform
from hudo.core.services.tool_install.execution.extract import extract_archive, find_single_subdir
from hudo.core.services.tool_install.execution.subprocess_runner import _run_subprocess
from hudo.core.services.tool_install.resolver.version_resolution import VersionResolver, join_url

if TYPE_CHECKING:
    from hudo.core.persistence.registry import StateRegistry

logger = logging.getLogger(__name__)

ALL_PLATFORMS = frozenset({"windows", "linux", "darwin"})

_CATEGORY_DIRS = {
    ToolCategory.TOOL: "tools_dir",
    ToolCategory.LANGUAGE: "lang_dir",
    ToolCategory.DATABASE: "tools_dir",
    ToolCategory.IDE: "ide_dir",
}


class ToolInstaller:
    """Base installer.  Subclasses set the class attributes below."""

    id: str = ""
    display_name: str = ""
    description: str = ""
    category: ToolCategory = ToolCategory.TOOL
    prerequisites: frozenset[str] = frozenset()
    platforms: frozenset[str] = ALL_PLATFORMS

    # Download layout: URL = (mirror or official_base) + "/" + asset_suffix()
    official_base: str = ""
    fallback_version: str | None = None

    # Install layout
    dir_name: str | None = None          # defaults to id
    binary: str = ""                     # relative to the install dir, no .exe
    path_dirs: tuple[str, ...] = ("bin",)

    # ── Identity ────────────────────────────────────────────────

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(
            id=self.id,
            category=self.category,
            display_name=self.display_name or self.id,
            description=self.description,
            prerequisites=self.prerequisites,
            platforms=self.platforms,
        )

    def supports(self, platform: Platform) -> bool:
        return platform.os in self.platforms

    def install_dir(self, config: HudoConfig) -> Path:
        base: Path = getattr(config, _CATEGORY_DIRS[self.category])
        return base / (self.dir_name or self.id)

    def binary_relpath(self, platform: Platform) -> str:
        return platform.exe(self.binary)

    @property
    def command(self) -> str:
        return Path(self.binary).name

    def files_present(self, install_path: str, platform: Platform) -> bool:
        """Local check that the tool's binary is still where it was put."""
        return (Path(install_path) / self.binary_relpath(platform)).is_file()

    def _exe(self, outcome: InstallOutcome, platform: Platform | None = None) -> str:
        plat = platform or current_platform()
        return str(Path(outcome.path) / self.binary_relpath(plat))

    # ── Resolution ──────────────────────────────────────────────

    def remote_version(self) -> str | None:
        """Latest upstream version, or None if the tool has no remote source.

        Raises:
            VersionUnavailable: The remote source could not be read.
        """
        return None

    def asset_suffix(self, version: str, platform: Platform) -> str:
        raise NotImplementedError

    def asset_filename(self, version: str, platform: Platform) -> str:
        return self.asset_suffix(version, platform).rsplit("/", 1)[-1]

    def resolve_download(
        self,
        config: HudoConfig,
        resolver: VersionResolver,
        version_override: str | None = None,
        *,
        platform: Platform | None = None,
    ) -> ResolvedDownload:
        plat = platform or current_platform()
        if not self.supports(plat):
            raise UnsupportedPlatform(
                f"{self.display_name} is not available for {plat.os}/{plat.arch}",
                tool_id=self.id,
            )
        resolved = resolver.resolve(self, config, override=version_override)
        base, mirrored = resolver.resolve_base(self, config)
        checksum = self._checksum_for(config, resolved.version)
        return ResolvedDownload(
            tool_id=self.id,
            url=join_url(base, self.asset_suffix(resolved.version, plat)),
            filename=self.asset_filename(resolved.version, plat),
            resolved_version=resolved.version,
            version_source=resolved.source,
            expected_checksum=checksum,
            mirrored=mirrored,
        )

    def _checksum_for(self, config: HudoConfig, version: str) -> str | None:
        """``checksums.<id>`` pins the artifact of the locked version only."""
        checksum = config.checksums.get(self.id) or None
        if checksum is None:
            return None
        lock = config.lock_for(self.id)
        if version != lock:
            logger.warning(
                "%s: checksum is configured for locked version %s, not verifying %s",
                self.id, lock or "(none)", version,
            )
            return None
        return checksum

    # ── Side effects ────────────────────────────────────────────

    def install(
        self,
        download: ResolvedDownload,
        artifact: Path,
        config: HudoConfig,
    ) -> InstallOutcome:
        raise NotImplementedError

    def env_actions(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> list[EnvAction]:
        root = Path(outcome.path)
        return [PrependPath(dir=str(root / d) if d else str(root)) for d in self.path_dirs]

    def configure(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        """Post-install setup.  Default: nothing to do."""

    def teardown(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        """Pre-uninstall cleanup.  Default: nothing to do."""

    def export_settings(
        self,
        outcome: InstallOutcome,
        *,
        platform: Platform | None = None,
    ) -> dict[str, str]:
        return {}

    def import_settings(
        self,
        outcome: InstallOutcome,
        settings: dict[str, str],
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        if settings:
            logger.info("%s has no importable settings, ignoring %s", self.id, sorted(settings))

    # ── Detection ───────────────────────────────────────────────

    def probe(
        self,
        config: HudoConfig,
        record: InstallRecord | None,
        platform: Platform,
        *,
        timeout: float = 10,
    ) -> Probe:
        """Look for the tool on disk and on PATH."""
        home = Path(record.install_path) if record else self.install_dir(config)
        binary = home / self.binary_relpath(platform)

        if binary.is_file():
            if record is not None:
                return Probe(owned=True, found=True, version=record.version, path=str(home))
            version = get_tool_version(self.id, str(binary), timeout=timeout)
            return Probe(found=True, version=version, path=str(home))

        if record is not None:
            return Probe()

        on_path = shutil.which(self.command)
        if on_path:
            version = get_tool_version(self.id, on_path, timeout=timeout)
            return Probe(found=True, version=version, path=str(Path(on_path).parent))
        return Probe()

    def detect(
        self,
        mode: DetectMode,
        registry: StateRegistry,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> DetectResult:
        record = registry.get(self.id)
        if mode == "fast":
            return from_record(record)
        plat = platform or current_platform()
        return classify(record, self.probe(config, record, plat, timeout=config.probe_timeout))


class ArchiveInstaller(ToolInstaller):
    """Installs by extracting a zip / tarball into the install dir.

    Directories named in ``preserved_dirs`` (database data dirs) are
    carried over from a previous install.
    """

    preserved_dirs: tuple[str, ...] = ()

    def install(
        self,
        download: ResolvedDownload,
        artifact: Path,
        config: HudoConfig,
    ) -> InstallOutcome:
        target = self.install_dir(config)
        staging = target.with_name(f".{target.name}.staging")
        _rmtree(staging)

        try:
            # ExtractFailed here means the archive itself is bad
            extract_archive(artifact, staging, tool_id=self.id)
            self._place(staging, target)
        finally:
            _rmtree(staging)

        logger.info("%s %s installed to %s", self.display_name, download.resolved_version, target)
        return InstallOutcome(path=str(target), version=download.resolved_version)

    def _place(self, staging: Path, target: Path) -> None:
        """Swap extracted files into ``target``, keeping preserved dirs.

        Raises:
            InstallFailed: The target could not be replaced (files in
                use, permissions).  Preserved dirs are moved back first.
        """
        carried: list[str] = []
        content = staging
        try:
            content = find_single_subdir(staging) or staging
            for name in self.preserved_dirs:
                if self._carry_over(target / name, content / name):
                    carried.append(name)
            if target.exists():
                shutil.rmtree(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            content.replace(target)
        except OSError as e:
            for name in carried:
                _restore(content / name, target / name)
            raise InstallFailed(f"Cannot place {self.display_name} files: {e}", tool_id=self.id) from e

    @staticmethod
    def _carry_over(old: Path, new: Path) -> bool:
        if not old.is_dir():
            return False
        if new.exists():
            shutil.rmtree(new)
        old.replace(new)
        logger.info("Kept existing %s", old.name)
        return True


class SetupInstaller(ToolInstaller):
    """Installs by running the downloaded vendor setup program.

    The artifact is the setup executable itself; ``setup_args`` points
    it at the install dir.  Success is judged by the binary appearing,
    not by the exit code alone.
    """

    setup_timeout: float = 900
    replace_existing: bool = False

    def setup_args(self, target: Path, download: ResolvedDownload, config: HudoConfig) -> list[str]:
        raise NotImplementedError

    def setup_env(self, target: Path, config: HudoConfig) -> dict[str, str] | None:
        return None

    def install(
        self,
        download: ResolvedDownload,
        artifact: Path,
        config: HudoConfig,
    ) -> InstallOutcome:
        target = self.install_dir(config)
        try:
            if self.replace_existing and target.exists():
                shutil.rmtree(target)
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InstallFailed(f"Cannot prepare {target}: {e}", tool_id=self.id) from e

        logger.info("Running %s setup into %s", self.display_name, target)
        result = _run_subprocess(
            [str(artifact), *self.setup_args(target, download, config)],
            timeout=self.setup_timeout,
            env_overrides=self.setup_env(target, config),
        )
        if not result["ok"]:
            detail = result.get("stderr") or result.get("error") or f"exit code {result.get('returncode')}"
            raise InstallFailed(f"{self.display_name} setup failed: {detail}", tool_id=self.id)
        if not self.files_present(str(target), current_platform()):
            raise InstallFailed(
                f"{self.display_name} setup finished but {self.binary_relpath(current_platform())} is missing",
                tool_id=self.id,
            )

        logger.info("%s %s installed to %s", self.display_name, download.resolved_version, target)
        return InstallOutcome(path=str(target), version=download.resolved_version)


def _restore(moved: Path, original: Path) -> None:
    try:
        original.parent.mkdir(parents=True, exist_ok=True)
        moved.replace(original)
    except OSError as e:
        logger.error("Could not move %s back to %s: %s", moved, original, e)


def _rmtree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path, ignore_errors=True)
