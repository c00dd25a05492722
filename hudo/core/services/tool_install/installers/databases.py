"""
Database servers — MySQL and PostgreSQL.

Both keep their ``data/`` directory across reinstalls.  PostgreSQL is
registered as a Windows service; registration and start/stop need
elevation and are verified against the service manager afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hudo.core.models.config import HudoConfig
from hudo.core.models.state import InstallRecord
from hudo.core.models.tool import InstallOutcome, ToolCategory
from hudo.core.services.tool_install.detection import service_status
from hudo.core.services.tool_install.detection.detector import Probe
from hudo.core.services.tool_install.detection.service_status import ServiceState
from hudo.core.services.tool_install.domain.platform import Platform, current_platform
from hudo.core.services.tool_install.domain.versions import major_minor
from hudo.core.services.tool_install.errors import ConfigureFailed
from hudo.core.services.tool_install.execution.elevation import run_service_operation
from hudo.core.services.tool_install.execution.subprocess_runner import _run_subprocess
from hudo.core.services.tool_install.installers.base import ArchiveInstaller
from hudo.core.services.tool_install.resolver import version_sources

logger = logging.getLogger(__name__)

INIT_TIMEOUT = 300


def _is_empty_dir(path: Path) -> bool:
    return not path.is_dir() or not any(path.iterdir())


class MysqlInstaller(ArchiveInstaller):
    id = "mysql"
    display_name = "MySQL"
    description = "MySQL Community Server (LTS)"
    category = ToolCategory.DATABASE
    platforms = frozenset({"windows", "linux"})
    official_base = "https://dev.mysql.com/get/Downloads"
    fallback_version = "8.4.4"
    binary = "bin/mysql"
    preserved_dirs = ("data",)

    def asset_suffix(self, version: str, platform: Platform) -> str:
        series = f"MySQL-{major_minor(version)}"
        if platform.is_windows:
            return f"{series}/mysql-{version}-winx64.zip"
        arch = "aarch64" if platform.arch == "arm64" else "x86_64"
        return f"{series}/mysql-{version}-linux-glibc2.28-{arch}.tar.xz"

    def configure(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        root = Path(outcome.path)
        data_dir = root / "data"
        if not _is_empty_dir(data_dir):
            logger.info("MySQL data directory already initialized")
            return

        plat = platform or current_platform()
        mysqld = str(root / "bin" / plat.exe("mysqld"))
        logger.info("Initializing MySQL data directory")
        result = _run_subprocess(
            [mysqld, "--initialize-insecure", f"--basedir={root}", f"--datadir={data_dir}"],
            timeout=INIT_TIMEOUT,
        )
        if not result["ok"]:
            raise ConfigureFailed(
                f"mysqld --initialize-insecure failed: {result.get('stderr') or result.get('error')}",
                tool_id=self.id,
            )


class PgsqlInstaller(ArchiveInstaller):
    id = "pgsql"
    display_name = "PostgreSQL"
    description = "PostgreSQL server (EDB binaries)"
    category = ToolCategory.DATABASE
    platforms = frozenset({"windows"})
    official_base = "https://get.enterprisedb.com/postgresql"
    fallback_version = "17.8"
    binary = "bin/psql"
    preserved_dirs = ("data",)
    service_name = "PostgreSQL"

    def remote_version(self) -> str | None:
        return version_sources.postgresql_latest()

    def asset_suffix(self, version: str, platform: Platform) -> str:
        return f"postgresql-{version}-1-windows-x64-binaries.zip"

    def _bin(self, outcome: InstallOutcome, name: str) -> str:
        return str(Path(outcome.path) / "bin" / f"{name}.exe")

    def configure(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        data_dir = Path(outcome.path) / "data"

        if _is_empty_dir(data_dir):
            logger.info("Initializing PostgreSQL data directory")
            result = _run_subprocess(
                [self._bin(outcome, "initdb"), "-D", str(data_dir),
                 "-U", "postgres", "-E", "UTF8", "--no-locale"],
                timeout=INIT_TIMEOUT,
            )
            if not result["ok"]:
                raise ConfigureFailed(
                    f"initdb failed: {result.get('stderr') or result.get('error')}",
                    tool_id=self.id,
                )

        state = service_status.query_service_state(self.service_name)
        if state == ServiceState.NOT_FOUND:
            logger.info("Registering %s service", self.service_name)
            state = run_service_operation(
                [self._bin(outcome, "pg_ctl"), "register", "-N", self.service_name,
                 "-D", str(data_dir), "-S", "auto"],
                self.service_name,
                {ServiceState.STOPPED, ServiceState.RUNNING, ServiceState.PENDING},
                timeout=config.service_timeout,
                tool_id=self.id,
            )

        if state != ServiceState.RUNNING:
            logger.info("Starting %s service", self.service_name)
            run_service_operation(
                ["net", "start", self.service_name],
                self.service_name,
                {ServiceState.RUNNING},
                timeout=config.service_timeout,
                tool_id=self.id,
            )

    def teardown(
        self,
        outcome: InstallOutcome,
        config: HudoConfig,
        *,
        platform: Platform | None = None,
    ) -> None:
        state = service_status.query_service_state(self.service_name)
        if state == ServiceState.NOT_FOUND:
            return

        if state in (ServiceState.RUNNING, ServiceState.PENDING):
            logger.info("Stopping %s service", self.service_name)
            run_service_operation(
                ["net", "stop", self.service_name],
                self.service_name,
                {ServiceState.STOPPED, ServiceState.NOT_FOUND},
                timeout=config.service_timeout,
                tool_id=self.id,
            )

        logger.info("Unregistering %s service", self.service_name)
        run_service_operation(
            [self._bin(outcome, "pg_ctl"), "unregister", "-N", self.service_name],
            self.service_name,
            {ServiceState.NOT_FOUND},
            timeout=config.service_timeout,
            tool_id=self.id,
        )

    def probe(
        self,
        config: HudoConfig,
        record: InstallRecord | None,
        platform: Platform,
        *,
        timeout: float = 10,
    ) -> Probe:
        found = super().probe(config, record, platform, timeout=timeout)
        if found.found or record is not None:
            return found
        state = service_status.query_service_state(self.service_name)
        if state in (ServiceState.RUNNING, ServiceState.STOPPED, ServiceState.PENDING):
            return Probe(found=True, path=f"service:{self.service_name}")
        return found
