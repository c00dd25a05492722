"""
L1 Domain — target platform identity.

Installers pick archive names from ``Platform`` rather than reading
``sys.platform`` themselves, so a test (or a cross-platform profile
export) can ask "what would Windows download?" on any host.
"""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


@dataclass(frozen=True)
class Platform:
    os: str      # windows | linux | darwin
    arch: str    # amd64 | arm64

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def exe(self, name: str) -> str:
        """Executable file name on this platform."""
        return f"{name}.exe" if self.is_windows else name

    @property
    def archive_ext(self) -> str:
        return "zip" if self.is_windows else "tar.gz"


def current_platform() -> Platform:
    if sys.platform == "win32":
        os_name = "windows"
    elif sys.platform == "darwin":
        os_name = "darwin"
    else:
        os_name = "linux"
    machine = _platform.machine().lower()
    return Platform(os=os_name, arch=_ARCH_MAP.get(machine, machine))
