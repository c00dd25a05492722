"""
L4 Execution — archive extraction.

Supports zip, tar.gz and tar.xz.  Members that would land outside the
destination are rejected.
"""

from __future__ import annotations

import logging
import tarfile
import zipfile
from pathlib import Path

from hudo.core.services.tool_install.errors import ExtractFailed

logger = logging.getLogger(__name__)


def extract_archive(archive: Path, dest: Path, *, tool_id: str = "") -> None:
    """Extract ``archive`` into ``dest`` (created if missing).

    Raises:
        ExtractFailed: Unknown format, corrupt archive, unsafe member
            path, or an I/O error while writing.
    """
    dest.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting %s", archive.name)
    try:
        if zipfile.is_zipfile(archive):
            _extract_zip(archive, dest)
        elif tarfile.is_tarfile(archive):
            with tarfile.open(archive, "r:*") as tf:
                tf.extractall(dest, filter="data")
        else:
            raise ExtractFailed(f"{archive.name} is not a zip or tar archive", tool_id=tool_id)
    except ExtractFailed:
        raise
    except (zipfile.BadZipFile, tarfile.TarError, OSError, EOFError, ValueError) as e:
        raise ExtractFailed(f"Cannot extract {archive.name}: {e}", tool_id=tool_id) from e


def _extract_zip(archive: Path, dest: Path) -> None:
    root = dest.resolve()
    with zipfile.ZipFile(archive) as zf:
        for member in zf.namelist():
            target = (root / member).resolve()
            if target != root and root not in target.parents:
                raise ValueError(f"unsafe member path {member!r}")
        zf.extractall(root)


def find_single_subdir(path: Path) -> Path | None:
    """The only entry of ``path`` if it is a directory, else None.

    Most archives wrap their content in ``<name>-<version>/``.
    """
    entries = list(path.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return None
