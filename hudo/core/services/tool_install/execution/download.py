"""
L4 Execution — artifact download, cache and checksum verification.

Artifacts land in ``<root>/cache/<tool_id>/<filename>``.  A file
already in the cache is reused without touching the network.  Fresh
downloads stream to ``<filename>.part`` and are renamed into place only
after the checksum (when configured) matches.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path

from hudo import __version__
from hudo.core.models.tool import ResolvedDownload
from hudo.core.services.tool_install.errors import DownloadFailed, IntegrityMismatch

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60
_CHUNK = 1024 * 256


def _verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex``.

    Supports any ``hashlib`` algorithm (sha256, sha512, sha1, md5).

    Raises:
        ValueError: Malformed ``expected`` or unknown algorithm.
    """
    algo, sep, expected_hash = expected.partition(":")
    if not sep or not expected_hash:
        raise ValueError(f"Checksum must look like 'algo:hex', got {expected!r}")
    h = hashlib.new(algo.strip().lower())
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest().lower() == expected_hash.strip().lower()


def cache_path(download: ResolvedDownload, cache_dir: Path) -> Path:
    return cache_dir / download.tool_id / download.filename


def _download_file(url: str, dest: Path, *, timeout: float = DOWNLOAD_TIMEOUT) -> None:
    """Stream ``url`` into ``dest``."""
    req = urllib.request.Request(url, headers={"User-Agent": f"hudo/{__version__}"})
    with urllib.request.urlopen(req, timeout=timeout) as resp, open(dest, "wb") as f:
        shutil.copyfileobj(resp, f, _CHUNK)


def fetch_artifact(download: ResolvedDownload, cache_dir: Path) -> Path:
    """Return a local, verified copy of the artifact.

    Raises:
        DownloadFailed: Network or filesystem failure.
        IntegrityMismatch: The fresh download did not match the checksum
            (the file is deleted first).
    """
    dest = cache_path(download, cache_dir)
    tool_id = download.tool_id

    if dest.is_file():
        if not download.expected_checksum or _checksum_ok(dest, download):
            logger.info("%s: using cached %s", tool_id, dest.name)
            return dest
        logger.warning("%s: cached %s failed verification, downloading again", tool_id, dest.name)
        dest.unlink(missing_ok=True)

    part = dest.with_name(dest.name + ".part")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadFailed(f"Cannot create cache dir {dest.parent}: {e}", tool_id=tool_id) from e

    logger.info("%s: downloading %s", tool_id, download.url)
    try:
        _download_file(download.url, part)
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        part.unlink(missing_ok=True)
        raise DownloadFailed(f"Download of {download.url} failed: {e}", tool_id=tool_id) from e

    if download.expected_checksum:
        try:
            if not _checksum_ok(part, download):
                raise IntegrityMismatch(
                    f"{download.filename} does not match {download.expected_checksum}",
                    tool_id=tool_id,
                )
        except IntegrityMismatch:
            part.unlink(missing_ok=True)
            raise

    try:
        part.replace(dest)
    except OSError as e:
        part.unlink(missing_ok=True)
        raise DownloadFailed(f"Cannot store {dest.name} in the cache: {e}", tool_id=tool_id) from e
    return dest


def invalidate_artifact(path: Path) -> None:
    """Drop a cache entry (e.g. an archive that failed to extract)."""
    try:
        path.unlink(missing_ok=True)
        logger.info("Removed cache entry %s", path)
    except OSError as e:
        logger.warning("Could not remove cache entry %s: %s", path, e)


def _checksum_ok(path: Path, download: ResolvedDownload) -> bool:
    assert download.expected_checksum is not None
    try:
        return _verify_checksum(path, download.expected_checksum)
    except ValueError as e:
        raise IntegrityMismatch(
            f"Unusable checksum for {download.tool_id}: {e}",
            tool_id=download.tool_id,
            hint="Fix 'checksums.<tool>' in the config (format 'sha256:<hex>').",
        ) from e
