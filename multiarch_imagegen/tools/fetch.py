"""Release binary fetch module.

This module handles:
- URL construction for pinned manifest-tool releases
- Streaming download to a temporary file
- Atomic install into a bin directory with the executable bit set
"""

from __future__ import annotations

import hashlib
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

# Timeout for downloads (seconds)
DOWNLOAD_TIMEOUT = 300

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB


class DownloadError(Exception):
    """Raised when a release binary download fails."""

    def __init__(self, message: str, code: str = "download_error") -> None:
        """Initialize DownloadError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.code = code


@dataclass
class DownloadResult:
    """Result of a binary download."""

    path: Path
    checksum: str
    size_bytes: int


def build_manifest_tool_url(base_url: str, version: str, arch: str = "amd64") -> str:
    """Build the release asset URL for manifest-tool.

    Args:
        base_url: Releases download base URL.
        version: Release version without the leading 'v' (e.g., '1.0.2').
        arch: Linux architecture of the asset.

    Returns:
        URL of the linux binary.
    """
    version = version.removeprefix("v")
    return f"{base_url.rstrip('/')}/v{version}/manifest-tool-linux-{arch}"


def install_binary(
    client: httpx.Client,
    url: str,
    dest_path: Path,
    timeout: float = DOWNLOAD_TIMEOUT,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    expected_checksum: str | None = None,
) -> DownloadResult:
    """Download a binary and install it as an executable.

    The download goes to a temporary file in the destination directory and is
    renamed into place only when complete, so a partial file never lands at
    ``dest_path``.

    Args:
        client: HTTPX client instance.
        url: URL to download from.
        dest_path: Final path of the executable.
        timeout: Download timeout in seconds.
        chunk_size: Size of chunks to download.
        expected_checksum: Expected SHA256 checksum (optional).

    Returns:
        DownloadResult with path, checksum, and size.

    Raises:
        DownloadError: If the download or install fails, or the checksum
            does not match.
    """
    logger.info("Downloading %s to %s", url, dest_path)

    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=dest_path.parent, suffix=".tmp", delete=False
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)
    except OSError as e:
        raise DownloadError(
            f"Cannot write to {dest_path.parent}: {e}",
            code="os_error",
        ) from e

    try:
        with client.stream(
            "GET", url, timeout=timeout, follow_redirects=True
        ) as response:
            response.raise_for_status()

            total_bytes = 0
            sha256 = hashlib.sha256()
            with tmp_path.open("wb") as f:
                for chunk in response.iter_bytes(chunk_size):
                    f.write(chunk)
                    sha256.update(chunk)
                    total_bytes += len(chunk)

        checksum = sha256.hexdigest()
        if expected_checksum and checksum != expected_checksum.lower():
            tmp_path.unlink(missing_ok=True)
            raise DownloadError(
                f"Checksum mismatch for {url}: "
                f"expected {expected_checksum}, got {checksum}",
                code="verification_error",
            )

        mode = tmp_path.stat().st_mode
        tmp_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        os.replace(tmp_path, dest_path)

    except httpx.HTTPStatusError as e:
        tmp_path.unlink(missing_ok=True)
        raise DownloadError(
            f"HTTP error downloading {url}: {e.response.status_code} {e.response.reason_phrase}",
            code="http_error",
        ) from e
    except httpx.TimeoutException as e:
        tmp_path.unlink(missing_ok=True)
        raise DownloadError(
            f"Timeout downloading {url}",
            code="timeout",
        ) from e
    except httpx.RequestError as e:
        tmp_path.unlink(missing_ok=True)
        raise DownloadError(
            f"Network error downloading {url}: {e}",
            code="network_error",
        ) from e
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise DownloadError(
            f"OS error installing {dest_path}: {e}",
            code="os_error",
        ) from e

    logger.info(
        "Installed %s (%d bytes, checksum: %s)",
        dest_path,
        total_bytes,
        checksum[:16] + "...",
    )
    return DownloadResult(path=dest_path, checksum=checksum, size_bytes=total_bytes)


__all__ = [
    "DOWNLOAD_TIMEOUT",
    "DownloadError",
    "DownloadResult",
    "build_manifest_tool_url",
    "install_binary",
]
