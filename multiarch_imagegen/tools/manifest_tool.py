"""manifest-tool wrapper.

This module handles:
- Locating manifest-tool, installing the pinned release when missing
- Inspecting pushed images for their full Windows OS version
- Pushing a manifest list from a YAML descriptor
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from multiarch_imagegen.errors import LookupMiss, PreflightError
from multiarch_imagegen.tools.fetch import (
    DownloadError,
    build_manifest_tool_url,
    install_binary,
)
from multiarch_imagegen.tools.runner import CommandResult, CommandRunner

if TYPE_CHECKING:
    from multiarch_imagegen.config import Settings

logger = logging.getLogger(__name__)

MANIFEST_TOOL = "manifest-tool"

# `manifest-tool inspect` prints lines like:
# 1           - OS Vers: 10.0.17763.1217
_OS_VERSION_RE = re.compile(r"OS Vers:\s*(\S+)")


def extract_os_version(inspect_output: str) -> str:
    """Return the first OS version found in `manifest-tool inspect` output.

    Raises:
        LookupMiss: If the output has no OS version line.
    """
    match = _OS_VERSION_RE.search(inspect_output)
    if not match:
        raise LookupMiss("No 'OS Vers' line in manifest-tool inspect output")
    return match.group(1)


class ManifestTool:
    """Thin wrapper over the manifest-tool CLI."""

    def __init__(self, runner: CommandRunner, binary: str | Path = MANIFEST_TOOL) -> None:
        self.runner = runner
        self.binary = str(binary)

    def inspect(self, image_ref: str) -> str:
        """Return the raw `manifest-tool inspect` output for an image."""
        result = self.runner.run([self.binary, "inspect", image_ref], capture_output=True)
        return result.stdout

    def push_from_spec(self, spec_path: Path) -> CommandResult:
        """Push a manifest list described by a YAML file."""
        return self.runner.run([self.binary, "push", "from-spec", str(spec_path)])


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def find_manifest_tool(install_dir: Path) -> Path | None:
    """Locate manifest-tool on PATH or in the install directory."""
    found = shutil.which(MANIFEST_TOOL)
    if found:
        return Path(found)
    candidate = install_dir / MANIFEST_TOOL
    if _is_executable(candidate):
        return candidate
    return None


def ensure_manifest_tool(
    settings: Settings,
    client: httpx.Client | None = None,
) -> Path:
    """Ensure manifest-tool is available locally.

    Args:
        settings: Settings with the pinned version and install directory.
        client: Optional HTTPX client (one is created if not provided).

    Returns:
        Path to the manifest-tool executable.

    Raises:
        PreflightError: If the tool is missing and cannot be installed.
    """
    existing = find_manifest_tool(settings.manifest_tool_install_dir)
    if existing:
        logger.debug("Using manifest-tool at %s", existing)
        return existing

    if settings.offline:
        raise PreflightError(
            "manifest-tool is not installed and offline mode is enabled",
            code="offline_mode",
        )

    url = build_manifest_tool_url(
        settings.manifest_tool_base_url,
        settings.manifest_tool_version,
        settings.manifest_tool_arch,
    )
    dest_path = settings.manifest_tool_install_dir / MANIFEST_TOOL

    owns_client = client is None
    if client is None:
        client = httpx.Client()

    try:
        result = install_binary(
            client,
            url,
            dest_path,
            timeout=settings.download_timeout,
            expected_checksum=settings.manifest_tool_sha256,
        )
    except DownloadError as e:
        raise PreflightError(
            f"manifest-tool is not installed and could not be fetched: {e}",
            code=e.code,
        ) from e
    finally:
        if owns_client:
            client.close()

    return result.path


__all__ = [
    "MANIFEST_TOOL",
    "ManifestTool",
    "ensure_manifest_tool",
    "extract_os_version",
    "find_manifest_tool",
]
