"""Manifest list service module.

This module provides the `manifest` task:
- Building the manifest list descriptor from the base image table
- Looking up full OS versions of pushed Windows images
- Writing the descriptor to a temporary file and pushing it with manifest-tool

The descriptor is pushed once, in full; a failing push leaves nothing
partially published.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from multiarch_imagegen.errors import ExternalToolError, FormatError, LookupMiss
from multiarch_imagegen.manifests.schema import (
    ManifestDescriptor,
    ManifestEntrySchema,
    PlatformSchema,
)
from multiarch_imagegen.platforms.table import read_platforms
from multiarch_imagegen.tools.manifest_tool import (
    ManifestTool,
    ensure_manifest_tool,
    extract_os_version,
)
from multiarch_imagegen.tools.runner import CommandRunner
from multiarch_imagegen.types import PlatformEntry

if TYPE_CHECKING:
    from multiarch_imagegen.config import Settings

logger = logging.getLogger(__name__)


def inspect_os_version(tool: ManifestTool, image_ref: str) -> str:
    """Return the full OS version of a pushed image.

    Raises:
        LookupMiss: If inspection fails or reports no OS version.
    """
    try:
        output = tool.inspect(image_ref)
    except ExternalToolError as e:
        raise LookupMiss(f"Cannot inspect {image_ref}: {e}") from e
    return extract_os_version(output)


def build_descriptor(
    image_tag: str,
    entries: Sequence[PlatformEntry],
    tool: ManifestTool,
) -> ManifestDescriptor:
    """Build the manifest list descriptor for a set of platforms.

    Windows entries get an `osversion` so Windows nodes can pull the image
    matching their host; it is omitted when the lookup misses.

    Args:
        image_tag: Aggregate manifest list tag.
        entries: Platforms in table order.
        tool: manifest-tool wrapper used for Windows inspections.

    Returns:
        ManifestDescriptor with one entry per platform.

    Raises:
        FormatError: If a resulting image reference is malformed.
    """
    try:
        descriptor = ManifestDescriptor(image=image_tag)
        for entry in entries:
            image_ref = entry.image_ref(image_tag)
            platform = PlatformSchema(architecture=entry.arch, os=entry.os)

            if entry.is_windows:
                try:
                    platform.osversion = inspect_os_version(tool, image_ref)
                except LookupMiss as e:
                    logger.warning(
                        "Publishing %s without osversion: %s", image_ref, e
                    )

            descriptor.manifests.append(
                ManifestEntrySchema(image=image_ref, platform=platform)
            )
    except ValidationError as e:
        raise FormatError(f"Invalid manifest list entry: {e}") from e

    return descriptor


@contextmanager
def descriptor_file(
    descriptor: ManifestDescriptor, directory: Path | None = None
) -> Iterator[Path]:
    """Write a descriptor to a temporary YAML file, deleted on exit.

    Args:
        descriptor: Descriptor to write.
        directory: Directory for the file (system default if None).

    Yields:
        Path to the written file.
    """
    with tempfile.NamedTemporaryFile(
        prefix="manifest-", suffix=".yaml", dir=directory, delete=False
    ) as f:
        path = Path(f.name)

    try:
        path.write_text(descriptor.to_yaml(), encoding="utf-8")
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("Removed descriptor file %s", path)


def publish_manifest(settings: Settings, tool: ManifestTool) -> ManifestDescriptor:
    """Build and push the manifest list for every platform in the table.

    Args:
        settings: Application settings.
        tool: manifest-tool wrapper.

    Returns:
        The pushed descriptor.

    Raises:
        PreflightError: If no image tag is configured.
        FormatError: If the base image table is malformed.
        ExternalToolError: If the push fails.
    """
    image_tag = settings.resolved_image_tag()
    entries = read_platforms(settings.baseimage_file)

    logger.info("Building manifest list .yaml file for %s", image_tag)
    descriptor = build_descriptor(image_tag, entries, tool)
    logger.info("Manifest list .yaml file:\n%s", descriptor.to_yaml())

    with descriptor_file(descriptor) as path:
        tool.push_from_spec(path)

    logger.info(
        "Pushed manifest list %s (%d platform(s))",
        image_tag,
        len(descriptor.manifests),
    )
    return descriptor


def run_manifest(
    settings: Settings,
    runner: CommandRunner,
    client: httpx.Client | None = None,
) -> ManifestDescriptor:
    """Ensure manifest-tool is installed, then publish the manifest list.

    Raises:
        PreflightError: If manifest-tool is missing and cannot be installed.
    """
    binary = ensure_manifest_tool(settings, client=client)
    return publish_manifest(settings, ManifestTool(runner, binary=binary))


__all__ = [
    "build_descriptor",
    "descriptor_file",
    "inspect_os_version",
    "publish_manifest",
    "run_manifest",
]
