"""Build service module.

This module provides the `build_and_push` task:
- Composing `docker buildx build` arguments per platform
- Building and pushing every platform of the base image table in file order
- Tearing down the ephemeral builder instance on every exit path

A failing platform aborts the run; there is no partial-success continuation.
Windows builds only assemble layers: buildx cannot execute RUN instructions
inside a Windows image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from multiarch_imagegen.platforms.table import (
    base_image,
    read_platforms,
    require_base_image,
)
from multiarch_imagegen.tools.buildx import Buildx, ephemeral_builder
from multiarch_imagegen.types import PlatformEntry

if TYPE_CHECKING:
    from multiarch_imagegen.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class BuildTarget:
    """Resolved inputs for a single platform build.

    Attributes:
        entry: Platform being built.
        image_ref: Per-platform tag pushed by the build.
        dockerfile: Dockerfile used for the build.
        base_image: Primary base image.
        base_image_core: Windows core base image, empty when absent.
    """

    entry: PlatformEntry
    image_ref: str
    dockerfile: Path
    base_image: str
    base_image_core: str = ""


@dataclass
class BuildResult:
    """Result of a build_and_push run."""

    image_tag: str
    docker_version: str
    targets: list[BuildTarget]

    @property
    def image_refs(self) -> list[str]:
        return [t.image_ref for t in self.targets]


def compose_ldflags(version_variable: str, image_version: str | None) -> str:
    """Compose Go linker flags embedding the image version."""
    return f"-X {version_variable}={image_version or ''} -extldflags '-static'"


def select_dockerfile(entry: PlatformEntry, settings: Settings) -> Path:
    """Return the Dockerfile for a platform."""
    if entry.is_windows:
        return settings.windows_dockerfile
    return settings.dockerfile


def resolve_target(
    entry: PlatformEntry, image_tag: str, settings: Settings
) -> BuildTarget:
    """Resolve the Dockerfile and base images for a platform.

    Raises:
        FormatError: If the primary table has no base image for the platform.
    """
    # Only Windows platforms have a core base image
    core = base_image(entry, settings.baseimage_core_file) or ""
    return BuildTarget(
        entry=entry,
        image_ref=entry.image_ref(image_tag),
        dockerfile=select_dockerfile(entry, settings),
        base_image=require_base_image(entry, settings.baseimage_file),
        base_image_core=core,
    )


def compose_build_command(
    target: BuildTarget,
    ldflags: str,
    context: Path,
    builder_name: str | None = None,
) -> list[str]:
    """Compose the `docker buildx build` arguments for a target.

    Args:
        target: Resolved build target.
        ldflags: Value for the LDFLAGS build argument.
        context: Build context directory.
        builder_name: Builder instance to use (current builder if None).

    Returns:
        Arguments following `docker buildx build`.
    """
    entry = target.entry
    cmd: list[str] = []
    if builder_name:
        cmd.extend(["--builder", builder_name])

    cmd.extend(["--no-cache", "--pull", "--push"])
    cmd.extend(["--platform", entry.platform])
    cmd.extend(["-t", target.image_ref])

    build_args = {
        "BASEIMAGE": target.base_image,
        "BASEIMAGE_CORE": target.base_image_core,
        "TARGETARCH": entry.arch,
        "TARGETOS": entry.os,
        "LDFLAGS": ldflags,
    }
    for name, value in build_args.items():
        cmd.extend(["--build-arg", f"{name}={value}"])

    cmd.extend(["-f", str(target.dockerfile)])
    cmd.append(str(context))
    return cmd


def build_and_push(settings: Settings, buildx: Buildx) -> BuildResult:
    """Build and push an image for every platform in the base image table.

    Args:
        settings: Application settings.
        buildx: Buildx wrapper used for all docker calls.

    Returns:
        BuildResult listing the pushed per-platform images.

    Raises:
        PreflightError: If docker is too old or no image tag is configured.
        FormatError: If the base image table is malformed.
        ExternalToolError: If any build fails.
    """
    image_tag = settings.resolved_image_tag()
    docker_version = buildx.check_version(settings.min_docker_version)

    # Resolve everything before creating the builder so table errors
    # fail without touching docker state.
    entries = read_platforms(settings.baseimage_file)
    targets = [resolve_target(e, image_tag, settings) for e in entries]
    ldflags = compose_ldflags(
        settings.version_variable, settings.resolved_image_version()
    )

    logger.info(
        "Building %d platform(s) for %s (base ref: %s)",
        len(targets),
        image_tag,
        settings.base_ref or "unknown",
    )

    with ephemeral_builder(buildx, settings.builder_name) as builder_name:
        for target in targets:
            logger.info(
                "Building / pushing image for OS/ARCH: %s...", target.entry.key
            )
            args = compose_build_command(
                target,
                ldflags=ldflags,
                context=settings.build_context,
                builder_name=builder_name,
            )
            buildx.build(args, timeout=settings.build_timeout)
            logger.info("Pushed %s", target.image_ref)

    return BuildResult(
        image_tag=image_tag,
        docker_version=docker_version,
        targets=targets,
    )


__all__ = [
    "BuildResult",
    "BuildTarget",
    "build_and_push",
    "compose_build_command",
    "compose_ldflags",
    "resolve_target",
    "select_dockerfile",
]
