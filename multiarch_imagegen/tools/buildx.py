"""docker buildx wrapper.

This module handles:
- Checking the docker client version supports buildx
- Creating and removing the ephemeral builder instance
- Running `docker buildx build` for a single platform
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from multiarch_imagegen.errors import ExternalToolError, PreflightError
from multiarch_imagegen.tools.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

DOCKER = "docker"

_VERSION_RE = re.compile(r"^(\d+(?:\.\d+)*)")


def parse_version(version: str) -> tuple[int, ...]:
    """Parse a dotted version string into a comparable tuple.

    Pre-release and build suffixes (`-ce`, `+azure`) are ignored and
    leading zeros are dropped, so "19.03.0" parses to (19, 3, 0).

    Raises:
        ValueError: If the string does not start with a dotted number.
    """
    match = _VERSION_RE.match(version.strip())
    if not match:
        raise ValueError(f"Unparseable version: {version!r}")
    return tuple(int(part) for part in match.group(1).split("."))


def version_at_least(version: str, minimum: str) -> bool:
    """Return True if ``version`` >= ``minimum``, padding missing parts with 0."""
    have = parse_version(version)
    want = parse_version(minimum)
    width = max(len(have), len(want))
    have = have + (0,) * (width - len(have))
    want = want + (0,) * (width - len(want))
    return have >= want


class Buildx:
    """Thin wrapper over the docker CLI's buildx plugin."""

    def __init__(self, runner: CommandRunner, docker: str = DOCKER) -> None:
        self.runner = runner
        self.docker = docker

    def client_version(self) -> str:
        """Return the docker client version, without any `-suffix`.

        Raises:
            ExternalToolError: If `docker version` fails.
        """
        result = self.runner.run(
            [self.docker, "version", "--format", "{{.Client.Version}}"],
            capture_output=True,
        )
        return result.stdout.strip().split("-")[0]

    def check_version(self, minimum: str) -> str:
        """Fail fast unless the docker client supports multi-platform builds.

        `docker manifest` is broken in 18.03 and buildx appeared in 19.03,
        so the default minimum is 19.03.0.

        Args:
            minimum: Minimum acceptable client version.

        Returns:
            The detected client version.

        Raises:
            PreflightError: If docker is missing, its version is unreadable,
                or older than ``minimum``.
        """
        try:
            version = self.client_version()
        except ExternalToolError as e:
            raise PreflightError(
                f"Unable to determine docker version: {e}",
                code="docker_unavailable",
            ) from e

        try:
            supported = version_at_least(version, minimum)
        except ValueError as e:
            raise PreflightError(
                f"Unable to parse docker version {version!r}",
                code="docker_version_unparseable",
            ) from e

        if not supported:
            raise PreflightError(
                f"Minimum docker version {minimum} is required for using "
                f"docker buildx: {version}",
                code="docker_version_too_old",
            )

        logger.debug("docker client version %s satisfies >= %s", version, minimum)
        return version

    def create_builder(self, name: str) -> None:
        """Create a builder instance and make it current."""
        self.runner.run([self.docker, "buildx", "create", "--name", name, "--use"])

    def remove_builder(self, name: str) -> None:
        """Remove a builder instance."""
        self.runner.run([self.docker, "buildx", "rm", name])

    def build(
        self, args: Sequence[str], timeout: float | None = None
    ) -> CommandResult:
        """Run `docker buildx build` with the given arguments."""
        return self.runner.run(
            [self.docker, "buildx", "build", *args],
            timeout=timeout,
        )


@contextmanager
def ephemeral_builder(buildx: Buildx, name: str) -> Iterator[str]:
    """Create a builder instance for the duration of a block.

    The instance is removed on every exit path. If the block raised, a
    removal failure is logged and the original exception propagates.

    Args:
        buildx: Buildx wrapper.
        name: Builder instance name.

    Yields:
        The builder name.
    """
    buildx.create_builder(name)
    logger.info("Created builder instance %s", name)
    try:
        yield name
    except BaseException:
        try:
            buildx.remove_builder(name)
        except ExternalToolError as cleanup_error:
            logger.error(
                "Failed to remove builder instance %s: %s", name, cleanup_error
            )
        raise
    else:
        buildx.remove_builder(name)
    logger.info("Removed builder instance %s", name)


__all__ = [
    "Buildx",
    "DOCKER",
    "ephemeral_builder",
    "parse_version",
    "version_at_least",
]
