"""Shared type definitions for multiarch_imagegen.

This module contains dataclasses and enums shared across subpackages to
avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum

WINDOWS = "windows"


class Task(str, Enum):
    """Tasks accepted by the command line."""

    BUILD_AND_PUSH = "build_and_push"
    MANIFEST = "manifest"


@dataclass(frozen=True)
class PlatformEntry:
    """One `os/arch[/os_version]` build target.

    Attributes:
        os: Operating system (e.g., 'linux', 'windows').
        arch: CPU architecture (e.g., 'amd64').
        os_version: Windows channel (e.g., '1809'), None for two-segment keys.
    """

    os: str
    arch: str
    os_version: str | None = None

    @property
    def key(self) -> str:
        """Key as written in the base image table."""
        if self.os_version:
            return f"{self.os}/{self.arch}/{self.os_version}"
        return f"{self.os}/{self.arch}"

    @property
    def platform(self) -> str:
        """Value for the builder's --platform flag."""
        return f"{self.os}/{self.arch}"

    @property
    def suffix(self) -> str:
        """Stable tag suffix identifying this platform."""
        if self.os_version:
            return f"{self.os}-{self.arch}-{self.os_version}"
        return f"{self.os}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == WINDOWS

    def image_ref(self, image_tag: str) -> str:
        """Per-platform image reference for an aggregate tag."""
        return f"{image_tag}-{self.suffix}"


__all__ = [
    "PlatformEntry",
    "Task",
    "WINDOWS",
]
