"""External tool integration module.

This module handles:
- Running external commands behind the CommandRunner interface
- Wrapping `docker buildx` (version check, builder lifecycle, builds)
- Wrapping `manifest-tool` (install, inspect, push)
"""

from multiarch_imagegen.tools.buildx import Buildx, ephemeral_builder
from multiarch_imagegen.tools.manifest_tool import (
    ManifestTool,
    ensure_manifest_tool,
    extract_os_version,
)
from multiarch_imagegen.tools.runner import (
    CommandResult,
    CommandRunner,
    SubprocessRunner,
)

__all__ = [
    "Buildx",
    "CommandResult",
    "CommandRunner",
    "ManifestTool",
    "SubprocessRunner",
    "ensure_manifest_tool",
    "ephemeral_builder",
    "extract_os_version",
]
