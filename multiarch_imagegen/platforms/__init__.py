"""Platform matrix module.

This module handles:
- Reading the flat `os/arch[/os_version]=image` base image tables
- Splitting platform keys into PlatformEntry values
- Primary and optional (Windows core) base image lookups
"""

from multiarch_imagegen.platforms.table import (
    base_image,
    list_platforms,
    load_table,
    read_platforms,
    require_base_image,
    split_platform,
)

__all__ = [
    "base_image",
    "list_platforms",
    "load_table",
    "read_platforms",
    "require_base_image",
    "split_platform",
]
