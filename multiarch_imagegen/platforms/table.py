"""Base image table parsing.

The table is a plain text file with one `key=value` pair per line, where the
key is `os/arch` or `os/arch/os_version` and the value is a base image
reference. There is no escaping; the value is everything after the first `=`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from multiarch_imagegen.errors import FormatError
from multiarch_imagegen.types import PlatformEntry

logger = logging.getLogger(__name__)


def _iter_pairs(table_file: Path) -> list[tuple[str, str]]:
    """Read (key, value) pairs in file order, skipping blank lines.

    Raises:
        FileNotFoundError: If the file does not exist.
        FormatError: If the file is not valid UTF-8.
    """
    pairs: list[tuple[str, str]] = []
    try:
        with open(table_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                key, _, value = line.partition("=")
                pairs.append((key.strip(), value.strip()))
    except UnicodeDecodeError as e:
        raise FormatError(
            f"Base image table {table_file} is not valid UTF-8: {e}",
            code="table_encoding",
        ) from e
    return pairs


def load_table(table_file: Path) -> dict[str, str]:
    """Load a base image table into a mapping.

    Later duplicates of a key win, matching a sequential read of the file.

    Args:
        table_file: Path to the table file.

    Returns:
        Mapping of platform key to base image reference.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    return dict(_iter_pairs(table_file))


def list_platforms(table_file: Path) -> list[str]:
    """Return the raw platform keys found in a table, in file order.

    Args:
        table_file: Path to the table file.

    Returns:
        Keys in insertion order, without deduplication.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    return [key for key, _ in _iter_pairs(table_file)]


def split_platform(key: str) -> PlatformEntry:
    """Split a platform key into its components.

    Args:
        key: `os/arch` or `os/arch/os_version`.

    Returns:
        PlatformEntry for the key.

    Raises:
        FormatError: If the key has any other shape.
    """
    parts = key.split("/")
    if len(parts) not in (2, 3) or not all(parts):
        raise FormatError(
            "The base image table is not properly formatted. Expected entries "
            f"to start with 'os/arch', found '{key}' instead."
        )
    if len(parts) == 3:
        # Windows images are built per channel (LTSC and SAC)
        return PlatformEntry(os=parts[0], arch=parts[1], os_version=parts[2])
    return PlatformEntry(os=parts[0], arch=parts[1])


def read_platforms(table_file: Path) -> list[PlatformEntry]:
    """List and split every platform in a table.

    Fails on the first malformed key, before any caller does external work.

    Args:
        table_file: Path to the table file.

    Returns:
        PlatformEntry list in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        FormatError: If any key is malformed.
    """
    entries = [split_platform(key) for key in list_platforms(table_file)]
    logger.debug(
        "Read %d platform(s) from %s: %s",
        len(entries),
        table_file,
        [e.key for e in entries],
    )
    return entries


def base_image(entry: PlatformEntry | str, table_file: Path) -> str | None:
    """Look up the base image for a platform.

    Args:
        entry: PlatformEntry or raw platform key.
        table_file: Path to the table file.

    Returns:
        The base image reference, or None if the key or file is absent.
    """
    key = entry.key if isinstance(entry, PlatformEntry) else entry
    if not table_file.is_file():
        logger.debug("Base image table %s not found", table_file)
        return None

    value = load_table(table_file).get(key)
    if not value:
        return None
    return value


def require_base_image(entry: PlatformEntry, table_file: Path) -> str:
    """Look up the primary base image for a platform.

    Raises:
        FormatError: If the table has no base image for the platform.
    """
    value = base_image(entry, table_file)
    if value is None:
        raise FormatError(
            f"No base image for {entry.key} in {table_file}",
            code="base_image_missing",
        )
    return value


__all__ = [
    "base_image",
    "list_platforms",
    "load_table",
    "read_platforms",
    "require_base_image",
    "split_platform",
]
