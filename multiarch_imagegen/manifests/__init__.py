"""Manifest list module.

This module handles:
- Manifest list descriptor schema and YAML serialization
- Windows OS version lookups
- Publishing the manifest list with manifest-tool
"""

from multiarch_imagegen.manifests.schema import (
    ManifestDescriptor,
    ManifestEntrySchema,
    PlatformSchema,
)
from multiarch_imagegen.manifests.service import (
    build_descriptor,
    descriptor_file,
    publish_manifest,
    run_manifest,
)

__all__ = [
    "ManifestDescriptor",
    "ManifestEntrySchema",
    "PlatformSchema",
    "build_descriptor",
    "descriptor_file",
    "publish_manifest",
    "run_manifest",
]
