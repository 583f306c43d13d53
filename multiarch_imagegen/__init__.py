"""Multi-arch Image Generator - build and publish multi-platform container images.

This package provides orchestration around `docker buildx` and `manifest-tool`
for building per-platform images from a base image table and publishing them
as a single manifest list.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
