"""Build orchestration module.

This module handles:
- Resolving Dockerfiles and base images per platform
- Composing and running `docker buildx build` per platform
- Builder instance lifecycle for a run
"""

from multiarch_imagegen.builds.service import (
    BuildResult,
    BuildTarget,
    build_and_push,
    compose_build_command,
)

__all__ = ["BuildResult", "BuildTarget", "build_and_push", "compose_build_command"]
