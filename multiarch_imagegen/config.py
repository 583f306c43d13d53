"""Configuration settings for multiarch_imagegen.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: env vars > .env file > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from multiarch_imagegen.errors import PreflightError


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the MULTIARCH_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="MULTIARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Image naming
    image_tag: str | None = Field(
        default=None,
        description="Aggregate image tag; overrides registry/image_name:version",
    )
    registry: str | None = Field(
        default=None,
        description="Registry the images are pushed to",
    )
    image_name: str | None = Field(
        default=None,
        description="Image repository name within the registry",
    )
    image_version: str | None = Field(
        default=None,
        description="Image version, embedded into the built binary",
    )

    # CI substitutions
    git_tag: str | None = Field(
        default=None,
        description="Git-based tag provided by CI (vYYYYMMDD-hash)",
    )
    base_ref: str | None = Field(
        default=None,
        description="Branch or tag that triggered the CI run",
    )

    # Build inputs
    baseimage_file: Path = Field(
        default=Path("docker/BASEIMAGE"),
        description="Primary base image table",
    )
    baseimage_core_file: Path = Field(
        default=Path("docker/BASEIMAGE_CORE"),
        description="Optional Windows core base image table",
    )
    dockerfile: Path = Field(
        default=Path("docker/Dockerfile"),
        description="Dockerfile for non-Windows platforms",
    )
    windows_dockerfile: Path = Field(
        default=Path("docker/windows.Dockerfile"),
        description="Dockerfile for Windows platforms",
    )
    build_context: Path = Field(
        default=Path("."),
        description="Build context directory",
    )
    builder_name: str = Field(
        default="img-builder",
        description="Name of the ephemeral buildx builder instance",
    )
    version_variable: str = Field(
        default="sigs.k8s.io/secrets-store-csi-driver/pkg/secrets-store.vendorVersion",
        description="Go symbol set to the image version through -X in LDFLAGS",
    )
    min_docker_version: str = Field(
        default="19.03.0",
        description="Minimum docker client version (buildx support)",
    )

    # manifest-tool
    manifest_tool_version: str = Field(
        default="1.0.2",
        description="Pinned manifest-tool release",
    )
    manifest_tool_arch: str = Field(
        default="amd64",
        description="manifest-tool release asset architecture",
    )
    manifest_tool_install_dir: Path = Field(
        default=Path("/usr/local/bin"),
        description="Where manifest-tool is installed when missing",
    )
    manifest_tool_base_url: str = Field(
        default="https://github.com/estesp/manifest-tool/releases/download",
        description="Base URL for manifest-tool releases",
    )
    manifest_tool_sha256: str | None = Field(
        default=None,
        description="Expected SHA256 of the manifest-tool binary (unchecked if unset)",
    )

    # Operational modes
    offline: bool = Field(
        default=False,
        description="Offline mode - do not download manifest-tool",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    build_timeout: int = Field(
        default=3600,
        ge=60,
        description="Timeout for a single platform build",
    )
    download_timeout: int = Field(
        default=300,
        ge=10,
        description="Timeout for the manifest-tool download",
    )

    def resolved_image_version(self) -> str | None:
        """Return the image version, falling back to the CI git tag."""
        return self.image_version or self.git_tag

    def resolved_image_tag(self) -> str:
        """Return the aggregate image tag.

        Returns:
            image_tag if set, otherwise `registry/image_name:version`.

        Raises:
            PreflightError: If no tag can be derived.
        """
        if self.image_tag:
            return self.image_tag

        version = self.resolved_image_version()
        if self.registry and self.image_name and version:
            return f"{self.registry}/{self.image_name}:{version}"

        raise PreflightError(
            "Image tag is not configured: set MULTIARCH_IMAGE_TAG or "
            "MULTIARCH_REGISTRY, MULTIARCH_IMAGE_NAME and MULTIARCH_IMAGE_VERSION",
            code="image_tag_missing",
        )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
