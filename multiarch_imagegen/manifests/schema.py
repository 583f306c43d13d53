"""Pydantic models for manifest list descriptors.

The serialized form is the YAML consumed by `manifest-tool push from-spec`:

    image: registry/name:tag
    manifests:
    - image: registry/name:tag-linux-amd64
      platform:
        architecture: amd64
        os: linux
"""

import re

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# An image reference is a single token without whitespace
IMAGE_REF_PATTERN = re.compile(r"[^\s]+")


def _validate_image_ref(v: str) -> str:
    if not IMAGE_REF_PATTERN.fullmatch(v):
        raise ValueError(f"invalid image reference: {v!r}")
    return v


class PlatformSchema(BaseModel):
    """Platform metadata of a manifest list entry.

    Attributes:
        architecture: CPU architecture (e.g., 'amd64').
        os: Operating system (e.g., 'linux').
        osversion: Full Windows OS version (e.g., '10.0.17763.1217').
    """

    model_config = ConfigDict(extra="forbid")

    architecture: str = Field(min_length=1)
    os: str = Field(min_length=1)
    # manifest-tool maps osversion to os.version
    osversion: str | None = Field(default=None)


class ManifestEntrySchema(BaseModel):
    """A per-platform image in a manifest list."""

    model_config = ConfigDict(extra="forbid")

    image: str = Field(description="Per-platform image reference")
    platform: PlatformSchema

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: str) -> str:
        """Validate image is a single non-empty token."""
        return _validate_image_ref(v)


class ManifestDescriptor(BaseModel):
    """Manifest list descriptor, built fresh for each run."""

    model_config = ConfigDict(extra="forbid")

    image: str = Field(description="Aggregate manifest list tag")
    manifests: list[ManifestEntrySchema] = Field(default_factory=list)

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: str) -> str:
        """Validate image is a single non-empty token."""
        return _validate_image_ref(v)

    def to_yaml(self) -> str:
        """Serialize to the manifest-tool YAML format."""
        data = self.model_dump(exclude_none=True)
        result: str = yaml.safe_dump(
            data, default_flow_style=False, allow_unicode=True, sort_keys=False
        )
        return result


__all__ = ["ManifestDescriptor", "ManifestEntrySchema", "PlatformSchema"]
