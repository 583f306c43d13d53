"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from multiarch_imagegen.config import Settings, get_settings, print_settings_json
from multiarch_imagegen.errors import PreflightError


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        settings = Settings()

        assert settings.baseimage_file == Path("docker/BASEIMAGE")
        assert settings.baseimage_core_file == Path("docker/BASEIMAGE_CORE")
        assert settings.windows_dockerfile == Path("docker/windows.Dockerfile")
        assert settings.builder_name == "img-builder"
        assert settings.version_variable == (
            "sigs.k8s.io/secrets-store-csi-driver/pkg/secrets-store.vendorVersion"
        )
        assert settings.min_docker_version == "19.03.0"
        assert settings.manifest_tool_version == "1.0.2"
        assert settings.manifest_tool_sha256 is None
        assert settings.offline is False
        assert settings.log_level == "INFO"

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "MULTIARCH_IMAGE_TAG": "reg/img:v1",
                "MULTIARCH_OFFLINE": "true",
                "MULTIARCH_LOG_LEVEL": "DEBUG",
                "MULTIARCH_BASEIMAGE_FILE": "/tmp/BASEIMAGE",
            },
        ):
            settings = Settings()
            assert settings.image_tag == "reg/img:v1"
            assert settings.offline is True
            assert settings.log_level == "DEBUG"
            assert settings.baseimage_file == Path("/tmp/BASEIMAGE")


class TestResolvedImageTag:
    """Tests for image tag resolution."""

    def test_explicit_tag(self) -> None:
        settings = Settings(image_tag="reg/img:v1", registry="other")
        assert settings.resolved_image_tag() == "reg/img:v1"

    def test_composed_tag(self) -> None:
        """Registry, name and version compose the tag."""
        settings = Settings(registry="gcr.io/proj", image_name="driver", image_version="v2")
        assert settings.resolved_image_tag() == "gcr.io/proj/driver:v2"

    def test_git_tag_fallback(self) -> None:
        """The CI git tag is used when no image version is set."""
        settings = Settings(
            registry="gcr.io/proj", image_name="driver", git_tag="v20200422-b25d964"
        )
        assert settings.resolved_image_version() == "v20200422-b25d964"
        assert settings.resolved_image_tag() == "gcr.io/proj/driver:v20200422-b25d964"

    def test_missing_tag(self) -> None:
        """No tag and no parts is a preflight failure."""
        settings = Settings(registry="gcr.io/proj")
        with pytest.raises(PreflightError) as exc_info:
            settings.resolved_image_tag()
        assert exc_info.value.code == "image_tag_missing"


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings(image_tag="reg/img:v1")
        parsed = json.loads(print_settings_json(settings))

        assert parsed["image_tag"] == "reg/img:v1"
        assert "baseimage_file" in parsed
        assert "manifest_tool_version" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        parsed = json.loads(print_settings_json())
        assert "builder_name" in parsed
