"""Tests for manifests/service.py module.

Uses a recording FakeRunner in place of manifest-tool.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from multiarch_imagegen.errors import (
    ExternalToolError,
    FormatError,
    LookupMiss,
    PreflightError,
)
from multiarch_imagegen.manifests.schema import ManifestDescriptor
from multiarch_imagegen.manifests.service import (
    build_descriptor,
    descriptor_file,
    inspect_os_version,
    publish_manifest,
    run_manifest,
)
from multiarch_imagegen.tools.manifest_tool import ManifestTool
from multiarch_imagegen.types import PlatformEntry

ENTRIES = [
    PlatformEntry(os="linux", arch="amd64"),
    PlatformEntry(os="windows", arch="amd64", os_version="1809"),
]


def push_calls(runner) -> list[list[str]]:
    return runner.calls_matching("manifest-tool", "push")


class TestInspectOsVersion:
    """Tests for inspect_os_version function."""

    def test_found(self, fake_runner):
        tool = ManifestTool(fake_runner)
        assert inspect_os_version(tool, "t-windows-amd64-1809") == "10.0.17763.1217"

    def test_inspect_failure_is_lookup_miss(self, make_runner):
        tool = ManifestTool(make_runner(fail_on=lambda cmd: True))
        with pytest.raises(LookupMiss):
            inspect_os_version(tool, "t-windows-amd64-1809")


class TestBuildDescriptor:
    """Tests for build_descriptor function."""

    def test_entries_and_refs(self, fake_runner):
        descriptor = build_descriptor("t", ENTRIES, ManifestTool(fake_runner))

        assert descriptor.image == "t"
        assert [m.image for m in descriptor.manifests] == [
            "t-linux-amd64",
            "t-windows-amd64-1809",
        ]
        linux, windows = descriptor.manifests
        assert linux.platform.os == "linux"
        assert linux.platform.architecture == "amd64"
        assert linux.platform.osversion is None
        assert windows.platform.osversion == "10.0.17763.1217"

    def test_inspects_pushed_windows_image_only(self, fake_runner):
        build_descriptor("t", ENTRIES, ManifestTool(fake_runner))
        assert fake_runner.calls == [
            ["manifest-tool", "inspect", "t-windows-amd64-1809"]
        ]

    def test_lookup_failure_omits_osversion(self, make_runner):
        """A failed inspect leaves osversion out instead of failing."""
        runner = make_runner(fail_on=lambda cmd: cmd[1] == "inspect")
        descriptor = build_descriptor("t", ENTRIES, ManifestTool(runner))

        assert len(descriptor.manifests) == 2
        assert descriptor.manifests[1].platform.osversion is None
        assert "osversion" not in descriptor.to_yaml()

    def test_no_os_version_line_omits_osversion(self, make_runner):
        runner = make_runner(responses={("manifest-tool", "inspect"): "Name: x\n"})
        descriptor = build_descriptor("t", ENTRIES, ManifestTool(runner))
        assert descriptor.manifests[1].platform.osversion is None

    def test_malformed_tag(self, fake_runner):
        with pytest.raises(FormatError):
            build_descriptor("bad tag", ENTRIES, ManifestTool(fake_runner))

    def test_no_entries(self, fake_runner):
        descriptor = build_descriptor("t", [], ManifestTool(fake_runner))
        assert descriptor.manifests == []


class TestDescriptorFile:
    """Tests for descriptor_file context manager."""

    def test_written_and_removed(self, tmp_path):
        descriptor = ManifestDescriptor(image="t")
        with descriptor_file(descriptor, directory=tmp_path) as path:
            assert path.parent == tmp_path
            assert path.suffix == ".yaml"
            assert yaml.safe_load(path.read_text()) == {"image": "t", "manifests": []}
        assert not path.exists()

    def test_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with descriptor_file(ManifestDescriptor(image="t"), directory=tmp_path) as path:
                raise RuntimeError("boom")
        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_removed_when_serialization_fails(self, tmp_path):
        with patch.object(
            ManifestDescriptor, "to_yaml", side_effect=RuntimeError("boom")
        ):
            with pytest.raises(RuntimeError):
                with descriptor_file(ManifestDescriptor(image="t"), directory=tmp_path):
                    pass
        assert list(tmp_path.iterdir()) == []


class RecordingRunner:
    """Wraps a runner and snapshots the descriptor file at push time."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.pushed: dict | None = None
        self.pushed_path: Path | None = None

    def run(self, cmd, *, capture_output=False, timeout=None):
        if cmd[1:3] == ["push", "from-spec"]:
            self.pushed_path = Path(cmd[3])
            self.pushed = yaml.safe_load(self.pushed_path.read_text())
        return self.inner.run(cmd, capture_output=capture_output, timeout=timeout)


class TestPublishManifest:
    """Tests for publish_manifest function."""

    def test_pushes_full_descriptor(self, settings, fake_runner):
        runner = RecordingRunner(fake_runner)
        descriptor = publish_manifest(settings, ManifestTool(runner))

        assert len(push_calls(fake_runner)) == 1
        assert runner.pushed == yaml.safe_load(descriptor.to_yaml())
        assert runner.pushed["image"] == "reg.example.com/driver:v1.2.3"
        assert [m["image"] for m in runner.pushed["manifests"]] == [
            "reg.example.com/driver:v1.2.3-linux-amd64",
            "reg.example.com/driver:v1.2.3-windows-amd64-1809",
        ]
        assert runner.pushed["manifests"][1]["platform"]["osversion"] == (
            "10.0.17763.1217"
        )
        assert not runner.pushed_path.exists()

    def test_push_failure_removes_file(self, settings, make_runner):
        """The descriptor file is deleted even when the push fails."""
        inner = make_runner(fail_on=lambda cmd: cmd[1] == "push")
        runner = RecordingRunner(inner)

        with pytest.raises(ExternalToolError):
            publish_manifest(settings, ManifestTool(runner))

        assert runner.pushed_path is not None
        assert not runner.pushed_path.exists()

    def test_malformed_table_pushes_nothing(self, settings, fake_runner):
        settings.baseimage_file.write_text("linux/amd64=a\nwindows/amd64/1809/x=b\n")
        with pytest.raises(FormatError):
            publish_manifest(settings, ManifestTool(fake_runner))
        assert fake_runner.calls == []


class TestRunManifest:
    """Tests for run_manifest function."""

    def test_uses_ensured_binary(self, settings, fake_runner, tmp_path):
        binary = tmp_path / "bin" / "manifest-tool"
        with patch(
            "multiarch_imagegen.manifests.service.ensure_manifest_tool",
            return_value=binary,
        ):
            run_manifest(settings, fake_runner)

        assert fake_runner.calls[-1][:3] == [str(binary), "push", "from-spec"]

    def test_missing_tool_fails_before_any_call(self, settings, fake_runner):
        with patch(
            "multiarch_imagegen.manifests.service.ensure_manifest_tool",
            side_effect=PreflightError("manifest-tool missing"),
        ):
            with pytest.raises(PreflightError):
                run_manifest(settings, fake_runner)
        assert fake_runner.calls == []
