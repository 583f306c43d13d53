"""Shared fixtures for multiarch_imagegen tests."""

import shlex
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from multiarch_imagegen.config import Settings
from multiarch_imagegen.errors import ExternalToolError
from multiarch_imagegen.tools.runner import CommandResult

BASEIMAGE = """linux/amd64=gcr.io/distroless/static:nonroot
windows/amd64/1809=mcr.microsoft.com/windows/nanoserver:1809
"""

BASEIMAGE_CORE = """windows/amd64/1809=mcr.microsoft.com/windows/servercore:1809
"""

INSPECT_OUTPUT = """Name:   reg.example.com/driver:v1.2.3-windows-amd64-1809 (Type: application/vnd.docker.distribution.manifest.v2+json)
Digest: sha256:0123456789abcdef
 * Contains 3 manifest references:
1           - OS Vers: 10.0.17763.1217
2           - OS Vers: 10.0.17763.9999
"""


class FakeRunner:
    """CommandRunner that records calls and returns canned output.

    Args:
        responses: Map of command prefix tuples to stdout.
        fail_on: Predicate selecting commands that raise ExternalToolError.
    """

    def __init__(
        self,
        responses: dict[tuple[str, ...], str] | None = None,
        fail_on: Callable[[list[str]], bool] | None = None,
    ) -> None:
        self.calls: list[list[str]] = []
        self.responses = responses or {}
        self.fail_on = fail_on

    def run(
        self,
        cmd: Sequence[str],
        *,
        capture_output: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        args = list(cmd)
        self.calls.append(args)
        if self.fail_on and self.fail_on(args):
            raise ExternalToolError(
                f"{args[0]} failed with exit code 1",
                exit_code=1,
                command=shlex.join(args),
            )
        for prefix, stdout in self.responses.items():
            if tuple(args[: len(prefix)]) == prefix:
                return CommandResult(command=args, exit_code=0, stdout=stdout)
        return CommandResult(command=args, exit_code=0)

    def calls_matching(self, *prefix: str) -> list[list[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture
def docker_dir(tmp_path: Path) -> Path:
    """Create a docker/ directory with base image tables."""
    d = tmp_path / "docker"
    d.mkdir()
    (d / "BASEIMAGE").write_text(BASEIMAGE)
    (d / "BASEIMAGE_CORE").write_text(BASEIMAGE_CORE)
    (d / "Dockerfile").write_text("ARG BASEIMAGE\nFROM $BASEIMAGE\n")
    (d / "windows.Dockerfile").write_text("ARG BASEIMAGE\nFROM $BASEIMAGE\n")
    return d


@pytest.fixture
def settings(tmp_path: Path, docker_dir: Path) -> Settings:
    """Settings pointing at the temporary docker/ directory."""
    return Settings(
        image_tag="reg.example.com/driver:v1.2.3",
        image_version="v1.2.3",
        baseimage_file=docker_dir / "BASEIMAGE",
        baseimage_core_file=docker_dir / "BASEIMAGE_CORE",
        dockerfile=docker_dir / "Dockerfile",
        windows_dockerfile=docker_dir / "windows.Dockerfile",
        build_context=tmp_path,
        manifest_tool_install_dir=tmp_path / "bin",
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    """FakeRunner reporting a buildx-capable docker and a Windows OS version."""
    return FakeRunner(
        responses={
            ("docker", "version"): "20.10.7\n",
            ("manifest-tool", "inspect"): INSPECT_OUTPUT,
        }
    )


@pytest.fixture
def make_runner() -> type[FakeRunner]:
    """Factory for FakeRunner instances with custom responses or faults."""
    return FakeRunner
