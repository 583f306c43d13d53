"""Thin CLI wrapper for multiarch_imagegen.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from multiarch_imagegen import __version__
from multiarch_imagegen.config import Settings, get_settings, print_settings_json
from multiarch_imagegen.errors import ImagegenError, PreflightError
from multiarch_imagegen.tools.runner import SubprocessRunner
from multiarch_imagegen.types import Task

app = typer.Typer(
    name="multiarch-imagegen",
    help="Multi-arch Image Generator - build, push and publish multi-platform images",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"multiarch-imagegen version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Route log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _raise_on_sigterm(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


@contextmanager
def sigterm_as_exit() -> Iterator[None]:
    """Turn SIGTERM into SystemExit so cleanup handlers run."""
    previous = signal.signal(signal.SIGTERM, _raise_on_sigterm)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def print_json(text: str) -> None:
    """Print JSON verbatim: no wrapping, markup or highlighting."""
    console.print(text, soft_wrap=True, markup=False, highlight=False)


def _fail(error: ImagegenError) -> typer.Exit:
    console.print(f"[red]{error.code}: {escape(str(error))}[/red]")
    return typer.Exit(code=1)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Multi-arch Image Generator - build, push and publish multi-platform images."""
    try:
        settings = get_settings()
    except ValidationError as e:
        raise _fail(
            PreflightError(f"Invalid configuration: {e}", code="invalid_settings")
        ) from None
    configure_logging(settings.log_level)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        print_json(print_settings_json(settings))
        return

    try:
        image_tag = settings.resolved_image_tag()
    except ImagegenError:
        image_tag = "(not configured)"

    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Image:[/bold]")
    console.print(f"  Image tag:           {image_tag}")
    console.print(f"  Image version:       {settings.resolved_image_version()}")
    console.print(f"  Git tag:             {settings.git_tag}")
    console.print(f"  Base ref:            {settings.base_ref}")
    console.print()
    console.print("[bold]Build inputs:[/bold]")
    console.print(f"  Base image table:    {settings.baseimage_file}")
    console.print(f"  Core image table:    {settings.baseimage_core_file}")
    console.print(f"  Dockerfile:          {settings.dockerfile}")
    console.print(f"  Windows Dockerfile:  {settings.windows_dockerfile}")
    console.print(f"  Build context:       {settings.build_context}")
    console.print(f"  Builder name:        {settings.builder_name}")
    console.print()
    console.print("[bold]Tools:[/bold]")
    console.print(f"  Min docker version:  {settings.min_docker_version}")
    console.print(f"  manifest-tool:       v{settings.manifest_tool_version}")
    console.print(f"  Install directory:   {settings.manifest_tool_install_dir}")
    console.print(f"  Offline mode:        {settings.offline}")
    console.print(f"  Log level:           {settings.log_level}")
    console.print()
    console.print("[bold]Timeouts (seconds):[/bold]")
    console.print(f"  Build timeout:       {settings.build_timeout}")
    console.print(f"  Download timeout:    {settings.download_timeout}")


@app.command()
def platforms(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List platforms from the base image table."""
    from multiarch_imagegen.platforms.table import base_image, read_platforms

    settings = get_settings()
    try:
        entries = read_platforms(settings.baseimage_file)
    except FileNotFoundError:
        console.print(f"[red]Base image table not found: {settings.baseimage_file}[/red]")
        raise typer.Exit(code=1) from None
    except ImagegenError as e:
        raise _fail(e) from None

    rows = [
        {
            "platform": entry.key,
            "os": entry.os,
            "arch": entry.arch,
            "os_version": entry.os_version,
            "suffix": entry.suffix,
            "base_image": base_image(entry, settings.baseimage_file),
            "base_image_core": base_image(entry, settings.baseimage_core_file),
        }
        for entry in entries
    ]

    if json_output:
        print_json(json.dumps(rows, indent=2))
        return

    if not rows:
        console.print("[yellow]No platforms found[/yellow]")
        return

    console.print(f"[bold]Found {len(rows)} platform(s):[/bold]")
    console.print()
    for row in rows:
        console.print(f"  [green]{row['platform']}[/green]")
        console.print(f"    Suffix: {row['suffix']}")
        console.print(f"    Base image: {row['base_image']}")
        if row["base_image_core"]:
            console.print(f"    Core image: {row['base_image_core']}")
        console.print()


def _require_table(settings: Settings) -> None:
    if not settings.baseimage_file.is_file():
        console.print(f"[red]Base image table not found: {settings.baseimage_file}[/red]")
        raise typer.Exit(code=1)


@app.command(Task.BUILD_AND_PUSH.value)
def build_and_push_cmd() -> None:
    """Build and push an image for every platform in the base image table."""
    from multiarch_imagegen.builds.service import build_and_push
    from multiarch_imagegen.tools.buildx import Buildx

    settings = get_settings()
    _require_table(settings)

    try:
        with sigterm_as_exit():
            result = build_and_push(settings, Buildx(SubprocessRunner()))
    except ImagegenError as e:
        raise _fail(e) from None

    console.print(
        f"[green]✓ Built and pushed {len(result.targets)} image(s) "
        f"for {result.image_tag}[/green]"
    )
    for ref in result.image_refs:
        console.print(f"  {ref}")


@app.command(Task.MANIFEST.value)
def manifest_cmd() -> None:
    """Create and push the manifest list for all platforms."""
    from multiarch_imagegen.manifests.service import run_manifest

    settings = get_settings()
    _require_table(settings)

    try:
        with sigterm_as_exit():
            descriptor = run_manifest(settings, SubprocessRunner())
    except ImagegenError as e:
        raise _fail(e) from None

    console.print(
        f"[green]✓ Pushed manifest list {descriptor.image} "
        f"({len(descriptor.manifests)} platform(s))[/green]"
    )


__all__ = ["app"]
