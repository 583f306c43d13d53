"""Command execution for external tools.

This module handles:
- The CommandRunner interface used by the docker and manifest-tool wrappers
- Executing commands with subprocess, streaming or capturing output
- Translating non-zero exits, timeouts and spawn failures into ExternalToolError

Tests substitute any object with a matching ``run`` method.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from multiarch_imagegen.errors import ExternalToolError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of an external command.

    Attributes:
        command: The command that was executed.
        exit_code: Process exit code.
        stdout: Captured standard output (empty when streamed).
        stderr: Captured standard error (empty when streamed).
    """

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class CommandRunner(Protocol):
    """Capability to run an external command."""

    def run(
        self,
        cmd: Sequence[str],
        *,
        capture_output: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a command and return its result.

        Raises:
            ExternalToolError: If the command cannot run or exits non-zero.
        """
        ...


class SubprocessRunner:
    """CommandRunner backed by subprocess.run.

    Commands run in the current directory with the inherited environment.
    """

    def run(
        self,
        cmd: Sequence[str],
        *,
        capture_output: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command.

        Output is streamed to the parent's stdout/stderr unless
        ``capture_output`` is set, so CI logs show builder progress.

        Args:
            cmd: Command as a list of strings.
            capture_output: Capture stdout/stderr as text.
            timeout: Timeout in seconds (None = no timeout).

        Returns:
            CommandResult of a successful run.

        Raises:
            ExternalToolError: If the command fails to start, times out,
                or exits non-zero.
        """
        args = list(cmd)
        cmd_str = shlex.join(args)
        logger.info("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                args,
                capture_output=capture_output,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(
                f"{args[0]} timed out after {timeout} seconds",
                exit_code=-1,
                command=cmd_str,
                code="timeout",
            ) from e
        except OSError as e:
            raise ExternalToolError(
                f"Failed to execute {args[0]}: {e}",
                command=cmd_str,
                code="execution_error",
            ) from e

        stdout = result.stdout or ""
        stderr = result.stderr or ""

        if result.returncode != 0:
            message = f"{args[0]} failed with exit code {result.returncode}"
            if stderr.strip():
                message = f"{message}: {stderr.strip()}"
            logger.error("%s (command: %s)", message, cmd_str)
            raise ExternalToolError(
                message,
                exit_code=result.returncode,
                command=cmd_str,
            )

        return CommandResult(
            command=args,
            exit_code=result.returncode,
            stdout=stdout,
            stderr=stderr,
        )


__all__ = [
    "CommandResult",
    "CommandRunner",
    "SubprocessRunner",
]
