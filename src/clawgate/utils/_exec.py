"""Execution utilities for external commands.

This module provides blocking and async helpers for running external
commands (the gateway CLI, runtime version probes, ``lsof``) with timeout
handling, output capture, and error classification.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import anyio

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

DEFAULT_TIMEOUT: float = 15.0

# Maximum output size in bytes
MAX_OUTPUT_BYTES: int = 102400  # 100KB


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from command execution.

    Attributes:
        success: Whether the command was launched and ran to completion.
        exit_code: Process exit code, or None if execution failed.
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        error: Error message if execution failed (timeout, not found, etc.).
        timed_out: Whether the command timed out.
        command_not_found: Whether the executable was not found.
    """

    success: bool
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    timed_out: bool = False
    command_not_found: bool = False

    @property
    def ok(self) -> bool:
        """Return True when the command ran and exited with status 0."""
        return self.success and self.exit_code == 0


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Configuration for command execution.

    Attributes:
        argv: Executable and arguments.
        cwd: Working directory for execution.
        env: Environment overrides merged over ``os.environ``.
        timeout: Execution timeout in seconds.
    """

    argv: tuple[str, ...]
    cwd: str | Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return truncated + "\n... [output truncated]"


def _merged_env(overrides: Mapping[str, str]) -> dict[str, str]:
    return {**os.environ, **overrides}


def run_command(spec: CommandSpec) -> CommandResult:
    """Execute a command and wait for it, blocking the calling thread.

    Args:
        spec: Command specification.

    Returns:
        CommandResult with execution outcome.
    """
    if not spec.argv:
        return CommandResult(success=False, error="No command specified")

    try:
        result = subprocess.run(  # noqa: S603
            list(spec.argv),
            env=_merged_env(spec.env),
            cwd=str(spec.cwd) if spec.cwd else None,
            capture_output=True,
            timeout=spec.timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            success=False,
            error=f"Command timed out after {spec.timeout}s",
            timed_out=True,
        )
    except FileNotFoundError as e:
        return CommandResult(success=False, error=str(e), command_not_found=True)
    except OSError as e:
        return CommandResult(success=False, error=str(e))

    return CommandResult(
        success=True,
        exit_code=result.returncode,
        stdout=truncate_output(result.stdout.decode("utf-8", errors="replace")),
        stderr=truncate_output(result.stderr.decode("utf-8", errors="replace")),
    )


async def run_command_async(spec: CommandSpec) -> CommandResult:
    """Execute a command without blocking the event loop.

    Uses ``anyio.run_process`` under ``anyio.fail_after`` so that a hung
    service manager cannot stall the caller past ``spec.timeout``.

    Args:
        spec: Command specification.

    Returns:
        CommandResult with execution outcome.
    """
    if not spec.argv:
        return CommandResult(success=False, error="No command specified")

    argv: Sequence[str] = list(spec.argv)
    try:
        with anyio.fail_after(spec.timeout):
            result = await anyio.run_process(
                argv,
                cwd=spec.cwd,
                env=_merged_env(spec.env),
                check=False,
            )
    except TimeoutError:
        return CommandResult(
            success=False,
            error=f"Command timed out after {spec.timeout}s",
            timed_out=True,
        )
    except FileNotFoundError as e:
        return CommandResult(success=False, error=str(e), command_not_found=True)
    except OSError as e:
        return CommandResult(success=False, error=str(e))

    return CommandResult(
        success=True,
        exit_code=result.returncode,
        stdout=truncate_output(result.stdout.decode("utf-8", errors="replace")),
        stderr=truncate_output(result.stderr.decode("utf-8", errors="replace")),
    )
