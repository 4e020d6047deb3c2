# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- JSON output formatting
- Console utilities for error handling
- Construction of the supervisor and its collaborators from configuration
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

if TYPE_CHECKING:
    from rich.console import Console
    from structlog.typing import FilteringBoundLogger

    from clawgate.config import Config
    from clawgate.gateway import (
        EnvironmentChecker,
        HealthProbeClient,
        PortGuardian,
        ServiceJobManager,
    )
    from clawgate.supervisor import GatewaySupervisor

FormattableData = dict[str, Any]


class ExitCode(IntEnum):
    """Standard exit codes for clawgate CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5
    GATEWAY_UNAVAILABLE = 6


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON."""
    import orjson  # noqa: PLC0415

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    from rich.console import Console  # noqa: PLC0415

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(code)


def build_collaborators(
    config: Config,
    logger: FilteringBoundLogger | None = None,
) -> tuple[PortGuardian, HealthProbeClient, ServiceJobManager, EnvironmentChecker]:
    """Build the gateway collaborators described by ``config``.

    Returns:
        Port guardian, health probe client, service job manager and
        environment checker, in that order.
    """
    from clawgate.gateway import (  # noqa: PLC0415
        EnvironmentChecker,
        HealthProbeClient,
        PortGuardian,
        ServiceJobManager,
    )

    checker = EnvironmentChecker(config.environment, logger=logger)
    jobs = ServiceJobManager(
        config.service,
        config.environment,
        checker.resolve_gateway_command,
        preferred_bind=config.gateway.bind.value,
        logger=logger,
    )
    return (
        PortGuardian(logger=logger),
        HealthProbeClient(config.gateway, logger=logger),
        jobs,
        checker,
    )


def build_supervisor(
    config: Config,
    logger: FilteringBoundLogger | None = None,
) -> tuple[GatewaySupervisor, HealthProbeClient]:
    """Build a supervisor wired to the real collaborators.

    Returns:
        The supervisor and its health probe client, which the caller
        must close.
    """
    from clawgate.supervisor import GatewaySupervisor  # noqa: PLC0415

    ports, health, jobs, checker = build_collaborators(config, logger)
    supervisor = GatewaySupervisor(
        ports=ports,
        health=health,
        jobs=jobs,
        environment=checker,
        gateway=config.gateway,
        settings=config.supervisor,
        app_path=config.environment.app_path or None,
        logger=logger,
    )
    return supervisor, health
