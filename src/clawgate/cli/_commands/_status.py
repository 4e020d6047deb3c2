# pyright: reportUnusedCallResult=false
"""Status and probe commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

import anyio
from cyclopts import App, Parameter
from rich.console import Console
from rich.table import Table

from clawgate.cli._context import CLIContext
from clawgate.cli._shared import ExitCode, build_collaborators, exit_with_error, format_json
from clawgate.exceptions import HealthProbeError
from clawgate.gateway import decode_health_snapshot
from clawgate.supervisor import describe_attach_failure, describe_instance

if TYPE_CHECKING:
    from clawgate.config import Config

status_app = App(name="status", help="Show environment, port and service job state.")
probe_app = App(name="probe", help="Run one health probe against the gateway.")


async def collect_status(config: Config) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Gather a point-in-time view of the gateway setup."""
    ctx = CLIContext.get_current()
    ports, health, jobs, checker = build_collaborators(config, ctx.logger)
    try:
        environment = await anyio.to_thread.run_sync(checker.check)
        owner = await ports.describe(config.gateway.port)
        loaded = await jobs.is_enabled()
        descriptor = await anyio.to_thread.run_sync(jobs.current_descriptor)
        needs_bind = await anyio.to_thread.run_sync(jobs.needs_bind_mode_update)
        app_path = config.environment.app_path
        needs_path = (
            await anyio.to_thread.run_sync(jobs.needs_path_update, app_path) if app_path else False
        )
    finally:
        await health.aclose()

    return {
        "environment": {
            "kind": environment.kind.value,
            "message": environment.message,
            "runtime_version": environment.runtime_version,
            "gateway_version": environment.gateway_version,
        },
        "port": {
            "port": config.gateway.port,
            "owner": owner.describe() if owner is not None else None,
        },
        "service": {
            "loaded": loaded,
            "write_disabled": jobs.is_write_disabled(),
            "descriptor_path": str(jobs.descriptor_path),
            "descriptor_present": descriptor is not None,
            "entrypoint": descriptor.entrypoint_path if descriptor is not None else None,
            "bind": descriptor.bind if descriptor is not None else None,
            "needs_bind_mode_update": needs_bind,
            "needs_path_update": needs_path,
        },
    }


def _render_status(data: dict[str, Any], console: Console) -> None:  # pyright: ignore[reportExplicitAny]
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="bold")
    table.add_column()

    environment = data["environment"]
    table.add_row("Environment", f"{environment['kind']}: {environment['message']}")

    port = data["port"]
    table.add_row("Port", f"{port['port']} ({port['owner'] or 'free'})")

    service = data["service"]
    table.add_row("Service job", "loaded" if service["loaded"] else "not loaded")
    table.add_row("Descriptor", service["descriptor_path"] if service["descriptor_present"] else "absent")
    if service["entrypoint"]:
        table.add_row("Entrypoint", service["entrypoint"])
    table.add_row("Attach-only", "yes" if service["write_disabled"] else "no")

    drift = [
        name
        for name, flag in (
            ("bind mode", service["needs_bind_mode_update"]),
            ("entrypoint path", service["needs_path_update"]),
        )
        if flag
    ]
    table.add_row("Drift", ", ".join(drift) if drift else "none")

    console.print(table)


@status_app.default
def status(
    *,
    json: Annotated[bool, Parameter(name="--json", help="Output JSON")] = False,
) -> None:
    """Show environment, port owner and service job state."""
    ctx = CLIContext.get_current()
    data = anyio.run(collect_status, ctx.config)
    console = Console(no_color=ctx.no_color)
    if json:
        console.print_json(format_json(data))
    else:
        _render_status(data, console)


async def _probe(config: Config, timeout: float) -> tuple[str | None, str | None]:
    ctx = CLIContext.get_current()
    ports, health, _, _ = build_collaborators(config, ctx.logger)
    port = config.gateway.port
    try:
        owner = await ports.describe(port)
        try:
            payload = await health.probe(timeout)
        except HealthProbeError as e:
            return None, describe_attach_failure(e, port, owner) if owner else str(e)
    finally:
        await health.aclose()
    return describe_instance(port, owner, decode_health_snapshot(payload)), None


@probe_app.default
def probe(
    *,
    timeout: Annotated[float, Parameter(help="Probe timeout in seconds")] = 2.0,
) -> None:
    """Run one health probe and describe the instance that answered."""
    ctx = CLIContext.get_current()
    details, error = anyio.run(_probe, ctx.config, timeout)
    if error is not None:
        exit_with_error(error, ExitCode.GATEWAY_UNAVAILABLE)
    Console(no_color=ctx.no_color).print(f"[green]Gateway healthy:[/green] {details}")
