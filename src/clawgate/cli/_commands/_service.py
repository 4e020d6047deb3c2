# pyright: reportUnusedCallResult=false
"""Service job commands: enable, disable, restart and attach-only mode."""

from __future__ import annotations

from typing import Annotated, Literal

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from clawgate.cli._context import CLIContext
from clawgate.cli._shared import ExitCode, build_collaborators, exit_with_error
from clawgate.exceptions import ServiceJobError
from clawgate.utils import get_write_disable_marker

app = App(name="service", help="Manage the gateway's persistent service job.", help_on_error=True)

BindChoice = Literal["loopback", "lan", "tailnet", "auto"]

ATTACH_ONLY_NOTICE = "[yellow]Attach-only mode is on; service job left unchanged[/yellow]"


def _console() -> Console:
    ctx = CLIContext.get_current()
    return Console(no_color=ctx.no_color, quiet=ctx.quiet)


@app.command(name="enable")
def enable(
    *,
    port: Annotated[int | None, Parameter(help="Gateway port (defaults to gateway.port)")] = None,
    bind: Annotated[BindChoice | None, Parameter(help="Bind mode (defaults to gateway.bind)")] = None,
) -> None:
    """Install or reinstall the service job."""
    ctx = CLIContext.get_current()
    _, health, jobs, _ = build_collaborators(ctx.config, ctx.logger)
    target_port = port if port is not None else ctx.config.gateway.port

    async def _enable() -> None:
        try:
            await jobs.enable(target_port, bind)
        finally:
            await health.aclose()

    try:
        anyio.run(_enable)
    except ServiceJobError as e:
        exit_with_error(str(e), ExitCode.INTERNAL_ERROR)

    if jobs.is_write_disabled():
        _console().print(ATTACH_ONLY_NOTICE)
    else:
        _console().print(f"[green]Service job enabled on port {target_port}[/green]")


@app.command(name="disable")
def disable() -> None:
    """Uninstall the service job."""
    ctx = CLIContext.get_current()
    _, health, jobs, _ = build_collaborators(ctx.config, ctx.logger)

    async def _disable() -> None:
        try:
            await jobs.disable()
        finally:
            await health.aclose()

    try:
        anyio.run(_disable)
    except ServiceJobError as e:
        exit_with_error(str(e), ExitCode.INTERNAL_ERROR)

    if jobs.is_write_disabled():
        _console().print(ATTACH_ONLY_NOTICE)
    else:
        _console().print("[green]Service job disabled[/green]")


@app.command(name="restart")
def restart() -> None:
    """Restart the service job."""
    from clawgate.cli._shared import build_supervisor

    ctx = CLIContext.get_current()
    if get_write_disable_marker(ctx.config.service.state_dir).exists():
        _console().print(ATTACH_ONLY_NOTICE)
        return
    supervisor, health = build_supervisor(ctx.config, ctx.logger)

    async def _restart() -> str | None:
        try:
            return await supervisor.kickstart()
        finally:
            await health.aclose()

    error = anyio.run(_restart)
    if error is not None:
        exit_with_error(error, ExitCode.INTERNAL_ERROR)
    _console().print("[green]Service job restarted[/green]")


@app.command(name="attach-only")
def attach_only(
    state: Annotated[Literal["on", "off", "show"], Parameter(help="Turn attach-only mode on or off")] = "show",
) -> None:
    """Show or toggle attach-only mode.

    In attach-only mode the supervisor never installs, removes or restarts
    the service job; it only attaches to a gateway started by other means.
    """
    ctx = CLIContext.get_current()
    _, _, jobs, _ = build_collaborators(ctx.config, ctx.logger)

    if state != "show":
        try:
            jobs.set_write_disabled(state == "on")
        except OSError as e:
            exit_with_error(f"Failed to update {jobs.marker_path}: {e}", ExitCode.IO_ERROR)

    enabled = jobs.is_write_disabled()
    _console().print(f"Attach-only mode: {'on' if enabled else 'off'} ({jobs.marker_path})")
