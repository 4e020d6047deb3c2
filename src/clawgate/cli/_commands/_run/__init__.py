# pyright: reportUnusedCallResult=false
"""clawgate run command - supervises the local gateway."""

from typing import Annotated

import anyio
from cyclopts import App, Parameter

from clawgate.cli._context import CLIContext

app = App(
    name="run",
    help="Supervise the local gateway until interrupted",
    help_on_error=True,
)


@app.default
def run(
    *,
    control_port: Annotated[
        int | None,
        Parameter(help="Serve the control API on this loopback port."),
    ] = None,
    stop_on_exit: Annotated[
        bool,
        Parameter(help="Deactivate the gateway and disable its service job on exit."),
    ] = False,
) -> None:
    """Attach to or spawn the local gateway and report status changes.

    The supervisor first probes for an already-running gateway on the
    configured port and attaches to it. Otherwise it installs the
    persistent service job and waits for the gateway to become healthy.
    Status transitions are printed until SIGINT or SIGTERM.
    """
    from rich.console import Console

    from clawgate.supervisor import StatusConsole

    from ._runner import run_supervisor

    ctx = CLIContext.get_current()
    config = ctx.config
    console = Console(no_color=ctx.no_color, quiet=ctx.quiet)

    console.print(
        f"Supervising gateway on port {config.gateway.port} ({config.gateway.mode.value} mode)"
    )
    if control_port is not None:
        console.print(f"  Control API: http://127.0.0.1:{control_port}/gateway/status")
    console.print()

    anyio.run(
        lambda: run_supervisor(
            config,
            control_port=control_port,
            stop_on_exit=stop_on_exit,
            output=StatusConsole(Console(no_color=ctx.no_color)),
            logger=ctx.logger,
        )
    )


if __name__ == "__main__":
    app()
