# pyright: reportUnusedCallResult=false
"""Gateway log commands."""

from __future__ import annotations

from typing import Annotated

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from clawgate.cli._context import CLIContext
from clawgate.cli._shared import build_supervisor

app = App(name="log", help="Show or clear the gateway log.", help_on_error=True)


@app.command(name="show")
def show(
    *,
    lines: Annotated[int, Parameter(help="Number of trailing lines to show (0 for all)")] = 50,
) -> None:
    """Print the tail of the gateway's log file."""
    ctx = CLIContext.get_current()
    supervisor, health = build_supervisor(ctx.config, ctx.logger)

    async def _load() -> str:
        try:
            await supervisor.refresh_log()
        finally:
            await health.aclose()
        return supervisor.log

    text = anyio.run(_load)
    if lines > 0:
        text = "\n".join(text.splitlines()[-lines:])

    console = Console(no_color=ctx.no_color, highlight=False)
    if not text:
        console.print("[dim]Gateway log is empty[/dim]")
        return
    console.print(text, markup=False)


@app.command(name="clear")
def clear() -> None:
    """Remove the gateway's log file."""
    ctx = CLIContext.get_current()
    supervisor, _ = build_supervisor(ctx.config, ctx.logger)
    supervisor.clear_log()
    Console(no_color=ctx.no_color, quiet=ctx.quiet).print("[green]Gateway log cleared[/green]")
