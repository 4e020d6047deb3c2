"""Console rendering of supervisor status."""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from clawgate.gateway import EnvironmentKind

from ._models import GatewayState

if TYPE_CHECKING:
    from clawgate.gateway import EnvironmentStatus

    from ._models import StatusEvent


STATE_STYLES: dict[GatewayState, Style] = {
    GatewayState.STOPPED: Style(color="yellow"),
    GatewayState.STARTING: Style(color="cyan"),
    GatewayState.RUNNING: Style(color="green", bold=True),
    GatewayState.ATTACHED_EXISTING: Style(color="green"),
    GatewayState.FAILED: Style(color="red", bold=True),
}

ENVIRONMENT_STYLES: dict[EnvironmentKind, Style] = {
    EnvironmentKind.OK: Style(color="green"),
    EnvironmentKind.CHECKING: Style(dim=True),
}


@final
class StatusConsole:
    """Writes status transitions and environment checks to the console.

    Formats events as ``[timestamp] [gateway] LABEL`` with colour coding per
    state.
    """

    __slots__ = ("_console",)

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the renderer.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._console: Console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def write_event(self, event: StatusEvent) -> None:
        """Write one status transition."""
        style = STATE_STYLES.get(event.status.state, Style())

        text = Text()
        _ = text.append(f"[{event.timestamp}]", style=Style(dim=True))
        _ = text.append(" ")
        _ = text.append("[gateway]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(event.status.label, style=style)

        self._console.print(text)

    def write_environment(self, status: EnvironmentStatus) -> None:
        """Write the environment check result."""
        style = ENVIRONMENT_STYLES.get(status.kind, Style(color="dark_orange"))

        text = Text()
        _ = text.append("[environment]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(status.kind.value.upper(), style=style)
        _ = text.append(f" - {status.message}", style=style)

        self._console.print(text)
