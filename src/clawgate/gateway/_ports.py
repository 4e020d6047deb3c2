"""Port ownership inspection.

Answers "which process is listening on TCP port N?" using psutil's
connection table, falling back to ``lsof`` where the table is restricted
(macOS without elevated privileges).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio
import psutil

from clawgate.utils import CommandSpec, component_logger, run_command

from ._models import PortOwner

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LSOF_TIMEOUT: float = 3.0


def parse_lsof_output(output: str) -> PortOwner | None:
    """Parse ``lsof -F pc`` field output into the first listening process.

    Args:
        output: Raw stdout of ``lsof -nP -iTCP:<port> -sTCP:LISTEN -Fpc``.

    Returns:
        The first process record, or None when the output has none.
    """
    pid: int | None = None
    command: str | None = None
    for line in output.splitlines():
        if not line:
            continue
        tag, value = line[0], line[1:]
        if tag == "p":
            if pid is not None:
                break
            try:
                pid = int(value)
            except ValueError:
                pid = None
        elif tag == "c" and command is None:
            command = value or None
    if pid is None and command is None:
        return None
    return PortOwner(pid=pid, command=command)


def _process_details(pid: int) -> tuple[str | None, str | None]:
    try:
        process = psutil.Process(pid)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None, None

    command: str | None
    try:
        command = process.name() or None
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        command = None

    executable: str | None
    try:
        executable = process.exe() or None
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        executable = None

    return command, executable


@final
class PortGuardian:
    """Inspects which process owns a listening TCP port."""

    __slots__ = ("_logger",)

    def __init__(self, logger: FilteringBoundLogger | None = None) -> None:
        self._logger: FilteringBoundLogger = component_logger("gateway.ports", logger)

    async def describe(self, port: int) -> PortOwner | None:
        """Return the listener on ``port`` without blocking the event loop."""
        return await anyio.to_thread.run_sync(self.describe_sync, port)

    def describe_sync(self, port: int) -> PortOwner | None:
        """Return the listener on ``port``, or None when nothing listens.

        Fields the operating system refuses to reveal are left unknown.
        """
        try:
            owner = self._from_connections(port)
        except psutil.AccessDenied:
            self._logger.debug("connection table restricted, using lsof", port=port)
            owner = self._from_lsof(port)

        if owner is None:
            return None

        if owner.pid is not None and (owner.command is None or owner.executable_path is None):
            command, executable = _process_details(owner.pid)
            owner = PortOwner(
                pid=owner.pid,
                command=owner.command or command,
                executable_path=owner.executable_path or executable,
            )

        self._logger.debug("port owner", port=port, pid=owner.pid, command=owner.command)
        return owner

    def _from_connections(self, port: int) -> PortOwner | None:
        for conn in psutil.net_connections(kind="tcp"):
            if conn.status != psutil.CONN_LISTEN or not conn.laddr:
                continue
            if conn.laddr.port != port:
                continue
            return PortOwner(pid=conn.pid)
        return None

    def _from_lsof(self, port: int) -> PortOwner | None:
        result = run_command(
            CommandSpec(
                argv=("lsof", "-nP", f"-iTCP:{port}", "-sTCP:LISTEN", "-Fpc"),
                timeout=LSOF_TIMEOUT,
            )
        )
        if result.exit_code == 1 and not result.stderr.strip():
            return None
        if not result.success:
            self._logger.warning("lsof failed", port=port, error=result.error)
            return None
        return parse_lsof_output(result.stdout)
