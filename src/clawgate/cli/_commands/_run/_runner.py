"""Async runner for the run command.

This module provides the async entry point that runs the gateway
supervisor, renders its status events and optionally serves the control
API, until SIGINT or SIGTERM.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING

import anyio
import uvicorn

from clawgate.cli._shared import build_supervisor
from clawgate.supervisor import StatusConsole, should_ensure_job, should_start_gateway

from ._app import create_control_app

if TYPE_CHECKING:
    from anyio.streams.memory import MemoryObjectReceiveStream
    from structlog.typing import FilteringBoundLogger

    from clawgate.config import Config
    from clawgate.supervisor import GatewaySupervisor, StatusEvent


async def _render_events(
    events: MemoryObjectReceiveStream[StatusEvent],
    output: StatusConsole,
) -> None:
    async with events:
        async for event in events:
            output.write_event(event)


async def _watch_environment(
    supervisor: GatewaySupervisor,
    output: StatusConsole,
    interval: float,
) -> None:
    last = supervisor.environment_status
    while True:
        await anyio.sleep(max(interval, 1.0))
        _ = supervisor.refresh_environment_status()
        current = supervisor.environment_status
        if current != last:
            output.write_environment(current)
            last = current


async def _wait_for_signal() -> None:
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for _ in signals:
            return


async def run_supervisor(
    config: Config,
    *,
    control_port: int | None = None,
    stop_on_exit: bool = False,
    output: StatusConsole | None = None,
    logger: FilteringBoundLogger | None = None,
) -> None:
    """Supervise the gateway until interrupted.

    Args:
        config: Loaded configuration.
        control_port: Serve the control API on this loopback port.
        stop_on_exit: Deactivate (and disable the service job) on shutdown.
        output: Status renderer.
        logger: Optional parent logger.
    """
    output = output or StatusConsole()
    supervisor, health = build_supervisor(config, logger)
    mode = config.gateway.mode
    paused = config.supervisor.paused

    try:
        async with supervisor, anyio.create_task_group() as tg:
            tg.start_soon(_render_events, supervisor.subscribe(), output)

            control_server: uvicorn.Server | None = None
            if control_port is not None:
                control_server = uvicorn.Server(
                    uvicorn.Config(
                        app=create_control_app(supervisor),
                        host="127.0.0.1",
                        port=control_port,
                        log_level="warning",
                        access_log=False,
                    )
                )
                tg.start_soon(control_server.serve)

            if should_ensure_job(mode, paused, logger):
                await supervisor.ensure_job_enabled_if_needed()
            if should_start_gateway(mode, paused, logger):
                supervisor.set_active(True)  # noqa: FBT003
            else:
                output.console.print("[yellow]Gateway autostart skipped (remote mode or paused)[/yellow]")

            tg.start_soon(
                _watch_environment,
                supervisor,
                output,
                config.supervisor.environment_refresh_interval,
            )

            await _wait_for_signal()

            if stop_on_exit:
                supervisor.set_active(False)  # noqa: FBT003
            if control_server is not None:
                control_server.should_exit = True
            tg.cancel_scope.cancel()
    finally:
        await health.aclose()
