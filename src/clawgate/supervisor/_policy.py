"""Autostart decisions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clawgate.config import ConnectionMode
from clawgate.utils import component_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


def should_start_gateway(
    mode: ConnectionMode,
    paused: bool,  # noqa: FBT001
    logger: FilteringBoundLogger | None = None,
) -> bool:
    """Return True when a local, unpaused setup should start the gateway."""
    should_start = mode == ConnectionMode.LOCAL and not paused
    component_logger("gateway.autostart", logger).info(
        "gateway autostart decision",
        mode=mode.value,
        paused=paused,
        should_start=should_start,
    )
    return should_start


def should_ensure_job(
    mode: ConnectionMode,
    paused: bool,  # noqa: FBT001
    logger: FilteringBoundLogger | None = None,
) -> bool:
    """Return True when the persistent service job should be kept installed."""
    should_ensure = should_start_gateway(mode, paused, logger)
    component_logger("gateway.autostart", logger).info(
        "service job ensure decision",
        mode=mode.value,
        paused=paused,
        should_ensure=should_ensure,
    )
    return should_ensure
