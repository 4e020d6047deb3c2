"""Protocol definitions for the supervisor's collaborators.

These interfaces keep the attach-or-spawn logic platform-agnostic:
- PortInspector: who owns a TCP port
- HealthProbe: bounded ``health`` RPC
- ServiceJobs: persistent service job surface
- EnvironmentProbe: runtime and gateway command discovery
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from clawgate.gateway import (
        CommandResolution,
        EnvironmentStatus,
        PortOwner,
        ServiceJobDescriptor,
    )


@runtime_checkable
class PortInspector(Protocol):
    """Protocol for port ownership lookups."""

    async def describe(self, port: int) -> PortOwner | None:
        """Return the process listening on ``port``, or None."""
        ...


@runtime_checkable
class HealthProbe(Protocol):
    """Protocol for the gateway health RPC."""

    async def probe(self, timeout: float) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Run one health RPC.

        Args:
            timeout: Request timeout in seconds.

        Raises:
            HealthProbeError: On any failure.
        """
        ...


@runtime_checkable
class ServiceJobs(Protocol):
    """Protocol for the persistent service job manager."""

    async def is_enabled(self) -> bool: ...

    async def enable(self, port: int, bind: str | None = None) -> None:
        """Install the job.

        Raises:
            ServiceJobError: If the install fails.
        """
        ...

    async def disable(self) -> None:
        """Uninstall the job.

        Raises:
            ServiceJobError: If the uninstall fails.
        """
        ...

    async def restart(self) -> None: ...

    def current_descriptor(self) -> ServiceJobDescriptor | None: ...

    def needs_bind_mode_update(self) -> bool: ...

    def needs_path_update(self, app_path: str | Path) -> bool: ...

    def is_write_disabled(self) -> bool: ...

    def gateway_log_path(self) -> Path: ...


@runtime_checkable
class EnvironmentProbe(Protocol):
    """Protocol for environment discovery. Both methods may block."""

    def check(self) -> EnvironmentStatus: ...

    def resolve_gateway_command(self) -> CommandResolution: ...
