"""FastAPI control endpoints for the gateway supervisor.

This module provides REST API endpoints for observing the supervisor's
status and toggling the desired gateway state.
"""

# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from clawgate.exceptions import SupervisorNotRunningError

if TYPE_CHECKING:
    from typing import Never

    from ._supervisor import GatewaySupervisor


class GatewayStatusResponse(BaseModel):
    """Response model for gateway status."""

    state: str
    label: str
    details: str | None
    reason: str | None
    desired_active: bool
    last_failure_reason: str | None
    existing_gateway_details: str | None


class EnvironmentStatusResponse(BaseModel):
    """Response model for the environment check."""

    kind: str
    message: str
    runtime_version: str | None
    gateway_version: str | None
    required_version: str | None
    refresh_scheduled: bool = False


class LogResponse(BaseModel):
    """Response model for the diagnostic log."""

    log: str


def _build_status(supervisor: GatewaySupervisor) -> GatewayStatusResponse:
    current = supervisor.status
    return GatewayStatusResponse(
        state=current.state.value,
        label=current.label,
        details=current.details,
        reason=current.reason,
        desired_active=supervisor.desired_active,
        last_failure_reason=supervisor.last_failure_reason,
        existing_gateway_details=supervisor.existing_gateway_details,
    )


def _raise_unavailable(cause: Exception) -> Never:
    """Raise HTTP 503 when the supervisor is not running.

    Raises:
        HTTPException: Always raises with 503 status.
    """
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(cause),
    ) from cause


def create_control_router(supervisor: GatewaySupervisor) -> APIRouter:
    """Create a FastAPI router for gateway control endpoints.

    Args:
        supervisor: The GatewaySupervisor instance to control.

    Returns:
        A FastAPI APIRouter with control endpoints.
    """
    router = APIRouter(prefix="/gateway", tags=["gateway"])

    @router.get("/status", response_model=GatewayStatusResponse)
    async def get_gateway_status() -> GatewayStatusResponse:
        """Get the gateway status."""
        return _build_status(supervisor)

    @router.post("/activate", response_model=GatewayStatusResponse)
    async def activate_gateway() -> GatewayStatusResponse:
        """Request the gateway to run (attach or spawn)."""
        try:
            supervisor.set_active(True)  # noqa: FBT003
        except SupervisorNotRunningError as e:
            _raise_unavailable(e)
        return _build_status(supervisor)

    @router.post("/deactivate", response_model=GatewayStatusResponse)
    async def deactivate_gateway() -> GatewayStatusResponse:
        """Request the gateway to stop."""
        try:
            supervisor.set_active(False)  # noqa: FBT003
        except SupervisorNotRunningError as e:
            _raise_unavailable(e)
        return _build_status(supervisor)

    @router.post("/environment/refresh", response_model=EnvironmentStatusResponse)
    async def refresh_environment() -> EnvironmentStatusResponse:
        """Force an environment check; the result arrives asynchronously."""
        try:
            scheduled = supervisor.refresh_environment_status(force=True)
        except SupervisorNotRunningError as e:
            _raise_unavailable(e)
        env = supervisor.environment_status
        return EnvironmentStatusResponse(
            kind=env.kind.value,
            message=env.message,
            runtime_version=env.runtime_version,
            gateway_version=env.gateway_version,
            required_version=env.required_version,
            refresh_scheduled=scheduled,
        )

    @router.get("/log", response_model=LogResponse)
    async def get_log() -> LogResponse:
        """Get the diagnostic log buffer."""
        return LogResponse(log=supervisor.log)

    return router
