"""Supervisor package for the local gateway process.

This package decides whether to attach to an already-running gateway or to
spawn one through the operating system's persistent service mechanism, and
exposes the resulting status to the CLI and the control API.

Key Components:
    - GatewayState / GatewayStatus: observable lifecycle state
    - StatusEvent: status transition records
    - AttachFailureKind: why an existing listener could not be attached
    - DiagnosticLog: bounded in-memory log buffer
    - GatewaySupervisor: the attach-or-spawn coordinator
    - StatusConsole: console rendering of status events
    - create_control_router: FastAPI endpoint factory

Example:
    >>> async with GatewaySupervisor(
    ...     ports=PortGuardian(),
    ...     health=HealthProbeClient(config.gateway),
    ...     jobs=jobs,
    ...     environment=checker,
    ...     gateway=config.gateway,
    ... ) as supervisor:
    ...     supervisor.set_active(True)
    ...     await supervisor.wait_for_gateway_ready()
"""

from ._api import create_control_router
from ._describe import (
    classify_attach_failure,
    describe_attach_failure,
    describe_instance,
    format_age,
)
from ._log_buffer import DiagnosticLog
from ._models import AttachFailureKind, GatewayState, GatewayStatus, StatusEvent
from ._output import StatusConsole
from ._policy import should_ensure_job, should_start_gateway
from ._protocol import EnvironmentProbe, HealthProbe, PortInspector, ServiceJobs
from ._supervisor import READINESS_TIMEOUT_REASON, WRITE_DISABLED_REASON, GatewaySupervisor

__all__ = [
    "READINESS_TIMEOUT_REASON",
    "WRITE_DISABLED_REASON",
    "AttachFailureKind",
    "DiagnosticLog",
    "EnvironmentProbe",
    "GatewayState",
    "GatewayStatus",
    "GatewaySupervisor",
    "HealthProbe",
    "PortInspector",
    "ServiceJobs",
    "StatusConsole",
    "StatusEvent",
    "classify_attach_failure",
    "create_control_router",
    "describe_attach_failure",
    "describe_instance",
    "format_age",
    "should_ensure_job",
    "should_start_gateway",
]
