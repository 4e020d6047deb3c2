"""Data models for the gateway supervisor.

This module defines the supervisor's observable state:
- GatewayState: lifecycle states of the supervised gateway
- GatewayStatus: immutable tagged status value
- StatusEvent: published on every status transition
- AttachFailureKind: classification of failed attach attempts
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class GatewayState(StrEnum):
    """Gateway lifecycle states.

    - STOPPED: nothing is supervised
    - STARTING: the attach-or-spawn protocol is running
    - RUNNING: a gateway spawned through the service job is healthy
    - ATTACHED_EXISTING: an already-running gateway passed its health probe
    - FAILED: the last activation failed; ``reason`` explains why
    """

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    ATTACHED_EXISTING = "attached_existing"
    FAILED = "failed"


_ACTIVE_STATES = frozenset({
    GatewayState.STARTING,
    GatewayState.RUNNING,
    GatewayState.ATTACHED_EXISTING,
})


@dataclass(frozen=True, slots=True)
class GatewayStatus:
    """Immutable gateway status.

    Attributes:
        state: Lifecycle state.
        details: Instance summary for running/attached states.
        reason: Failure reason for the failed state.
    """

    state: GatewayState
    details: str | None = None
    reason: str | None = None

    @classmethod
    def stopped(cls) -> GatewayStatus:
        return cls(GatewayState.STOPPED)

    @classmethod
    def starting(cls) -> GatewayStatus:
        return cls(GatewayState.STARTING)

    @classmethod
    def running(cls, details: str | None = None) -> GatewayStatus:
        return cls(GatewayState.RUNNING, details=details)

    @classmethod
    def attached_existing(cls, details: str | None = None) -> GatewayStatus:
        return cls(GatewayState.ATTACHED_EXISTING, details=details)

    @classmethod
    def failed(cls, reason: str) -> GatewayStatus:
        return cls(GatewayState.FAILED, reason=reason)

    @property
    def is_active(self) -> bool:
        """Return True for starting, running and attached states."""
        return self.state in _ACTIVE_STATES

    @property
    def label(self) -> str:
        """Return the human-readable status line."""
        match self.state:
            case GatewayState.STOPPED:
                return "Stopped"
            case GatewayState.STARTING:
                return "Starting…"
            case GatewayState.RUNNING:
                return f"Running ({self.details})" if self.details else "Running"
            case GatewayState.ATTACHED_EXISTING:
                if self.details:
                    return f"Using existing gateway ({self.details})"
                return "Using existing gateway"
            case GatewayState.FAILED:
                return f"Failed: {self.reason or 'unknown error'}"

    def to_dict(self) -> dict[str, str | None]:
        """Return a JSON-serializable representation."""
        return {
            "state": self.state.value,
            "label": self.label,
            "details": self.details,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class StatusEvent:
    """Status transition record.

    Attributes:
        status: The new status.
        timestamp: ISO 8601 formatted timestamp.
        previous: The status before the transition.
    """

    status: GatewayStatus
    timestamp: str
    previous: GatewayStatus | None = None


class AttachFailureKind(StrEnum):
    """Why an existing listener could not be attached, most specific first."""

    AUTH_REJECTED = "auth_rejected"
    PROTOCOL_MISMATCH = "protocol_mismatch"
    FOREIGN_OCCUPANT = "foreign_occupant"
    PROBE_FAILED = "probe_failed"
