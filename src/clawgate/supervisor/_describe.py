"""Human-readable descriptions of gateway instances and attach failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clawgate.exceptions import GatewayAuthError, HealthProbeError

from ._models import AttachFailureKind

if TYPE_CHECKING:
    from clawgate.gateway import HealthSnapshot, PortOwner

AUTH_REJECTED_CODE = 1008

_SECOND_MS = 1000
_MINUTE_MS = 60 * _SECOND_MS
_HOUR_MS = 60 * _MINUTE_MS
_DAY_MS = 24 * _HOUR_MS


def format_age(ms: float | None) -> str | None:
    """Format a millisecond age as a compact string such as ``5m`` or ``3d``.

    Examples:
        >>> format_age(30_000)
        '30s'
        >>> format_age(7_200_000)
        '2h'
        >>> format_age(None) is None
        True
    """
    if ms is None or ms < 0:
        return None
    if ms < _SECOND_MS:
        return "just now"
    if ms < _MINUTE_MS:
        return f"{int(ms // _SECOND_MS)}s"
    if ms < _HOUR_MS:
        return f"{int(ms // _MINUTE_MS)}m"
    if ms < _DAY_MS:
        return f"{int(ms // _HOUR_MS)}h"
    return f"{int(ms // _DAY_MS)}d"


def describe_owner(owner: PortOwner | None) -> str:
    """Describe a port owner, or ``pid unknown`` when there is none."""
    return owner.describe() if owner is not None else "pid unknown"


def describe_instance(port: int, owner: PortOwner | None, snapshot: HealthSnapshot | None) -> str:
    """Summarize an attached instance for status details.

    With a linked (or link-reporting) channel in the snapshot the summary
    reads ``port 18789, Whatsapp linked, auth 5m, pid 1 node @ /path``;
    otherwise ``port 18789, health probe succeeded, pid 1 node @ /path``.
    """
    instance_text = describe_owner(owner)
    if snapshot is None:
        return f"port {port}, health probe succeeded, {instance_text}"

    channel_id = snapshot.primary_channel()
    if channel_id is None:
        return f"port {port}, health probe succeeded, {instance_text}"

    channel = snapshot.channels[channel_id]
    link_text = "linked" if channel.linked else "not linked"
    auth_age = format_age(channel.auth_age_ms) or "unknown age"
    label = snapshot.label_for(channel_id)
    return f"port {port}, {label} {link_text}, auth {auth_age}, {instance_text}"


def _is_auth_failure(error: BaseException) -> bool:
    if isinstance(error, GatewayAuthError):
        return True
    if isinstance(error, HealthProbeError) and error.code == AUTH_REJECTED_CODE:
        return True
    lower = str(error).lower()
    return "unauthorized" in lower or "auth" in lower


def classify_attach_failure(error: BaseException) -> AttachFailureKind:
    """Classify a probe error, most specific category first."""
    if _is_auth_failure(error):
        return AttachFailureKind.AUTH_REJECTED
    lower = str(error).lower()
    if "protocol mismatch" in lower:
        return AttachFailureKind.PROTOCOL_MISMATCH
    if "unexpected response" in lower or "invalid response" in lower:
        return AttachFailureKind.FOREIGN_OCCUPANT
    return AttachFailureKind.PROBE_FAILED


def describe_attach_failure(
    error: BaseException,
    port: int,
    owner: PortOwner | None,
) -> str:
    """Build the actionable failure reason for a listener that cannot be attached."""
    match classify_attach_failure(error):
        case AttachFailureKind.AUTH_REJECTED:
            return (
                f"Gateway on port {port} rejected auth. Set gateway.token to match the "
                "running gateway (or clear it on the gateway) and retry."
            )
        case AttachFailureKind.PROTOCOL_MISMATCH:
            return (
                f"Gateway on port {port} is incompatible (protocol mismatch). "
                "Update the app/gateway."
            )
        case AttachFailureKind.FOREIGN_OCCUPANT:
            return f"Port {port} returned non-gateway data; another process is using it."
        case AttachFailureKind.PROBE_FAILED:
            message = str(error) or "unknown error"
            if owner is not None:
                return (
                    f"Gateway listener found on port {port} ({owner.describe()}) "
                    f"but health check failed: {message}"
                )
            return f"Gateway listener found on port {port} but health check failed: {message}"
