"""Data models shared by the gateway collaborators.

This module defines the values the supervisor's collaborators produce:
- PortOwner: the process listening on a TCP port
- HealthSnapshot / ChannelHealth: decoded health probe payload
- EnvironmentKind / EnvironmentStatus: runtime and gateway availability
- GatewayCommand / CommandResolution: how to invoke the gateway CLI
- ServiceJobDescriptor: the persisted service job definition
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


@dataclass(frozen=True, slots=True)
class PortOwner:
    """Process that owns a listening TCP port.

    Any field may be unknown when the operating system refuses to reveal it.

    Attributes:
        pid: Process ID of the listener.
        command: Short command name (``psutil.Process.name``).
        executable_path: Absolute path of the executable.
    """

    pid: int | None = None
    command: str | None = None
    executable_path: str | None = None

    def describe(self) -> str:
        """Return ``"pid <pid> <command> @ <path>"`` with placeholders."""
        pid = str(self.pid) if self.pid is not None else "unknown"
        command = self.command or "unknown"
        path = self.executable_path or "path unknown"
        return f"pid {pid} {command} @ {path}"


class ChannelHealth(BaseModel):
    """Per-channel portion of the health payload."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True
    )

    linked: bool | None = None
    auth_age_ms: float | None = Field(default=None, alias="authAgeMs")


class HealthSnapshot(BaseModel):
    """Decoded ``health`` RPC payload.

    Only the fields used to describe an attached instance are modelled;
    everything else in the payload is ignored.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True
    )

    channel_order: list[str] | None = Field(default=None, alias="channelOrder")
    channels: dict[str, ChannelHealth] = Field(default_factory=dict)
    channel_labels: dict[str, str] | None = Field(default=None, alias="channelLabels")

    def ordered_channel_ids(self) -> list[str]:
        """Return channel ids in display order."""
        if self.channel_order is not None:
            return list(self.channel_order)
        return list(self.channels)

    def primary_channel(self) -> str | None:
        """Return the first linked channel, else the first reporting link state."""
        order = self.ordered_channel_ids()
        for channel_id in order:
            channel = self.channels.get(channel_id)
            if channel is not None and channel.linked is True:
                return channel_id
        for channel_id in order:
            channel = self.channels.get(channel_id)
            if channel is not None and channel.linked is not None:
                return channel_id
        return None

    def label_for(self, channel_id: str) -> str:
        """Return the display label for ``channel_id``."""
        if self.channel_labels and channel_id in self.channel_labels:
            return self.channel_labels[channel_id]
        return channel_id.title()


def decode_health_snapshot(payload: Any) -> HealthSnapshot | None:  # pyright: ignore[reportExplicitAny]
    """Decode a health payload, returning None when it does not fit the model."""
    if not isinstance(payload, dict):
        return None
    try:
        return HealthSnapshot.model_validate(payload)
    except ValidationError:
        return None


class EnvironmentKind(StrEnum):
    """Outcome of an environment check."""

    CHECKING = "checking"
    OK = "ok"
    MISSING_RUNTIME = "missing_runtime"
    MISSING_SERVICE = "missing_service"
    INCOMPATIBLE = "incompatible"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class EnvironmentStatus:
    """Whether a compatible runtime and gateway command are available.

    Attributes:
        kind: Outcome of the check.
        message: Human-readable summary.
        runtime_version: Installed runtime version, if found.
        gateway_version: Installed gateway version, if found.
        required_version: Version the failing component must reach.
    """

    kind: EnvironmentKind
    message: str
    runtime_version: str | None = None
    gateway_version: str | None = None
    required_version: str | None = None

    @classmethod
    def checking(cls) -> EnvironmentStatus:
        return cls(kind=EnvironmentKind.CHECKING, message="Checking…")

    @property
    def ok(self) -> bool:
        return self.kind == EnvironmentKind.OK


@dataclass(frozen=True, slots=True)
class GatewayCommand:
    """Resolved invocation of the gateway CLI.

    Attributes:
        argv: Leading arguments, e.g. ``(node, /path/openclaw.mjs)`` or
            ``(/usr/local/bin/openclaw,)``.
        runtime_path: The runtime executable, when invoked through one.
        bundled: Whether the entrypoint ships inside the application.
    """

    argv: tuple[str, ...]
    runtime_path: str | None = None
    bundled: bool = False

    def build(self, *args: str) -> tuple[str, ...]:
        """Return the full argv for a gateway subcommand."""
        return (*self.argv, *args)


@dataclass(frozen=True, slots=True)
class CommandResolution:
    """Result of resolving the gateway command."""

    command: GatewayCommand | None
    status: EnvironmentStatus


@dataclass(frozen=True, slots=True)
class ServiceJobDescriptor:
    """Persisted definition of the gateway's service job.

    Attributes:
        program_arguments: Runtime path, entrypoint path, subcommand, flags.
        environment: Environment variables declared by the job.
        stdout_path: Declared stdout log path.
        stderr_path: Declared stderr log path.
        port: Value of ``--port`` in the argument vector.
        bind: Lower-cased value of ``--bind`` in the argument vector.
        token: Auth token from the job environment.
        password: Password from the job environment.
    """

    TOKEN_ENV: ClassVar[str] = "OPENCLAW_GATEWAY_TOKEN"
    PASSWORD_ENV: ClassVar[str] = "OPENCLAW_GATEWAY_PASSWORD"

    program_arguments: tuple[str, ...] = ()
    environment: dict[str, str] = field(default_factory=dict)
    stdout_path: str | None = None
    stderr_path: str | None = None
    port: int | None = None
    bind: str | None = None
    token: str | None = None
    password: str | None = None

    @property
    def entrypoint_path(self) -> str | None:
        """Return the gateway entrypoint (the argument after the runtime)."""
        if len(self.program_arguments) < 2:  # noqa: PLR2004
            return None
        return self.program_arguments[1]

    def is_using_bundled_runtime(self, app_path: str | Path) -> bool:
        """Check whether the entrypoint lives inside ``app_path``."""
        entrypoint = self.entrypoint_path
        if entrypoint is None:
            return False
        return _is_within(Path(entrypoint), Path(app_path))


def normalize_path(path: str | Path) -> Path:
    """Expand ``~`` and collapse ``.``/``..`` without touching the filesystem."""
    expanded = Path(path).expanduser()
    parts: list[str] = []
    for part in expanded.parts:
        if part == ".":
            continue
        if part == "..":
            if parts and parts[-1] == expanded.anchor:
                continue
            if parts and parts[-1] != "..":
                parts.pop()
                continue
        parts.append(part)
    return Path(*parts) if parts else expanded


def _is_within(path: Path, root: Path) -> bool:
    return normalize_path(path).is_relative_to(normalize_path(root))
