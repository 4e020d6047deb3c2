"""Gateway collaborators used by the supervisor.

Key Components:
    - PortGuardian: which process is listening on a port
    - HealthProbeClient: bounded ``health`` RPC
    - ServiceJobManager: persistent service job install/uninstall and drift checks
    - EnvironmentChecker: runtime and gateway command discovery
"""

from ._descriptor import parse_plist, parse_systemd_unit, read_descriptor
from ._environment import EnvironmentChecker
from ._health import HealthProbeClient
from ._jobs import (
    ServiceCommandOutcome,
    ServiceJobManager,
    interpret_command_result,
    parse_json_envelope,
    summarize_output,
)
from ._models import (
    ChannelHealth,
    CommandResolution,
    EnvironmentKind,
    EnvironmentStatus,
    GatewayCommand,
    HealthSnapshot,
    PortOwner,
    ServiceJobDescriptor,
    decode_health_snapshot,
)
from ._ports import PortGuardian, parse_lsof_output
from ._versions import Semver, is_version_at_least, parse_version

__all__ = [
    "ChannelHealth",
    "CommandResolution",
    "EnvironmentChecker",
    "EnvironmentKind",
    "EnvironmentStatus",
    "GatewayCommand",
    "HealthProbeClient",
    "HealthSnapshot",
    "PortGuardian",
    "PortOwner",
    "Semver",
    "ServiceCommandOutcome",
    "ServiceJobDescriptor",
    "ServiceJobManager",
    "decode_health_snapshot",
    "interpret_command_result",
    "is_version_at_least",
    "parse_json_envelope",
    "parse_lsof_output",
    "parse_plist",
    "parse_systemd_unit",
    "parse_version",
    "read_descriptor",
    "summarize_output",
]
