"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.

Note: DEFAULT_CONFIG is intentionally a plain dict for type compatibility
with functions like deep_merge. The merge functions create copies, so mutation
of the original is not a concern in practice.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
    "gateway": {
        "mode": "local",
        "host": "127.0.0.1",
        "port": 18789,
        "bind": "lan",
        "rpc_path": "/rpc",
        "token": "",
        "password": "",
    },
    "service": {
        "label": "ai.openclaw.gateway",
        "unit_name": "openclaw-gateway",
        "descriptor_path": "",
        "state_dir": "~/.openclaw",
        "runtime": "node",
        "command_timeout": 15.0,
        "restart_timeout": 20.0,
    },
    "environment": {
        "app_path": "",
        "executable": "openclaw",
        "required_runtime_version": "22.0.0",
        "required_gateway_version": "",
        "extra_paths": [],
        "production_roots": ["/Applications", "~/Applications", "/opt"],
    },
    "supervisor": {
        "paused": False,
        "attach_probe_timeout": 2.0,
        "attach_max_attempts": 3,
        "attach_retry_delay": 0.25,
        "readiness_timeout": 6.0,
        "readiness_interval": 0.4,
        "readiness_probe_timeout": 1.5,
        "wait_ready_interval": 0.3,
        "environment_refresh_interval": 30.0,
        "log_limit": 20000,
    },
}
