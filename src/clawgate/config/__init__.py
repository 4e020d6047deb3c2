"""clawgate configuration.

This module provides the public API for clawgate configuration management:
loading TOML files and environment overrides into typed, frozen models.

Example:
    >>> from clawgate.config import Config
    >>> config = Config.load()
    >>> config.gateway.port
    18789
"""

from clawgate.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._load import safe_load_config
from ._loader import (
    ENV_PREFIX,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    BindMode,
    Config,
    ConnectionMode,
    EnvironmentConfig,
    GatewayConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ServiceConfig,
    SupervisorConfig,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "BindMode",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConnectionMode",
    "EnvironmentConfig",
    "GatewayConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ServiceConfig",
    "SupervisorConfig",
    "deep_merge",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
