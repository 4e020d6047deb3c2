# pyright: reportExplicitAny=false, reportAny=false
"""Configuration models.

Each section of the TOML configuration maps to a frozen Pydantic model.
``Config`` is the container that merges sources and exposes typed sections.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, ValidationError

from clawgate.config._defaults import DEFAULT_CONFIG
from clawgate.config._loader import deep_merge, parse_env_vars, read_toml_file
from clawgate.exceptions import ConfigValidationError
from clawgate.utils import (
    expand_path,
    get_default_job_descriptor_path,
    get_user_config_path,
)


class LogLevel(StrEnum):
    """Log level threshold values."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ConnectionMode(StrEnum):
    """Where the gateway is expected to run.

    In remote mode the gateway lives on another host and the supervisor
    never spawns a local instance.
    """

    LOCAL = "local"
    REMOTE = "remote"


class BindMode(StrEnum):
    """Network exposure declared for the gateway listener."""

    LOOPBACK = "loopback"
    LAN = "lan"
    TAILNET = "tailnet"
    AUTO = "auto"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty uses the platform log directory).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""


class GatewayConfig(BaseModel):
    """Gateway connection section.

    Attributes:
        mode: Local or remote gateway.
        host: Host the health probe connects to.
        port: TCP port the gateway listens on.
        bind: Preferred bind mode passed to the service installer.
        rpc_path: HTTP path of the RPC endpoint.
        token: Shared auth token sent with RPC requests.
        password: Alternative password credential.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, extra="ignore", coerce_numbers_to_str=True
    )

    mode: ConnectionMode = ConnectionMode.LOCAL
    host: str = "127.0.0.1"
    port: int = Field(default=18789, ge=1, le=65535)
    bind: BindMode = BindMode.LAN
    rpc_path: str = "/rpc"
    token: str = ""
    password: str = ""

    @property
    def base_url(self) -> str:
        """Return the HTTP base URL of the gateway."""
        return f"http://{self.host}:{self.port}"


class ServiceConfig(BaseModel):
    """Persistent service job section.

    Attributes:
        label: launchd job label.
        unit_name: systemd user unit name.
        descriptor_path: Override for the persisted job definition path.
        state_dir: Directory holding the write-disable marker and logs.
        runtime: Runtime name passed to ``install --runtime``.
        command_timeout: Timeout for service-manager commands, in seconds.
        restart_timeout: Timeout for ``restart``, in seconds.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    label: str = "ai.openclaw.gateway"
    unit_name: str = "openclaw-gateway"
    descriptor_path: str = ""
    state_dir: str = "~/.openclaw"
    runtime: str = "node"
    command_timeout: PositiveFloat = 15.0
    restart_timeout: PositiveFloat = 20.0

    def resolved_descriptor_path(self) -> Path:
        """Return the job descriptor path, falling back to the platform default."""
        if self.descriptor_path:
            return expand_path(self.descriptor_path)
        return get_default_job_descriptor_path(self.label, self.unit_name)


class EnvironmentConfig(BaseModel):
    """Runtime discovery section.

    Attributes:
        app_path: Installation root of the application (bundle path).
        executable: Gateway executable name searched on PATH.
        required_runtime_version: Minimum runtime version.
        required_gateway_version: Minimum gateway version (empty disables).
        extra_paths: Additional directories searched before the defaults.
        production_roots: Locations that mark an installation as production.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    app_path: str = ""
    executable: str = "openclaw"
    required_runtime_version: str = "22.0.0"
    required_gateway_version: str = ""
    extra_paths: tuple[str, ...] = ()
    production_roots: tuple[str, ...] = ("/Applications", "~/Applications", "/opt")


class SupervisorConfig(BaseModel):
    """Supervisor timing and buffer section. Durations are in seconds."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    paused: bool = False
    attach_probe_timeout: PositiveFloat = 2.0
    attach_max_attempts: int = Field(default=3, ge=1)
    attach_retry_delay: float = Field(default=0.25, ge=0)
    readiness_timeout: PositiveFloat = 6.0
    readiness_interval: float = Field(default=0.4, ge=0)
    readiness_probe_timeout: PositiveFloat = 1.5
    wait_ready_interval: float = Field(default=0.3, ge=0)
    environment_refresh_interval: float = Field(default=30.0, ge=0)
    log_limit: int = Field(default=20000, ge=1)


class Config(BaseModel):
    """Configuration container with typed access.

    Use the factory methods rather than the constructor so that defaults
    are merged and validation errors are reported uniformly.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.

        Returns:
            Validated configuration.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            msg = f"Invalid configuration value for '{key}': {first['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=first.get("input"),
                expected=first["type"],
            ) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Create configuration from a single TOML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If any value fails validation.
        """
        return cls.from_dict(read_toml_file(path))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load configuration from every source in precedence order.

        Sources, lowest precedence first: defaults, the user config file,
        ``config_path``, ``CLAWGATE_*`` environment variables, CLI overrides.

        Args:
            config_path: Explicit config file layered over the user file.
            include_env: Whether to read environment variables.
            cli_overrides: Values supplied on the command line.

        Returns:
            Validated configuration.
        """
        data: dict[str, Any] = {}

        user_path = get_user_config_path()
        if user_path.is_file():
            data = deep_merge(data, read_toml_file(user_path))

        if config_path is not None:
            data = deep_merge(data, read_toml_file(config_path))

        if include_env:
            data = deep_merge(data, parse_env_vars())

        if cli_overrides:
            data = deep_merge(data, cli_overrides)

        return cls.from_dict(data)
