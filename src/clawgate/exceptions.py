"""clawgate exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class ClawgateError(Exception):
    """Base exception for clawgate errors."""


class ConfigError(ClawgateError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(ClawgateError):
    """Base exception for gateway interactions."""


class HealthProbeError(GatewayError):
    """Raised when a health probe against the gateway fails.

    Attributes:
        code: RPC or HTTP error code reported by the peer, if any.
        domain: Origin of the failure ("transport", "http", "rpc", "decode").
    """

    def __init__(
        self,
        message: str,
        *,
        code: int | str | None = None,
        domain: str = "transport",
    ) -> None:
        """Initialize with error message and probe context.

        Args:
            message: Human-readable error message.
            code: Error code reported by the peer.
            domain: Origin of the failure.
        """
        super().__init__(message)
        self.code: int | str | None = code
        self.domain: str = domain


class GatewayAuthError(HealthProbeError):
    """Raised when the gateway rejects the configured credentials."""


class ServiceJobError(GatewayError):
    """Raised when a persistent service job command fails.

    Attributes:
        command: The service-manager subcommand that failed.
        exit_code: Process exit code, if the command ran.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        exit_code: int | None = None,
    ) -> None:
        """Initialize with error message and command context.

        Args:
            message: Human-readable error message.
            command: The service-manager subcommand that failed.
            exit_code: Process exit code, if the command ran.
        """
        super().__init__(message)
        self.command: str | None = command
        self.exit_code: int | None = exit_code


class SupervisorNotRunningError(ClawgateError):
    """Raised when supervisor work is scheduled outside its task group."""
