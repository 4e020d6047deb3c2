# pyright: reportAny=false
"""Persistent service job management.

Wraps the gateway CLI's ``gateway install|uninstall|status|restart``
surface, which installs a launchd LaunchAgent or systemd user unit, and
reads the persisted job descriptor for drift checks.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, final

import anyio
import orjson

from clawgate.exceptions import ServiceJobError
from clawgate.utils import (
    CommandResult,
    CommandSpec,
    component_logger,
    get_default_gateway_log_path,
    get_write_disable_marker,
    run_command_async,
)

from ._descriptor import read_descriptor
from ._models import ServiceJobDescriptor, normalize_path

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger

    from clawgate.config import EnvironmentConfig, ServiceConfig

    from ._models import CommandResolution

SUMMARY_LIMIT = 200
BUNDLED_RUNTIME_DIR = "Contents/Resources/runtime"
BUNDLED_ENTRYPOINT = f"{BUNDLED_RUNTIME_DIR}/cli/openclaw.mjs"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ServiceCommandOutcome:
    """Interpreted result of one service-manager CLI call.

    Attributes:
        success: ``ok`` from the JSON envelope, else the exit status.
        envelope: Parsed JSON object, if the output contained one.
        message: ``error`` or ``message`` from the envelope.
        result: Raw command result.
    """

    success: bool
    envelope: dict[str, Any] | None  # pyright: ignore[reportExplicitAny]
    message: str | None
    result: CommandResult


def parse_json_envelope(raw: str) -> dict[str, Any] | None:  # pyright: ignore[reportExplicitAny]
    """Extract the JSON object between the first ``{`` and the last ``}``.

    The CLI may print banners or warnings around its JSON output.

    Returns:
        The parsed object, or None when no object can be decoded.
    """
    text = raw.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    try:
        value = orjson.loads(text[start : end + 1])
    except orjson.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def summarize_output(text: str) -> str | None:
    """Return the last non-empty line with whitespace collapsed.

    Lines longer than the summary limit are cut and end with an ellipsis.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return None
    normalized = _WHITESPACE.sub(" ", lines[-1])
    if len(normalized) > SUMMARY_LIMIT:
        return normalized[: SUMMARY_LIMIT - 1] + "…"
    return normalized


def interpret_command_result(result: CommandResult) -> ServiceCommandOutcome:
    """Combine the JSON envelope and exit status into one outcome."""
    envelope = parse_json_envelope(result.stdout) or parse_json_envelope(result.stderr)
    ok: object = envelope.get("ok") if envelope is not None else None
    success = ok if isinstance(ok, bool) else result.ok

    message: str | None = None
    if envelope is not None:
        for key in ("error", "message"):
            value = envelope.get(key)
            if isinstance(value, str) and value:
                message = value
                break

    return ServiceCommandOutcome(
        success=success,
        envelope=envelope,
        message=message,
        result=result,
    )


def failure_detail(outcome: ServiceCommandOutcome) -> str:
    """Build the user-facing message for a failed command."""
    result = outcome.result
    detail = outcome.message or summarize_output(result.stderr) or summarize_output(result.stdout)
    if detail:
        return detail
    if result.exit_code is not None:
        return f"Gateway service command failed (exit {result.exit_code})"
    return f"Gateway service command failed ({result.error or 'failed'})"


def is_production_install(app_path: str | Path, production_roots: tuple[str, ...]) -> bool:
    """Check whether ``app_path`` lives under one of the production roots."""
    normalized = normalize_path(app_path)
    for root in production_roots:
        if normalized.is_relative_to(normalize_path(root)):
            return True
    return "Applications" in normalized.parts


@final
class ServiceJobManager:
    """Manages the gateway's persistent service job.

    Every mutating operation first checks the write-disable marker and
    becomes a logged no-op while it is present.
    """

    __slots__ = (
        "_descriptor_path",
        "_environment",
        "_logger",
        "_preferred_bind",
        "_resolve_command",
        "_service",
    )

    def __init__(
        self,
        service: ServiceConfig,
        environment: EnvironmentConfig,
        resolve_command: Callable[[], CommandResolution],
        *,
        preferred_bind: str = "lan",
        descriptor_path: Path | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the job manager.

        Args:
            service: Service job settings.
            environment: Runtime discovery settings.
            resolve_command: Returns the gateway CLI invocation.
            preferred_bind: Bind mode new installs should use.
            descriptor_path: Override for the job descriptor location.
            logger: Optional parent logger.
        """
        self._service: ServiceConfig = service
        self._environment: EnvironmentConfig = environment
        self._resolve_command: Callable[[], CommandResolution] = resolve_command
        self._preferred_bind: str = preferred_bind
        self._descriptor_path: Path = descriptor_path or service.resolved_descriptor_path()
        self._logger: FilteringBoundLogger = component_logger("gateway.jobs", logger)

    @property
    def descriptor_path(self) -> Path:
        """Return the location of the persisted job descriptor."""
        return self._descriptor_path

    @property
    def preferred_bind(self) -> str:
        """Return the bind mode used for new installs."""
        return self._preferred_bind

    # -------------------------------------------------------------------------
    # Write-disable marker
    # -------------------------------------------------------------------------

    @property
    def marker_path(self) -> Path:
        """Return the write-disable marker location."""
        return get_write_disable_marker(self._service.state_dir)

    def is_write_disabled(self) -> bool:
        """Return True while the write-disable marker exists."""
        return self.marker_path.exists()

    def set_write_disabled(self, disabled: bool) -> None:  # noqa: FBT001
        """Create or remove the write-disable marker.

        Raises:
            OSError: If the marker cannot be created or removed.
        """
        marker = self.marker_path
        if disabled:
            marker.parent.mkdir(parents=True, exist_ok=True)
            marker.touch(exist_ok=True)
            self._logger.info("service job writes disabled", marker=str(marker))
        else:
            marker.unlink(missing_ok=True)
            self._logger.info("service job writes enabled", marker=str(marker))

    # -------------------------------------------------------------------------
    # CLI surface
    # -------------------------------------------------------------------------

    async def _run(
        self,
        args: list[str],
        *,
        timeout: float | None = None,
        quiet: bool = False,
    ) -> ServiceCommandOutcome:
        if "--json" not in args:
            args = [*args, "--json"]

        resolution = await anyio.to_thread.run_sync(self._resolve_command)
        if resolution.command is None:
            raise ServiceJobError(resolution.status.message, command=args[0])

        spec = CommandSpec(
            argv=resolution.command.build("gateway", *args),
            timeout=timeout if timeout is not None else self._service.command_timeout,
        )
        outcome = interpret_command_result(await run_command_async(spec))

        if not outcome.success and not quiet:
            self._logger.error(
                "service command failed",
                command=args[0],
                exit_code=outcome.result.exit_code,
                detail=failure_detail(outcome),
            )
        return outcome

    async def _run_checked(self, args: list[str], *, timeout: float | None = None) -> None:
        outcome = await self._run(args, timeout=timeout)
        if not outcome.success:
            raise ServiceJobError(
                failure_detail(outcome),
                command=args[0],
                exit_code=outcome.result.exit_code,
            )

    async def is_enabled(self) -> bool:
        """Report whether the job is loaded. Errors count as not loaded."""
        try:
            outcome = await self._run(["status", "--json", "--no-probe"], quiet=True)
        except ServiceJobError:
            return False
        if not outcome.success or outcome.envelope is None:
            return False
        service = outcome.envelope.get("service")
        if not isinstance(service, dict):
            return False
        loaded = service.get("loaded")
        return loaded if isinstance(loaded, bool) else False

    async def enable(self, port: int, bind: str | None = None) -> None:
        """Install (or reinstall) the job for ``port``. Safe to repeat.

        Raises:
            ServiceJobError: If the install command fails.
        """
        if self.is_write_disabled():
            self._logger.info("service enable skipped (disable marker set)")
            return
        effective_bind = bind or self._preferred_bind
        self._logger.info("service enable requested", port=port, bind=effective_bind)
        await self._run_checked([
            "install",
            "--force",
            "--port",
            str(port),
            "--bind",
            effective_bind,
            "--runtime",
            self._service.runtime,
        ])

    async def disable(self) -> None:
        """Uninstall the job.

        Raises:
            ServiceJobError: If the uninstall command fails.
        """
        if self.is_write_disabled():
            self._logger.info("service disable skipped (disable marker set)")
            return
        self._logger.info("service disable requested")
        await self._run_checked(["uninstall"])

    async def restart(self) -> None:
        """Restart the job.

        Raises:
            ServiceJobError: If the restart command fails.
        """
        if self.is_write_disabled():
            self._logger.info("service restart skipped (disable marker set)")
            return
        await self._run_checked(["restart"], timeout=self._service.restart_timeout)

    # -------------------------------------------------------------------------
    # Descriptor and drift
    # -------------------------------------------------------------------------

    def current_descriptor(self) -> ServiceJobDescriptor | None:
        """Read the persisted job descriptor, or None when absent."""
        return read_descriptor(self._descriptor_path)

    def gateway_log_path(self) -> Path:
        """Return the gateway log path declared by the job, else the default."""
        descriptor = self.current_descriptor()
        if descriptor is not None:
            declared = descriptor.stdout_path or descriptor.stderr_path
            if declared:
                return Path(declared).expanduser()
        return get_default_gateway_log_path(self._service.state_dir)

    def needs_bind_mode_update(self) -> bool:
        """Check whether the job still uses the old loopback default.

        True only when the persisted bind (loopback when absent) is
        ``loopback`` and the preferred bind is ``lan``.
        """
        descriptor = self.current_descriptor()
        if descriptor is None:
            return False
        current = descriptor.bind or "loopback"
        if current == "loopback" and self._preferred_bind == "lan":
            self._logger.info(
                "bind mode update needed", current=current, expected=self._preferred_bind
            )
            return True
        return False

    def needs_path_update(self, app_path: str | Path) -> bool:
        """Check whether the job points outside the current installation's runtime.

        Only production installs that ship a bundled runtime are checked;
        development and package-manager setups are never rewritten.
        """
        descriptor = self.current_descriptor()
        if descriptor is None:
            return False

        app = normalize_path(app_path)
        if not is_production_install(app, self._environment.production_roots):
            return False
        if not (app / BUNDLED_ENTRYPOINT).is_file():
            return False

        entrypoint = descriptor.entrypoint_path or ""
        expected_root = app / BUNDLED_RUNTIME_DIR
        if entrypoint and normalize_path(entrypoint).is_relative_to(expected_root):
            return False

        self._logger.info(
            "path update needed",
            entrypoint=entrypoint,
            expected_prefix=str(expected_root),
        )
        return True
