"""Gateway supervisor.

This module provides the GatewaySupervisor class, the single owner of the
gateway's status. It decides whether to attach to an already-running
gateway or to spawn one through the persistent service job, and keeps the
job definition in line with the current installation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Self, final

import anyio
import anyio.abc
import pendulum
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed
from tenacity.stop import stop_base

from clawgate.config import ConnectionMode, GatewayConfig, SupervisorConfig
from clawgate.exceptions import HealthProbeError, ServiceJobError, SupervisorNotRunningError
from clawgate.gateway import EnvironmentKind, EnvironmentStatus, decode_health_snapshot
from clawgate.utils import component_logger

from ._describe import describe_attach_failure, describe_instance, describe_owner
from ._log_buffer import DiagnosticLog
from ._models import GatewayState, GatewayStatus, StatusEvent

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
    from structlog.typing import FilteringBoundLogger
    from tenacity import RetryCallState

    from clawgate.gateway import PortOwner

    from ._protocol import EnvironmentProbe, HealthProbe, PortInspector, ServiceJobs

WRITE_DISABLED_REASON = (
    "Gateway service management disabled; start the gateway manually "
    "or remove the attach-only marker."
)
READINESS_TIMEOUT_REASON = "Gateway did not start in time"
SUBSCRIBER_BUFFER = 64


class _StaleRunError(Exception):
    """Raised inside a protocol run that was superseded or cancelled."""


@final
class _StopWhenStale(stop_base):
    """tenacity stop condition that ends retries once a run is superseded."""

    def __init__(self, is_current: Callable[[], bool]) -> None:
        self._is_current = is_current

    def __call__(self, retry_state: RetryCallState) -> bool:
        return not self._is_current()


def _now_iso() -> str:
    return pendulum.now("UTC").to_iso8601_string()


def _read_log_tail(path: Path, limit: int) -> str:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return ""
    return text[-limit:] if len(text) > limit else text


@final
class GatewaySupervisor:
    """Supervises a single local gateway instance.

    Use as an async context manager; the supervisor owns an anyio task group
    that runs the attach-or-spawn protocol, environment refreshes and the
    best-effort job disable issued by ``stop()``. All public methods must be
    called from the task that owns the context, which makes that task the
    only writer of ``status``.

    Pending work is cancelled cooperatively: ``stop()`` bumps a generation
    counter and sets a deactivation event, and every loop re-checks both at
    its next iteration boundary.
    """

    __slots__ = (
        "_app_path",
        "_deactivated",
        "_desired_active",
        "_environment",
        "_environment_refreshing",
        "_environment_status",
        "_existing_details",
        "_gateway",
        "_generation",
        "_health",
        "_jobs",
        "_last_environment_refresh",
        "_last_failure",
        "_log",
        "_log_refreshing",
        "_logger",
        "_ports",
        "_settings",
        "_status",
        "_subscribers",
        "_task_group",
    )

    def __init__(  # noqa: PLR0913
        self,
        *,
        ports: PortInspector,
        health: HealthProbe,
        jobs: ServiceJobs,
        environment: EnvironmentProbe,
        gateway: GatewayConfig | None = None,
        settings: SupervisorConfig | None = None,
        app_path: str | Path | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            ports: Port ownership inspector.
            health: Health probe client.
            jobs: Persistent service job manager.
            environment: Runtime and gateway command discovery.
            gateway: Gateway connection settings.
            settings: Supervisor timings and buffer size.
            app_path: Installation root used for entrypoint drift checks.
            logger: Optional parent logger.
        """
        self._ports: PortInspector = ports
        self._health: HealthProbe = health
        self._jobs: ServiceJobs = jobs
        self._environment: EnvironmentProbe = environment
        self._gateway: GatewayConfig = gateway or GatewayConfig()
        self._settings: SupervisorConfig = settings or SupervisorConfig()
        self._app_path: Path | None = Path(app_path) if app_path else None
        self._logger: FilteringBoundLogger = component_logger("gateway.process", logger)

        self._status: GatewayStatus = GatewayStatus.stopped()
        self._environment_status: EnvironmentStatus = EnvironmentStatus.checking()
        self._existing_details: str | None = None
        self._last_failure: str | None = None
        self._desired_active: bool = False
        self._log: DiagnosticLog = DiagnosticLog(self._settings.log_limit)

        self._generation: int = 0
        self._deactivated: anyio.Event | None = None
        self._environment_refreshing: bool = False
        self._last_environment_refresh: float | None = None
        self._log_refreshing: bool = False
        self._subscribers: list[MemoryObjectSendStream[StatusEvent]] = []
        self._task_group: anyio.abc.TaskGroup | None = None

    async def __aenter__(self) -> Self:
        task_group = anyio.create_task_group()
        await task_group.__aenter__()
        self._task_group = task_group
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        task_group = self._task_group
        if task_group is None:
            return None
        self._cancel_pending()
        try:
            return await task_group.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self._task_group = None
            for stream in self._subscribers:
                stream.close()
            self._subscribers.clear()

    # -------------------------------------------------------------------------
    # Read-only surface
    # -------------------------------------------------------------------------

    @property
    def status(self) -> GatewayStatus:
        return self._status

    @property
    def environment_status(self) -> EnvironmentStatus:
        return self._environment_status

    @property
    def last_failure_reason(self) -> str | None:
        return self._last_failure

    @property
    def existing_gateway_details(self) -> str | None:
        return self._existing_details

    @property
    def desired_active(self) -> bool:
        return self._desired_active

    @property
    def log(self) -> str:
        """Return the diagnostic log buffer contents."""
        return self._log.text

    @property
    def is_remote(self) -> bool:
        return self._gateway.mode == ConnectionMode.REMOTE

    def subscribe(self) -> MemoryObjectReceiveStream[StatusEvent]:
        """Open a stream that receives every subsequent status transition.

        Events are dropped for a subscriber whose buffer is full.
        """
        send, receive = anyio.create_memory_object_stream[StatusEvent](SUBSCRIBER_BUFFER)
        self._subscribers.append(send)
        return receive

    # -------------------------------------------------------------------------
    # State management
    # -------------------------------------------------------------------------

    def _require_task_group(self) -> anyio.abc.TaskGroup:
        if self._task_group is None:
            msg = "GatewaySupervisor must be used as an async context manager"
            raise SupervisorNotRunningError(msg)
        return self._task_group

    def _set_status(self, status: GatewayStatus) -> None:
        previous = self._status
        self._status = status
        if previous == status:
            return
        self._logger.info("gateway status changed", state=status.state.value, label=status.label)
        event = StatusEvent(status=status, timestamp=_now_iso(), previous=previous)
        for stream in list(self._subscribers):
            try:
                stream.send_nowait(event)
            except anyio.WouldBlock:
                self._logger.debug("status subscriber lagging, event dropped")
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self._subscribers.remove(stream)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._desired_active

    def _transition(self, generation: int, status: GatewayStatus) -> bool:
        """Apply ``status`` unless the run that computed it is stale."""
        if not self._is_current(generation):
            self._logger.debug("stale status ignored", state=status.state.value)
            return False
        self._set_status(status)
        return True

    def _fail(self, generation: int, reason: str, *, failure: str | None = None) -> None:
        if self._transition(generation, GatewayStatus.failed(reason)):
            self._last_failure = failure or reason

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._deactivated is not None:
            self._deactivated.set()

    async def _pause(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, waking early on deactivation."""
        deactivated = self._deactivated
        if deactivated is None:
            await anyio.sleep(delay)
            return
        with anyio.move_on_after(delay):
            await deactivated.wait()

    def clear_last_failure(self) -> None:
        self._last_failure = None

    def set_active(self, active: bool) -> None:  # noqa: FBT001
        """Record the desired state and start or stop accordingly.

        In remote mode a local gateway is never spawned: the desired state
        is forced off and the supervisor is reset to stopped.
        """
        self._logger.info("set_active", active=active, state=self._status.state.value)
        if self.is_remote:
            self._desired_active = False
            self.stop()
            self._log.line("remote mode active; skipping local gateway")
            self._logger.info("gateway process skipped: remote mode active")
            return

        self._desired_active = active
        _ = self.refresh_environment_status()
        if active:
            self.start_if_needed()
        else:
            self.stop()

    def start_if_needed(self) -> None:
        """Start the attach-or-spawn protocol unless already active.

        Raises:
            SupervisorNotRunningError: If called outside the context manager.
        """
        if not self._desired_active:
            self._logger.debug("start skipped: not desired active")
            return
        if self.is_remote:
            self._set_status(GatewayStatus.stopped())
            return
        if self._status.is_active:
            self._logger.debug("start skipped: already active", state=self._status.state.value)
            return

        task_group = self._require_task_group()
        self._generation += 1
        self._deactivated = anyio.Event()
        self._set_status(GatewayStatus.starting())
        task_group.start_soon(self._run_protocol, self._generation)

    def stop(self) -> None:
        """Reset to stopped and issue a best-effort job disable.

        The disable runs detached; its failure is only logged.
        """
        self._desired_active = False
        self._cancel_pending()
        self._existing_details = None
        self._last_failure = None
        self._set_status(GatewayStatus.stopped())
        self._logger.info("gateway stop requested")
        if self.is_remote or self._task_group is None:
            return
        self._task_group.start_soon(self._disable_quietly)

    async def _disable_quietly(self) -> None:
        try:
            await self._jobs.disable()
        except ServiceJobError as e:
            self._logger.warning("service job disable failed", error=str(e))
            self._log.line(f"service job disable failed: {e}")

    # -------------------------------------------------------------------------
    # Attach-or-spawn protocol
    # -------------------------------------------------------------------------

    async def _run_protocol(self, generation: int) -> None:
        try:
            if await self._attach_existing(generation):
                return
            if not self._is_current(generation):
                return
            await self._spawn(generation)
        except _StaleRunError:
            self._logger.debug("gateway start superseded")
        except Exception as e:
            self._logger.exception("gateway start failed unexpectedly")
            self._fail(generation, f"Unexpected error while starting gateway: {e}")
        finally:
            if self._is_current(generation) and self._status.state == GatewayState.STARTING:
                self._fail(generation, "Gateway start was interrupted")

    async def _attach_probe(self, generation: int) -> dict[str, object]:
        if not self._is_current(generation):
            raise _StaleRunError
        return await self._health.probe(self._settings.attach_probe_timeout)

    def _log_attach_retry(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        self._logger.warning(
            "gateway attach attempt failed",
            attempt=retry_state.attempt_number,
            error=str(error),
        )

    async def _attach_existing(self, generation: int) -> bool:
        """Try to use an already-running gateway.

        Returns:
            True when the protocol is finished: attached, or a listener that
            cannot be attached blocks spawning. False when nothing listens.
        """
        port = self._gateway.port
        owner = await self._ports.describe(port)
        if not self._is_current(generation):
            return True

        max_attempts = self._settings.attach_max_attempts if owner is not None else 1
        self._logger.info(
            "checking for existing gateway",
            port=port,
            has_listener=owner is not None,
            instance=describe_owner(owner) if owner is not None else None,
            max_attempts=max_attempts,
        )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts) | _StopWhenStale(lambda: self._is_current(generation)),
            wait=wait_fixed(self._settings.attach_retry_delay),
            retry=retry_if_exception_type(HealthProbeError),
            sleep=self._pause,
            before_sleep=self._log_attach_retry,
            reraise=True,
        )

        try:
            payload = await retrying(self._attach_probe, generation)
        except HealthProbeError as e:
            return self._attach_failed(generation, e, port, owner)

        details = describe_instance(port, owner, decode_health_snapshot(payload))
        if not self._transition(generation, GatewayStatus.attached_existing(details)):
            return True
        self._existing_details = details
        self.clear_last_failure()
        self._log.line(f"using existing instance: {details}")
        self._logger.info("attached to existing gateway", details=details)
        self._require_task_group().start_soon(self.refresh_log)
        return True

    def _attach_failed(
        self,
        generation: int,
        error: HealthProbeError,
        port: int,
        owner: PortOwner | None,
    ) -> bool:
        if not self._is_current(generation):
            return True
        if owner is None:
            self._logger.info("no gateway listener, proceeding to spawn", port=port)
            self._existing_details = None
            return False

        reason = describe_attach_failure(error, port, owner)
        self._existing_details = owner.describe()
        self._fail(generation, reason)
        self._log.line(f"existing listener on port {port} but attach failed: {reason}")
        self._logger.warning("gateway attach failed", port=port, reason=reason)
        return True

    async def _spawn(self, generation: int) -> None:
        """Enable the persistent service job and wait for readiness."""
        port = self._gateway.port
        self._existing_details = None

        resolution = await anyio.to_thread.run_sync(self._environment.resolve_gateway_command)
        if not self._is_current(generation):
            return
        self._environment_status = resolution.status
        if resolution.command is None:
            self._logger.error("gateway command resolution failed", message=resolution.status.message)
            self._fail(generation, resolution.status.message)
            return

        if self._jobs.is_write_disabled():
            self._fail(generation, WRITE_DISABLED_REASON, failure="service management disabled")
            self._log.line("service management disabled; skipping auto-start")
            self._logger.warning("gateway start skipped: write-disable marker set")
            return

        bind = self._gateway.bind.value
        self._log.line(f"enabling service job on port {port}")
        try:
            await self._jobs.enable(port, bind)
        except ServiceJobError as e:
            self._logger.error("service job enable failed", error=str(e))
            self._fail(generation, str(e))
            return

        await self._await_readiness(generation, port)

    async def _await_readiness(self, generation: int, port: int) -> None:
        deadline = anyio.current_time() + self._settings.readiness_timeout
        attempts = 0
        while anyio.current_time() < deadline:
            if not self._is_current(generation):
                self._logger.info("gateway startup cancelled")
                return
            attempts += 1
            try:
                await self._health.probe(self._settings.readiness_probe_timeout)
            except HealthProbeError as e:
                self._logger.debug("readiness probe failed", attempt=attempts, error=str(e))
                await self._pause(self._settings.readiness_interval)
                continue

            owner = await self._ports.describe(port)
            details = f"pid {owner.pid}" if owner is not None and owner.pid is not None else None
            if self._transition(generation, GatewayStatus.running(details)):
                self.clear_last_failure()
                self._logger.info("gateway started", details=details, attempts=attempts)
                self._require_task_group().start_soon(self.refresh_log)
            return

        self._logger.error("gateway startup timed out", attempts=attempts)
        self._fail(generation, READINESS_TIMEOUT_REASON, failure="service start timeout")

    # -------------------------------------------------------------------------
    # Readiness, environment, drift
    # -------------------------------------------------------------------------

    async def wait_for_gateway_ready(self, timeout: float = 6.0) -> bool:
        """Probe until the gateway answers or ``timeout`` elapses.

        Returns False within one polling interval once the desired state
        turns inactive.
        """
        deadline = anyio.current_time() + timeout
        while anyio.current_time() < deadline:
            if not self._desired_active:
                return False
            try:
                await self._health.probe(self._settings.readiness_probe_timeout)
            except HealthProbeError:
                await self._pause(self._settings.wait_ready_interval)
                continue
            self.clear_last_failure()
            return True

        self._log.line("readiness wait timed out")
        self._logger.warning("gateway readiness wait timed out")
        return False

    def refresh_environment_status(self, *, force: bool = False) -> bool:
        """Schedule an environment check.

        Automatic refreshes are skipped while one is in flight or when the
        last one started less than the refresh interval ago.

        Returns:
            True if a check was scheduled.
        """
        task_group = self._require_task_group()
        now = anyio.current_time()
        if not force:
            if self._environment_refreshing:
                return False
            last = self._last_environment_refresh
            if last is not None and now - last < self._settings.environment_refresh_interval:
                return False
        self._last_environment_refresh = now
        self._environment_refreshing = True
        task_group.start_soon(self._refresh_environment)
        return True

    async def _refresh_environment(self) -> None:
        try:
            self._environment_status = await anyio.to_thread.run_sync(self._environment.check)
        except Exception as e:
            self._logger.exception("environment check failed")
            self._environment_status = EnvironmentStatus(
                kind=EnvironmentKind.ERROR,
                message=f"Environment check failed: {e}",
            )
        finally:
            self._environment_refreshing = False

    async def ensure_job_enabled_if_needed(self) -> None:
        """Install the service job, or reinstall it when its definition drifted.

        Failures only reach the diagnostic log; status is left untouched.
        """
        if self.is_remote:
            return
        if self._jobs.is_write_disabled():
            self._log.line("service job auto-enable skipped (attach-only)")
            self._logger.info("service job auto-enable skipped (disable marker set)")
            return

        port = self._gateway.port
        bind = self._gateway.bind.value
        if await self._jobs.is_enabled():
            needs_bind = await anyio.to_thread.run_sync(self._jobs.needs_bind_mode_update)
            needs_path = False
            if not needs_bind and self._app_path is not None:
                needs_path = await anyio.to_thread.run_sync(
                    self._jobs.needs_path_update, self._app_path
                )
            if not (needs_bind or needs_path):
                return

            what = "bind mode" if needs_bind else "entrypoint path"
            self._log.line(f"updating service job {what}")
            try:
                await self._jobs.enable(port, bind)
            except ServiceJobError as e:
                self._log.line(f"service job {what} update failed: {e}")
            else:
                self._log.line(f"service job {what} updated successfully")
            return

        self._log.line(f"auto-enabling service job on port {port}")
        try:
            await self._jobs.enable(port, bind)
        except ServiceJobError as e:
            self._log.line(f"service job auto-enable failed: {e}")

    async def kickstart(self) -> str | None:
        """Restart the service job.

        Returns:
            The failure message, or None on success.
        """
        try:
            await self._jobs.restart()
        except ServiceJobError as e:
            self._log.line(f"service job restart failed: {e}")
            return str(e)
        return None

    # -------------------------------------------------------------------------
    # Log file
    # -------------------------------------------------------------------------

    async def refresh_log(self) -> None:
        """Replace the buffer with the tail of the gateway's log file."""
        if self._log_refreshing:
            return
        self._log_refreshing = True
        try:
            path = await anyio.to_thread.run_sync(self._jobs.gateway_log_path)
            text = await anyio.to_thread.run_sync(_read_log_tail, path, self._log.limit)
        except Exception:
            self._logger.exception("gateway log read failed")
            return
        finally:
            self._log_refreshing = False
        if text:
            self._log.replace(text)

    def clear_log(self) -> None:
        """Clear the buffer and remove the gateway log file."""
        self._log.clear()
        path = self._jobs.gateway_log_path()
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self._logger.warning("gateway log removal failed", path=str(path), error=str(e))
        self._logger.debug("gateway log cleared")
