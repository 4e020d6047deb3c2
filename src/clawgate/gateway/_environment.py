"""Runtime and gateway command discovery.

Locates a compatible JavaScript runtime (the application's bundled copy
first, then well-known install locations and ``PATH``) and the gateway
entrypoint, then compares installed versions with the required minimums.
All checks are synchronous and read-only.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, final

from clawgate.utils import CommandSpec, component_logger, expand_path, run_command

from ._models import (
    CommandResolution,
    EnvironmentKind,
    EnvironmentStatus,
    GatewayCommand,
)
from ._versions import is_version_at_least, parse_version

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from clawgate.config import EnvironmentConfig

RUNTIME_NAME = "node"
VERSION_TIMEOUT: float = 5.0

BUNDLED_RUNTIME = Path("Contents/Resources/runtime/node/node")
BUNDLED_CLI = Path("Contents/Resources/runtime/cli/openclaw.mjs")

DEFAULT_SEARCH_PATHS: tuple[str, ...] = (
    "/opt/homebrew/bin",
    "/usr/local/bin",
    "/usr/bin",
)


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


@final
class EnvironmentChecker:
    """Checks that the gateway can be launched on this machine."""

    __slots__ = ("_config", "_logger", "_path_env")

    def __init__(
        self,
        config: EnvironmentConfig,
        *,
        path_env: str | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the checker.

        Args:
            config: Runtime discovery settings.
            path_env: Value used instead of ``$PATH`` for the final search step.
            logger: Optional parent logger.
        """
        self._config: EnvironmentConfig = config
        self._path_env: str | None = path_env
        self._logger: FilteringBoundLogger = component_logger("gateway.environment", logger)

    @property
    def app_path(self) -> Path | None:
        """Return the configured installation root, if any."""
        if not self._config.app_path:
            return None
        return expand_path(self._config.app_path)

    def search_paths(self) -> list[str]:
        """Return directories searched for executables, in priority order."""
        paths = [str(expand_path(p)) for p in self._config.extra_paths]
        paths.extend(DEFAULT_SEARCH_PATHS)
        env_path = self._path_env if self._path_env is not None else os.environ.get("PATH", "")
        paths.extend(p for p in env_path.split(os.pathsep) if p)

        seen: set[str] = set()
        ordered: list[str] = []
        for path in paths:
            if path not in seen:
                seen.add(path)
                ordered.append(path)
        return ordered

    def _which(self, name: str) -> str | None:
        return shutil.which(name, path=os.pathsep.join(self.search_paths()))

    def bundled_runtime(self) -> Path | None:
        """Return the runtime shipped with the application, if present."""
        app = self.app_path
        if app is None:
            return None
        candidate = app / BUNDLED_RUNTIME
        return candidate if _is_executable(candidate) else None

    def bundled_entrypoint(self) -> Path | None:
        """Return the gateway entrypoint shipped with the application, if present."""
        app = self.app_path
        if app is None:
            return None
        candidate = app / BUNDLED_CLI
        return candidate if candidate.is_file() else None

    def find_runtime(self) -> str | None:
        """Return the runtime executable, preferring the bundled copy."""
        bundled = self.bundled_runtime()
        if bundled is not None:
            return str(bundled)
        return self._which(RUNTIME_NAME)

    def find_gateway_executable(self) -> str | None:
        """Return the standalone gateway executable found on the search paths."""
        return self._which(self._config.executable)

    def _read_version(self, argv: tuple[str, ...]) -> str | None:
        result = run_command(CommandSpec(argv=(*argv, "--version"), timeout=VERSION_TIMEOUT))
        if not result.ok:
            self._logger.warning(
                "version probe failed",
                command=argv[-1],
                exit_code=result.exit_code,
                error=result.error,
            )
            return None
        version = parse_version(result.stdout) or parse_version(result.stderr)
        return str(version) if version is not None else None

    def resolve_gateway_command(self) -> CommandResolution:
        """Resolve how to invoke the gateway CLI.

        Returns:
            The command (None when unusable) and the status explaining it.
        """
        runtime = self.find_runtime()
        if runtime is None:
            return CommandResolution(
                command=None,
                status=EnvironmentStatus(
                    kind=EnvironmentKind.MISSING_RUNTIME,
                    message=(
                        f"Node.js runtime not found; install Node "
                        f"{self._config.required_runtime_version}+"
                    ),
                    required_version=self._config.required_runtime_version,
                ),
            )

        runtime_version = self._read_version((runtime,))
        if runtime_version is None:
            return CommandResolution(
                command=None,
                status=EnvironmentStatus(
                    kind=EnvironmentKind.ERROR,
                    message=f"Could not determine the Node.js version at {runtime}",
                ),
            )

        if not is_version_at_least(runtime_version, self._config.required_runtime_version):
            return CommandResolution(
                command=None,
                status=EnvironmentStatus(
                    kind=EnvironmentKind.INCOMPATIBLE,
                    message=(
                        f"Node.js {runtime_version} at {runtime} is below the required "
                        f"{self._config.required_runtime_version}"
                    ),
                    runtime_version=runtime_version,
                    required_version=self._config.required_runtime_version,
                ),
            )

        entrypoint = self.bundled_entrypoint()
        command: GatewayCommand
        if entrypoint is not None:
            command = GatewayCommand(
                argv=(runtime, str(entrypoint)),
                runtime_path=runtime,
                bundled=True,
            )
        else:
            executable = self.find_gateway_executable()
            if executable is None:
                return CommandResolution(
                    command=None,
                    status=EnvironmentStatus(
                        kind=EnvironmentKind.MISSING_SERVICE,
                        message=(
                            f"Gateway CLI '{self._config.executable}' not found; "
                            "install it or configure environment.extra_paths"
                        ),
                        runtime_version=runtime_version,
                    ),
                )
            command = GatewayCommand(argv=(executable,), runtime_path=runtime)

        gateway_version: str | None = None
        required_gateway = self._config.required_gateway_version
        if required_gateway:
            gateway_version = self._read_version(command.argv)
            if not is_version_at_least(gateway_version, required_gateway):
                return CommandResolution(
                    command=None,
                    status=EnvironmentStatus(
                        kind=EnvironmentKind.INCOMPATIBLE,
                        message=(
                            f"Gateway {gateway_version or 'unknown version'} is below "
                            f"the required {required_gateway}"
                        ),
                        runtime_version=runtime_version,
                        gateway_version=gateway_version,
                        required_version=required_gateway,
                    ),
                )

        source = "bundled" if command.bundled else command.argv[0]
        return CommandResolution(
            command=command,
            status=EnvironmentStatus(
                kind=EnvironmentKind.OK,
                message=f"Node {runtime_version}; gateway {source}",
                runtime_version=runtime_version,
                gateway_version=gateway_version,
            ),
        )

    def check(self) -> EnvironmentStatus:
        """Return the current environment status."""
        status = self.resolve_gateway_command().status
        self._logger.debug("environment checked", kind=status.kind.value)
        return status
