import sys
from importlib.resources import files
from pathlib import Path

import platformdirs

APP_NAME = "clawgate"

WRITE_DISABLE_MARKER_NAME = "disable-launchagent"


def expand_path(path: str | Path) -> Path:
    """Expand ``~`` and return an absolute path without resolving symlinks."""
    return Path(path).expanduser().absolute()


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/clawgate/config.toml``
    - macOS: ``~/Library/Application Support/clawgate/config.toml``
    - Windows: ``%APPDATA%\clawgate\config.toml``

    The path is returned regardless of whether the file exists.
    """
    return platformdirs.user_config_path(APP_NAME) / "config.toml"


def get_default_log_file() -> Path:
    """Get the path to the clawgate structured log file."""
    return platformdirs.user_log_path(APP_NAME) / "clawgate.log"


def get_write_disable_marker(state_dir: str | Path) -> Path:
    """Get the path of the sentinel file that disables service-job writes."""
    return expand_path(state_dir) / WRITE_DISABLE_MARKER_NAME


def get_default_gateway_log_path(state_dir: str | Path) -> Path:
    """Get the fallback gateway log path used when the job declares none."""
    return expand_path(state_dir) / "logs" / "gateway.log"


def get_default_job_descriptor_path(
    label: str,
    unit_name: str,
    *,
    platform: str | None = None,
) -> Path:
    """Get the default on-disk location of the persisted service job.

    macOS stores a LaunchAgent plist named after the job label; other
    platforms use a systemd user unit.

    Args:
        label: The launchd job label.
        unit_name: The systemd unit name (without suffix).
        platform: Override for ``sys.platform``.

    Returns:
        Path to the job descriptor file.
    """
    current = platform or sys.platform
    if current == "darwin":
        return Path.home() / "Library" / "LaunchAgents" / f"{label}.plist"
    return Path.home() / ".config" / "systemd" / "user" / f"{unit_name}.service"


def get_package_dir() -> Path:
    """Get the root directory of the installed clawgate package."""
    return Path(str(files("clawgate")))
