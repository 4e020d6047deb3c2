from ._exec import (
    DEFAULT_TIMEOUT,
    MAX_OUTPUT_BYTES,
    CommandResult,
    CommandSpec,
    run_command,
    run_command_async,
    truncate_output,
)
from ._logging import component_logger, create_logger
from ._paths import (
    APP_NAME,
    WRITE_DISABLE_MARKER_NAME,
    expand_path,
    get_default_gateway_log_path,
    get_default_job_descriptor_path,
    get_default_log_file,
    get_package_dir,
    get_user_config_path,
    get_write_disable_marker,
)

__all__ = [
    "APP_NAME",
    "DEFAULT_TIMEOUT",
    "MAX_OUTPUT_BYTES",
    "WRITE_DISABLE_MARKER_NAME",
    "CommandResult",
    "CommandSpec",
    "component_logger",
    "create_logger",
    "expand_path",
    "get_default_gateway_log_path",
    "get_default_job_descriptor_path",
    "get_default_log_file",
    "get_package_dir",
    "get_user_config_path",
    "get_write_disable_marker",
    "run_command",
    "run_command_async",
    "truncate_output",
]
