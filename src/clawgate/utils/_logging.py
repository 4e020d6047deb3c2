"""Logging utilities for clawgate.

Loggers are standalone structlog loggers writing JSON or text lines to the
clawgate log file; global structlog configuration is left alone so the
package stays safe to embed. Components bind a ``component`` key onto the
logger they are handed.
"""

import logging
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

from ._paths import get_default_log_file

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]


def _resolve_level(level: str | None) -> int:
    """Map a level name to a logging level.

    CLAWGATE_DEBUG forces DEBUG. Without an explicit ``level``,
    CLAWGATE_LOG_LEVEL is consulted. Unknown names fall back to INFO.
    """
    if getenv("CLAWGATE_DEBUG"):
        return logging.DEBUG
    name = level or getenv("CLAWGATE_LOG_LEVEL", "info")
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _rotating_logger(path: Path, level: int, max_bytes: int, backup_count: int) -> logging.Logger:
    # One stdlib logger per file, detached from the root logger.
    stdlib_logger = logging.getLogger(f"clawgate.file.{path}")
    for handler in list(stdlib_logger.handlers):
        stdlib_logger.removeHandler(handler)
        handler.close()
    stdlib_logger.propagate = False
    stdlib_logger.setLevel(level)

    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(logging.Formatter("%(message)s"))
    stdlib_logger.addHandler(handler)
    return stdlib_logger


def _processors(log_format: LogFormatType) -> list["Processor"]:  # noqa: UP037
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors.extend((structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()))
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def create_logger(
    *,
    level: str | None = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    max_bytes: int | None = 5 * 1024 * 1024,
    backup_count: int | None = 3,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the clawgate application logger.

    Writes structured logs to ``log_file``, or to ``clawgate.log`` in the
    platform log directory when empty. Rotation is enabled when both
    ``max_bytes`` and ``backup_count`` are set.

    Args:
        level: Log level threshold (debug, info, warning, error). None
            defers to CLAWGATE_LOG_LEVEL.
        log_format: Output format, either "json" or "text".
        log_file: Path to log file (uses the default location if empty).
        max_bytes: Rotation threshold in bytes.
        backup_count: Number of rotated files to keep.

    Returns:
        A FilteringBoundLogger instance.
    """
    path = Path(log_file) if log_file else get_default_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    effective_level = _resolve_level(level)

    if max_bytes is not None and backup_count is not None:
        raw_logger: object = _rotating_logger(path, effective_level, max_bytes, backup_count)
    else:
        raw_logger = structlog.WriteLoggerFactory(file=path.open("a"))()

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )


def component_logger(
    component: str,
    logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
) -> "FilteringBoundLogger":  # noqa: UP037
    """Bind a component name to ``logger`` or to structlog's default logger.

    Args:
        component: Short component name, e.g. ``"gateway.process"``.
        logger: Optional parent logger.

    Returns:
        A logger with ``component`` bound to every entry.
    """
    base = logger if logger is not None else structlog.get_logger()
    return cast("FilteringBoundLogger", base.bind(component=component))
