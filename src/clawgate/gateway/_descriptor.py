"""Parsing of persisted service job descriptors.

Reads launchd property lists (``.plist``) and systemd user units
(``.service``) into a ``ServiceJobDescriptor``. Malformed or missing files
yield None; the descriptor is only ever used for drift checks.
"""

from __future__ import annotations

import plistlib
import shlex
from pathlib import Path
from xml.parsers.expat import ExpatError

from ._models import ServiceJobDescriptor

_SYSTEMD_OUTPUT_PREFIXES = ("append:", "file:", "truncate:")


def _non_empty(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def extract_flag(args: tuple[str, ...] | list[str], flag: str) -> str | None:
    """Return the trimmed value following ``flag`` in an argument vector."""
    try:
        index = args.index(flag)
    except ValueError:
        return None
    if index + 1 >= len(args):
        return None
    return _non_empty(args[index + 1])


def build_descriptor(
    program_arguments: list[str],
    environment: dict[str, str],
    *,
    stdout_path: str | None = None,
    stderr_path: str | None = None,
) -> ServiceJobDescriptor:
    """Build a descriptor, deriving port, bind and credentials.

    Args:
        program_arguments: Runtime, entrypoint, subcommand and flags.
        environment: Environment variables declared by the job.
        stdout_path: Declared stdout log path.
        stderr_path: Declared stderr log path.

    Returns:
        The descriptor.
    """
    raw_port = extract_flag(program_arguments, "--port")
    port: int | None
    try:
        port = int(raw_port) if raw_port is not None else None
    except ValueError:
        port = None

    bind = extract_flag(program_arguments, "--bind")

    return ServiceJobDescriptor(
        program_arguments=tuple(program_arguments),
        environment=dict(environment),
        stdout_path=_non_empty(stdout_path),
        stderr_path=_non_empty(stderr_path),
        port=port,
        bind=bind.lower() if bind else None,
        token=_non_empty(environment.get(ServiceJobDescriptor.TOKEN_ENV)),
        password=_non_empty(environment.get(ServiceJobDescriptor.PASSWORD_ENV)),
    )


def parse_plist(data: bytes) -> ServiceJobDescriptor | None:
    """Parse a launchd property list.

    Returns:
        The descriptor, or None when the data is not a dictionary plist.
    """
    try:
        root = plistlib.loads(data)
    except (plistlib.InvalidFileException, ValueError, ExpatError):
        return None
    if not isinstance(root, dict):
        return None

    raw_args = root.get("ProgramArguments")
    args = [str(a) for a in raw_args] if isinstance(raw_args, list) else []
    raw_env = root.get("EnvironmentVariables")
    env = {str(k): str(v) for k, v in raw_env.items()} if isinstance(raw_env, dict) else {}

    return build_descriptor(
        args,
        env,
        stdout_path=root.get("StandardOutPath"),
        stderr_path=root.get("StandardErrorPath"),
    )


def _systemd_output_path(value: str) -> str | None:
    for prefix in _SYSTEMD_OUTPUT_PREFIXES:
        if value.startswith(prefix):
            return _non_empty(value[len(prefix) :])
    return None


def _parse_environment_line(value: str, env: dict[str, str]) -> None:
    try:
        assignments = shlex.split(value)
    except ValueError:
        return
    for assignment in assignments:
        key, sep, val = assignment.partition("=")
        if sep and key:
            env[key] = val


def parse_systemd_unit(text: str) -> ServiceJobDescriptor | None:
    """Parse the ``[Service]`` section of a systemd user unit.

    Recognizes ``ExecStart``, ``Environment``, ``StandardOutput`` and
    ``StandardError``; file outputs are only honoured for the
    ``append:``, ``file:`` and ``truncate:`` forms.

    Returns:
        The descriptor, or None when the unit has no ``ExecStart``.
    """
    section = ""
    args: list[str] | None = None
    env: dict[str, str] = {}
    stdout_path: str | None = None
    stderr_path: str | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1]
            continue
        if section != "Service":
            continue

        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if key == "ExecStart":
            try:
                args = shlex.split(value.lstrip("-@+!:"))
            except ValueError:
                args = None
        elif key == "Environment":
            _parse_environment_line(value, env)
        elif key == "StandardOutput":
            stdout_path = _systemd_output_path(value)
        elif key == "StandardError":
            stderr_path = _systemd_output_path(value)

    if not args:
        return None
    return build_descriptor(args, env, stdout_path=stdout_path, stderr_path=stderr_path)


def read_descriptor(path: Path) -> ServiceJobDescriptor | None:
    """Read and parse a descriptor file based on its suffix.

    Returns:
        The descriptor, or None when the file is missing or unreadable.
    """
    try:
        data = path.read_bytes()
    except OSError:
        return None

    if path.suffix == ".plist":
        return parse_plist(data)
    return parse_systemd_unit(data.decode("utf-8", errors="replace"))
