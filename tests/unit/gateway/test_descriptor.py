"""Tests for clawgate.gateway._descriptor module."""

import plistlib
from pathlib import Path

from clawgate.gateway import ServiceJobDescriptor, parse_plist, parse_systemd_unit, read_descriptor
from clawgate.gateway._descriptor import build_descriptor, extract_flag

PROGRAM_ARGUMENTS = [
    "/Applications/OpenClaw.app/Contents/Resources/runtime/node/node",
    "/Applications/OpenClaw.app/Contents/Resources/runtime/cli/openclaw.mjs",
    "gateway",
    "--port",
    "18789",
    "--bind",
    "LAN",
]

PLIST_HEADER = b'<?xml version="1.0"?><plist version="1.0">'


def _plist(**overrides: object) -> bytes:
    data: dict[str, object] = {
        "Label": "ai.openclaw.gateway",
        "ProgramArguments": PROGRAM_ARGUMENTS,
        "EnvironmentVariables": {"OPENCLAW_GATEWAY_TOKEN": " abc123 ", "HOME": "/Users/me"},
        "StandardOutPath": "/Users/me/.openclaw/logs/gateway.log",
        "StandardErrorPath": "/Users/me/.openclaw/logs/gateway.err.log",
    }
    data.update(overrides)
    return plistlib.dumps(data)


class TestExtractFlag:
    def test_value_after_flag(self) -> None:
        assert extract_flag(["gateway", "--port", " 8080 "], "--port") == "8080"

    def test_missing_flag(self) -> None:
        assert extract_flag(["gateway"], "--port") is None

    def test_flag_at_end(self) -> None:
        assert extract_flag(["gateway", "--port"], "--port") is None

    def test_blank_value(self) -> None:
        assert extract_flag(["--bind", "  "], "--bind") is None


class TestBuildDescriptor:
    def test_derives_fields(self) -> None:
        descriptor = build_descriptor(
            PROGRAM_ARGUMENTS,
            {"OPENCLAW_GATEWAY_PASSWORD": "pw"},
            stdout_path=" ",
        )

        assert descriptor.port == 18789
        assert descriptor.bind == "lan"
        assert descriptor.token is None
        assert descriptor.password == "pw"
        assert descriptor.stdout_path is None
        assert descriptor.entrypoint_path == PROGRAM_ARGUMENTS[1]

    def test_bad_port(self) -> None:
        assert build_descriptor(["node", "x.mjs", "--port", "http"], {}).port is None


class TestParsePlist:
    def test_full_descriptor(self) -> None:
        descriptor = parse_plist(_plist())

        assert descriptor is not None
        assert descriptor.program_arguments == tuple(PROGRAM_ARGUMENTS)
        assert descriptor.port == 18789
        assert descriptor.bind == "lan"
        assert descriptor.token == "abc123"
        assert descriptor.stdout_path == "/Users/me/.openclaw/logs/gateway.log"
        assert descriptor.stderr_path == "/Users/me/.openclaw/logs/gateway.err.log"
        assert descriptor.is_using_bundled_runtime("/Applications/OpenClaw.app")
        assert not descriptor.is_using_bundled_runtime("/Users/me/dev/OpenClaw.app")

    def test_missing_keys(self) -> None:
        descriptor = parse_plist(plistlib.dumps({"Label": "ai.openclaw.gateway"}))

        assert descriptor == ServiceJobDescriptor()

    def test_garbage(self) -> None:
        assert parse_plist(b"not a plist") is None

    def test_truncated_xml(self) -> None:
        data = PLIST_HEADER + b"<dict><key>ProgramArguments</key><array><string>node"
        assert parse_plist(data) is None

    def test_non_dict_root(self) -> None:
        assert parse_plist(plistlib.dumps(["a", "b"])) is None


class TestParseSystemdUnit:
    def test_service_section(self) -> None:
        unit = """\
[Unit]
Description=OpenClaw Gateway
ExecStart=/ignored

[Service]
# comment
ExecStart=-/usr/bin/node "/opt/openclaw/cli/openclaw.mjs" gateway --port 18789 --bind loopback
Environment=OPENCLAW_GATEWAY_TOKEN=tok "OTHER=a b"
Environment=OPENCLAW_GATEWAY_PASSWORD=pw
StandardOutput=append:/home/me/.openclaw/logs/gateway.log
StandardError=journal
Restart=always
"""
        descriptor = parse_systemd_unit(unit)

        assert descriptor is not None
        assert descriptor.program_arguments[:2] == ("/usr/bin/node", "/opt/openclaw/cli/openclaw.mjs")
        assert descriptor.port == 18789
        assert descriptor.bind == "loopback"
        assert descriptor.environment == {
            "OPENCLAW_GATEWAY_TOKEN": "tok",
            "OTHER": "a b",
            "OPENCLAW_GATEWAY_PASSWORD": "pw",
        }
        assert descriptor.token == "tok"
        assert descriptor.password == "pw"
        assert descriptor.stdout_path == "/home/me/.openclaw/logs/gateway.log"
        assert descriptor.stderr_path is None

    def test_without_exec_start(self) -> None:
        assert parse_systemd_unit("[Service]\nRestart=always\n") is None


class TestReadDescriptor:
    def test_reads_plist_by_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "ai.openclaw.gateway.plist"
        _ = path.write_bytes(_plist())

        descriptor = read_descriptor(path)

        assert descriptor is not None
        assert descriptor.port == 18789

    def test_reads_unit(self, tmp_path: Path) -> None:
        path = tmp_path / "openclaw-gateway.service"
        _ = path.write_text("[Service]\nExecStart=/usr/bin/openclaw gateway --port 9000\n")

        descriptor = read_descriptor(path)

        assert descriptor is not None
        assert descriptor.port == 9000
        assert descriptor.entrypoint_path == "gateway"

    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_descriptor(tmp_path / "missing.plist") is None

    def test_half_written_plist(self, tmp_path: Path) -> None:
        path = tmp_path / "ai.openclaw.gateway.plist"
        _ = path.write_bytes(_plist()[:-20])

        assert read_descriptor(path) is None
