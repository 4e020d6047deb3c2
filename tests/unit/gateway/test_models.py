"""Tests for clawgate.gateway._models module."""

from pathlib import Path

import pytest

from clawgate.gateway import (
    EnvironmentKind,
    EnvironmentStatus,
    GatewayCommand,
    HealthSnapshot,
    PortOwner,
    ServiceJobDescriptor,
    decode_health_snapshot,
)
from clawgate.gateway._models import normalize_path


class TestPortOwner:
    def test_describe(self) -> None:
        owner = PortOwner(pid=1, command="node", executable_path="/usr/bin/node")
        assert owner.describe() == "pid 1 node @ /usr/bin/node"

    def test_describe_placeholders(self) -> None:
        assert PortOwner().describe() == "pid unknown unknown @ path unknown"


class TestHealthSnapshot:
    def test_aliases(self) -> None:
        snapshot = HealthSnapshot.model_validate({
            "channelOrder": ["b", "a"],
            "channels": {"a": {"linked": True, "authAgeMs": 12}},
            "channelLabels": {"a": "Alpha"},
        })

        assert snapshot.ordered_channel_ids() == ["b", "a"]
        assert snapshot.primary_channel() == "a"
        assert snapshot.channels["a"].auth_age_ms == 12
        assert snapshot.label_for("a") == "Alpha"
        assert snapshot.label_for("imessage") == "Imessage"

    def test_no_reporting_channel(self) -> None:
        snapshot = HealthSnapshot.model_validate({"channels": {"a": {}}})
        assert snapshot.primary_channel() is None

    @pytest.mark.parametrize("payload", [None, "text", [1], {"channels": "nope"}])
    def test_decode_rejects_bad_payloads(self, payload: object) -> None:
        assert decode_health_snapshot(payload) is None

    def test_decode_ignores_unknown_fields(self) -> None:
        snapshot = decode_health_snapshot({"ok": True, "uptimeMs": 5})
        assert snapshot == HealthSnapshot()


class TestEnvironmentStatus:
    def test_checking(self) -> None:
        status = EnvironmentStatus.checking()
        assert status.kind == EnvironmentKind.CHECKING
        assert not status.ok

    def test_ok(self) -> None:
        assert EnvironmentStatus(kind=EnvironmentKind.OK, message="fine").ok


class TestGatewayCommand:
    def test_build(self) -> None:
        command = GatewayCommand(argv=("node", "/x/openclaw.mjs"))
        assert command.build("gateway", "status") == ("node", "/x/openclaw.mjs", "gateway", "status")


class TestServiceJobDescriptor:
    def test_entrypoint_requires_two_arguments(self) -> None:
        assert ServiceJobDescriptor(program_arguments=("openclaw",)).entrypoint_path is None

    def test_bundled_runtime_detection_normalizes(self) -> None:
        descriptor = ServiceJobDescriptor(
            program_arguments=("node", "/Applications/OpenClaw.app/Contents/../Contents/cli.mjs"),
        )
        assert descriptor.is_using_bundled_runtime("/Applications/OpenClaw.app/")
        assert not descriptor.is_using_bundled_runtime("/Applications/Other.app")


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("/a/./b/../c", Path("/a/c")),
            ("/../a", Path("/a")),
            ("/", Path("/")),
        ],
    )
    def test_collapses_segments(self, raw: str, expected: Path) -> None:
        assert normalize_path(raw) == expected

    def test_expands_home(self) -> None:
        assert normalize_path("~/x") == Path.home() / "x"
