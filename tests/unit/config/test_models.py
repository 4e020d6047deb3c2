# pyright: reportAny=false
"""Tests for clawgate.config._models module."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from clawgate.config import (
    BindMode,
    Config,
    ConfigValidationError,
    ConnectionMode,
    GatewayConfig,
    ServiceConfig,
)

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestDefaults:
    def test_gateway(self) -> None:
        config = Config.from_dict({})

        assert config.gateway.mode == ConnectionMode.LOCAL
        assert config.gateway.port == 18789
        assert config.gateway.bind == BindMode.LAN
        assert config.gateway.base_url == "http://127.0.0.1:18789"

    def test_supervisor_timings(self) -> None:
        settings = Config.from_dict({}).supervisor

        assert settings.attach_max_attempts == 3
        assert settings.attach_retry_delay == 0.25
        assert settings.readiness_timeout == 6.0
        assert settings.readiness_interval == 0.4
        assert settings.readiness_probe_timeout == 1.5
        assert settings.wait_ready_interval == 0.3
        assert settings.environment_refresh_interval == 30.0
        assert settings.log_limit == 20000


class TestValidation:
    def test_invalid_port(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"gateway": {"port": 70000}})

        assert exc_info.value.key == "gateway.port"
        assert exc_info.value.value == 70000

    def test_invalid_mode(self) -> None:
        with pytest.raises(ConfigValidationError, match=r"gateway\.mode"):
            _ = Config.from_dict({"gateway": {"mode": "cloud"}})

    def test_token_accepts_numbers(self) -> None:
        assert Config.from_dict({"gateway": {"token": 1234}}).gateway.token == "1234"

    def test_frozen(self) -> None:
        config = GatewayConfig()
        with pytest.raises(ValueError, match="frozen"):
            config.port = 1  # pyright: ignore[reportAttributeAccessIssue]


class TestServiceConfig:
    def test_explicit_descriptor_path(self) -> None:
        service = ServiceConfig(descriptor_path="~/jobs/gateway.plist")
        assert service.resolved_descriptor_path() == Path.home() / "jobs" / "gateway.plist"

    def test_default_descriptor_path(self) -> None:
        path = ServiceConfig().resolved_descriptor_path()
        assert path.name in {"ai.openclaw.gateway.plist", "openclaw-gateway.service"}


class TestLoad:
    def test_precedence(
        self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        user = Path("/home/me/.config/clawgate/config.toml")
        fs.create_file(user, contents='[gateway]\nport = 1000\nhost = "10.0.0.2"\n')
        explicit = Path("/work/clawgate.toml")
        fs.create_file(explicit, contents="[gateway]\nport = 2000\n")
        monkeypatch.setattr("clawgate.config._models.get_user_config_path", lambda: user)
        monkeypatch.setenv("CLAWGATE_GATEWAY__PORT", "3000")

        config = Config.load(config_path=explicit)
        assert config.gateway.port == 3000
        assert config.gateway.host == "10.0.0.2"

        overridden = Config.load(config_path=explicit, cli_overrides={"gateway": {"port": 4000}})
        assert overridden.gateway.port == 4000

    def test_without_env(self, fs: FakeFilesystem, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ARG002
        monkeypatch.setattr(
            "clawgate.config._models.get_user_config_path",
            lambda: Path("/nowhere/config.toml"),
        )
        monkeypatch.setenv("CLAWGATE_GATEWAY__PORT", "3000")

        assert Config.load(include_env=False).gateway.port == 18789
