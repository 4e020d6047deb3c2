"""Shared test fixtures for clawgate tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from clawgate.config import Config, ServiceConfig

if TYPE_CHECKING:
    from pendulum import DateTime


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Create an isolated gateway state directory."""
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def service_config(state_dir: Path, tmp_path: Path) -> ServiceConfig:
    """Service settings rooted in temporary directories."""
    return ServiceConfig(
        state_dir=str(state_dir),
        descriptor_path=str(tmp_path / "ai.openclaw.gateway.plist"),
    )


@pytest.fixture
def config(state_dir: Path, tmp_path: Path) -> Config:
    """Full configuration isolated from the user's environment."""
    return Config.from_dict({
        "logging": {"file": str(tmp_path / "clawgate.log")},
        "service": {
            "state_dir": str(state_dir),
            "descriptor_path": str(tmp_path / "ai.openclaw.gateway.plist"),
        },
    })


FreezeTimeFunc = Callable[[int, int, int, int, int, int], "DateTime"]


@pytest.fixture
def freeze_time(monkeypatch: pytest.MonkeyPatch) -> FreezeTimeFunc:
    """Return a function to freeze pendulum.now() to a fixed time."""
    import pendulum

    def _freeze(
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
    ) -> DateTime:
        fixed = pendulum.datetime(year, month, day, hour, minute, second, tz="UTC")

        def mock_now(tz: str = "UTC") -> DateTime:
            return fixed.in_timezone(tz)

        monkeypatch.setattr("pendulum.now", mock_now)
        return fixed

    return _freeze
