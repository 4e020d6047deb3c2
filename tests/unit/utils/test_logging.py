"""Tests for clawgate.utils._logging module."""

import json
from pathlib import Path

import pytest

from clawgate.utils import component_logger, create_logger


class TestCreateLogger:
    def test_writes_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CLAWGATE_DEBUG", raising=False)
        log_file = tmp_path / "logs" / "clawgate.log"

        logger = create_logger(level="info", log_file=str(log_file))
        logger.info("gateway status changed", state="running")
        logger.debug("hidden")

        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["event"] == "gateway status changed"
        assert entry["state"] == "running"
        assert entry["level"] == "info"

    def test_debug_env_overrides_level(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CLAWGATE_DEBUG", "1")
        log_file = tmp_path / "debug.log"

        logger = create_logger(level="error", log_file=str(log_file))
        logger.debug("visible")

        assert "visible" in log_file.read_text()

    def test_text_format(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CLAWGATE_DEBUG", raising=False)
        log_file = tmp_path / "text.log"

        logger = create_logger(log_format="text", log_file=str(log_file))
        logger.warning("attach failed", port=18789)

        text = log_file.read_text()
        assert "attach failed" in text
        assert "port=18789" in text


class TestComponentLogger:
    def test_binds_component(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CLAWGATE_DEBUG", raising=False)
        log_file = tmp_path / "component.log"
        parent = create_logger(log_file=str(log_file))

        component_logger("gateway.process", parent).info("hello")

        assert json.loads(log_file.read_text())["component"] == "gateway.process"
