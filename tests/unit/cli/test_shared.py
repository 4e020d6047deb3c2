"""Tests for clawgate.cli._shared module."""

from io import StringIO

import pytest
from rich.console import Console

from clawgate.cli._shared import (
    ExitCode,
    build_collaborators,
    build_supervisor,
    exit_with_error,
    format_json,
)
from clawgate.config import Config
from clawgate.gateway import EnvironmentChecker, HealthProbeClient, PortGuardian, ServiceJobManager
from clawgate.supervisor import GatewaySupervisor


class TestFormatJson:
    def test_indented(self) -> None:
        assert format_json({"a": 1}) == '{\n  "a": 1\n}'

    def test_compact(self) -> None:
        assert format_json({"a": [1, 2]}, indent=False) == '{"a":[1,2]}'


class TestExitWithError:
    def test_prints_and_exits(self) -> None:
        buffer = StringIO()
        console = Console(file=buffer, force_terminal=False)

        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("boom", ExitCode.IO_ERROR, console=console)

        assert exc_info.value.code == ExitCode.IO_ERROR
        assert "Error: boom" in buffer.getvalue()


class TestBuilders:
    @pytest.mark.anyio
    async def test_build_collaborators(self, config: Config) -> None:
        ports, health, jobs, checker = build_collaborators(config)
        try:
            assert isinstance(ports, PortGuardian)
            assert isinstance(health, HealthProbeClient)
            assert isinstance(jobs, ServiceJobManager)
            assert isinstance(checker, EnvironmentChecker)
            assert jobs.descriptor_path == config.service.resolved_descriptor_path()
        finally:
            await health.aclose()

    @pytest.mark.anyio
    async def test_build_supervisor(self, config: Config) -> None:
        supervisor, health = build_supervisor(config)
        try:
            assert isinstance(supervisor, GatewaySupervisor)
            assert supervisor.is_remote is False
        finally:
            await health.aclose()
