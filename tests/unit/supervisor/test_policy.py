"""Tests for clawgate.supervisor._policy module."""

import pytest

from clawgate.config import ConnectionMode
from clawgate.supervisor import should_ensure_job, should_start_gateway


class TestAutostartDecisions:
    @pytest.mark.parametrize(
        ("mode", "paused", "expected"),
        [
            (ConnectionMode.LOCAL, False, True),
            (ConnectionMode.LOCAL, True, False),
            (ConnectionMode.REMOTE, False, False),
            (ConnectionMode.REMOTE, True, False),
        ],
    )
    def test_should_start_gateway(
        self,
        mode: ConnectionMode,
        paused: bool,  # noqa: FBT001
        expected: bool,  # noqa: FBT001
    ) -> None:
        assert should_start_gateway(mode, paused) is expected

    @pytest.mark.parametrize(
        ("mode", "paused", "expected"),
        [
            (ConnectionMode.LOCAL, False, True),
            (ConnectionMode.LOCAL, True, False),
            (ConnectionMode.REMOTE, False, False),
        ],
    )
    def test_should_ensure_job(
        self,
        mode: ConnectionMode,
        paused: bool,  # noqa: FBT001
        expected: bool,  # noqa: FBT001
    ) -> None:
        assert should_ensure_job(mode, paused) is expected
