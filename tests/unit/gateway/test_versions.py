"""Tests for clawgate.gateway._versions module."""

import pytest

from clawgate.gateway import Semver, is_version_at_least, parse_version


class TestParseVersion:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("v22.3.1", Semver(22, 3, 1)),
            ("22.1", Semver(22, 1, 0)),
            ("22", Semver(22, 0, 0)),
            ("openclaw 2026.1.5\n", Semver(2026, 1, 5)),
            ("22.0.0-beta.1", Semver(22, 0, 0)),
            ("unknown", None),
            ("", None),
            (None, None),
        ],
    )
    def test_forms(self, text: str | None, expected: Semver | None) -> None:
        assert parse_version(text) == expected

    def test_str(self) -> None:
        assert str(Semver(22, 3, 1)) == "22.3.1"


class TestIsVersionAtLeast:
    @pytest.mark.parametrize(
        ("installed", "required", "expected"),
        [
            ("22.3.0", "22.0.0", True),
            ("22.0.0", "22.0.0", True),
            ("21.9.9", "22.0.0", False),
            ("v22.10.0", "22.9.0", True),
            (None, "22.0.0", False),
            ("garbage", "22.0.0", False),
            ("1.0.0", "", True),
        ],
    )
    def test_comparison(
        self,
        installed: str | None,
        required: str,
        expected: bool,  # noqa: FBT001
    ) -> None:
        assert is_version_at_least(installed, required) is expected
