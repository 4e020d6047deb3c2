"""Loose semantic version parsing for runtime and gateway version checks."""

import re
from typing import NamedTuple

_VERSION_RE = re.compile(r"v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class Semver(NamedTuple):
    """Major, minor and patch components. Pre-release tags are ignored."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str | None) -> Semver | None:
    """Extract the first version number from ``text``.

    Accepts forms such as ``v22.1.0``, ``22.1``, ``openclaw 2026.1.5`` and
    ``22.0.0-beta.1``. Missing components default to zero.

    Examples:
        >>> parse_version("v22.3.1")
        Semver(major=22, minor=3, patch=1)
        >>> parse_version("openclaw 2026.1") is not None
        True
        >>> parse_version("unknown") is None
        True
    """
    if not text:
        return None
    match = _VERSION_RE.search(text.strip())
    if match is None:
        return None
    major, minor, patch = match.groups()
    return Semver(int(major), int(minor or 0), int(patch or 0))


def is_version_at_least(installed: str | None, required: str) -> bool:
    """Check that ``installed`` satisfies the ``required`` minimum.

    An unparseable installed version never satisfies the requirement; an
    unparseable requirement is treated as no requirement.
    """
    required_version = parse_version(required)
    if required_version is None:
        return True
    installed_version = parse_version(installed)
    if installed_version is None:
        return False
    return installed_version >= required_version
