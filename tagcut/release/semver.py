from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

# Strict X.Y.Z: no "v" prefix, no pre-release or build metadata
_RELEASE_TAG_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def inc_major(self) -> SemVer:
        return SemVer(self.major + 1, 0, 0)

    def inc_minor(self) -> SemVer:
        return SemVer(self.major, self.minor + 1, 0)

    def inc_patch(self) -> SemVer:
        return SemVer(self.major, self.minor, self.patch + 1)

    def to_tag(self) -> str:
        return str(self)

    def to_v_tag(self) -> str:
        return f"v{self}"


NO_PRIOR_RELEASE = SemVer(0, 0, 0)


def parse_release_tag(tag: str) -> SemVer | None:
    m = _RELEASE_TAG_RE.match(tag)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def latest_release_version(tags: Iterable[str]) -> SemVer:
    """Highest strict X.Y.Z tag, or 0.0.0 when there is none."""
    versions = [v for v in (parse_release_tag(t.removeprefix("refs/tags/")) for t in tags) if v]
    if not versions:
        return NO_PRIOR_RELEASE
    return max(versions)


def next_version(latest: SemVer, *, has_breaking_change: bool, bump_major: bool) -> SemVer:
    """Apply the bump policy.

    An explicit major bump wins over the changelog. Otherwise a breaking
    change bumps minor and anything else bumps patch.
    """
    if bump_major:
        return latest.inc_major()
    if has_breaking_change:
        return latest.inc_minor()
    return latest.inc_patch()
