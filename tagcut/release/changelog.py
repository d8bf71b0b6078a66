"""Changelog validation and rewriting.

The changelog starts with a pending section headed ``# TBD`` that collects
unreleased notes, followed by released sections headed ``# X.Y.Z``:

    # TBD
    ### Features
    * something new

    # 1.4.2
    ...

Parsing and rewriting are pure functions over bytes; only
``update_changelog_file`` touches the filesystem, and it replaces the file
atomically.
"""

from __future__ import annotations

import re
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.platform.files import atomic_write_bytes
from tagcut.release.errors import ReleaseError

PENDING_PLACEHOLDER = "TBD"
SECTION_HEADER_PREFIX = "#"

_PENDING_HEADER_RE = re.compile(rb"^#\s*TBD\s*$")
_VERSION_HEADER_RE = re.compile(rb"^#\s*[0-9]+\.[0-9]+\.[0-9]+\s*$")
_BREAKING_HEADER_RE = re.compile(rb"^##+\s*break", re.IGNORECASE)
_BLANK_RE = re.compile(rb"^\s*$")


def is_pending_header(line: bytes) -> bool:
    return _PENDING_HEADER_RE.match(line) is not None


def is_version_header(line: bytes) -> bool:
    return _VERSION_HEADER_RE.match(line) is not None


def is_breaking_header(line: bytes) -> bool:
    return _BREAKING_HEADER_RE.match(line) is not None


def is_blank(line: bytes) -> bool:
    return _BLANK_RE.match(line) is not None


def version_header(version: str) -> str:
    return f"{SECTION_HEADER_PREFIX} {version}"


def parse_changelog(content: bytes) -> Result[bool, ReleaseError]:
    """Validate the pending section and report whether it marks a breaking change.

    Returns:
        Ok(True) if the pending section contains a breaking-change subheader,
        Ok(False) otherwise, or Err with one of the changelog error kinds.
    """
    lines = iter(content.split(b"\n"))

    found_pending = False
    for line in lines:
        if is_blank(line):
            continue
        if not is_pending_header(line):
            return Err(
                ReleaseError(
                    kind="malformed_changelog",
                    message="changelog must start with the pending section header",
                    hint=f"first non-empty line must be '{version_header(PENDING_PLACEHOLDER)}'",
                )
            )
        found_pending = True
        break

    if not found_pending:
        return Err(
            ReleaseError(
                kind="empty_changelog",
                message="changelog is empty",
                hint="check the changelog path",
            )
        )

    has_breaking_change = False
    has_content = False
    found_version_header = False

    for line in lines:
        if is_pending_header(line):
            return Err(
                ReleaseError(
                    kind="duplicate_pending_section",
                    message="changelog has more than one pending section header",
                    hint=f"keep a single '{version_header(PENDING_PLACEHOLDER)}' at the top",
                )
            )

        if is_version_header(line):
            found_version_header = True
            break

        if not is_blank(line):
            has_content = True

        if is_breaking_header(line):
            has_breaking_change = True

    if not found_version_header:
        return Err(
            ReleaseError(
                kind="no_prior_release",
                message="no released version section found in changelog",
                hint="is the changelog in sync with the release tags on this branch?",
            )
        )

    if not has_content:
        return Err(
            ReleaseError(
                kind="empty_pending_section",
                message="nothing to release: the pending changelog section is empty",
                hint="check that the changes are merged and the changelog is updated",
            )
        )

    return Ok(has_breaking_change)


def rewrite_changelog(content: bytes, version: str) -> Result[bytes, ReleaseError]:
    """Promote the pending section to a released ``# <version>`` section.

    The placeholder header stays on line 1, followed by a blank line and the
    new version header; everything after the original line 1 follows
    unchanged and becomes the body of the new section.
    """
    lines = content.split(b"\n")
    if not is_pending_header(lines[0]):
        return Err(
            ReleaseError(
                kind="malformed_changelog",
                message="first line of the changelog is not the pending section header",
                hint=f"expected '{version_header(PENDING_PLACEHOLDER)}' on line 1",
            )
        )

    header = version_header(version).encode("utf-8")
    rest = b"\n".join(lines[1:])
    return Ok(lines[0] + b"\n" + b"\n" + header + b"\n" + rest)


def read_changelog(path: Path) -> Result[bytes, ReleaseError]:
    try:
        return Ok(path.read_bytes())
    except OSError as e:
        return Err(
            ReleaseError(
                kind="missing_file",
                message=f"failed to read changelog: {e.strerror or e}",
                hint=str(path),
            )
        )


def update_changelog_file(path: Path, version: str) -> Result[None, ReleaseError]:
    """Rewrite the changelog at path in place for the given release version."""
    content = read_changelog(path)
    if isinstance(content, Err):
        return content

    rewritten = rewrite_changelog(content.value, version).map_err(
        lambda e: ReleaseError(kind=e.kind, message=e.message, hint=str(path))
    )
    if isinstance(rewritten, Err):
        return rewritten

    try:
        atomic_write_bytes(path, rewritten.value)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="persistence_failed",
                message=f"failed to write updated changelog: {e}",
                hint=str(path),
            )
        )
    return Ok(None)
