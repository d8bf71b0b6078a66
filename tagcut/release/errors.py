"""Error types for the release bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    # Preconditions: nothing has been mutated yet
    "not_a_repo",
    "missing_identity",
    "missing_remote",
    "dirty_worktree",
    "fetch_failed",
    "out_of_sync",
    "checkout_failed",
    "missing_file",
    "vcs_failed",
    # Changelog format
    "malformed_changelog",
    "empty_changelog",
    "duplicate_pending_section",
    "no_prior_release",
    "empty_pending_section",
    # Guarded stage
    "script_failed",
    "persistence_failed",
    "push_failed",
    # Operator
    "aborted",
]

ErrorCategory = Literal["precondition", "changelog", "script", "persistence", "aborted"]

_CATEGORIES: dict[str, ErrorCategory] = {
    "malformed_changelog": "changelog",
    "empty_changelog": "changelog",
    "duplicate_pending_section": "changelog",
    "no_prior_release": "changelog",
    "empty_pending_section": "changelog",
    "script_failed": "script",
    "persistence_failed": "persistence",
    "push_failed": "persistence",
    "aborted": "aborted",
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``message`` names the failed operation; ``hint`` carries the path, ref or
    verbatim tool output needed to diagnose it without re-running.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES.get(self.kind, "precondition")

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
