"""Contracts between the release orchestrator and its collaborators.

The orchestrator only talks to version control through ``VcsProtocol``; the
production adapter is ``tagcut.git.repository.Repository`` and tests
substitute an in-memory fake.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from tagcut.core.result import Result
from tagcut.git.repository import GitAuth, GitError, GitStatus, Identity

__all__ = [
    "ClockFn",
    "ConfirmFn",
    "GitAuth",
    "Identity",
    "ReleaseOutcome",
    "VcsProtocol",
]


class VcsProtocol(Protocol):
    """Version control capability consumed by the orchestrator."""

    path: Path

    def exists(self) -> bool: ...

    def git_dir(self) -> Result[Path, GitError]: ...

    def global_identity(self) -> Result[Identity, GitError]: ...

    def remote_url(self, remote: str) -> Result[str, GitError]: ...

    def status(self) -> Result[GitStatus, GitError]: ...

    def fetch(self, remote: str, *, auth: GitAuth | None) -> Result[str, GitError]: ...

    def resolve_revision(self, rev: str) -> Result[str, GitError]: ...

    def checkout(self, branch: str) -> Result[None, GitError]: ...

    def add_all(self, *, excludes_file: Path | None = None) -> Result[None, GitError]: ...

    def commit(
        self, message: str, *, author: Identity, when: datetime
    ) -> Result[str, GitError]: ...

    def head(self) -> Result[str, GitError]: ...

    def create_tag(self, name: str, target: str, *, message: str) -> Result[None, GitError]: ...

    def delete_tag(self, name: str) -> Result[None, GitError]: ...

    def push(
        self, remote: str, refspecs: Sequence[str], *, auth: GitAuth | None
    ) -> Result[None, GitError]: ...

    def list_tags(self) -> Result[list[str], GitError]: ...

    def reset_hard(self, commit: str) -> Result[None, GitError]: ...


ConfirmFn = Callable[[str], bool]
"""Asks the operator to confirm a version; returns False to abort."""

ClockFn = Callable[[], datetime]


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    """Result of a successful release run."""

    version: str
    previous_version: str
    has_breaking_change: bool
    commit: str
    tags: tuple[str, ...]
    scripts: tuple[str, ...] = ()
