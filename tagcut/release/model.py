from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from tagcut.release.semver import SemVer


class ReleaseState(StrEnum):
    """Release stages, in the order they run.

    Everything up to and including CONFIRM_WITH_OPERATOR is a precondition
    gate that mutates nothing.
    """

    OPEN_REPO = "open_repo"
    CHECK_CLEAN_WORKTREE = "check_clean_worktree"
    FETCH_IF_STALE = "fetch_if_stale"
    VERIFY_MAIN_SYNCED = "verify_main_synced"
    CHECKOUT_MAIN = "checkout_main"
    VALIDATE_CHANGELOG = "validate_changelog"
    RESOLVE_VERSION = "resolve_version"
    CONFIRM_WITH_OPERATOR = "confirm_with_operator"
    RUN_PRE_RELEASE_SCRIPTS = "run_pre_release_scripts"
    REWRITE_CHANGELOG = "rewrite_changelog"
    COMMIT_LOCALLY = "commit_locally"
    TAG_LOCALLY = "tag_locally"
    PUSH_V_TAG = "push_v_tag"
    PUSH_COMMITS = "push_commits"
    PUSH_PLAIN_TAG = "push_plain_tag"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class ReleasePlan:
    """What one run is about to release. Never persisted."""

    previous: SemVer
    version: SemVer
    has_breaking_change: bool
    scripts: tuple[str, ...]

    @property
    def tag(self) -> str:
        return self.version.to_tag()

    @property
    def v_tag(self) -> str:
        return self.version.to_v_tag()
