"""Release orchestrator.

Cuts a release in a fixed sequence of stages. The stages up to operator
confirmation only read state. From the pre-release scripts onward every
mutating stage first registers its undo on a ``GuardStack``; leaving the
run with guards still armed unwinds them in reverse order.

Pushes go from easiest to hardest to revert: the ``v``-prefixed tag, then
the release branch, then the plain version tag. Pushing the plain tag is
what triggers downstream publishing, so only after it succeeds are the
guards disarmed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from tagcut.core.config import ReleaseConfig
from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError, Identity
from tagcut.output.console import ConsoleProtocol, Style
from tagcut.release.changelog import parse_changelog, read_changelog, update_changelog_file
from tagcut.release.contracts import ClockFn, ConfirmFn, GitAuth, ReleaseOutcome, VcsProtocol
from tagcut.release.errors import ReleaseError, ReleaseErrorKind
from tagcut.release.fetch_state import record_fetch, should_fetch
from tagcut.release.fsm import Step, run_steps
from tagcut.release.guards import Guard, GuardStack
from tagcut.release.model import ReleasePlan, ReleaseState
from tagcut.release.scripts import ScriptRunner, read_script_manifest, run_pre_release_scripts
from tagcut.release.semver import latest_release_version, next_version

COMMIT_MESSAGE_TEMPLATE = "Finalize changes for release version '{version}'"

UNDO_REMOTE_PUSH_MESSAGE = """\
an error occurred after pushing to '{remote} {branch}'. Undoing that push
could destroy history on the remote, so it has to be done by hand:
  1. Run 'git fetch {remote}' to pull down the latest '{remote}/{branch}'.
  2. Verify '{remote}/{branch}' has no new commits that reverting would throw away.
  3. Verify the local branch has no leftover release changes and is on the right commit.
  4. Run 'git push -f {remote} {branch}' from local '{branch}'."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _git_failure(kind: ReleaseErrorKind, message: str, e: GitError) -> Err[ReleaseError]:
    return Err(ReleaseError(kind=kind, message=message, hint=e.message))


@dataclass(slots=True)
class _RunState:
    identity: Identity | None = None
    remote_head: str | None = None
    has_breaking_change: bool = False
    scripts: tuple[str, ...] = ()
    plan: ReleasePlan | None = None
    commit: str | None = None


class ReleaseOrchestrator:
    """Drives one release run against a repository.

    Collaborators are injected so tests can swap the VCS, the operator
    confirmation, the clock and the script runner.
    """

    def __init__(
        self,
        *,
        vcs: VcsProtocol,
        config: ReleaseConfig,
        console: ConsoleProtocol,
        confirm: ConfirmFn,
        auth: GitAuth | None = None,
        clock: ClockFn = _utc_now,
        script_runner: ScriptRunner | None = None,
    ) -> None:
        self._vcs = vcs
        self._config = config
        self._console = console
        self._confirm = confirm
        self._auth = auth
        self._clock = clock
        self._script_runner = script_runner
        self._run = _RunState()
        self._guards = GuardStack(console)
        self.visited: list[ReleaseState] = []

    @property
    def state(self) -> ReleaseState | None:
        return self.visited[-1] if self.visited else None

    @property
    def guards(self) -> GuardStack:
        return self._guards

    @property
    def root(self) -> Path:
        return self._vcs.path

    def run(self) -> Result[ReleaseOutcome, ReleaseError]:
        """Run every stage once; a new orchestrator is needed per release."""
        with self._guards:
            result = run_steps(self._steps(), on_enter=self._enter)
            if isinstance(result, Err):
                self.visited.append(ReleaseState.ABORTED)
                return result

            self._guards.disarm_all()

        self.visited.append(ReleaseState.DONE)
        plan = self._plan()
        self._console.success("Release success.")
        return Ok(
            ReleaseOutcome(
                version=str(plan.version),
                previous_version=str(plan.previous),
                has_breaking_change=plan.has_breaking_change,
                commit=self._run.commit or "",
                tags=(plan.tag, plan.v_tag),
                scripts=plan.scripts,
            )
        )

    def _steps(self) -> list[Step]:
        return [
            Step(ReleaseState.OPEN_REPO, self._open_repo),
            Step(ReleaseState.CHECK_CLEAN_WORKTREE, self._check_clean_worktree),
            Step(ReleaseState.FETCH_IF_STALE, self._fetch_if_stale),
            Step(ReleaseState.VERIFY_MAIN_SYNCED, self._verify_main_synced),
            Step(ReleaseState.CHECKOUT_MAIN, self._checkout_main),
            Step(ReleaseState.VALIDATE_CHANGELOG, self._validate_changelog),
            Step(ReleaseState.RESOLVE_VERSION, self._resolve_version),
            Step(ReleaseState.CONFIRM_WITH_OPERATOR, self._confirm_with_operator),
            Step(ReleaseState.RUN_PRE_RELEASE_SCRIPTS, self._run_pre_release_scripts),
            Step(ReleaseState.REWRITE_CHANGELOG, self._rewrite_changelog),
            Step(ReleaseState.COMMIT_LOCALLY, self._commit_locally),
            Step(ReleaseState.TAG_LOCALLY, self._tag_locally),
            Step(ReleaseState.PUSH_V_TAG, self._push_v_tag),
            Step(ReleaseState.PUSH_COMMITS, self._push_commits),
            Step(ReleaseState.PUSH_PLAIN_TAG, self._push_plain_tag),
        ]

    def _enter(self, state: ReleaseState) -> None:
        self.visited.append(state)

    def _plan(self) -> ReleasePlan:
        plan = self._run.plan
        if plan is None:
            raise AssertionError("release plan used before version resolution")
        return plan

    # -- precondition gates ---------------------------------------------------

    def _open_repo(self) -> Result[None, ReleaseError]:
        self._console.info("Retrieving git information...")
        if not self._vcs.exists():
            return Err(
                ReleaseError(
                    kind="not_a_repo",
                    message="not at the root of a git repository",
                    hint=str(self.root),
                )
            )

        identity = self._vcs.global_identity()
        if isinstance(identity, Err):
            return _git_failure(
                "missing_identity", "failed to read global git config", identity.error
            )
        ident = identity.value
        if not ident.is_complete:
            return Err(
                ReleaseError(
                    kind="missing_identity",
                    message=(
                        "global git config has an empty name or email "
                        f"(name: '{ident.name}', email: '{ident.email}')"
                    ),
                    hint="set user.name and user.email with 'git config --global'",
                )
            )
        self._run.identity = ident

        remote = self._vcs.remote_url(self._config.remote)
        if isinstance(remote, Err):
            return _git_failure(
                "missing_remote",
                f"remote '{self._config.remote}' not found; is the code pushed?",
                remote.error,
            )
        return Ok(None)

    def _check_clean_worktree(self) -> Result[None, ReleaseError]:
        self._console.info("Conducting pre-release checks...")
        status = self._vcs.status()
        if isinstance(status, Err):
            return _git_failure("vcs_failed", "failed to read worktree status", status.error)
        if not status.value.is_clean:
            return Err(
                ReleaseError(
                    kind="dirty_worktree",
                    message="the working tree has changes; it must be clean to release",
                    hint=status.value.describe(),
                )
            )
        return Ok(None)

    def _fetch_if_stale(self) -> Result[None, ReleaseError]:
        git_dir = self._vcs.git_dir()
        if isinstance(git_dir, Err):
            return _git_failure("vcs_failed", "failed to locate the git directory", git_dir.error)
        state_path = git_dir.value / self._config.fetch_state_filename

        now = self._clock()
        stale = should_fetch(state_path, now=now, grace_seconds=self._config.fetch_grace_seconds)
        if isinstance(stale, Err):
            return stale
        if not stale.value:
            self._console.print(f"fetched '{self._config.remote}' recently, skipping", Style.DIM)
            return Ok(None)

        self._console.info(f"Fetching '{self._config.remote}'...")
        fetched = self._vcs.fetch(self._config.remote, auth=self._auth)
        if isinstance(fetched, Err):
            return _git_failure(
                "fetch_failed", f"failed to fetch from '{self._config.remote}'", fetched.error
            )
        return record_fetch(state_path, now=now)

    def _verify_main_synced(self) -> Result[None, ReleaseError]:
        local_name = self._config.branch
        remote_name = self._config.remote_branch
        self._console.info(f"Checking that '{local_name}' and '{remote_name}' are in sync...")

        local = self._vcs.resolve_revision(local_name)
        if isinstance(local, Err):
            return _git_failure("out_of_sync", f"failed to resolve '{local_name}'", local.error)
        remote = self._vcs.resolve_revision(remote_name)
        if isinstance(remote, Err):
            return _git_failure("out_of_sync", f"failed to resolve '{remote_name}'", remote.error)

        if local.value != remote.value:
            return Err(
                ReleaseError(
                    kind="out_of_sync",
                    message=f"local '{local_name}' is not in sync with '{remote_name}'",
                    hint=f"{local_name}={local.value[:12]} {remote_name}={remote.value[:12]}",
                )
            )
        self._run.remote_head = remote.value
        return Ok(None)

    def _checkout_main(self) -> Result[None, ReleaseError]:
        branch = self._config.branch
        self._console.info(f"Checking out '{branch}'...")
        checked_out = self._vcs.checkout(branch)
        if isinstance(checked_out, Err):
            return Err(
                ReleaseError(
                    kind="checkout_failed",
                    message=f"failed to check out '{branch}': {checked_out.error.message}",
                    hint=f"run 'git checkout {branch}'",
                )
            )
        return Ok(None)

    def _validate_changelog(self) -> Result[None, ReleaseError]:
        changelog_path = self.root / self._config.changelog_path
        content = read_changelog(changelog_path)
        if isinstance(content, Err):
            return content

        parsed = parse_changelog(content.value)
        if isinstance(parsed, Err):
            e = parsed.error
            return Err(
                ReleaseError(kind=e.kind, message=f"{changelog_path}: {e.message}", hint=e.hint)
            )
        self._run.has_breaking_change = parsed.value

        manifest = read_script_manifest(self.root / self._config.scripts_manifest)
        if isinstance(manifest, Err):
            return manifest
        self._run.scripts = manifest.value

        self._console.info("Finished pre-release checks.")
        return Ok(None)

    def _resolve_version(self) -> Result[None, ReleaseError]:
        self._console.info("Resolving next release version...")
        tags = self._vcs.list_tags()
        if isinstance(tags, Err):
            return _git_failure("vcs_failed", "failed to list repository tags", tags.error)

        previous = latest_release_version(tags.value)
        version = next_version(
            previous,
            has_breaking_change=self._run.has_breaking_change,
            bump_major=self._config.bump_major,
        )
        self._run.plan = ReleasePlan(
            previous=previous,
            version=version,
            has_breaking_change=self._run.has_breaking_change,
            scripts=self._run.scripts,
        )
        self._console.print(f"previous release: {previous}", Style.DIM)
        return Ok(None)

    def _confirm_with_operator(self) -> Result[None, ReleaseError]:
        version = str(self._plan().version)
        if not self._confirm(version):
            return Err(
                ReleaseError(
                    kind="aborted",
                    message=f"release of '{version}' was not confirmed",
                    hint="nothing was changed",
                )
            )
        return Ok(None)

    # -- guarded stages -------------------------------------------------------

    def _run_pre_release_scripts(self) -> Result[None, ReleaseError]:
        plan = self._plan()
        remote_head = self._run.remote_head or ""
        self._guards.guard(
            f"reset local changes to '{self._config.remote_branch}'",
            lambda: self._vcs.reset_hard(remote_head),
            manual=f"Run 'git reset --hard {self._config.remote_branch}' to undo local changes "
            f"made for release '{plan.version}'.",
        )

        self._console.info("Running pre-release scripts...")
        return run_pre_release_scripts(
            repo_root=self.root,
            scripts=plan.scripts,
            version=str(plan.version),
            console=self._console,
            runner=self._script_runner,
        )

    def _rewrite_changelog(self) -> Result[None, ReleaseError]:
        self._console.info("Updating the changelog...")
        return update_changelog_file(
            self.root / self._config.changelog_path, str(self._plan().version)
        )

    def _commit_locally(self) -> Result[None, ReleaseError]:
        plan = self._plan()
        ignore_path = self.root / self._config.gitignore_path
        if not ignore_path.is_file():
            return Err(
                ReleaseError(
                    kind="persistence_failed",
                    message="ignore-pattern file for staging not found",
                    hint=str(ignore_path),
                )
            )

        self._console.info("Committing changes locally...")
        staged = self._vcs.add_all(excludes_file=ignore_path)
        if isinstance(staged, Err):
            return _git_failure(
                "persistence_failed", "failed to stage release changes", staged.error
            )

        identity = self._run.identity
        if identity is None:
            raise AssertionError("identity used before the repository was opened")
        committed = self._vcs.commit(
            COMMIT_MESSAGE_TEMPLATE.format(version=plan.version),
            author=identity,
            when=self._clock(),
        )
        if isinstance(committed, Err):
            return _git_failure(
                "persistence_failed",
                f"failed to commit release '{plan.version}'",
                committed.error,
            )
        self._run.commit = committed.value
        return Ok(None)

    def _tag_locally(self) -> Result[None, ReleaseError]:
        plan = self._plan()
        head = self._run.commit or ""
        self._console.info("Setting release version tags...")

        for tag in (plan.tag, plan.v_tag):
            guard = self._guards.guard(
                f"delete local tag '{tag}'",
                lambda tag=tag: self._vcs.delete_tag(tag),
                manual=f"Run 'git tag -d {tag}' to delete the tag.",
            )
            created = self._vcs.create_tag(tag, head, message=tag)
            if isinstance(created, Err):
                guard.disarm()
                return _git_failure(
                    "persistence_failed", f"failed to create tag '{tag}'", created.error
                )
        return Ok(None)

    def _push_v_tag(self) -> Result[None, ReleaseError]:
        remote = self._config.remote
        v_tag = self._plan().v_tag
        guard = self._guards.guard(
            f"delete tag '{v_tag}' from '{remote}'",
            lambda: self._vcs.push(remote, [f":refs/tags/{v_tag}"], auth=self._auth),
            manual=f"Run 'git push --delete {remote} {v_tag}' to delete the tag.",
        )
        self._console.info(f"Pushing tag '{v_tag}' to '{remote}'...")
        return self._push(
            [f"refs/tags/{v_tag}:refs/tags/{v_tag}"], what=f"tag '{v_tag}'", guard=guard
        )

    def _push_commits(self) -> Result[None, ReleaseError]:
        remote = self._config.remote
        branch = self._config.branch
        guard = self._guards.warn(
            f"revert push to '{self._config.remote_branch}'",
            UNDO_REMOTE_PUSH_MESSAGE.format(remote=remote, branch=branch),
        )
        self._console.info(f"Pushing release commit to '{self._config.remote_branch}'...")
        return self._push(
            [f"refs/heads/{branch}:refs/heads/{branch}"],
            what=f"release commit to '{self._config.remote_branch}'",
            guard=guard,
        )

    def _push_plain_tag(self) -> Result[None, ReleaseError]:
        tag = self._plan().tag
        self._console.info(f"Pushing tag '{tag}' to '{self._config.remote}'...")
        return self._push([f"refs/tags/{tag}:refs/tags/{tag}"], what=f"tag '{tag}'", guard=None)

    def _push(
        self, refspecs: list[str], *, what: str, guard: Guard | None
    ) -> Result[None, ReleaseError]:
        pushed = self._vcs.push(self._config.remote, refspecs, auth=self._auth)
        if isinstance(pushed, Err):
            # A rejected single-ref push leaves the remote ref untouched
            if guard is not None:
                guard.disarm()
            return _git_failure(
                "push_failed", f"failed to push {what} to '{self._config.remote}'", pushed.error
            )
        return Ok(None)
