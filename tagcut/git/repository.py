"""Git repository abstraction.

``Repository`` drives the ``git`` CLI for every operation a release needs.
All operations that can fail return Result types.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.status():
        case Ok(status):
            if not status.is_clean:
                print(status.describe())
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import base64
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.platform.process import ProcessError
from tagcut.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_NETWORK_COMMANDS = frozenset({"fetch", "push"})
# Credentials come only from GitAuth; git must fail instead of prompting
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}

__all__ = [
    "GitAuth",
    "GitError",
    "GitStatus",
    "Identity",
    "Repository",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message (git's stderr when available)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class Identity:
    """Commit author taken from the global git config."""

    name: str
    email: str

    @property
    def is_complete(self) -> bool:
        return bool(self.name.strip() and self.email.strip())

    def as_author(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True, slots=True, repr=False)
class GitAuth:
    """Token-based HTTP basic auth for fetch and push.

    The hosting side ignores the username; the token is the password. The
    header is passed per invocation and never written to the git config.
    """

    token: str
    username: str = "git"

    def config_args(self) -> list[str]:
        raw = f"{self.username}:{self.token}".encode()
        basic = base64.b64encode(raw).decode("ascii")
        return ["-c", f"http.extraHeader=Authorization: Basic {basic}"]

    def __repr__(self) -> str:
        return f"GitAuth(username={self.username!r}, token='***')"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed `git status --porcelain=v1` output.

    Attributes:
        entries: All status entries (staged, unstaged, untracked)
    """

    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    def describe(self) -> str:
        """Render entries the way `git status --short` would."""
        return "\n".join(f"{e.pretty_xy()} {e.path}" for e in self.entries)


class Repository:
    """Git repository driven through the git CLI.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check for a `.git` directory (or worktree `.git` file) at the root."""
        return (self.path / ".git").exists()

    def git_dir(self) -> Result[Path, GitError]:
        result = self._run(["rev-parse", "--absolute-git-dir"])
        match result:
            case Err(e):
                return Err(self._error("rev-parse --absolute-git-dir", e))
            case Ok(stdout):
                return Ok(Path(stdout.strip()))

    def global_identity(self) -> Result[Identity, GitError]:
        """Read user.name and user.email from the global scope.

        Unset keys come back as empty strings; callers decide whether that
        is acceptable.
        """
        values: list[str] = []
        for key in ("user.name", "user.email"):
            result = self._run(["config", "--global", "--get", key])
            match result:
                case Ok(stdout):
                    values.append(stdout.strip())
                case Err(e) if e.returncode == 1:
                    # git config exits 1 when the key is unset
                    values.append("")
                case Err(e):
                    return Err(self._error(f"config --global --get {key}", e))
        return Ok(Identity(name=values[0], email=values[1]))

    def remote_url(self, remote: str) -> Result[str, GitError]:
        result = self._run(["remote", "get-url", remote])
        match result:
            case Err(e):
                return Err(self._error(f"remote get-url {remote}", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status via `git status --porcelain=v1`."""
        result = self._run(["status", "--porcelain=v1"])
        match result:
            case Err(e):
                return Err(self._error("status", e))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def fetch(self, remote: str, *, auth: GitAuth | None = None) -> Result[str, GitError]:
        result = self._run(["fetch", remote], auth=auth)
        match result:
            case Err(e):
                return Err(self._error(f"fetch {remote}", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def resolve_revision(self, rev: str) -> Result[str, GitError]:
        """Resolve a revision (branch, remote branch, tag) to a commit hash."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=f"rev-parse {rev}",
                        message=e.stderr.strip() or f"unknown revision: {rev}",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip())

    def checkout(self, branch: str) -> Result[None, GitError]:
        result = self._run(["checkout", branch])
        if isinstance(result, Err):
            return Err(self._error(f"checkout {branch}", result.error))
        return Ok(None)

    def add_all(self, *, excludes_file: Path | None = None) -> Result[None, GitError]:
        """Stage every change like `git add --all`.

        ``excludes_file`` is applied as ``core.excludesFile`` for this call
        only, on top of the repository's own ignore rules. Git evaluates it,
        so negations follow last-match-wins and tracked files are always
        staged.
        """
        config = {"core.excludesFile": str(excludes_file)} if excludes_file is not None else {}
        result = self._run(["add", "--all"], config=config)
        if isinstance(result, Err):
            return Err(self._error("add --all", result.error))
        return Ok(None)

    def commit(self, message: str, *, author: Identity, when: datetime) -> Result[str, GitError]:
        """Commit the staged changes and return the new HEAD hash."""
        result = self._run(
            [
                "commit",
                "--message",
                message,
                "--author",
                author.as_author(),
                "--date",
                when.isoformat(),
            ]
        )
        if isinstance(result, Err):
            return Err(self._error("commit", result.error))
        return self.head()

    def head(self) -> Result[str, GitError]:
        return self.resolve_revision("HEAD")

    def create_tag(self, name: str, target: str, *, message: str) -> Result[None, GitError]:
        result = self._run(["tag", "--annotate", "--message", message, name, target])
        if isinstance(result, Err):
            return Err(self._error(f"tag {name}", result.error))
        return Ok(None)

    def delete_tag(self, name: str) -> Result[None, GitError]:
        result = self._run(["tag", "--delete", name])
        if isinstance(result, Err):
            return Err(self._error(f"tag --delete {name}", result.error))
        return Ok(None)

    def push(
        self, remote: str, refspecs: Sequence[str], *, auth: GitAuth | None = None
    ) -> Result[None, GitError]:
        """Push ref-specs to a remote. An empty list pushes the current branch."""
        args = ["push", remote, *refspecs]
        result = self._run(args, auth=auth)
        if isinstance(result, Err):
            return Err(self._error(" ".join(args), result.error))
        return Ok(None)

    def list_tags(self) -> Result[list[str], GitError]:
        result = self._run(["tag", "--list"])
        match result:
            case Err(e):
                return Err(self._error("tag --list", e))
            case Ok(stdout):
                return Ok([line.strip() for line in stdout.splitlines() if line.strip()])

    def reset_hard(self, commit: str) -> Result[None, GitError]:
        result = self._run(["reset", "--hard", commit])
        if isinstance(result, Err):
            return Err(self._error(f"reset --hard {commit}", result.error))
        return Ok(None)

    def _run(
        self,
        args: list[str],
        *,
        auth: GitAuth | None = None,
        config: Mapping[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        """Run a git command in this repository.

        ``config`` entries become one-shot ``-c key=value`` options. Network
        commands get no timeout: they block until the transport resolves or
        fails.
        """
        command = args[0] if args else ""
        timeout = None if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        options = auth.config_args() if auth is not None else []
        for key, value in (config or {}).items():
            options += ["-c", f"{key}={value}"]
        return run_process(
            ["git", *options, "-C", str(self.path), *args],
            cwd=self.path,
            extra_env=_GIT_ENV,
            timeout=timeout,
        )

    def _error(self, command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.output or f"git {command} failed",
            returncode=e.returncode,
        )

    def _parse_status(self, output: str) -> GitStatus:
        entries: list[StatusEntry] = []
        for line in output.splitlines():
            entry = self._parse_entry(line)
            if entry:
                entries.append(entry)
        return GitStatus(entries=tuple(entries))

    def _parse_entry(self, line: str) -> StatusEntry | None:
        if len(line) < 4:
            return None

        if line.startswith("?? "):
            return StatusEntry(xy="??", path=line[3:])

        return StatusEntry(xy=line[:2], path=line[3:])
