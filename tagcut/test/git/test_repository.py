"""Tests for git/repository.py."""

from __future__ import annotations

import base64
from datetime import UTC, datetime
from pathlib import Path

import pytest

from tagcut.core.result import Err, Ok, Result
from tagcut.git import repository as repository_mod
from tagcut.git.repository import GitAuth, GitStatus, Identity, Repository, StatusEntry
from tagcut.platform.process import ProcessError


class _FakeGit:
    """Replaces run_process and answers by git subcommand."""

    def __init__(self, answers: dict[str, Result[str, ProcessError]] | None = None) -> None:
        self.answers = answers or {}
        self.calls: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []
        self.timeouts: list[float | None] = []

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        *,
        extra_env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        self.calls.append(cmd)
        self.envs.append(extra_env)
        self.timeouts.append(timeout)
        args = cmd[cmd.index("-C") + 2 :]
        key = " ".join(args)
        for prefix, answer in self.answers.items():
            if key.startswith(prefix):
                return answer
        return Ok("")

    def args(self, i: int = -1) -> list[str]:
        cmd = self.calls[i]
        return cmd[cmd.index("-C") + 2 :]


def _fail(stderr: str, code: int = 128) -> Err[ProcessError]:
    return Err(ProcessError(command=("git",), returncode=code, stdout="", stderr=stderr))


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> _FakeGit:
    fake = _FakeGit()
    monkeypatch.setattr(repository_mod, "run_process", fake)
    return fake


# =============================================================================
# Status
# =============================================================================


class TestStatus:
    def test_clean(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.answers["status"] = Ok("")

        result = Repository(tmp_path).status()

        assert result == Ok(GitStatus())
        assert isinstance(result, Ok) and result.value.is_clean
        assert fake_git.args() == ["status", "--porcelain=v1"]

    def test_dirty(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.answers["status"] = Ok(" M src/a.py\nA  b.py\n?? notes.txt\n")

        result = Repository(tmp_path).status()

        assert isinstance(result, Ok)
        status = result.value
        assert not status.is_clean
        assert status.entries[2] == StatusEntry(xy="??", path="notes.txt")
        assert status.describe() == ".M src/a.py\nA. b.py\n?? notes.txt"

    def test_error(self, fake_git: _FakeGit, tmp_path: Path) -> None:
        fake_git.answers["status"] = _fail("fatal: not a git repository\n")

        result = Repository(tmp_path).status()

        assert isinstance(result, Err)
        assert result.error.command == "status"
        assert result.error.message == "fatal: not a git repository"


# =============================================================================
# Identity and revisions
# =============================================================================


def test_global_identity(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["config --global --get user.name"] = Ok("Rel Bot\n")
    fake_git.answers["config --global --get user.email"] = Ok("rel@example.com\n")

    result = Repository(tmp_path).global_identity()

    assert result == Ok(Identity(name="Rel Bot", email="rel@example.com"))


def test_global_identity_unset_key_is_empty(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["config --global --get user.name"] = Ok("Rel Bot\n")
    fake_git.answers["config --global --get user.email"] = _fail("", code=1)

    result = Repository(tmp_path).global_identity()

    assert isinstance(result, Ok)
    assert result.value.email == ""
    assert not result.value.is_complete


def test_resolve_revision(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["rev-parse"] = Ok("abc123\n")

    assert Repository(tmp_path).resolve_revision("origin/main") == Ok("abc123")
    assert fake_git.args() == ["rev-parse", "--verify", "--quiet", "origin/main^{commit}"]


def test_resolve_unknown_revision(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["rev-parse"] = _fail("", code=1)

    result = Repository(tmp_path).resolve_revision("nope")

    assert isinstance(result, Err)
    assert result.error.message == "unknown revision: nope"


def test_list_tags(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["tag --list"] = Ok("1.0.0\nv1.0.0\n\nnightly\n")

    assert Repository(tmp_path).list_tags() == Ok(["1.0.0", "v1.0.0", "nightly"])


# =============================================================================
# Mutations
# =============================================================================


def test_add_all_applies_excludes_file_as_one_shot_config(
    fake_git: _FakeGit, tmp_path: Path
) -> None:
    Repository(tmp_path).add_all(excludes_file=tmp_path / ".gitignore")

    cmd = fake_git.calls[-1]
    assert cmd[1:3] == ["-c", f"core.excludesFile={tmp_path / '.gitignore'}"]
    assert fake_git.args() == ["add", "--all"]


def test_add_all_without_excludes_file(fake_git: _FakeGit, tmp_path: Path) -> None:
    Repository(tmp_path).add_all()

    assert fake_git.calls[-1][:2] == ["git", "-C"]
    assert fake_git.args() == ["add", "--all"]


def test_commit_uses_author_and_date(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["rev-parse"] = Ok("def456\n")
    when = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)

    result = Repository(tmp_path).commit(
        "Finalize changes for release version '1.0.1'",
        author=Identity("Rel Bot", "rel@example.com"),
        when=when,
    )

    assert result == Ok("def456")
    assert fake_git.args(0) == [
        "commit",
        "--message",
        "Finalize changes for release version '1.0.1'",
        "--author",
        "Rel Bot <rel@example.com>",
        "--date",
        "2026-03-01T09:30:00+00:00",
    ]


def test_create_and_delete_tag(fake_git: _FakeGit, tmp_path: Path) -> None:
    repo = Repository(tmp_path)

    assert repo.create_tag("1.0.1", "def456", message="1.0.1") == Ok(None)
    assert fake_git.args() == ["tag", "--annotate", "--message", "1.0.1", "1.0.1", "def456"]

    assert repo.delete_tag("1.0.1") == Ok(None)
    assert fake_git.args() == ["tag", "--delete", "1.0.1"]


def test_push_with_token_auth_has_no_timeout(fake_git: _FakeGit, tmp_path: Path) -> None:
    auth = GitAuth(token="s3cret")

    result = Repository(tmp_path).push("origin", [":refs/tags/v1.0.1"], auth=auth)

    assert result == Ok(None)
    cmd = fake_git.calls[-1]
    expected = base64.b64encode(b"git:s3cret").decode("ascii")
    assert cmd[:3] == ["git", "-c", f"http.extraHeader=Authorization: Basic {expected}"]
    assert fake_git.args() == ["push", "origin", ":refs/tags/v1.0.1"]
    assert fake_git.timeouts[-1] is None
    assert fake_git.envs[-1] == {"GIT_TERMINAL_PROMPT": "0"}


def test_push_failure_carries_stderr(fake_git: _FakeGit, tmp_path: Path) -> None:
    fake_git.answers["push"] = _fail("! [rejected] main -> main (fetch first)\n", code=1)

    result = Repository(tmp_path).push("origin", ["refs/heads/main:refs/heads/main"])

    assert isinstance(result, Err)
    assert "rejected" in result.error.message
    assert result.error.command == "push origin refs/heads/main:refs/heads/main"


def test_local_commands_are_bounded(fake_git: _FakeGit, tmp_path: Path) -> None:
    Repository(tmp_path).reset_hard("abc123")

    assert fake_git.args() == ["reset", "--hard", "abc123"]
    assert fake_git.timeouts[-1] is not None


def test_auth_repr_hides_token() -> None:
    assert "s3cret" not in repr(GitAuth(token="s3cret"))


def test_exists(tmp_path: Path) -> None:
    repo = Repository(tmp_path)
    assert not repo.exists()
    (tmp_path / ".git").mkdir()
    assert repo.exists()
