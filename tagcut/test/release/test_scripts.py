from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from tagcut.core.result import Err, Ok, Result
from tagcut.output.console import MockConsole
from tagcut.platform.process import ProcessError
from tagcut.release.scripts import read_script_manifest, run_pre_release_scripts


def test_read_manifest_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / ".pre-release-scripts.txt"
    path.write_text("scripts/a.sh\n\n   \nscripts/b.sh\n", encoding="utf-8")

    assert read_script_manifest(path) == Ok(("scripts/a.sh", "scripts/b.sh"))


def test_read_manifest_missing(tmp_path: Path) -> None:
    result = read_script_manifest(tmp_path / ".pre-release-scripts.txt")

    assert isinstance(result, Err)
    assert result.error.kind == "missing_file"


def test_scripts_run_in_order_and_stop_at_first_failure(tmp_path: Path) -> None:
    seen: list[list[str]] = []

    def runner(cmd: list[str], cwd: Path) -> Result[str, ProcessError]:
        assert cwd == tmp_path
        seen.append(cmd)
        if "second" in cmd[0]:
            return Err(ProcessError(tuple(cmd), 1, "", "boom\nline two\n"))
        return Ok("")

    result = run_pre_release_scripts(
        repo_root=tmp_path,
        scripts=("first.sh", "second.sh", "third.sh"),
        version="1.0.0",
        console=MockConsole(),
        runner=runner,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "script_failed"
    assert result.error.hint == "boom\nline two\n"
    assert "exit 1" in result.error.message
    assert [c[0] for c in seen] == [str(tmp_path / "first.sh"), str(tmp_path / "second.sh")]
    assert all(c[1] == "1.0.0" for c in seen)


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script")
def test_real_script_receives_version(tmp_path: Path) -> None:
    script = tmp_path / "write_version.sh"
    script.write_text('#!/bin/sh\necho "$1" > VERSION\n', encoding="utf-8")
    os.chmod(script, 0o755)

    result = run_pre_release_scripts(
        repo_root=tmp_path,
        scripts=("write_version.sh",),
        version="2.3.4",
        console=MockConsole(),
    )

    assert result == Ok(None)
    assert (tmp_path / "VERSION").read_text(encoding="utf-8") == "2.3.4\n"


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script")
def test_real_script_failure_keeps_stderr_verbatim(tmp_path: Path) -> None:
    script = tmp_path / "fail.sh"
    script.write_text('#!/bin/sh\necho "cannot bump $1" >&2\nexit 3\n', encoding="utf-8")
    os.chmod(script, 0o755)

    result = run_pre_release_scripts(
        repo_root=tmp_path,
        scripts=("fail.sh",),
        version="2.3.4",
        console=MockConsole(),
    )

    assert isinstance(result, Err)
    assert result.error.hint == "cannot bump 2.3.4\n"
    assert "exit 3" in result.error.message


def test_missing_script_cannot_be_run(tmp_path: Path) -> None:
    result = run_pre_release_scripts(
        repo_root=tmp_path,
        scripts=("does-not-exist.sh",),
        version="1.0.0",
        console=MockConsole(),
    )

    assert isinstance(result, Err)
    assert result.error.kind == "script_failed"
    assert "could not be run" in result.error.message
