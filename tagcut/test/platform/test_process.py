from __future__ import annotations

import sys
from pathlib import Path

import pytest

from tagcut.core.result import Err, Ok
from tagcut.platform.process import NOT_STARTED, ProcessError, run


def test_run_returns_stdout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

    assert isinstance(result, Ok)
    assert result.value.strip() == "hello"


def test_run_uses_cwd(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)

    assert isinstance(result, Ok)
    assert Path(result.value.strip()).resolve() == tmp_path.resolve()


def test_run_nonzero_exit_keeps_stderr(tmp_path: Path) -> None:
    code = "import sys; sys.stderr.write('bad input\\n'); sys.exit(3)"

    result = run([sys.executable, "-c", code], cwd=tmp_path)

    assert isinstance(result, Err)
    assert result.error.returncode == 3
    assert result.error.stderr == "bad input\n"


def test_run_missing_executable(tmp_path: Path) -> None:
    result = run([str(tmp_path / "does-not-exist")], cwd=tmp_path)

    assert isinstance(result, Err)
    assert result.error.returncode == NOT_STARTED
    assert not result.error.started


def test_run_timeout(tmp_path: Path) -> None:
    result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

    assert isinstance(result, Err)
    assert not result.error.started
    assert "timed out" in result.error.stderr


def test_run_extra_env_is_layered(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TAGCUT_OUTER", "outer")
    code = "import os; print(os.environ['TAGCUT_OUTER'], os.environ['TAGCUT_INNER'])"

    result = run([sys.executable, "-c", code], cwd=tmp_path, extra_env={"TAGCUT_INNER": "inner"})

    assert result == Ok("outer inner\n")


def test_process_error_output_prefers_stderr() -> None:
    error = ProcessError(("git", "push"), 1, "Everything up-to-date\n", "! [rejected]\n")
    assert error.output == "! [rejected]"
    assert str(error) == "git exited with status 1"


def test_process_error_output_falls_back_to_stdout() -> None:
    error = ProcessError(("./bump.sh",), 2, "no VERSION file\n", "")
    assert error.output == "no VERSION file"


def test_process_error_not_started_str() -> None:
    error = ProcessError(("./missing.sh",), NOT_STARTED, "", "No such file or directory")
    assert str(error) == "./missing.sh: No such file or directory"
