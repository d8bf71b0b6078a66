"""External commands (git, pre-release scripts) run to completion.

Output is captured and failures come back as ``ProcessError`` values, so a
caller can put a script's stderr in front of the operator verbatim:

    match run(["git", "tag", "--list"], cwd=repo_root):
        case Ok(stdout):
            tags = stdout.splitlines()
        case Err(error):
            console.error(error.output)
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from tagcut.core.result import Err, Ok, Result

__all__ = ["NOT_STARTED", "ProcessError", "run"]

NOT_STARTED = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not start, timed out or exited non-zero.

    Attributes:
        command: argv as executed.
        returncode: Exit status, ``NOT_STARTED`` when there is none.
        stdout: Captured standard output.
        stderr: Captured standard error, untouched.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def started(self) -> bool:
        return self.returncode != NOT_STARTED

    @property
    def output(self) -> str:
        """The most useful diagnostic text: stderr, else stdout."""
        return self.stderr.strip() or self.stdout.strip()

    def __str__(self) -> str:
        program = self.command[0] if self.command else "<empty>"
        if not self.started:
            return f"{program}: {self.stderr.strip() or 'could not be started'}"
        return f"{program} exited with status {self.returncode}"


def run(
    cmd: Sequence[str],
    cwd: Path,
    *,
    extra_env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run cmd in cwd and return its stdout.

    ``extra_env`` is layered over the current environment. Without a
    ``timeout`` the call blocks until the process exits.
    """
    argv = tuple(cmd)
    env = None if extra_env is None else {**os.environ, **extra_env}
    try:
        proc = subprocess.run(
            list(argv),
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(ProcessError(argv, NOT_STARTED, partial, f"timed out after {timeout}s"))
    except OSError as e:
        return Err(ProcessError(argv, NOT_STARTED, "", str(e)))

    if proc.returncode != 0:
        return Err(ProcessError(argv, proc.returncode, proc.stdout, proc.stderr))
    return Ok(proc.stdout)
