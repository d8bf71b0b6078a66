"""Pre-release scripts.

A manifest at the repository root lists scripts to run before the release
commit, one path per line relative to the root. Each script receives the
release version as its only argument, for example to bump a version
constant that then lands in the release commit.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.output.console import ConsoleProtocol, Style
from tagcut.platform.process import ProcessError
from tagcut.platform.process import run as run_process
from tagcut.release.errors import ReleaseError

ScriptRunner = Callable[[list[str], Path], Result[str, ProcessError]]


def _default_runner(cmd: list[str], cwd: Path) -> Result[str, ProcessError]:
    return run_process(cmd, cwd=cwd)


def read_script_manifest(path: Path) -> Result[tuple[str, ...], ReleaseError]:
    """Read script paths in declared order, skipping blank lines."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="missing_file",
                message=f"failed to read pre-release script manifest: {e.strerror or e}",
                hint=str(path),
            )
        )

    return Ok(tuple(line.strip() for line in text.split("\n") if line.strip()))


def run_pre_release_scripts(
    *,
    repo_root: Path,
    scripts: Sequence[str],
    version: str,
    console: ConsoleProtocol,
    runner: ScriptRunner | None = None,
) -> Result[None, ReleaseError]:
    """Run each script with the version; stop at the first failure.

    A failing script's stderr is returned verbatim in the error hint.
    """
    run = runner or _default_runner
    for script in scripts:
        script_path = repo_root / script
        cmd = [str(script_path), version]
        console.print(f"$ {script} {version}", Style.DIM)

        result = run(cmd, repo_root)
        if isinstance(result, Err):
            e = result.error
            if not e.started:
                message = f"pre-release script '{script_path} {version}' could not be run"
            else:
                message = (
                    f"pre-release script '{script_path} {version}' failed (exit {e.returncode})"
                )
            return Err(ReleaseError(kind="script_failed", message=message, hint=e.stderr or None))

    return Ok(None)
