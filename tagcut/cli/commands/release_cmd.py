from __future__ import annotations

from pathlib import Path

import typer

from tagcut.cli.context import build_context
from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err
from tagcut.git.repository import GitAuth, Repository
from tagcut.output.console import ConsoleProtocol, Style
from tagcut.release.contracts import ConfirmFn
from tagcut.release.errors import ReleaseError
from tagcut.release.orchestrator import ReleaseOrchestrator


def release_error_code(error: ReleaseError) -> ErrorCode:
    if error.kind in {"fetch_failed", "push_failed"}:
        return ErrorCode.NETWORK_ERROR
    match error.category:
        case "precondition":
            return ErrorCode.ENV_ERROR
        case "script":
            return ErrorCode.SCRIPT_ERROR
        case "persistence":
            return ErrorCode.IO_ERROR
        case "changelog" | "aborted":
            return ErrorCode.USER_ERROR


def prompt_confirm(console: ConsoleProtocol) -> ConfirmFn:
    def confirm(version: str) -> bool:
        console.header(f"VERIFICATION: release new version '{version}'?")
        try:
            return typer.confirm("Continue", default=False)
        except typer.Abort:
            return False

    return confirm


def _assume_yes(version: str) -> bool:
    return True


def release(
    token: str = typer.Argument(..., help="Token used to authenticate fetch and push."),
    bump_major: bool = typer.Option(
        False,
        "--bump-major",
        help="Bump the major version instead of inferring the bump from the changelog.",
    ),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository root (defaults to the current directory).",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Cut a new release: update the changelog, commit, tag and push."""
    ctx = build_context(repo)
    console = ctx.console
    config = ctx.config.with_bump_major(bump_major or ctx.config.bump_major)

    orchestrator = ReleaseOrchestrator(
        vcs=Repository(ctx.repo_root),
        config=config,
        console=console,
        confirm=_assume_yes if yes else prompt_confirm(console),
        auth=GitAuth(token=token),
    )

    result = orchestrator.run()
    if isinstance(result, Err):
        error = result.error
        console.error(error.pretty())
        raise typer.Exit(code=int(release_error_code(error)))

    outcome = result.value
    console.print(f"released {outcome.version} (previous: {outcome.previous_version})", Style.DIM)
