from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from tagcut.core.config import ReleaseConfig, load_config_or_default
from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err
from tagcut.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_root: Path
    config: ReleaseConfig
    console: ConsoleProtocol


def build_context(repo: Path | None = None) -> CLIContext:
    try:
        root = (repo or Path.cwd()).expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid repository path: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config_result = load_config_or_default(root)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(repo_root=root, config=config_result.value, console=RichConsole())
