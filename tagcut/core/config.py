"""Typed release configuration.

``ReleaseConfig`` carries every knob the orchestrator needs. Defaults match
the conventional repository layout; a ``.tagcut.toml`` at the repository
root may override them under a ``[release]`` table:

    [release]
    branch = "main"
    changelog_path = "docs/changelog.md"
    fetch_grace_seconds = 60
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import cast

from .result import Err, Ok, Result

Table = dict[str, object]

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = ".tagcut.toml"

DEFAULT_REMOTE = "origin"
DEFAULT_BRANCH = "main"
DEFAULT_CHANGELOG_PATH = "docs/changelog.md"
DEFAULT_SCRIPTS_MANIFEST = ".pre-release-scripts.txt"
DEFAULT_GITIGNORE_PATH = ".gitignore"
DEFAULT_FETCH_STATE_FILENAME = "last-fetch.txt"
DEFAULT_FETCH_GRACE_SECONDS = 60


def _as_table(obj: object) -> Table | None:
    """Narrow parsed TOML to a table; TOML keys are always strings."""
    if isinstance(obj, dict):
        return cast(Table, obj)
    return None


def _str(table: Mapping[str, object], key: str, default: str) -> str:
    """A non-blank string value, stripped; anything else yields the default."""
    value = table.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    # bool is an int subclass; `true` is not a number of seconds
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _bool(table: Mapping[str, object], key: str, default: bool) -> bool:
    value = table.get(key)
    return value if isinstance(value, bool) else default


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the config file cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Settings for one release run.

    Attributes:
        bump_major: Force a major bump instead of changelog-driven inference.
        remote: Remote that is fetched from and pushed to.
        branch: Release branch, local and remote.
        changelog_path: Changelog location relative to the repository root.
        scripts_manifest: Pre-release script list relative to the repository root.
        gitignore_path: Ignore-pattern file relative to the repository root.
        fetch_state_filename: Sidecar file name inside the ``.git`` directory.
        fetch_grace_seconds: Minimum interval between two fetches.
    """

    bump_major: bool = False
    remote: str = DEFAULT_REMOTE
    branch: str = DEFAULT_BRANCH
    changelog_path: str = DEFAULT_CHANGELOG_PATH
    scripts_manifest: str = DEFAULT_SCRIPTS_MANIFEST
    gitignore_path: str = DEFAULT_GITIGNORE_PATH
    fetch_state_filename: str = DEFAULT_FETCH_STATE_FILENAME
    fetch_grace_seconds: int = DEFAULT_FETCH_GRACE_SECONDS

    @property
    def remote_branch(self) -> str:
        return f"{self.remote}/{self.branch}"

    def with_bump_major(self, bump_major: bool) -> ReleaseConfig:
        return replace(self, bump_major=bump_major)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create a config from parsed TOML, falling back to defaults per key."""
        release = _as_table(data.get("release")) or {}

        grace = _int(release, "fetch_grace_seconds")
        if grace is not None and grace < 0:
            raise ValueError(f"fetch_grace_seconds must be >= 0 (got {grace})")

        return cls(
            bump_major=_bool(release, "bump_major", False),
            remote=_str(release, "remote", DEFAULT_REMOTE),
            branch=_str(release, "branch", DEFAULT_BRANCH),
            changelog_path=_str(release, "changelog_path", DEFAULT_CHANGELOG_PATH),
            scripts_manifest=_str(release, "scripts_manifest", DEFAULT_SCRIPTS_MANIFEST),
            gitignore_path=_str(release, "gitignore_path", DEFAULT_GITIGNORE_PATH),
            fetch_state_filename=_str(
                release, "fetch_state_filename", DEFAULT_FETCH_STATE_FILENAME
            ),
            fetch_grace_seconds=DEFAULT_FETCH_GRACE_SECONDS if grace is None else grace,
        )


def _parse_toml(path: Path) -> Result[Table, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = _as_table(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse a release config file.

    Args:
        path: Path to a ``.tagcut.toml`` file

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(repo_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load ``.tagcut.toml`` from the repository root if it exists.

    A missing file yields the defaults; a present but broken file is an error.
    """
    path = repo_root / CONFIG_FILENAME
    if not path.exists():
        return Ok(ReleaseConfig())
    return load_config(path)
