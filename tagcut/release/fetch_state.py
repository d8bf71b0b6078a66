"""Last-fetch sidecar file.

The time of the last fetch is kept as decimal Unix seconds in a small file
inside the repository's ``.git`` directory, so repeated release attempts
within the grace period do not hit the remote again.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.platform.files import atomic_write_text
from tagcut.release.errors import ReleaseError


def read_last_fetch(path: Path) -> Result[int | None, ReleaseError]:
    """Return the recorded Unix timestamp, or None when there is no usable record."""
    try:
        raw = path.read_text(encoding="ascii")
    except FileNotFoundError:
        return Ok(None)
    except (OSError, UnicodeDecodeError) as e:
        return Err(
            ReleaseError(
                kind="fetch_failed",
                message=f"failed to read last-fetch timestamp: {e}",
                hint=str(path),
            )
        )

    text = raw.strip()
    if not text.isdigit():
        return Ok(None)
    return Ok(int(text))


def is_stale(last_fetch: int | None, *, now: datetime, grace_seconds: int) -> bool:
    """A fetch is needed when there is no record, the record lies in the
    future, or the grace period has elapsed."""
    if last_fetch is None:
        return True
    now_ts = int(now.timestamp())
    if last_fetch > now_ts:
        return True
    return now_ts > last_fetch + grace_seconds


def should_fetch(path: Path, *, now: datetime, grace_seconds: int) -> Result[bool, ReleaseError]:
    last = read_last_fetch(path)
    if isinstance(last, Err):
        return last
    return Ok(is_stale(last.value, now=now, grace_seconds=grace_seconds))


def record_fetch(path: Path, *, now: datetime) -> Result[None, ReleaseError]:
    stamp = str(int(now.timestamp()))
    try:
        atomic_write_text(path, stamp, encoding="ascii")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="persistence_failed",
                message=f"failed to write last-fetch timestamp '{stamp}': {e}",
                hint=str(path),
            )
        )
    return Ok(None)
