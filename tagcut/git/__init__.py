"""Git operations module.

Usage:
    from tagcut.git import Repository

    repo = Repository(Path("/path/to/repo"))
    tags = repo.list_tags()
"""

from tagcut.git.repository import (
    GitAuth,
    GitError,
    GitStatus,
    Identity,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitAuth",
    "GitError",
    "GitStatus",
    "Identity",
    "Repository",
    "StatusEntry",
]
