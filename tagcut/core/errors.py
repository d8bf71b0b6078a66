"""Process exit codes for the tagcut CLI.

CI pipelines branch on these values, so they must stay stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    # Bad changelog, declined confirmation, bad arguments
    USER_ERROR = 1
    # Not a repository, dirty tree, missing identity or remote, bad config
    ENV_ERROR = 2
    # A pre-release script exited non-zero or could not start
    SCRIPT_ERROR = 3
    # Fetch or push failed
    NETWORK_ERROR = 4
    # Changelog write, commit or tag failed
    IO_ERROR = 5
