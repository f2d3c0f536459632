"""Process exit codes for relflow commands.

CI systems branch on these values, so they must stay stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad input, malformed version in a branch name)
    - 2: Environment error (git missing, unreadable config, lock held)
    - 3: Release error (version required but missing, duplicate tag)
    - 4: Collaborator error (sync timeout, merge conflict, git failure)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    COLLABORATOR_ERROR = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
