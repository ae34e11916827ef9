"""Process exit codes.

The orchestration contract is binary: 0 when every selected build or phase
succeeded, 1 otherwise. Environment problems that prevent the tool from
starting at all (unreadable configuration) get their own code so scripts can
tell them apart from build failures.
"""

from __future__ import annotations

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable.
    """

    OK = 0
    FAILURE = 1
    ENV_ERROR = 2

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @classmethod
    def from_success(cls, success: bool) -> ErrorCode:
        """Map a boolean outcome onto the binary exit contract."""
        return cls.OK if success else cls.FAILURE
