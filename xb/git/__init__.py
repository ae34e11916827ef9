"""Git operations used by the release workflow.

Usage:
    from xb.git import Repository

    repo = Repository(root, runner)
    if await repo.is_clean():
        ...
"""

from xb.git.commit_message import COMMIT_TYPES, CommitMessage, release_message
from xb.git.repository import (
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    # Repository
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
    # Messages
    "COMMIT_TYPES",
    "CommitMessage",
    "release_message",
]
