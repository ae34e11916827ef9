"""Git repository abstraction.

The release workflow treats version control as an external collaborator:
it asks whether the tree is clean, stages everything, commits, tags and
pushes. Every operation awaits a `git` child through a `ProcessRunner` and
returns a Result.

Usage:
    repo = Repository(root, runner)

    if not await repo.is_clean():
        ...

    match await repo.commit("chore: release v1.2.0"):
        case Ok(_):
            print("committed")
        case Err(e):
            print(f"commit failed: {e.message}")
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from xb.core.result import Err, Ok, Result
from xb.platform.process import ProcessRunner

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]

DEFAULT_REMOTE = "origin"


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code (-1 when git could not be started)
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single `git status --porcelain` line."""

    xy: str
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"


@dataclass(frozen=True, slots=True)
class GitStatus:
    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0


class Repository:
    """Operations on the project's working tree."""

    def __init__(
        self,
        path: Path,
        runner: ProcessRunner,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.path = path
        self._runner = runner
        self._env = env

    async def status(self) -> Result[GitStatus, GitError]:
        result = await self._run(["status", "--porcelain=v1", "-b"])
        if isinstance(result, Err):
            return result
        return Ok(_parse_status(result.value))

    async def is_clean(self) -> bool:
        """True if the working tree has no changes.

        Returns False if status cannot be determined.
        """
        result = await self._run(["status", "--porcelain"])
        match result:
            case Ok(stdout):
                return stdout.strip() == ""
            case Err(_):
                return False

    async def current_branch(self) -> str | None:
        """Current branch name, None on detached HEAD or error."""
        result = await self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch in {"", "HEAD"} else branch
            case Err(_):
                return None

    async def has_upstream(self) -> bool:
        result = await self._run(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"])
        return isinstance(result, Ok)

    async def add_all(self) -> Result[None, GitError]:
        result = await self._run(["add", "-A"])
        if isinstance(result, Err):
            return result
        return Ok(None)

    async def commit(self, message: str) -> Result[str, GitError]:
        result = await self._run(["commit", "-m", message])
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    async def tag(self, name: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag on HEAD."""
        result = await self._run(["tag", "-a", name, "-m", message])
        if isinstance(result, Err):
            return result
        return Ok(None)

    async def push(self) -> Result[str, GitError]:
        """Push the current branch, setting the upstream when there is none."""
        if await self.has_upstream():
            result = await self._run(["push"])
        else:
            branch = await self.current_branch()
            if branch is None:
                return Err(GitError(command="push", message="cannot push a detached HEAD"))
            result = await self._run(["push", "--set-upstream", DEFAULT_REMOTE, branch])
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    async def push_tags(self) -> Result[None, GitError]:
        result = await self._run(["push", "--tags"])
        if isinstance(result, Err):
            return result
        return Ok(None)

    async def _run(self, args: list[str]) -> Result[str, GitError]:
        command = " ".join(args[:2]) if args else ""
        result = await self._runner.run_captured(
            ["git", "-C", str(self.path), *args], cwd=self.path, env=self._env
        )
        match result:
            case Err(e):
                return Err(GitError(command=command, message=e.message, returncode=-1))
            case Ok(out) if not out.ok:
                return Err(
                    GitError(
                        command=command,
                        message=out.stderr.strip() or out.stdout.strip() or f"git {command} failed",
                        returncode=out.exit_code,
                    )
                )
            case Ok(out):
                return Ok(out.stdout)


def _parse_status(output: str) -> GitStatus:
    """Parse `git status --porcelain=v1 -b` output."""
    lines = [ln for ln in output.splitlines() if ln.strip()]
    if not lines:
        return GitStatus(branch="")

    branch, upstream = _parse_branch_line(lines[0])
    ahead, behind = _parse_ahead_behind(lines[0])
    entries = tuple(
        StatusEntry(xy=line[:2], path=line[3:]) for line in lines[1:] if len(line) >= 4
    )
    return GitStatus(branch=branch, upstream=upstream, ahead=ahead, behind=behind, entries=entries)


def _parse_branch_line(line: str) -> tuple[str, str | None]:
    s = line.strip()
    if s.startswith("##"):
        s = s[2:].lstrip()
    s = s.split(" [", 1)[0].strip()
    if "..." in s:
        left, right = s.split("...", 1)
        return (left.strip(), right.strip())
    return (s, None)


def _parse_ahead_behind(line: str) -> tuple[int, int]:
    match = re.search(r"\[([^\]]+)\]", line)
    if not match:
        return (0, 0)
    inside = match.group(1)
    ahead = re.search(r"ahead\s+(\d+)", inside)
    behind = re.search(r"behind\s+(\d+)", inside)
    return (
        int(ahead.group(1)) if ahead else 0,
        int(behind.group(1)) if behind else 0,
    )
