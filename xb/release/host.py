"""Release hosting through the GitHub CLI.

`ReleaseHost` is the seam the workflow talks to. `GhReleaseHost` drives `gh`;
`InMemoryReleaseHost` records calls for tests.

Creating a release for a tag that already has one yields
`Err(ReleaseAlreadyExists)` so the caller can switch to uploading assets to
the existing release instead.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

from xb.core.result import Err, Ok, Result
from xb.platform.process import ProcessOutput, ProcessRunner

__all__ = [
    "GhReleaseHost",
    "InMemoryReleaseHost",
    "ReleaseAlreadyExists",
    "ReleaseError",
    "ReleaseHost",
]

ReleaseErrorKind = Literal[
    "gh_missing",
    "gh_auth_required",
    "create_failed",
    "upload_failed",
    "query_failed",
]

GH_INSTALL_HINT = "Install GitHub CLI: https://cli.github.com/"


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseAlreadyExists:
    tag: str

    @property
    def message(self) -> str:
        return f"release {self.tag} already exists"


class ReleaseHost(Protocol):
    async def ensure_ready(self) -> Result[None, ReleaseError]: ...

    async def release_exists(self, tag: str) -> Result[bool, ReleaseError]: ...

    async def create_release(
        self,
        tag: str,
        *,
        title: str,
        notes: str,
        draft: bool = False,
        prerelease: bool = False,
    ) -> Result[str, ReleaseAlreadyExists | ReleaseError]: ...

    async def upload_asset(self, tag: str, path: Path) -> Result[None, ReleaseError]: ...

    async def release_url(self, tag: str) -> str | None: ...


def _detail(out: ProcessOutput) -> str | None:
    return out.stderr.strip() or out.stdout.strip() or None


class GhReleaseHost:
    """ReleaseHost backed by `gh release ...` commands."""

    def __init__(
        self,
        root: Path,
        runner: ProcessRunner,
        *,
        repo: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._root = root
        self._runner = runner
        self._repo = repo
        self._env = env

    def _repo_args(self) -> list[str]:
        return ["--repo", self._repo] if self._repo else []

    async def _gh(self, args: list[str]) -> Result[ProcessOutput, ReleaseError]:
        result = await self._runner.run_captured(["gh", *args], cwd=self._root, env=self._env)
        if isinstance(result, Err):
            return Err(ReleaseError("gh_missing", "gh: missing", hint=GH_INSTALL_HINT))
        return Ok(result.value)

    async def ensure_ready(self) -> Result[None, ReleaseError]:
        """Check that gh is installed and authenticated."""
        version = await self._gh(["--version"])
        if isinstance(version, Err):
            return version
        if not version.value.ok:
            return Err(ReleaseError("gh_missing", "gh: not usable", hint=GH_INSTALL_HINT))

        auth = await self._gh(["auth", "status"])
        if isinstance(auth, Err):
            return auth
        if not auth.value.ok:
            return Err(ReleaseError("gh_auth_required", "gh auth required", hint="Run: gh auth login"))
        return Ok(None)

    async def release_exists(self, tag: str) -> Result[bool, ReleaseError]:
        result = await self._gh(["release", "view", tag, *self._repo_args()])
        if isinstance(result, Err):
            return result
        out = result.value
        if out.ok:
            return Ok(True)
        if "release not found" in f"{out.stderr}\n{out.stdout}".lower():
            return Ok(False)
        return Err(
            ReleaseError("query_failed", f"failed to look up release {tag}", hint=_detail(out))
        )

    async def create_release(
        self,
        tag: str,
        *,
        title: str,
        notes: str,
        draft: bool = False,
        prerelease: bool = False,
    ) -> Result[str, ReleaseAlreadyExists | ReleaseError]:
        exists = await self.release_exists(tag)
        if isinstance(exists, Err):
            return exists
        if exists.value:
            return Err(ReleaseAlreadyExists(tag))

        fd, notes_name = tempfile.mkstemp(prefix=".release-notes-", suffix=".md", dir=str(self._root))
        notes_path = Path(notes_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(notes)

            args = ["release", "create", tag, "--title", title, "--notes-file", str(notes_path)]
            if draft:
                args.append("--draft")
            if prerelease:
                args.append("--prerelease")
            result = await self._gh([*args, *self._repo_args()])
        finally:
            notes_path.unlink(missing_ok=True)

        if isinstance(result, Err):
            return result
        out = result.value
        if not out.ok:
            return Err(ReleaseError("create_failed", f"failed to create release {tag}", hint=_detail(out)))
        return Ok(out.stdout.strip())

    async def upload_asset(self, tag: str, path: Path) -> Result[None, ReleaseError]:
        result = await self._gh(["release", "upload", tag, str(path), "--clobber", *self._repo_args()])
        if isinstance(result, Err):
            return result
        if not result.value.ok:
            return Err(
                ReleaseError("upload_failed", f"failed to upload {path.name}", hint=_detail(result.value))
            )
        return Ok(None)

    async def release_url(self, tag: str) -> str | None:
        result = await self._gh(
            ["release", "view", tag, "--json", "url", "--jq", ".url", *self._repo_args()]
        )
        if isinstance(result, Err) or not result.value.ok:
            return None
        return result.value.stdout.strip() or None


# -----------------------------------------------------------------------------
# In-memory host for tests
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CreatedRelease:
    tag: str
    title: str
    notes: str
    draft: bool
    prerelease: bool


def _empty_releases() -> dict[str, CreatedRelease]:
    return {}


def _empty_uploads() -> list[tuple[str, Path]]:
    return []


@dataclass
class InMemoryReleaseHost:
    """ReleaseHost that keeps releases in a dict."""

    existing: set[str] = field(default_factory=set)
    releases: dict[str, CreatedRelease] = field(default_factory=_empty_releases)
    uploads: list[tuple[str, Path]] = field(default_factory=_empty_uploads)
    ready_error: ReleaseError | None = None
    fail_uploads: bool = False

    async def ensure_ready(self) -> Result[None, ReleaseError]:
        if self.ready_error is not None:
            return Err(self.ready_error)
        return Ok(None)

    async def release_exists(self, tag: str) -> Result[bool, ReleaseError]:
        return Ok(tag in self.existing or tag in self.releases)

    async def create_release(
        self,
        tag: str,
        *,
        title: str,
        notes: str,
        draft: bool = False,
        prerelease: bool = False,
    ) -> Result[str, ReleaseAlreadyExists | ReleaseError]:
        if tag in self.existing or tag in self.releases:
            return Err(ReleaseAlreadyExists(tag))
        self.releases[tag] = CreatedRelease(tag, title, notes, draft, prerelease)
        return Ok(f"https://example.invalid/releases/{tag}")

    async def upload_asset(self, tag: str, path: Path) -> Result[None, ReleaseError]:
        if self.fail_uploads:
            return Err(ReleaseError("upload_failed", f"failed to upload {path.name}"))
        self.uploads.append((tag, path))
        return Ok(None)

    async def release_url(self, tag: str) -> str | None:
        return f"https://example.invalid/releases/{tag}"
