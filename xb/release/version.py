"""Version of record: parse, bump, read and rewrite manifests.

The version lives in one or more hand-edited manifests. Rewrites substitute
only the quoted version value of the first matching field, so comments,
ordering and whitespace around it survive byte for byte.

Two field shapes are understood:

    version = "1.2.3"                                   # package manifest
    quiche = { version = "1.2.3", path = "./quiche" }   # dependency pin
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TypeAlias

from xb.core.config import ManifestConfig, ManifestKind
from xb.core.environment import Environment
from xb.core.result import Err, Ok, Result
from xb.platform.files import atomic_write_text

__all__ = [
    "BUMP_KINDS",
    "BumpKind",
    "Manifest",
    "ManifestWriteFailed",
    "Version",
    "VersionError",
    "VersionNotFound",
    "VersionParseError",
    "current_version",
    "parse_version",
    "project_manifests",
    "read_version",
    "write_all",
]

BumpKind = Literal["major", "minor", "patch"]
BUMP_KINDS: tuple[BumpKind, ...] = ("patch", "minor", "major")

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: BumpKind) -> Version:
        match kind:
            case "major":
                return Version(self.major + 1, 0, 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


@dataclass(frozen=True, slots=True)
class VersionParseError:
    text: str

    @property
    def message(self) -> str:
        return f"invalid version '{self.text}': expected major.minor.patch"


@dataclass(frozen=True, slots=True)
class VersionNotFound:
    path: Path
    detail: str

    @property
    def message(self) -> str:
        return f"no version field in {self.path}: {self.detail}"


@dataclass(frozen=True, slots=True)
class ManifestWriteFailed:
    """A manifest could not be written.

    `unrestored` lists files already rewritten whose original text could not
    be put back; they hold the new version.
    """

    path: Path
    detail: str
    unrestored: tuple[Path, ...] = ()

    @property
    def message(self) -> str:
        msg = f"failed to write {self.path}: {self.detail}"
        if self.unrestored:
            msg += f"; could not restore {', '.join(str(p) for p in self.unrestored)}"
        return msg


VersionError: TypeAlias = VersionParseError | VersionNotFound | ManifestWriteFailed


def parse_version(text: str) -> Result[Version, VersionParseError]:
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return Err(VersionParseError(text))
    return Ok(Version(int(m.group(1)), int(m.group(2)), int(m.group(3))))


@dataclass(frozen=True, slots=True)
class Manifest:
    """A manifest file and the shape of its version field."""

    path: Path
    kind: ManifestKind = "package"
    name: str | None = None
    display: str | None = None

    @classmethod
    def from_config(cls, root: Path, config: ManifestConfig) -> Manifest:
        return cls(path=root / config.path, kind=config.kind, name=config.name, display=config.path)

    def pattern(self) -> re.Pattern[str]:
        """Regex whose group 2 is the quoted version value."""
        if self.kind == "dependency":
            name = re.escape(self.name or "")
            return re.compile(
                rf'(?m)^({name}\s*=\s*\{{[^}}\n]*?(?<![\w-])version\s*=\s*")([^"]*)(")'
            )
        return re.compile(r'(?m)^(version\s*=\s*")([^"]*)(")')

    def describe(self) -> str:
        shown = self.display or self.path.name
        if self.kind == "dependency":
            return f"{shown} ({self.name} dependency)"
        return f"{shown} (package version)"


def project_manifests(env: Environment) -> list[Manifest]:
    return [Manifest.from_config(env.root, m) for m in env.config.manifests]


def _read_text(manifest: Manifest) -> Result[str, VersionNotFound]:
    try:
        with manifest.path.open(encoding="utf-8", newline="") as handle:
            return Ok(handle.read())
    except OSError as e:
        return Err(VersionNotFound(manifest.path, f"cannot read file ({e})"))


def read_version(manifest: Manifest) -> Result[Version, VersionError]:
    text = _read_text(manifest)
    if isinstance(text, Err):
        return text

    m = manifest.pattern().search(text.value)
    if m is None:
        return Err(VersionNotFound(manifest.path, f"expected {manifest.describe()}"))
    return parse_version(m.group(2))


def _substitute(manifest: Manifest, text: str, version: Version) -> str | None:
    m = manifest.pattern().search(text)
    if m is None:
        return None
    return text[: m.start(2)] + str(version) + text[m.end(2) :]


def write_all(manifests: Sequence[Manifest], version: Version) -> Result[list[Path], VersionError]:
    """Rewrite every manifest, or none of them.

    All files are read and checked before the first write. If a write fails,
    files already rewritten are restored to their previous content.

    Returns:
        Ok(paths actually changed), or Err describing the first problem.
    """
    originals: list[tuple[Manifest, str, str]] = []
    for manifest in manifests:
        text = _read_text(manifest)
        if isinstance(text, Err):
            return text
        updated = _substitute(manifest, text.value, version)
        if updated is None:
            return Err(VersionNotFound(manifest.path, f"expected {manifest.describe()}"))
        originals.append((manifest, text.value, updated))

    written: list[tuple[Manifest, str]] = []
    for manifest, before, after in originals:
        if before == after:
            continue
        try:
            atomic_write_text(manifest.path, after)
        except OSError as e:
            unrestored = _restore(written)
            return Err(ManifestWriteFailed(manifest.path, str(e), unrestored=unrestored))
        written.append((manifest, before))

    return Ok([m.path for m, _ in written])


def _restore(written: Sequence[tuple[Manifest, str]]) -> tuple[Path, ...]:
    """Put back original texts; returns the paths that could not be restored."""
    failed: list[Path] = []
    for manifest, before in reversed(written):
        try:
            atomic_write_text(manifest.path, before)
        except OSError:
            failed.append(manifest.path)
    return tuple(failed)


def current_version(env: Environment) -> Result[Version, VersionError]:
    """Version of record: the first configured manifest."""
    manifests = project_manifests(env)
    if not manifests:
        return Err(VersionNotFound(env.root, "no manifests configured"))
    return read_version(manifests[0])
