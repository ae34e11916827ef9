"""Stage build outputs and archive them for publishing.

Staging copies the library artifacts of each successful target into
`releases/v<version>/<target-id>/`. Archiving turns every staged directory
into a `.zip` and a `.tar.gz` under `dist/` with deterministic names:

    <project>-v<version>-<target-id>.zip
    <project>-v<version>-<target-id>.tar.gz
"""

from __future__ import annotations

import hashlib
import tarfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from xb.build.executor import BuildResult
from xb.core.environment import Environment
from xb.core.result import Err, Ok, Result
from xb.output.console import ConsoleProtocol
from xb.platform.files import copy_matching

from .version import Version

__all__ = [
    "ARTIFACT_SUFFIXES",
    "Archive",
    "PackageError",
    "StagedTarget",
    "archive_staged",
    "release_dir",
    "stage_artifacts",
    "staged_targets",
]

ARTIFACT_SUFFIXES: tuple[str, ...] = (".a", ".so", ".dll", ".dll.a", ".dylib", ".lib", ".h")


@dataclass(frozen=True, slots=True)
class PackageError:
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class StagedTarget:
    target_id: str
    path: Path
    files: tuple[Path, ...]


@dataclass(frozen=True, slots=True)
class Archive:
    target_id: str
    zip_path: Path
    tar_path: Path

    @property
    def paths(self) -> tuple[Path, Path]:
        return (self.zip_path, self.tar_path)

    @property
    def size(self) -> int:
        return sum(p.stat().st_size for p in self.paths)


def release_dir(env: Environment, version: Version) -> Path:
    return env.releases_dir / env.tag_for(version)


def stage_artifacts(
    results: Sequence[BuildResult],
    version: Version,
    *,
    env: Environment,
    console: ConsoleProtocol,
) -> Result[list[StagedTarget], PackageError]:
    """Copy artifacts of every successful build into the release directory.

    Targets whose output directory holds no artifacts are reported and
    skipped. It is an error when nothing at all could be staged.
    """
    base = release_dir(env, version)
    staged: list[StagedTarget] = []

    for result in results:
        if not result.success or result.output_path is None:
            continue
        src = env.root / result.output_path
        dest = base / result.target.id
        try:
            copied = copy_matching(src, dest, ARTIFACT_SUFFIXES)
        except OSError as e:
            return Err(PackageError(f"failed to stage {result.target.id}: {e}", hint=str(src)))
        if not copied:
            console.warning(f"No artifacts found for {result.target.label} in {result.output_path}")
            continue
        console.success(f"Staged {result.target.id} ({len(copied)} file(s))")
        staged.append(StagedTarget(result.target.id, dest, tuple(copied)))

    if not staged:
        return Err(
            PackageError(
                "no artifacts to package",
                hint=f"expected libraries ({', '.join(ARTIFACT_SUFFIXES)}) in build output dirs",
            )
        )
    return Ok(staged)


def staged_targets(env: Environment, version: Version) -> list[StagedTarget]:
    """Target directories already present under the release directory."""
    base = release_dir(env, version)
    if not base.is_dir():
        return []
    out: list[StagedTarget] = []
    for entry in sorted(base.iterdir()):
        if not entry.is_dir():
            continue
        files = tuple(p for p in sorted(entry.rglob("*")) if p.is_file())
        out.append(StagedTarget(entry.name, entry, files))
    return out


def _collect_dir(base_dir: Path) -> list[tuple[Path, str]]:
    out: list[tuple[Path, str]] = []
    for p in sorted(base_dir.rglob("*")):
        if p.is_dir():
            continue
        out.append((p, p.relative_to(base_dir).as_posix()))
    return out


def _zip_files(zip_path: Path, *, files: list[tuple[Path, str]]) -> None:
    # ZIP cannot represent mtimes before 1980; artifacts copied out of
    # containers sometimes carry epoch timestamps.
    with ZipFile(zip_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
        for src, arc in files:
            zf.write(src, arcname=arc)


def _tar_files(tar_path: Path, *, files: list[tuple[Path, str]]) -> None:
    with tarfile.open(tar_path, "w:gz") as tar:
        for src, arc in files:
            tar.add(src, arcname=arc, recursive=False)


def archive_name(env: Environment, version: Version, target_id: str) -> str:
    return f"{env.config.project.name}-{env.tag_for(version)}-{target_id}"


def archive_staged(
    staged: Sequence[StagedTarget],
    version: Version,
    *,
    env: Environment,
) -> Result[list[Archive], PackageError]:
    out_dir = env.dist_dir
    archives: list[Archive] = []
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        for item in staged:
            files = _collect_dir(item.path)
            stem = archive_name(env, version, item.target_id)
            zip_path = out_dir / f"{stem}.zip"
            tar_path = out_dir / f"{stem}.tar.gz"
            _zip_files(zip_path, files=files)
            _tar_files(tar_path, files=files)
            archives.append(Archive(item.target_id, zip_path, tar_path))
    except (OSError, tarfile.TarError) as e:
        return Err(PackageError(f"failed to create archives: {e}", hint=str(out_dir)))
    return Ok(archives)


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} GB"
