"""Typed configuration loading and access.

The optional `xb.toml` at the project root tunes where the version of record
lives, which features can be enabled, which binaries back each toolchain and
how optional backends are checked. Every key has a default matching the layout
of a Cargo workspace with one published crate, so a project without `xb.toml`
works out of the box.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table, get_table_list

__all__ = [
    "BuildConfig",
    "CONFIG_FILE_NAME",
    "Config",
    "ConfigError",
    "ManifestConfig",
    "ManifestKind",
    "AvailabilityConfig",
    "ProjectConfig",
    "ReleaseConfig",
    "load_config",
]

CONFIG_FILE_NAME = "xb.toml"

ManifestKind = Literal["package", "dependency"]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    """One file holding the version of record.

    `package` manifests carry a top-level `version = "x.y.z"` line.
    `dependency` manifests pin it as `<name> = { version = "x.y.z", ... }`.
    """

    path: str
    kind: ManifestKind = "package"
    name: str | None = None


def _default_manifests() -> tuple[ManifestConfig, ...]:
    return (
        ManifestConfig(path="quiche/Cargo.toml"),
        ManifestConfig(path="Cargo.toml", kind="dependency", name="quiche"),
    )


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    name: str = "quiche-nwep"
    repo: str | None = None


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Toolchain binaries and the closed set of enableable features."""

    features: tuple[str, ...] = ("ffi", "qlog", "sfv")
    default_features: tuple[str, ...] = ("ffi",)
    toolchain: str = "cargo"
    cross: str = "cross"
    container: str = "docker"


@dataclass(frozen=True, slots=True)
class AvailabilityConfig:
    """Lightweight availability checks for optional backends."""

    container: tuple[str, ...] = ("docker", "info")
    cross: tuple[str, ...] = ("cross", "--version")


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    target_dir: str = "target"
    releases_dir: str = "releases"
    dist_dir: str = "dist"
    tag_prefix: str = "v"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    manifests: tuple[ManifestConfig, ...] = field(default_factory=_default_manifests)
    build: BuildConfig = field(default_factory=BuildConfig)
    availability: AvailabilityConfig = field(default_factory=AvailabilityConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a parsed TOML mapping.

        Raises:
            ValueError: If a present value has the wrong shape.
        """
        project: StrDict = get_table(data, "project") or {}
        version: StrDict = get_table(data, "version") or {}
        build: StrDict = get_table(data, "build") or {}
        availability: StrDict = get_table(data, "availability") or {}
        release: StrDict = get_table(data, "release") or {}

        defaults_build = BuildConfig()
        features = _str_tuple(build, "features") or defaults_build.features
        default_features = _str_tuple(build, "default_features")
        if default_features is None:
            default_features = tuple(f for f in defaults_build.default_features if f in features)
        unknown = sorted(set(default_features) - set(features))
        if unknown:
            raise ValueError(f"build.default_features not in build.features: {', '.join(unknown)}")

        return cls(
            project=ProjectConfig(
                name=get_str(project, "name") or ProjectConfig().name,
                repo=get_str(project, "repo"),
            ),
            manifests=_parse_manifests(version) or _default_manifests(),
            build=BuildConfig(
                features=features,
                default_features=default_features,
                toolchain=get_str(build, "toolchain") or defaults_build.toolchain,
                cross=get_str(build, "cross") or defaults_build.cross,
                container=get_str(build, "container") or defaults_build.container,
            ),
            availability=AvailabilityConfig(
                container=_command(availability, "container") or AvailabilityConfig().container,
                cross=_command(availability, "cross") or AvailabilityConfig().cross,
            ),
            release=ReleaseConfig(
                target_dir=get_str(release, "target_dir") or ReleaseConfig().target_dir,
                releases_dir=get_str(release, "releases_dir") or ReleaseConfig().releases_dir,
                dist_dir=get_str(release, "dist_dir") or ReleaseConfig().dist_dir,
                tag_prefix=_raw_str(release, "tag_prefix", ReleaseConfig().tag_prefix),
            ),
        )


def _raw_str(table: Mapping[str, object], key: str, default: str) -> str:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _str_tuple(table: Mapping[str, object], key: str) -> tuple[str, ...] | None:
    if key not in table:
        return None
    items = get_str_list(table, key)
    if items is None:
        raise ValueError(f"{key} must be a list of strings")
    return tuple(i for i in items if i)


def _command(table: Mapping[str, object], key: str) -> tuple[str, ...] | None:
    """Accept an availability check command either as a string or as an argv list."""
    if key not in table:
        return None
    raw = get_str(table, key)
    if raw is not None:
        return tuple(shlex.split(raw))
    items = get_str_list(table, key)
    if not items:
        raise ValueError(f"availability.{key} must be a command string or a non-empty list")
    return tuple(items)


def _parse_manifests(version: Mapping[str, object]) -> tuple[ManifestConfig, ...] | None:
    if "manifests" not in version:
        return None
    tables = get_table_list(version, "manifests")
    if not tables:
        raise ValueError("version.manifests must be a non-empty array of tables")

    out: list[ManifestConfig] = []
    for t in tables:
        path = get_str(t, "path")
        if path is None:
            raise ValueError("version.manifests entries need a path")
        kind = get_str(t, "kind") or "package"
        if kind == "package":
            out.append(ManifestConfig(path=path))
        elif kind == "dependency":
            name = get_str(t, "name")
            if name is None:
                raise ValueError(f"dependency manifest {path} needs a name")
            out.append(ManifestConfig(path=path, kind="dependency", name=name))
        else:
            raise ValueError(f"unknown manifest kind: {kind}")
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to xb.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
