"""Project root detection and the explicit environment context.

Everything that would otherwise be read ad hoc from process-wide state (the
current directory, environment variables, backend availability) is resolved
once into an `Environment` and passed to each component.

The project root is identified by an `xb.toml` file. Detection order:
1. XB_ROOT environment variable (must point at a directory)
2. Upward search from the start directory for xb.toml
3. The start directory itself (defaults apply)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .config import CONFIG_FILE_NAME, Config, ConfigError, load_config
from .result import Err, Ok, Result

__all__ = [
    "Detection",
    "Environment",
    "ProjectError",
    "find_project_root",
    "load_environment",
]

ROOT_ENV_VAR = "XB_ROOT"


@dataclass(frozen=True, slots=True)
class Detection:
    """Availability of the optional build backends."""

    container_backend: bool
    cross_helper: bool


@dataclass(frozen=True, slots=True)
class ProjectError:
    message: str
    hint: str | None = None


def _empty_vars() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class Environment:
    """Resolved paths and configuration for one run."""

    root: Path
    config: Config = field(default_factory=Config)
    vars: Mapping[str, str] = field(default_factory=_empty_vars)

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    @property
    def target_dir(self) -> Path:
        """Toolchain output directory (cargo's `target/`)."""
        return self.root / self.config.release.target_dir

    @property
    def releases_dir(self) -> Path:
        """Staging directory for packaged artifacts, one subdir per version."""
        return self.root / self.config.release.releases_dir

    @property
    def dist_dir(self) -> Path:
        """Directory receiving release archives."""
        return self.root / self.config.release.dist_dir

    def tag_for(self, version: object) -> str:
        return f"{self.config.release.tag_prefix}{version}"

    def process_env(self) -> dict[str, str] | None:
        """Environment for child processes; None inherits the parent's."""
        if not self.vars:
            return None
        return dict(self.vars)


def find_project_root(start: Path) -> Path | None:
    """Search upward from start for a directory containing xb.toml."""
    for parent in (start, *start.parents):
        if (parent / CONFIG_FILE_NAME).is_file():
            return parent
    return None


def load_environment(
    *,
    start_dir: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[Environment, ProjectError]:
    """Resolve the project root and load its configuration.

    Args:
        start_dir: Directory to search from (defaults to cwd).
        env: Environment variables to resolve against (defaults to os.environ).

    Returns:
        Ok(Environment), or Err when XB_ROOT is invalid or xb.toml is broken.
    """
    source = dict(os.environ if env is None else env)
    start = (start_dir or Path.cwd()).resolve()

    override = source.get(ROOT_ENV_VAR)
    if override:
        root = Path(override).expanduser().resolve()
        if not root.is_dir():
            return Err(
                ProjectError(
                    message=f"${ROOT_ENV_VAR} is set to '{override}' but it is not a directory",
                )
            )
    else:
        root = find_project_root(start) or start

    config = Config()
    config_path = root / CONFIG_FILE_NAME
    if config_path.is_file():
        loaded = load_config(config_path)
        if isinstance(loaded, Err):
            return Err(_config_error(loaded.error))
        config = loaded.value

    return Ok(Environment(root=root, config=config, vars=source))


def _config_error(error: ConfigError) -> ProjectError:
    hint = str(error.path) if error.path is not None else None
    return ProjectError(message=error.message, hint=hint)
