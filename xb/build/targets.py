"""Catalog of build targets.

A target binds a name to one backend:
- toolchain: the plain compiler driver (`cargo`), builds for the host.
- cross: the cross-compilation helper (`cross`), needs a target triple.
- container: an image build (`docker build`) whose artifacts are copied out
  of a throwaway container afterwards.

Command templates are pure: the same `BuildOptions` always produce the same
argv, and computing one never touches the system.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Literal

from xb.core.config import BuildConfig
from xb.core.result import Err, Ok, Result

from .options import BuildOptions

__all__ = [
    "Backend",
    "Registry",
    "Target",
    "UnknownTarget",
    "default_registry",
    "default_targets",
]

Backend = Literal["toolchain", "cross", "container"]

CONTAINER_DOCKERFILE = "Dockerfile.android"
CONTAINER_WORKDIR = "/nwep"


@dataclass(frozen=True, slots=True)
class UnknownTarget:
    requested: tuple[str, ...]
    available: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f"unknown target(s): {', '.join(self.requested)} "
            f"(available: {', '.join(self.available) or 'none'})"
        )

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class Target:
    """One named build configuration.

    Attributes:
        id: Stable identifier, unique within a registry.
        label: Human readable name.
        description: One-line hint shown next to the label.
        backend: Which external tool runs the build.
        program: Executable for the backend (e.g. "cross").
        triple: Compiler target triple; None builds for the host.
        image: Image tag for container builds.
        workspace: Build every workspace member (`--workspace`).
    """

    id: str
    label: str
    description: str
    backend: Backend
    program: str
    triple: str | None = None
    image: str | None = None
    workspace: bool = False

    @property
    def requires_container(self) -> bool:
        return self.backend == "container"

    @property
    def requires_cross(self) -> bool:
        return self.backend == "cross"

    def command(self, options: BuildOptions) -> tuple[str, ...]:
        """The argv that builds this target with options."""
        if self.backend == "container":
            return self._container_command(options)

        argv: list[str] = [self.program, "build"]
        if options.is_release:
            argv.append("--release")
        if self.triple is not None:
            argv += ["--target", self.triple]
        if options.features:
            argv += ["--features", options.feature_csv]
        if self.workspace:
            argv.append("--workspace")
        return tuple(argv)

    def _container_command(self, options: BuildOptions) -> tuple[str, ...]:
        return (
            self.program,
            "build",
            "-f",
            CONTAINER_DOCKERFILE,
            "--build-arg",
            f"ANDROID_TARGET={self.triple}",
            "--build-arg",
            f"CARGO_FEATURES={options.feature_csv}",
            "--build-arg",
            f"CARGO_PROFILE={options.mode}",
            "-t",
            self.image or self.id,
            ".",
        )

    def output_dir(self, mode: str) -> str:
        """Relative output directory under the toolchain's target dir."""
        if self.triple is None:
            return f"{mode}/"
        return f"{self.triple}/{mode}/"

    def artifact_dir(self, mode: str) -> str:
        """Directory holding build outputs inside a container image."""
        return f"{CONTAINER_WORKDIR}/target/{self.output_dir(mode).rstrip('/')}"


class Registry:
    """Ordered, duplicate-free collection of targets."""

    def __init__(self, targets: Iterable[Target]) -> None:
        self._targets: dict[str, Target] = {}
        for target in targets:
            if target.id in self._targets:
                raise ValueError(f"duplicate target id: {target.id}")
            self._targets[target.id] = target

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, target_id: object) -> bool:
        return target_id in self._targets

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._targets)

    def get(self, target_id: str) -> Result[Target, UnknownTarget]:
        target = self._targets.get(target_id)
        if target is None:
            return Err(UnknownTarget(requested=(target_id,), available=self.ids))
        return Ok(target)

    def select(self, target_ids: Sequence[str]) -> Result[list[Target], UnknownTarget]:
        """Resolve ids to targets, in registry order, without duplicates."""
        wanted = set(target_ids)
        unknown = tuple(t for t in dict.fromkeys(target_ids) if t not in self._targets)
        if unknown:
            return Err(UnknownTarget(requested=unknown, available=self.ids))
        return Ok([t for t in self._targets.values() if t.id in wanted])


def _cross(config: BuildConfig, target_id: str, label: str, description: str, triple: str) -> Target:
    return Target(
        id=target_id,
        label=label,
        description=description,
        backend="cross",
        program=config.cross,
        triple=triple,
    )


def _android(config: BuildConfig, abi: str, label: str, description: str, triple: str) -> Target:
    return Target(
        id=f"android-{abi}",
        label=label,
        description=description,
        backend="container",
        program=config.container,
        triple=triple,
        image=f"quiche-nwep-android-{abi}",
    )


def default_targets(config: BuildConfig | None = None) -> tuple[Target, ...]:
    cfg = config or BuildConfig()
    return (
        _cross(cfg, "windows-x64-gnu", "Windows x64 (GNU)",
               "Windows 64-bit with MinGW-w64 toolchain", "x86_64-pc-windows-gnu"),
        _cross(cfg, "windows-x64-msvc", "Windows x64 (MSVC)",
               "Windows 64-bit with MSVC toolchain", "x86_64-pc-windows-msvc"),
        _android(cfg, "arm64", "Android ARM64", "Android ARM64 (modern phones)",
                 "aarch64-linux-android"),
        _android(cfg, "arm32", "Android ARM32", "Android ARMv7 (older devices)",
                 "armv7-linux-androideabi"),
        _android(cfg, "x64", "Android x86_64", "Android x86_64 (emulators)",
                 "x86_64-linux-android"),
        _android(cfg, "x86", "Android x86", "Android x86 (older emulators)",
                 "i686-linux-android"),
        _cross(cfg, "linux-arm64", "Linux ARM64",
               "Linux AArch64 (ARM servers, Raspberry Pi)", "aarch64-unknown-linux-gnu"),
        _cross(cfg, "linux-armv7", "Linux ARMv7",
               "Linux ARMv7 (Raspberry Pi 32-bit)", "armv7-unknown-linux-gnueabihf"),
        Target(
            id="native",
            label="Native (current platform)",
            description="Build for your current platform",
            backend="toolchain",
            program=cfg.toolchain,
            workspace=True,
        ),
    )


def default_registry(config: BuildConfig | None = None) -> Registry:
    return Registry(default_targets(config))
