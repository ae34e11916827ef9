"""Build options shared by every target in one run."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal, cast

from xb.core.result import Err, Ok, Result

__all__ = [
    "BUILD_MODES",
    "FEATURE_DESCRIPTIONS",
    "BuildMode",
    "BuildOptions",
    "InvalidBuildOptions",
]

BuildMode = Literal["release", "debug"]
BUILD_MODES: tuple[BuildMode, ...] = ("release", "debug")

FEATURE_DESCRIPTIONS: dict[str, str] = {
    "ffi": "C Foreign Function Interface",
    "qlog": "QUIC logging support",
    "sfv": "Structured Field Values",
}


@dataclass(frozen=True, slots=True)
class InvalidBuildOptions:
    message: str

    def __str__(self) -> str:
        return self.message


def _default_features() -> frozenset[str]:
    return frozenset({"ffi"})


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """Mode, feature set and presentation flags for one build run.

    Instances are immutable; use `create` to validate operator input against
    the configured feature catalog.
    """

    mode: BuildMode = "release"
    features: frozenset[str] = field(default_factory=_default_features)
    parallel: bool = False
    verbose: bool = True

    @classmethod
    def create(
        cls,
        *,
        mode: str,
        features: Iterable[str],
        allowed_features: Iterable[str],
        parallel: bool = False,
        verbose: bool = True,
    ) -> Result[BuildOptions, InvalidBuildOptions]:
        if mode not in BUILD_MODES:
            return Err(
                InvalidBuildOptions(
                    f"unknown build mode '{mode}' (expected one of: {', '.join(BUILD_MODES)})"
                )
            )

        requested = frozenset(f.strip() for f in features if f.strip())
        allowed = frozenset(allowed_features)
        unknown = sorted(requested - allowed)
        if unknown:
            return Err(
                InvalidBuildOptions(
                    f"unknown feature(s): {', '.join(unknown)} "
                    f"(available: {', '.join(sorted(allowed)) or 'none'})"
                )
            )

        return Ok(
            cls(
                mode=cast(BuildMode, mode),
                features=requested,
                parallel=parallel,
                verbose=verbose,
            )
        )

    @property
    def is_release(self) -> bool:
        return self.mode == "release"

    @property
    def feature_csv(self) -> str:
        """Features in sorted order, comma separated."""
        return ",".join(sorted(self.features))
