"""Optional backend detection.

The container engine and the cross-compilation helper are optional: when a
check fails the targets that need that backend are hidden, the rest stay
buildable.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from xb.core.environment import Detection, Environment
from xb.core.result import Ok
from xb.platform.process import ProcessRunner

from .targets import Target

__all__ = [
    "PrerequisiteMissing",
    "available_targets",
    "detect",
    "missing_backends",
]

CROSS_INSTALL_HINT = "cargo install cross --git https://github.com/cross-rs/cross"
CONTAINER_INSTALL_HINT = "https://docs.docker.com/get-docker/"


@dataclass(frozen=True, slots=True)
class PrerequisiteMissing:
    backend: str
    hint: str


async def _is_available(runner: ProcessRunner, cmd: Sequence[str], env: Environment) -> bool:
    result = await runner.run_captured(cmd, cwd=env.root, env=env.process_env())
    return isinstance(result, Ok) and result.value.ok


async def detect(env: Environment, runner: ProcessRunner) -> Detection:
    """Check both backends concurrently.

    A non-zero exit or a check command that cannot be spawned marks the backend
    unavailable; this function does not fail.
    """
    availability = env.config.availability
    container, cross = await asyncio.gather(
        _is_available(runner, availability.container, env),
        _is_available(runner, availability.cross, env),
    )
    return Detection(container_backend=container, cross_helper=cross)


def available_targets(targets: Iterable[Target], detection: Detection) -> list[Target]:
    """Targets whose required backends are present, in catalog order."""
    out: list[Target] = []
    for target in targets:
        if target.requires_container and not detection.container_backend:
            continue
        if target.requires_cross and not detection.cross_helper:
            continue
        out.append(target)
    return out


def missing_backends(detection: Detection) -> list[PrerequisiteMissing]:
    missing: list[PrerequisiteMissing] = []
    if not detection.cross_helper:
        missing.append(PrerequisiteMissing("cross-rs", f"Install cross-rs: {CROSS_INSTALL_HINT}"))
    if not detection.container_backend:
        missing.append(PrerequisiteMissing("Docker", f"Install Docker: {CONTAINER_INSTALL_HINT}"))
    return missing
