"""Result type for explicit error handling.

Operations that can fail in an expected way (a missing manifest field, a
check that cannot spawn, a release that already exists) return a Result
instead of raising. Callers branch on it with isinstance or pattern matching:

    match read_version(manifest):
        case Ok(version):
            console.info(f"current version: {version}")
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying an error value."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
