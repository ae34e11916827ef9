"""Platform abstraction layer."""

from .files import atomic_write_text, copy_matching
from .process import (
    AsyncProcessRunner,
    ProcessOutput,
    ProcessRunner,
    ScriptedProcessRunner,
    SpawnError,
    format_command,
)

__all__ = [
    # files
    "atomic_write_text",
    "copy_matching",
    # process
    "AsyncProcessRunner",
    "ProcessOutput",
    "ProcessRunner",
    "ScriptedProcessRunner",
    "SpawnError",
    "format_command",
]
