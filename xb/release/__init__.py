"""Versioning, packaging and publishing releases."""

from .host import GhReleaseHost, InMemoryReleaseHost, ReleaseAlreadyExists, ReleaseError, ReleaseHost
from .version import Version, current_version, parse_version, write_all

__all__ = [
    "GhReleaseHost",
    "InMemoryReleaseHost",
    "ReleaseAlreadyExists",
    "ReleaseError",
    "ReleaseHost",
    "Version",
    "current_version",
    "parse_version",
    "write_all",
]
