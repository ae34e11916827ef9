"""Multi-target build orchestration and release workflow."""

__version__ = "0.1.0"
