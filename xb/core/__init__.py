"""Core domain types and logic."""

from .config import Config, ConfigError, load_config
from .environment import Detection, Environment, ProjectError, load_environment
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    # environment
    "Detection",
    "Environment",
    "ProjectError",
    "load_environment",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
