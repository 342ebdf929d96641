"""
Core module containing configuration, exceptions and run state.
"""

from monover.core.config import Config, MonoverConfig
from monover.core.run import ProjectResult, ProjectStatus, ResolutionRun
from monover.core.exceptions import (
    MonoverError,
    ConfigurationError,
    RepositoryAccessError,
    RepositoryValidationError,
    ResolutionError,
    ResolutionCancelledError,
)

__all__ = [
    "Config",
    "MonoverConfig",
    "ProjectResult",
    "ProjectStatus",
    "ResolutionRun",
    "MonoverError",
    "ConfigurationError",
    "RepositoryAccessError",
    "RepositoryValidationError",
    "ResolutionError",
    "ResolutionCancelledError",
]
