"""
Utility functions and helpers.

Provides common utilities used across the codebase.
"""

from monover.utils.logging_config import setup_logging
from monover.utils.validation import validate_path, validate_project_name

__all__ = [
    "setup_logging",
    "validate_path",
    "validate_project_name",
]
