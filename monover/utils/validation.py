"""
Input validation utilities.

Provides validation functions for repository paths and project names.
"""

import os
import re
from pathlib import Path
from typing import Optional, Tuple

PROJECT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._\-/]*$")


def validate_path(path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a local filesystem path.

    Args:
        path: Path to validate.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not path:
        return False, "Path cannot be empty"

    try:
        path_obj = Path(path).resolve()
    except (OSError, RuntimeError) as e:
        return False, f"Invalid path format: {e}"

    if not path_obj.exists():
        return False, f"Path does not exist: {path}"

    if not path_obj.is_dir():
        return False, f"Path is not a directory: {path}"

    if not os.access(path_obj, os.R_OK):
        return False, f"Path is not readable: {path}"

    return True, None


def validate_project_name(name: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a project name as used in project-scoped tags.

    Args:
        name: Project name to validate.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not name:
        return False, "Project name cannot be empty"

    if not PROJECT_NAME_PATTERN.match(name):
        return False, f"Invalid project name: {name}"

    return True, None
