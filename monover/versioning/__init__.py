"""
Version primitives.

Provides semantic version parsing, branch classification, release
branch extraction and version tag resolution.
"""

from monover.versioning.semver import SemanticVersion, parse_semver, is_semver
from monover.versioning.branches import (
    BranchType,
    BranchClassifier,
    classify_branch,
    extract_release_version,
)
from monover.versioning.tags import VersionTag, TagResolver, is_valid_tag

__all__ = [
    "SemanticVersion",
    "parse_semver",
    "is_semver",
    "BranchType",
    "BranchClassifier",
    "classify_branch",
    "extract_release_version",
    "VersionTag",
    "TagResolver",
    "is_valid_tag",
]
