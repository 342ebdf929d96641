"""
Branch classification and release version extraction.

Maps raw branch names to a branch role and pulls explicit release
versions out of release branch names.
"""

import re
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from monover.core.config import BranchConfig
from monover.versioning.semver import SemanticVersion, parse_semver

RELEASE_PREFIXES = ("release/", "release-")

BARE_VERSION_PATTERN = re.compile(r"[vV]?\d+\.\d+(?:\.\d+)?", re.ASCII)

SLUG_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9\-]")

MAX_SLUG_LENGTH = 50


class BranchType(Enum):
    """Role of a branch, used to select the version policy."""
    MAIN = "main"
    DEV = "dev"
    RELEASE = "release"
    FEATURE = "feature"


class BranchClassifier:
    """
    Classifies branch names into branch roles.

    Rules are evaluated top to bottom and the first match wins; names
    that match nothing are feature branches. Matching is case-insensitive.
    """

    def __init__(self, config: BranchConfig = None):
        self.config = config or BranchConfig()
        main_names = {n.lower() for n in self.config.main_branch_names}
        dev_names = {n.lower() for n in self.config.dev_branch_names}

        self._rules: List[Tuple[Callable[[str], bool], BranchType]] = [
            (lambda name: name.lower() in main_names, BranchType.MAIN),
            (lambda name: name.lower() in dev_names, BranchType.DEV),
            (is_release_branch_name, BranchType.RELEASE),
        ]

    def classify(self, branch_name: Optional[str]) -> BranchType:
        """
        Classify a branch name.

        Args:
            branch_name: Raw branch name; None and empty names are features.

        Returns:
            Exactly one BranchType.
        """
        name = (branch_name or "").strip()
        if not name:
            return BranchType.FEATURE

        for matches, branch_type in self._rules:
            if matches(name):
                return branch_type
        return BranchType.FEATURE


def is_release_branch_name(branch_name: str) -> bool:
    """Check for a ``release/``/``release-`` prefix or a bare version name."""
    lowered = branch_name.lower()
    if lowered.startswith(RELEASE_PREFIXES):
        return True
    return BARE_VERSION_PATTERN.fullmatch(branch_name) is not None


def classify_branch(branch_name: Optional[str], config: BranchConfig = None) -> BranchType:
    """Convenience wrapper around BranchClassifier."""
    return BranchClassifier(config).classify(branch_name)


def extract_release_version(
    branch_name: Optional[str], tag_prefix: str = "v"
) -> Optional[SemanticVersion]:
    """
    Extract an explicit version from a release branch name.

    ``release/1.2``, ``release-v2.0.1`` and ``v3.1.4`` all resolve. Any
    failure yields None; this never raises.

    Args:
        branch_name: Branch believed to encode a release version.
        tag_prefix: Configured tag prefix, stripped case-insensitively.

    Returns:
        The embedded SemanticVersion, or None.
    """
    if not isinstance(branch_name, str):
        return None

    version_part = branch_name.strip()
    lowered = version_part.lower()
    for prefix in RELEASE_PREFIXES:
        if lowered.startswith(prefix):
            version_part = version_part[len(prefix):]
            break

    tag_prefix = tag_prefix or ""
    if tag_prefix and version_part.lower().startswith(tag_prefix.lower()):
        version_part = version_part[len(tag_prefix):]
    elif version_part[:1] in ("v", "V"):
        version_part = version_part[1:]

    return parse_semver(version_part)


def feature_slug(branch_name: Optional[str], prefixes: Iterable[str] = ()) -> str:
    """
    Build a pre-release safe slug from a branch name.

    A matching prefix such as ``feature/`` is removed, characters outside
    ``[A-Za-z0-9-]`` become ``-``, and the result is trimmed, lower-cased
    and capped in length. May return an empty string.
    """
    name = (branch_name or "").strip()
    lowered = name.lower()
    for prefix in prefixes:
        if prefix and lowered.startswith(prefix.lower()):
            name = name[len(prefix):]
            break

    slug = SLUG_INVALID_CHARS.sub("-", name).strip("-").lower()
    slug = re.sub(r"-{2,}", "-", slug)
    if len(slug) > MAX_SLUG_LENGTH:
        slug = slug[:MAX_SLUG_LENGTH].strip("-")
    return slug
