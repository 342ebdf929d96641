"""
Semantic version parsing and representation.

Parses the strict ``MAJOR.MINOR[.PATCH][-PRE][+BUILD]`` grammar into an
immutable value object. This is the only place numeric version parsing
happens; malformed text yields ``None`` instead of raising.
"""

import re
from dataclasses import dataclass, replace
from typing import Optional, Tuple

SEMVER_PATTERN = re.compile(
    r"(\d+)\.(\d+)(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z.\-]+))?"
    r"(?:\+([0-9A-Za-z.\-]+))?",
    re.ASCII,
)


@dataclass(frozen=True)
class SemanticVersion:
    """
    Immutable semantic version.

    Equality compares every component including build metadata;
    ``precedence_key`` orders versions by SemVer precedence, which
    ignores build metadata.
    """

    major: int
    minor: int
    patch: int = 0
    prerelease: Optional[str] = None
    build_metadata: Optional[str] = None

    def __post_init__(self):
        for component in (self.major, self.minor, self.patch):
            if not isinstance(component, int) or component < 0:
                raise ValueError(
                    f"Version components must be non-negative integers: "
                    f"{self.major}.{self.minor}.{self.patch}"
                )
        # Empty strings mean "absent"
        if self.prerelease == "":
            object.__setattr__(self, "prerelease", None)
        if self.build_metadata == "":
            object.__setattr__(self, "build_metadata", None)

    def __str__(self) -> str:
        version = self.core_string()
        if self.prerelease:
            version += f"-{self.prerelease}"
        if self.build_metadata:
            version += f"+{self.build_metadata}"
        return version

    def core_string(self) -> str:
        """Render only MAJOR.MINOR.PATCH."""
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def precedence_key(self) -> Tuple:
        """
        Sort key implementing SemVer precedence.

        A release sorts above any pre-release of the same core version.
        Numeric identifiers sort below alphanumeric ones and compare
        numerically; a shorter identifier list sorts first when it is a
        prefix of the longer one.
        """
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, ())

        identifiers = []
        for part in self.prerelease.split("."):
            if part.isdigit():
                identifiers.append((0, int(part), ""))
            else:
                identifiers.append((1, 0, part))
        return (self.major, self.minor, self.patch, 0, tuple(identifiers))

    def bump(self, increment: str = "patch") -> "SemanticVersion":
        """
        Return the next release version for the given increment.

        Lower components are reset; pre-release and build metadata dropped.
        """
        increment = (increment or "patch").lower()
        if increment == "major":
            return SemanticVersion(self.major + 1, 0, 0)
        if increment == "minor":
            return SemanticVersion(self.major, self.minor + 1, 0)
        return SemanticVersion(self.major, self.minor, self.patch + 1)

    def with_prerelease(self, prerelease: Optional[str]) -> "SemanticVersion":
        """Return a copy carrying ``prerelease`` and no build metadata."""
        return replace(self, prerelease=prerelease, build_metadata=None)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "major": self.major,
            "minor": self.minor,
            "patch": self.patch,
            "prerelease": self.prerelease,
            "build_metadata": self.build_metadata,
            "version": str(self),
        }


def parse_semver(text: Optional[str]) -> Optional[SemanticVersion]:
    """
    Parse a strict semantic version string.

    Args:
        text: Candidate version such as ``1.2``, ``1.2.3-alpha.1+build.5``.

    Returns:
        SemanticVersion, or None when the text does not match the grammar.
        A leading ``v`` is not tolerated; callers strip prefixes first.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    match = SEMVER_PATTERN.fullmatch(text)
    if not match:
        return None

    major, minor, patch, prerelease, build = match.groups()
    return SemanticVersion(
        major=int(major),
        minor=int(minor),
        patch=int(patch) if patch is not None else 0,
        prerelease=prerelease,
        build_metadata=build,
    )


def is_semver(text: Optional[str]) -> bool:
    """Check whether text parses as a semantic version."""
    return parse_semver(text) is not None
