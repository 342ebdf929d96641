"""
Tag validation and version tag resolution.

Tags are either global (``v1.2.3``) or project-scoped
(``MyProject/v1.2.3``). Validation only looks at the version part; the
resolver correlates project segments with the requesting project and
picks the nearest reachable tag.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from monover.vcs.repository import CommitRef, RepositoryAccessor
from monover.versioning.semver import SemanticVersion, parse_semver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionTag:
    """A validated tag with its parsed version and target commit."""

    name: Optional[str]
    version: SemanticVersion
    commit: Optional[CommitRef]
    project: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.project is None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "version": str(self.version),
            "commit": self.commit,
            "project": self.project,
        }


def extract_tag_version(tag_name: Optional[str], tag_prefix: str = "v") -> Optional[SemanticVersion]:
    """
    Extract the version encoded in a tag name.

    The tag must start with the prefix or contain ``/<prefix>``. For
    scoped tags only the part after the last ``/`` is parsed.

    Returns:
        SemanticVersion, or None when the tag is out of scope or malformed.
    """
    if not isinstance(tag_name, str) or not tag_name:
        return None

    tag_prefix = tag_prefix or ""
    if not (tag_name.startswith(tag_prefix) or ("/" + tag_prefix) in tag_name):
        return None

    candidate = tag_name.rsplit("/", 1)[-1]
    if tag_prefix and candidate.startswith(tag_prefix):
        candidate = candidate[len(tag_prefix):]

    return parse_semver(candidate)


def is_valid_tag(tag_name: Optional[str], tag_prefix: str = "v") -> bool:
    """Check whether a tag encodes a valid, in-scope semantic version."""
    return extract_tag_version(tag_name, tag_prefix) is not None


def tag_project(tag_name: str) -> Optional[str]:
    """Project segment of a scoped tag, or None for global tags."""
    if "/" not in tag_name:
        return None
    return tag_name.rsplit("/", 1)[0]


class TagResolver:
    """
    Finds the version tag that serves as a project's base version.

    Only tags reachable from the tip are considered. Tags scoped to the
    requesting project win over global tags; tags scoped to other
    projects are ignored. Within a group the nearest tagged commit wins,
    and several tags on one commit are ordered by version precedence.
    """

    def __init__(self, repository: RepositoryAccessor, tag_prefix: str = "v"):
        self.repository = repository
        self.tag_prefix = tag_prefix

    def candidate_tags(self) -> List[VersionTag]:
        """All tags that validate under the configured prefix."""
        candidates = []
        for name, commit in self.repository.list_tags():
            version = extract_tag_version(name, self.tag_prefix)
            if version is None:
                logger.debug(f"Skipping tag without a valid version: {name}")
                continue
            candidates.append(VersionTag(
                name=name,
                version=version,
                commit=commit,
                project=tag_project(name),
            ))
        return candidates

    def resolve(self, project_name: Optional[str] = None) -> Optional[VersionTag]:
        """
        Resolve the base version tag for a project.

        Args:
            project_name: Name used to match project-scoped tags.

        Returns:
            The chosen VersionTag, or None when no valid tag is reachable.
        """
        tip = self.repository.head_commit()
        if tip is None:
            return None

        distance: Dict[CommitRef, int] = {}
        for index, commit in enumerate(self.repository.ancestors(tip)):
            distance.setdefault(commit, index)

        scoped: List[VersionTag] = []
        global_tags: List[VersionTag] = []
        wanted = project_name.lower() if project_name else None

        for tag in self.candidate_tags():
            if tag.commit not in distance:
                continue
            if tag.project is None:
                global_tags.append(tag)
            elif wanted is not None and tag.project.lower() == wanted:
                scoped.append(tag)

        for group in (scoped, global_tags):
            if group:
                ordered = sorted(group, key=lambda t: t.version.precedence_key, reverse=True)
                best = min(ordered, key=lambda t: distance[t.commit])
                logger.debug(
                    f"Resolved tag {best.name} ({best.version}) for "
                    f"{project_name or 'repository'}"
                )
                return best

        return None
