"""
Change detection for monorepo projects.

Decides whether a project changed since a reference commit, either
directly (files under its own path) or through one of its dependency
paths, and which bump the changed files call for.
"""

import fnmatch
import logging
import os
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Sequence

from monover.core.config import ChangeDetectionConfig
from monover.vcs.repository import (
    CommitRef,
    RepositoryAccessor,
    is_under_path,
    normalize_repo_path,
    unique_paths,
)

logger = logging.getLogger(__name__)

# Changed files listed in debug output per check
DEBUG_SAMPLE_SIZE = 5

# Highest first
BUMP_TYPES = ("major", "minor", "patch")


class ChangeDetector:
    """
    Detects direct and dependency changes between a reference commit
    and the repository tip.
    """

    def __init__(self, repository: RepositoryAccessor, config: ChangeDetectionConfig = None):
        self.repository = repository
        self.config = config or ChangeDetectionConfig()

    def changed_paths(self, reference_commit: CommitRef) -> List[str]:
        """
        Paths changed since ``reference_commit``, minus ignored ones.

        Raises:
            RepositoryAccessError: If the diff cannot be computed.
        """
        tip = self.repository.head_commit()
        paths = self.repository.diff(reference_commit, tip)
        return sorted(
            normalize_repo_path(p) for p in paths
            if not self._should_ignore(p)
        )

    def has_changed(
        self,
        reference_commit: Optional[CommitRef],
        project_path: str,
        dependency_paths: Optional[Sequence[str]] = None,
        repo_root: Optional[str] = None,
        debug: bool = False,
    ) -> bool:
        """
        Check whether a project changed since a reference commit.

        Args:
            reference_commit: Commit of the base tag; None means changed.
            project_path: Repository-relative project directory.
            dependency_paths: Paths of projects this one depends on,
                repository-relative or absolute under ``repo_root``.
            repo_root: Repository root used to relativize absolute paths.
            debug: Log the matching files.

        Returns:
            True if a path under the project or a dependency changed.
        """
        if reference_commit is None:
            if debug:
                logger.debug(f"No reference commit for {project_path or '.'}, treating as changed")
            return True

        changed = self.changed_paths(reference_commit)

        project = self._relativize(project_path, repo_root)
        direct = [p for p in changed if is_under_path(p, project)]
        if direct:
            if debug:
                self._log_matches("Direct changes", project, direct)
            return True

        for dependency in self._dependency_paths(dependency_paths, repo_root):
            matches = [p for p in changed if is_under_path(p, dependency)]
            if matches:
                if debug:
                    self._log_matches("Dependency changes", dependency, matches)
                return True

        if debug:
            logger.debug(
                f"No changes under {project or '.'} or its dependencies "
                f"({len(changed)} file(s) changed elsewhere)"
            )
        return False

    def required_bump(
        self,
        reference_commit: Optional[CommitRef],
        project_path: str,
        dependency_paths: Optional[Sequence[str]] = None,
        repo_root: Optional[str] = None,
    ) -> Optional[str]:
        """
        Bump demanded by the files a project changed since ``reference_commit``.

        Only paths under the project or its dependencies are considered.
        When files match several of ``major_patterns``, ``minor_patterns``
        and ``patch_patterns``, the highest bump wins.

        Returns:
            "major", "minor" or "patch", or None when no pattern matches
            or there is no reference commit to diff against.
        """
        if reference_commit is None or not self._has_bump_patterns():
            return None

        project = self._relativize(project_path, repo_root)
        containers = [project] + self._dependency_paths(dependency_paths, repo_root)
        relevant = [
            p for p in self.changed_paths(reference_commit)
            if any(is_under_path(p, container) for container in containers)
        ]

        for bump in BUMP_TYPES:
            patterns = getattr(self.config, f"{bump}_patterns")
            matches = [p for p in relevant if self._matches(p, patterns)]
            if matches:
                self._log_matches(f"{bump.capitalize()} bump patterns matched", project, matches)
                return bump
        return None

    def _has_bump_patterns(self) -> bool:
        return any(getattr(self.config, f"{bump}_patterns") for bump in BUMP_TYPES)

    def _dependency_paths(
        self, dependency_paths: Optional[Iterable[str]], repo_root: Optional[str]
    ) -> List[str]:
        """Relativize dependency paths, dropping empty entries."""
        relative = []
        for dependency in dependency_paths or []:
            path = self._relativize(dependency, repo_root)
            if not path:
                logger.warning(f"Ignoring dependency path resolving to the repository root: {dependency!r}")
                continue
            relative.append(path)
        return unique_paths(relative)

    @staticmethod
    def _relativize(path: Optional[str], repo_root: Optional[str]) -> str:
        """Make ``path`` repository-relative when it is absolute."""
        if not path:
            return ""
        if repo_root and os.path.isabs(path):
            try:
                path = os.path.relpath(path, repo_root)
            except ValueError:
                return normalize_repo_path(path)
        return normalize_repo_path(path)

    def _should_ignore(self, path: str) -> bool:
        """Check a changed path against the configured ignore globs."""
        return self._matches(path, self.config.ignore_patterns)

    @staticmethod
    def _matches(path: str, patterns: Iterable[str]) -> bool:
        """Match a path, or its file name, against glob patterns."""
        normalized = normalize_repo_path(path)
        name = PurePosixPath(normalized).name
        for pattern in patterns:
            if fnmatch.fnmatch(normalized, pattern) or fnmatch.fnmatch(name, pattern):
                return True
        return False

    @staticmethod
    def _log_matches(label: str, container: str, matches: List[str]) -> None:
        sample = ", ".join(matches[:DEBUG_SAMPLE_SIZE])
        more = len(matches) - DEBUG_SAMPLE_SIZE
        suffix = f" (+{more} more)" if more > 0 else ""
        logger.debug(f"{label} under {container or '.'}: {sample}{suffix}")
