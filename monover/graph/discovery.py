"""
Project discovery for monorepos.

Builds ProjectDescriptors from the configured project list or, when
none are configured, by scanning the working tree for project marker
files.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import List

from monover.core.config import MonoverConfig
from monover.graph.dependency_graph import DependencyGraph, ProjectDescriptor

logger = logging.getLogger(__name__)


class ProjectDiscovery:
    """
    Produces the project list and dependency graph for a repository.

    Configured projects always win; the filesystem scan is a fallback
    and yields projects without dependencies.
    """

    def __init__(self, config: MonoverConfig):
        self.config = config

    def discover(self, repo_root: Path) -> List[ProjectDescriptor]:
        """
        List the projects of a repository.

        Args:
            repo_root: Path to the repository root.

        Returns:
            Project descriptors sorted by name.
        """
        if self.config.projects:
            projects = [
                ProjectDescriptor(
                    name=project.name,
                    path=project.path,
                    dependencies=list(project.dependencies),
                    force_version=project.force_version,
                    additional_monitor_paths=list(project.additional_monitor_paths),
                    prerelease_type=project.prerelease_type,
                )
                for project in self.config.projects.values()
            ]
            logger.debug(f"Using {len(projects)} configured projects")
        else:
            projects = self._scan(Path(repo_root))
            logger.info(f"Discovered {len(projects)} projects in {repo_root}")

        return sorted(projects, key=lambda p: p.name)

    def build_graph(self, repo_root: Path) -> DependencyGraph:
        """Discover projects and link their dependencies."""
        graph = DependencyGraph(self.discover(repo_root))
        cycles = graph.find_cycles()
        if cycles:
            logger.warning(f"Dependency cycles in project graph: {cycles}")
        return graph

    def _scan(self, repo_root: Path) -> List[ProjectDescriptor]:
        """Walk the tree and collect directories holding a marker file."""
        projects = []
        seen_names = set()

        for root, dirs, filenames in os.walk(repo_root):
            current_path = Path(root)

            dirs[:] = sorted(
                d for d in dirs
                if not self._should_ignore(d)
            )

            if not any(self._is_marker(f) for f in filenames):
                continue

            relative = current_path.relative_to(repo_root).as_posix()
            if relative == ".":
                relative = ""
            name = current_path.name if relative else repo_root.resolve().name

            if name in seen_names:
                # Same directory name twice; qualify with the path
                name = relative or name
            seen_names.add(name)

            projects.append(ProjectDescriptor(name=name, path=relative))
            logger.debug(f"Found project {name} at {relative or '.'}")

        return projects

    def _should_ignore(self, dirname: str) -> bool:
        return any(
            fnmatch.fnmatch(dirname, pattern)
            for pattern in self.config.discovery_ignore
        )

    def _is_marker(self, filename: str) -> bool:
        return any(
            fnmatch.fnmatch(filename, pattern)
            for pattern in self.config.project_markers
        )
