"""
Project dependency graph.

Wraps a NetworkX directed graph whose nodes are projects and whose
edges point from a project to the projects it depends on. Supplies the
dependency path listings consumed by change detection.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import networkx as nx

from monover.vcs.repository import normalize_repo_path

logger = logging.getLogger(__name__)


@dataclass
class ProjectDescriptor:
    """
    A versioned project inside the monorepo.

    ``dependencies`` holds repository-relative paths (or names) of other
    projects; a project never lists itself.
    """

    name: str
    path: str
    dependencies: List[str] = field(default_factory=list)
    force_version: Optional[str] = None
    additional_monitor_paths: List[str] = field(default_factory=list)
    prerelease_type: Optional[str] = None

    def __post_init__(self):
        self.path = normalize_repo_path(self.path)
        own = {self.path, self.name}
        self.dependencies = [
            d for d in (self.dependencies or [])
            if d not in own and normalize_repo_path(d) != self.path
        ]

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "path": self.path,
            "dependencies": list(self.dependencies),
            "force_version": self.force_version,
            "additional_monitor_paths": list(self.additional_monitor_paths),
            "prerelease_type": self.prerelease_type,
        }


class DependencyGraph:
    """
    Dependency graph over ProjectDescriptors.

    Dependencies may reference other projects by name or by path.
    References to paths outside the known projects are kept as plain
    paths so their changes still count.
    """

    def __init__(self, projects: Iterable[ProjectDescriptor] = ()):
        self._graph = nx.DiGraph()
        self._projects: Dict[str, ProjectDescriptor] = {}
        self._external: Dict[str, List[str]] = {}
        for project in projects:
            self.add_project(project, relink=False)
        self._link()

    @property
    def project_count(self) -> int:
        return len(self._projects)

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def add_project(self, project: ProjectDescriptor, relink: bool = True) -> None:
        """Register a project and rebuild dependency edges."""
        if project.name in self._projects:
            logger.warning(f"Duplicate project name, replacing: {project.name}")
        self._projects[project.name] = project
        self._graph.add_node(project.name, path=project.path)
        if relink:
            self._link()

    def _link(self) -> None:
        """Resolve dependency references into edges."""
        by_name = {name.lower(): name for name in self._projects}
        by_path = {p.path: p.name for p in self._projects.values()}

        self._graph.remove_edges_from(list(self._graph.edges()))
        self._external = {}

        for project in self._projects.values():
            external = []
            for reference in project.dependencies:
                target = by_name.get(reference.lower())
                if target is None:
                    target = by_path.get(normalize_repo_path(reference))
                if target is None:
                    external.append(normalize_repo_path(reference))
                    continue
                if target == project.name:
                    continue
                self._graph.add_edge(project.name, target)
            self._external[project.name] = external

    def get_project(self, name: str) -> Optional[ProjectDescriptor]:
        """Get a project by name."""
        return self._projects.get(name)

    def list_projects(self) -> List[ProjectDescriptor]:
        """All projects sorted by name."""
        return [self._projects[n] for n in sorted(self._projects)]

    def direct_dependencies(self, name: str) -> List[str]:
        """Names of the projects ``name`` depends on directly."""
        if name not in self._graph:
            return []
        return sorted(self._graph.successors(name))

    def transitive_dependencies(self, name: str) -> List[str]:
        """Names of every project reachable from ``name``."""
        if name not in self._graph:
            return []
        return sorted(nx.descendants(self._graph, name))

    def dependents(self, name: str) -> List[str]:
        """Names of projects that depend on ``name`` directly."""
        if name not in self._graph:
            return []
        return sorted(self._graph.predecessors(name))

    def dependency_paths(self, name: str, transitive: bool = False) -> List[str]:
        """
        Repository-relative paths to diff for a project's dependencies.

        Args:
            name: Project name.
            transitive: Include indirect dependencies.

        Returns:
            Ordered paths; unknown projects yield an empty list.
        """
        project = self._projects.get(name)
        if project is None:
            return []

        names = (
            self.transitive_dependencies(name) if transitive
            else self.direct_dependencies(name)
        )
        paths = [self._projects[n].path for n in names]

        externals = list(self._external.get(name, []))
        if transitive:
            for dependency in names:
                externals.extend(self._external.get(dependency, []))

        for path in externals + list(project.additional_monitor_paths):
            path = normalize_repo_path(path)
            if path and path not in paths:
                paths.append(path)
        return paths

    def find_cycles(self) -> List[List[str]]:
        """Dependency cycles, each as a list of project names."""
        return [sorted(cycle) for cycle in nx.simple_cycles(self._graph)]

    def topological_order(self) -> List[str]:
        """
        Project names with dependencies before their dependents.

        Falls back to name order when the graph contains cycles.
        """
        try:
            order = list(nx.lexicographical_topological_sort(self._graph.reverse(copy=False)))
        except nx.NetworkXUnfeasible:
            logger.warning(f"Dependency cycles detected: {self.find_cycles()}")
            return sorted(self._projects)
        return order

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "projects": [p.to_dict() for p in self.list_projects()],
            "edges": [
                {"source": source, "target": target}
                for source, target in sorted(self._graph.edges())
            ],
        }
