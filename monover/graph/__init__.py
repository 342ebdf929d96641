"""
Project dependency graph and discovery.

Provides functionality for describing monorepo projects, linking
their dependencies and ordering them for resolution.
"""

from monover.graph.dependency_graph import DependencyGraph, ProjectDescriptor
from monover.graph.discovery import ProjectDiscovery

__all__ = [
    "DependencyGraph",
    "ProjectDescriptor",
    "ProjectDiscovery",
]
