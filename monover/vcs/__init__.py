"""
Read-only repository access.

Provides the accessor interface used by version resolution, a git
subprocess implementation and an in-memory history.
"""

from monover.vcs.repository import RepositoryAccessor, RepositorySnapshot
from monover.vcs.git_handler import GitRepository
from monover.vcs.memory import InMemoryRepository

__all__ = [
    "RepositoryAccessor",
    "RepositorySnapshot",
    "GitRepository",
    "InMemoryRepository",
]
