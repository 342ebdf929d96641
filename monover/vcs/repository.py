"""
Repository accessor contract and per-run snapshot.

The resolution engine only reads history through this interface: the
current branch name, tags, tree diffs and commit ancestry. Commit
references are opaque strings owned by the accessor.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Opaque commit identifier (a full object id for git)
CommitRef = str


class RepositoryAccessor(ABC):
    """
    Read-only view of repository history.

    Implementations must present a consistent snapshot for the duration
    of one resolution request and raise RepositoryAccessError when
    history cannot be read.
    """

    @abstractmethod
    def resolve_branch_name(self) -> str:
        """Name of the checked-out branch."""
        pass

    @abstractmethod
    def head_commit(self) -> Optional[CommitRef]:
        """Commit at the repository tip, or None for an empty repository."""
        pass

    @abstractmethod
    def list_tags(self) -> List[Tuple[str, CommitRef]]:
        """All tags as (name, target commit) pairs."""
        pass

    @abstractmethod
    def diff(self, from_commit: CommitRef, to_commit: Optional[CommitRef]) -> FrozenSet[str]:
        """Repository-relative paths that differ between two commits."""
        pass

    @abstractmethod
    def ancestors(self, commit: CommitRef, first_parent: bool = False) -> List[CommitRef]:
        """
        Ancestry of a commit, nearest first, starting with the commit itself.

        Args:
            commit: Starting commit.
            first_parent: Follow only the first parent of merge commits.
        """
        pass

    def short_id(self, commit: Optional[CommitRef]) -> str:
        """Abbreviated commit identifier for display."""
        if not commit:
            return "0000000"
        return commit[:7]


class RepositorySnapshot(RepositoryAccessor):
    """
    Memoizing wrapper used for one multi-project run.

    Branch, tip and tag listings are read once; ancestry and diff
    results are cached per commit. Safe to share between threads since
    the underlying history is never mutated.
    """

    def __init__(self, accessor: RepositoryAccessor, branch_override: Optional[str] = None):
        self._accessor = accessor
        self._lock = threading.Lock()
        self._branch: Optional[str] = branch_override
        self._head: Optional[CommitRef] = None
        self._head_loaded = False
        self._tags: Optional[List[Tuple[str, CommitRef]]] = None
        self._ancestors: Dict[Tuple[CommitRef, bool], List[CommitRef]] = {}
        self._diffs: Dict[Tuple[CommitRef, Optional[CommitRef]], FrozenSet[str]] = {}

    def resolve_branch_name(self) -> str:
        with self._lock:
            if self._branch is None:
                self._branch = self._accessor.resolve_branch_name()
            return self._branch

    def head_commit(self) -> Optional[CommitRef]:
        with self._lock:
            if not self._head_loaded:
                self._head = self._accessor.head_commit()
                self._head_loaded = True
            return self._head

    def list_tags(self) -> List[Tuple[str, CommitRef]]:
        with self._lock:
            if self._tags is None:
                self._tags = list(self._accessor.list_tags())
                logger.debug(f"Loaded {len(self._tags)} tags")
            return list(self._tags)

    def diff(self, from_commit: CommitRef, to_commit: Optional[CommitRef]) -> FrozenSet[str]:
        key = (from_commit, to_commit)
        with self._lock:
            if key in self._diffs:
                return self._diffs[key]
        result = frozenset(self._accessor.diff(from_commit, to_commit))
        with self._lock:
            self._diffs[key] = result
        return result

    def ancestors(self, commit: CommitRef, first_parent: bool = False) -> List[CommitRef]:
        key = (commit, first_parent)
        with self._lock:
            if key in self._ancestors:
                return list(self._ancestors[key])
        result = list(self._accessor.ancestors(commit, first_parent=first_parent))
        with self._lock:
            self._ancestors[key] = result
        return list(result)

    def short_id(self, commit: Optional[CommitRef]) -> str:
        return self._accessor.short_id(commit)


def normalize_repo_path(path: Optional[str]) -> str:
    """
    Normalize a repository-relative path for prefix comparison.

    Backslashes become slashes, leading ``./`` and surrounding slashes
    are removed. The repository root normalizes to an empty string.
    """
    if not path:
        return ""
    normalized = str(path).replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.strip("/")
    if normalized == ".":
        return ""
    return normalized


def is_under_path(changed_path: str, container: str) -> bool:
    """
    Path-prefix containment on whole segments.

    ``src/App/x.py`` is under ``src/App`` but ``src/AppOther/x.py`` is
    not. Every path is under the repository root (empty container).
    """
    changed = normalize_repo_path(changed_path)
    container = normalize_repo_path(container)
    if not container:
        return True
    return changed == container or changed.startswith(container + "/")


def unique_paths(paths: Sequence[str]) -> List[str]:
    """Normalize paths and drop duplicates, keeping the first occurrence."""
    seen = set()
    result = []
    for path in paths:
        normalized = normalize_repo_path(path)
        if normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result
