"""
In-memory repository model.

A small commit graph with tree snapshots, branches and tags that
implements the accessor contract without touching disk, so version
policies can be exercised without a git checkout.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from monover.core.exceptions import RepositoryAccessError
from monover.vcs.repository import CommitRef, RepositoryAccessor, normalize_repo_path


@dataclass
class MemoryCommit:
    """A commit with its parents and the full tree it records."""

    id: CommitRef
    parents: Tuple[CommitRef, ...]
    tree: Dict[str, str] = field(default_factory=dict)
    message: str = ""


class InMemoryRepository(RepositoryAccessor):
    """
    Mutable in-memory repository exposing a read-only accessor view.

    Trees are full snapshots, so diffs compare file contents the way a
    git tree diff does: a change that is later reverted is no diff.
    """

    def __init__(self, branch: str = "main"):
        self._commits: Dict[CommitRef, MemoryCommit] = {}
        self._branches: Dict[str, Optional[CommitRef]] = {branch: None}
        self._head = branch
        self._tags: Dict[str, CommitRef] = {}
        self._counter = 0

    def _new_id(self, message: str) -> CommitRef:
        self._counter += 1
        seed = f"{self._counter}:{message}".encode("utf-8")
        return hashlib.sha1(seed).hexdigest()

    def _require(self, commit: CommitRef) -> MemoryCommit:
        if commit not in self._commits:
            raise RepositoryAccessError(
                f"Unknown commit: {commit}", details={"commit": commit}
            )
        return self._commits[commit]

    @property
    def current_branch(self) -> str:
        return self._head

    def commit(self, changes: Dict[str, Optional[str]] = None, message: str = "") -> CommitRef:
        """
        Record a commit on the current branch.

        Args:
            changes: Mapping of path to new content; None deletes the path.
            message: Commit message.

        Returns:
            The new commit id.
        """
        parent = self._branches[self._head]
        tree = dict(self._commits[parent].tree) if parent else {}
        for path, content in (changes or {}).items():
            path = normalize_repo_path(path)
            if content is None:
                tree.pop(path, None)
            else:
                tree[path] = content

        commit_id = self._new_id(message)
        parents = (parent,) if parent else ()
        self._commits[commit_id] = MemoryCommit(commit_id, parents, tree, message)
        self._branches[self._head] = commit_id
        return commit_id

    def checkout(self, branch: str, create: bool = False) -> None:
        """Switch branches, optionally creating one at the current tip."""
        if branch not in self._branches:
            if not create:
                raise RepositoryAccessError(f"Unknown branch: {branch}")
            self._branches[branch] = self._branches[self._head]
        self._head = branch

    def merge(self, branch: str, message: str = "") -> CommitRef:
        """Merge ``branch`` into the current branch; its files win conflicts."""
        ours = self._branches[self._head]
        theirs = self._branches.get(branch)
        if theirs is None:
            raise RepositoryAccessError(f"Cannot merge empty or unknown branch: {branch}")

        tree = dict(self._commits[ours].tree) if ours else {}
        tree.update(self._commits[theirs].tree)
        commit_id = self._new_id(message or f"Merge {branch}")
        parents = (ours, theirs) if ours else (theirs,)
        self._commits[commit_id] = MemoryCommit(commit_id, parents, tree, message)
        self._branches[self._head] = commit_id
        return commit_id

    def tag(self, name: str, commit: Optional[CommitRef] = None) -> None:
        """Tag a commit (default: current tip)."""
        target = commit or self._branches[self._head]
        if target is None:
            raise RepositoryAccessError("Cannot tag an empty branch")
        self._require(target)
        self._tags[name] = target

    def resolve_branch_name(self) -> str:
        return self._head

    def head_commit(self) -> Optional[CommitRef]:
        return self._branches[self._head]

    def list_tags(self) -> List[Tuple[str, CommitRef]]:
        return sorted(self._tags.items())

    def diff(self, from_commit: CommitRef, to_commit: Optional[CommitRef]) -> FrozenSet[str]:
        old = self._require(from_commit).tree
        new_commit = to_commit or self.head_commit()
        new = self._require(new_commit).tree if new_commit else {}

        changed = set()
        for path in set(old) | set(new):
            if old.get(path) != new.get(path):
                changed.add(path)
        return frozenset(changed)

    def ancestors(self, commit: CommitRef, first_parent: bool = False) -> List[CommitRef]:
        self._require(commit)
        if first_parent:
            chain = []
            current: Optional[CommitRef] = commit
            while current:
                chain.append(current)
                parents = self._commits[current].parents
                current = parents[0] if parents else None
            return chain

        # Breadth-first, nearest first
        order = []
        seen = {commit}
        queue = [commit]
        while queue:
            current = queue.pop(0)
            order.append(current)
            for parent in self._commits[current].parents:
                if parent not in seen:
                    seen.add(parent)
                    queue.append(parent)
        return order
