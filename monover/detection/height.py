"""
Commit height counting.

Height is the number of commits on the first-parent path from the tip
that the reference commit cannot reach.
"""

import logging
import threading
from typing import Dict, Optional

from monover.vcs.repository import CommitRef, RepositoryAccessor

logger = logging.getLogger(__name__)


class CommitHeightCounter:
    """
    Counts first-parent commits between the tip and a reference commit.

    Results are memoized per reference commit for the lifetime of the
    counter, which should not outlive one resolution run.
    """

    def __init__(self, repository: RepositoryAccessor):
        self.repository = repository
        self._cache: Dict[Optional[CommitRef], int] = {}
        self._lock = threading.Lock()

    def height(self, reference_commit: Optional[CommitRef] = None) -> int:
        """
        Count commits from the tip down to ``reference_commit``.

        Args:
            reference_commit: Commit of the base tag. When None, every
                first-parent commit down to the root is counted.

        Returns:
            Non-negative commit count.
        """
        with self._lock:
            if reference_commit in self._cache:
                return self._cache[reference_commit]

        tip = self.repository.head_commit()
        if tip is None:
            count = 0
        else:
            chain = self.repository.ancestors(tip, first_parent=True)
            if reference_commit is None:
                count = len(chain)
            elif reference_commit in chain:
                count = chain.index(reference_commit)
            else:
                # Tag lives on a merged side branch
                reachable = set(self.repository.ancestors(reference_commit))
                count = sum(1 for commit in chain if commit not in reachable)
                logger.debug(
                    f"Reference {reference_commit} not on first-parent path, "
                    f"{count} of {len(chain)} commit(s) unreachable from it"
                )

        with self._lock:
            self._cache[reference_commit] = count
        return count
