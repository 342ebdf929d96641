"""
Change detection and commit height counting.
"""

from monover.detection.changes import ChangeDetector
from monover.detection.height import CommitHeightCounter

__all__ = [
    "ChangeDetector",
    "CommitHeightCounter",
]
