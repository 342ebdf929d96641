"""
monover: semantic versions for monorepo projects.

Calculates a SemVer 2.0.0 version for every project of a repository
from git metadata alone: branch names, version tags, commit ancestry
and changed paths.
"""

__version__ = "1.0.0"
__author__ = "monover developers"
