"""
Git operations handler for version resolution.

Provides a read-only repository accessor backed by the ``git`` command
line: branch detection, tag listing, tree diffs and commit ancestry.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence, Tuple

from monover.core.config import GitConfig
from monover.core.exceptions import RepositoryAccessError, RepositoryValidationError
from monover.vcs.repository import CommitRef, RepositoryAccessor

logger = logging.getLogger(__name__)

# Checked in order when HEAD is detached (typical CI checkouts)
CI_BRANCH_VARIABLES = (
    "GITHUB_HEAD_REF",
    "GITHUB_REF_NAME",
    "CI_COMMIT_REF_NAME",
    "BUILD_SOURCEBRANCHNAME",
    "BRANCH_NAME",
    "GIT_BRANCH",
)


class GitRepository(RepositoryAccessor):
    """
    Repository accessor that shells out to git.

    Every invocation is bounded by the configured timeout. Failures are
    raised as RepositoryAccessError.
    """

    def __init__(self, repo_path: Path, config: GitConfig = None):
        self.config = config or GitConfig()
        self.repo_path = Path(repo_path)
        if not self._check_git_available():
            raise RepositoryAccessError(
                "Git is not available on this system",
                details={"executable": self.config.git_executable},
            )
        if not self.validate_repository(self.repo_path, self.config.git_executable):
            raise RepositoryValidationError(str(self.repo_path), "Not a git work tree")

    def _check_git_available(self) -> bool:
        """Check if git is available on the system."""
        try:
            result = subprocess.run(
                [self.config.git_executable, "--version"],
                capture_output=True,
                text=True,
                timeout=10,
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False

    def _run(self, args: Sequence[str], check: bool = True) -> subprocess.CompletedProcess:
        """
        Run a git command in the repository.

        Args:
            args: Arguments following the git executable.
            check: Raise on a non-zero exit status.

        Raises:
            RepositoryAccessError: On timeout, missing executable or failure.
        """
        cmd = [self.config.git_executable, *args]
        logger.debug(f"Git command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.repo_path,
                timeout=self.config.git_timeout,
            )
        except subprocess.TimeoutExpired:
            raise RepositoryAccessError(
                f"Git command timed out after {self.config.git_timeout} seconds",
                details={"command": cmd},
            )
        except FileNotFoundError as e:
            raise RepositoryAccessError(
                f"Git executable not found: {e}",
                details={"command": cmd},
            )

        if check and result.returncode != 0:
            raise RepositoryAccessError(
                f"Git command failed: {result.stderr.strip()}",
                details={"command": cmd, "stderr": result.stderr},
            )
        return result

    @staticmethod
    def validate_repository(repo_path: Path, git_executable: str = "git") -> bool:
        """
        Validate that a path lies inside a git work tree.

        Args:
            repo_path: Path to validate.
            git_executable: Git command to run.

        Returns:
            True if valid git work tree, False otherwise.
        """
        if not Path(repo_path).is_dir():
            return False

        try:
            result = subprocess.run(
                [git_executable, "rev-parse", "--is-inside-work-tree"],
                capture_output=True,
                text=True,
                cwd=repo_path,
                timeout=10,
            )
            return result.returncode == 0 and result.stdout.strip() == "true"
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False

    @staticmethod
    def discover_root(start_path: Path, git_executable: str = "git") -> Optional[Path]:
        """Find the work-tree root containing ``start_path``."""
        try:
            result = subprocess.run(
                [git_executable, "rev-parse", "--show-toplevel"],
                capture_output=True,
                text=True,
                cwd=start_path,
                timeout=10,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, NotADirectoryError):
            return None
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip())

    def resolve_branch_name(self) -> str:
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"], check=False)
        branch = result.stdout.strip() if result.returncode == 0 else ""

        if branch and branch != "HEAD":
            return branch

        # Unborn branch: rev-parse fails, symbolic-ref still knows the name
        symbolic = self._run(["symbolic-ref", "--short", "-q", "HEAD"], check=False)
        if symbolic.returncode == 0 and symbolic.stdout.strip():
            return symbolic.stdout.strip()

        for variable in CI_BRANCH_VARIABLES:
            value = os.getenv(variable)
            if value:
                logger.debug(f"Detached HEAD, using branch from {variable}: {value}")
                return value

        logger.warning("Detached HEAD and no CI branch variable set")
        return "HEAD"

    def head_commit(self) -> Optional[CommitRef]:
        result = self._run(["rev-parse", "--verify", "-q", "HEAD^{commit}"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def list_tags(self) -> List[Tuple[str, CommitRef]]:
        # %(*objectname) is the peeled commit of annotated tags
        result = self._run([
            "for-each-ref",
            "refs/tags",
            "--format=%(refname:short)%09%(objectname)%09%(*objectname)",
        ])

        tags = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            name = parts[0]
            target = parts[2] if len(parts) > 2 and parts[2] else parts[1]
            tags.append((name, target))
        return tags

    def diff(self, from_commit: CommitRef, to_commit: Optional[CommitRef]) -> FrozenSet[str]:
        to_commit = to_commit or "HEAD"
        result = self._run([
            "diff", "--name-only", "--no-renames", "-z", from_commit, to_commit, "--",
        ])
        return frozenset(p for p in result.stdout.split("\0") if p)

    def ancestors(self, commit: CommitRef, first_parent: bool = False) -> List[CommitRef]:
        args = ["rev-list"]
        if first_parent:
            args.append("--first-parent")
        args.append(commit)
        result = self._run(args)
        return [line for line in result.stdout.splitlines() if line]
