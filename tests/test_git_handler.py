"""
Integration tests for the git repository accessor.

Skipped when the git executable is not available.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from git_helpers import GIT_AVAILABLE, ScratchRepository

from monover.core.config import GitConfig, MonoverConfig
from monover.core.exceptions import RepositoryAccessError, RepositoryValidationError
from monover.engine import MonorepoVersioner
from monover.vcs.git_handler import GitRepository


@unittest.skipUnless(GIT_AVAILABLE, "git executable not available")
class TestGitRepository(unittest.TestCase):
    """Tests for git-backed repository access."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.scratch = ScratchRepository(Path(self._tmpdir.name))

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_not_a_repository(self):
        """Test validation of a plain directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertFalse(GitRepository.validate_repository(Path(tmpdir)))
            with self.assertRaises(RepositoryValidationError):
                GitRepository(Path(tmpdir))

    def test_missing_executable(self):
        """Test a configured git executable that does not exist."""
        with self.assertRaises(RepositoryAccessError):
            GitRepository(self.scratch.path, GitConfig(git_executable="git-does-not-exist"))

    def test_unborn_branch(self):
        """Test an empty repository."""
        repo = GitRepository(self.scratch.path)

        self.assertEqual(repo.resolve_branch_name(), "main")
        self.assertIsNone(repo.head_commit())
        self.assertEqual(repo.list_tags(), [])

    def test_branch_and_head(self):
        """Test branch name and tip commit."""
        commit = self.scratch.commit({"api/app.py": "1"})
        self.scratch.git("checkout", "-q", "-b", "feature/login")

        repo = GitRepository(self.scratch.path)

        self.assertEqual(repo.resolve_branch_name(), "feature/login")
        self.assertEqual(repo.head_commit(), commit)

    def test_detached_head_uses_ci_variable(self):
        """Test branch detection on a detached checkout."""
        commit = self.scratch.commit({"api/app.py": "1"})
        self.scratch.git("checkout", "-q", "--detach", commit)

        with mock.patch.dict(os.environ, {"GITHUB_HEAD_REF": "release/1.2.0"}):
            branch = GitRepository(self.scratch.path).resolve_branch_name()

        self.assertEqual(branch, "release/1.2.0")

    def test_list_tags_peels_annotated(self):
        """Test that annotated tags resolve to their commit."""
        commit = self.scratch.commit({"api/app.py": "1"})
        self.scratch.git("tag", "v1.0.0")
        self.scratch.git("tag", "-a", "api/v1.1.0", "-m", "api release")

        tags = dict(GitRepository(self.scratch.path).list_tags())

        self.assertEqual(tags["v1.0.0"], commit)
        self.assertEqual(tags["api/v1.1.0"], commit)

    def test_diff(self):
        """Test changed paths between commits."""
        first = self.scratch.commit({"api/app.py": "1", "web/index.js": "1"})
        self.scratch.commit({"api/app.py": "2"})
        self.scratch.git("rm", "-q", "web/index.js")
        self.scratch.git("commit", "-q", "-m", "remove")

        changed = GitRepository(self.scratch.path).diff(first, None)

        self.assertEqual(changed, frozenset({"api/app.py", "web/index.js"}))

    def test_ancestors_first_parent(self):
        """Test first-parent ancestry across a merge."""
        root = self.scratch.commit({"a": "1"})
        self.scratch.git("checkout", "-q", "-b", "side")
        side = self.scratch.commit({"b": "1"})
        self.scratch.git("checkout", "-q", "main")
        self.scratch.commit({"c": "1"})
        self.scratch.git("merge", "-q", "--no-ff", "-m", "merge side", "side")

        repo = GitRepository(self.scratch.path)
        head = repo.head_commit()

        first_parent = repo.ancestors(head, first_parent=True)
        self.assertEqual(first_parent[0], head)
        self.assertEqual(first_parent[-1], root)
        self.assertNotIn(side, first_parent)
        self.assertIn(side, repo.ancestors(head))

    def test_unknown_commit(self):
        """Test that bad references raise access errors."""
        self.scratch.commit({"a": "1"})

        with self.assertRaises(RepositoryAccessError):
            GitRepository(self.scratch.path).ancestors("0" * 40)

    def test_discover_root(self):
        """Test finding the work-tree root from a subdirectory."""
        self.scratch.commit({"services/api/app.py": "1"})

        root = GitRepository.discover_root(self.scratch.path / "services" / "api")

        self.assertEqual(root.resolve(), self.scratch.path.resolve())

    def test_configured_executable_used_for_discovery(self):
        """Test that root discovery and validation run the configured git."""
        self.scratch.commit({"a": "1"})
        git_path = shutil.which("git")

        self.assertEqual(
            GitRepository.discover_root(self.scratch.path, git_path).resolve(),
            self.scratch.path.resolve(),
        )
        self.assertTrue(GitRepository.validate_repository(self.scratch.path, git_path))
        self.assertIsNone(GitRepository.discover_root(self.scratch.path, "git-does-not-exist"))
        self.assertFalse(
            GitRepository.validate_repository(self.scratch.path, "git-does-not-exist")
        )


@unittest.skipUnless(GIT_AVAILABLE, "git executable not available")
class TestGitResolution(unittest.TestCase):
    """End-to-end resolution against a real repository."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.scratch = ScratchRepository(Path(self._tmpdir.name))
        self.scratch.commit({
            "services/api/pyproject.toml": "",
            "services/api/app.py": "1",
            "web/package.json": "{}",
        })
        self.scratch.git("tag", "v1.0.0")

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_dev_branch(self):
        """Test dev pre-releases against discovered projects."""
        self.scratch.git("checkout", "-q", "-b", "dev")
        for i in range(3):
            self.scratch.commit({"services/api/app.py": str(i + 2)})

        run = MonorepoVersioner.from_path(self.scratch.path, MonoverConfig()).resolve_all()

        self.assertEqual(run.versions, {"api": "1.0.0-dev.3", "web": "1.0.0"})

    def test_main_branch(self):
        """Test patch bumps on main."""
        self.scratch.commit({"web/index.js": "1"})

        run = MonorepoVersioner.from_path(self.scratch.path, MonoverConfig()).resolve_all()

        self.assertEqual(run.versions, {"api": "1.0.0", "web": "1.0.1"})


if __name__ == "__main__":
    unittest.main()
