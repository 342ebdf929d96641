"""
Helpers for building throwaway git repositories in tests.
"""

import shutil
import subprocess
from pathlib import Path

GIT_AVAILABLE = shutil.which("git") is not None


class ScratchRepository:
    """A git repository in a temporary directory."""

    def __init__(self, path: Path, branch: str = "main"):
        self.path = Path(path)
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", f"refs/heads/{branch}")
        self.git("config", "user.email", "dev@example.com")
        self.git("config", "user.name", "Dev")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def write(self, relative: str, content: str) -> None:
        target = self.path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def commit(self, files: dict, message: str = "change") -> str:
        for relative, content in files.items():
            self.write(relative, content)
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message)
        return self.git("rev-parse", "HEAD")
