"""
Resolution run state for multi-project version resolution.

Tracks the status of every project in one run with clear per-project
outcomes, serialization support and failure isolation: a failed
project never affects the others.
"""

import logging
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ProjectStatus(Enum):
    """Status of a project within a run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ProjectResult:
    """Outcome of resolving one project."""

    project: str
    status: ProjectStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: Optional[str] = None
    output: Any = None
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds() * 1000
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "project": self.project,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "version": self.version,
            "error": self.error,
            "details": self.details,
        }


@dataclass
class ResolutionRun:
    """
    Maintains the complete state of one multi-project resolution.

    Record methods are thread-safe so projects can be resolved in
    parallel.
    """

    run_id: str
    repository: str
    branch: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    results: Dict[str, ProjectResult] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_project(self, project: str) -> None:
        """Register a project as pending."""
        with self._lock:
            self.results.setdefault(
                project, ProjectResult(project=project, status=ProjectStatus.PENDING)
            )

    def get_status(self, project: str) -> ProjectStatus:
        """Get the status of a specific project."""
        if project in self.results:
            return self.results[project].status
        return ProjectStatus.PENDING

    def record_start(self, project: str) -> None:
        """Record that a project resolution has started."""
        with self._lock:
            self.results[project] = ProjectResult(
                project=project,
                status=ProjectStatus.RUNNING,
                started_at=datetime.now(),
            )

    def record_completion(
        self, project: str, version: str, output: Any = None, details: Dict[str, Any] = None
    ) -> None:
        """Record that a project resolved successfully."""
        with self._lock:
            result = self.results.setdefault(
                project, ProjectResult(project=project, status=ProjectStatus.RUNNING)
            )
            result.status = ProjectStatus.COMPLETED
            result.completed_at = datetime.now()
            result.version = version
            result.output = output
            result.details = details or {}

    def record_failure(self, project: str, error: str, details: Dict[str, Any] = None) -> None:
        """Record that a project resolution failed."""
        with self._lock:
            result = self.results.setdefault(
                project, ProjectResult(project=project, status=ProjectStatus.RUNNING)
            )
            result.status = ProjectStatus.FAILED
            result.completed_at = datetime.now()
            result.error = error
            result.details = details or {}

    def record_cancelled(self, project: str) -> None:
        """Record that a project was skipped due to cancellation."""
        with self._lock:
            result = self.results.setdefault(
                project, ProjectResult(project=project, status=ProjectStatus.PENDING)
            )
            result.status = ProjectStatus.CANCELLED
            result.completed_at = datetime.now()

    def projects_with_status(self, status: ProjectStatus) -> List[str]:
        return sorted(
            name for name, result in self.results.items()
            if result.status == status
        )

    @property
    def succeeded(self) -> bool:
        """True when every registered project completed."""
        return all(
            r.status == ProjectStatus.COMPLETED for r in self.results.values()
        )

    @property
    def versions(self) -> Dict[str, str]:
        """Resolved version per completed project."""
        return {
            name: result.version
            for name, result in sorted(self.results.items())
            if result.status == ProjectStatus.COMPLETED
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert run to dictionary for serialization."""
        return {
            "run_id": self.run_id,
            "repository": self.repository,
            "branch": self.branch,
            "created_at": self.created_at.isoformat(),
            "results": {
                name: result.to_dict()
                for name, result in sorted(self.results.items())
            },
        }

    def save(self, path: Path) -> None:
        """Save run state to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Resolution run saved to {path}")

    @classmethod
    def load(cls, path: Path) -> "ResolutionRun":
        """Load run state from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        run = cls(
            run_id=data["run_id"],
            repository=data["repository"],
            branch=data.get("branch"),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

        for name, result_data in data.get("results", {}).items():
            run.results[name] = ProjectResult(
                project=result_data["project"],
                status=ProjectStatus(result_data["status"]),
                started_at=(
                    datetime.fromisoformat(result_data["started_at"])
                    if result_data.get("started_at")
                    else None
                ),
                completed_at=(
                    datetime.fromisoformat(result_data["completed_at"])
                    if result_data.get("completed_at")
                    else None
                ),
                version=result_data.get("version"),
                error=result_data.get("error"),
                details=result_data.get("details", {}),
            )

        return run
