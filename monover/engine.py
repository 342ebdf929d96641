"""
Version resolution engine.

Combines branch classification, release extraction, tag resolution,
change detection and commit height into one version per project, and
runs that resolution across every project of a monorepo.
"""

import logging
import re
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from monover.core.config import Config, MonoverConfig
from monover.core.exceptions import MonoverError, ResolutionCancelledError, ResolutionError
from monover.core.run import ProjectStatus, ResolutionRun
from monover.detection.changes import ChangeDetector
from monover.detection.height import CommitHeightCounter
from monover.graph.dependency_graph import DependencyGraph, ProjectDescriptor
from monover.graph.discovery import ProjectDiscovery
from monover.vcs.git_handler import GitRepository
from monover.vcs.repository import RepositoryAccessor, RepositorySnapshot
from monover.versioning.branches import (
    BranchClassifier,
    BranchType,
    extract_release_version,
    feature_slug,
)
from monover.versioning.semver import SemanticVersion, parse_semver
from monover.versioning.tags import TagResolver, VersionTag

logger = logging.getLogger(__name__)

PRERELEASE_PROGRESSION = re.compile(r"(alpha|beta|rc)\.(\d+)")


@dataclass
class VersionResult:
    """Resolved version of one project with the facts that produced it."""

    project: str
    version: SemanticVersion
    branch_name: str
    branch_type: BranchType
    version_changed: bool
    change_reason: str
    commit_sha: Optional[str] = None
    commit_height: Optional[int] = None
    previous_version: Optional[str] = None
    previous_tag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "project": self.project,
            "version": str(self.version),
            "branch_name": self.branch_name,
            "branch_type": self.branch_type.value,
            "version_changed": self.version_changed,
            "change_reason": self.change_reason,
            "commit_sha": self.commit_sha,
            "commit_height": self.commit_height,
            "previous_version": self.previous_version,
            "previous_tag": self.previous_tag,
        }


class VersionCalculator:
    """
    Resolves the version of a single project.

    Holds no repository state; the repository view is passed to every
    call so one calculator can serve concurrent resolutions.
    """

    def __init__(self, config: MonoverConfig = None):
        self.config = config or Config.get()
        self.classifier = BranchClassifier(self.config.branches)

    def resolve(
        self,
        project: ProjectDescriptor,
        repository: RepositoryAccessor,
        dependency_paths: Optional[Sequence[str]] = None,
        repo_root: Optional[str] = None,
    ) -> SemanticVersion:
        """Resolve just the version of ``project``."""
        return self.calculate(project, repository, dependency_paths, repo_root).version

    def calculate(
        self,
        project: ProjectDescriptor,
        repository: RepositoryAccessor,
        dependency_paths: Optional[Sequence[str]] = None,
        repo_root: Optional[str] = None,
    ) -> VersionResult:
        """
        Resolve the version of ``project`` with its provenance.

        Args:
            project: Project to version.
            repository: Read-only repository view.
            dependency_paths: Paths to diff in addition to the project
                path. Defaults to the descriptor's dependencies and
                additional monitor paths.
            repo_root: Repository root used to relativize absolute paths.

        Returns:
            VersionResult for the project.

        Raises:
            RepositoryAccessError: If repository history cannot be read.
        """
        versioning = self.config.versioning
        branch_name = self.config.branch_override or repository.resolve_branch_name()
        branch_type = self.classifier.classify(branch_name)
        commit_sha = repository.short_id(repository.head_commit())

        logger.debug(f"{project.name}: branch {branch_name} classified as {branch_type.value}")

        def result(version: SemanticVersion, changed: bool, reason: str, **extra) -> VersionResult:
            return VersionResult(
                project=project.name,
                version=version,
                branch_name=branch_name,
                branch_type=branch_type,
                version_changed=changed,
                change_reason=reason,
                commit_sha=commit_sha,
                **extra,
            )

        if project.force_version:
            forced = parse_semver(project.force_version)
            if forced is not None:
                return result(forced, True, f"Forced version: {forced}")
            logger.warning(
                f"{project.name}: invalid forced version {project.force_version!r}, "
                f"using calculated version"
            )

        if branch_type == BranchType.RELEASE:
            release = extract_release_version(branch_name, versioning.tag_prefix)
            if release is not None:
                return result(release, True, f"Release branch: explicit version {release}")
            logger.debug(f"{project.name}: no version in release branch {branch_name}")

        base_tag = TagResolver(repository, versioning.tag_prefix).resolve(project.name)
        base_version, reference = self._base_version(base_tag)
        previous = {
            "previous_version": str(base_version),
            "previous_tag": base_tag.name if base_tag else None,
        }

        if dependency_paths is None:
            dependency_paths = list(project.dependencies) + list(project.additional_monitor_paths)

        detector = ChangeDetector(repository, self.config.change_detection)
        changed = detector.has_changed(
            reference, project.path, dependency_paths, repo_root, debug=self.config.debug
        )
        if not changed:
            since = base_tag.name if base_tag else "base version"
            return result(base_version, False, f"No changes since {since}", **previous)

        increment = None
        if branch_type == BranchType.MAIN:
            increment = detector.required_bump(reference, project.path, dependency_paths, repo_root)

        height = CommitHeightCounter(repository).height(reference)
        version, reason = self._next_version(
            base_version,
            branch_type,
            branch_name,
            height,
            increment=increment,
            prerelease_type=project.prerelease_type,
        )
        return result(version, True, reason, commit_height=height, **previous)

    def _base_version(self, base_tag: Optional[VersionTag]) -> Tuple[SemanticVersion, Optional[str]]:
        """Version and reference commit to build on."""
        if base_tag is not None:
            return base_tag.version, base_tag.commit

        configured = parse_semver(self.config.versioning.base_version)
        if configured is None:
            logger.warning(
                f"Invalid base_version {self.config.versioning.base_version!r}, using 0.0.0"
            )
            configured = SemanticVersion(0, 0, 0)
        return configured, None

    def _next_version(
        self,
        base: SemanticVersion,
        branch_type: BranchType,
        branch_name: str,
        height: int,
        increment: Optional[str] = None,
        prerelease_type: Optional[str] = None,
    ) -> Tuple[SemanticVersion, str]:
        """
        Apply the branch policy to a changed project.

        ``increment`` and ``prerelease_type`` override the configured
        main-line defaults when given.
        """
        versioning = self.config.versioning

        if branch_type == BranchType.MAIN:
            progression = PRERELEASE_PROGRESSION.fullmatch(base.prerelease or "")
            if progression:
                kind, number = progression.group(1), int(progression.group(2))
                version = base.with_prerelease(f"{kind}.{number + 1}")
                return version, f"Main branch: incrementing {kind} pre-release"

            increment = (increment or versioning.default_increment).lower()
            version = base.bump(increment)
            prerelease_type = (prerelease_type or versioning.prerelease_type).lower()
            if prerelease_type != "none":
                version = version.with_prerelease(f"{prerelease_type}.1")
                return version, f"Main branch: incrementing {increment} with {prerelease_type} pre-release"
            return version, f"Main branch: incrementing {increment}"

        if branch_type == BranchType.DEV:
            version = base.with_prerelease(f"dev.{height}")
            return version, f"Dev branch: {height} commit(s) since base"

        slug = feature_slug(branch_name, self.config.branches.feature_prefixes)
        label = f"feature-{slug}" if slug else "feature"
        version = base.with_prerelease(f"{label}.{height}")
        return version, f"Feature branch: {height} commit(s) since base"


class MonorepoVersioner:
    """
    Resolves versions for every project of a monorepo.

    Projects are independent units of work: they run in parallel over
    one memoized repository snapshot, a failure is recorded against its
    project only, and a cancellation event is checked before each
    project starts.
    """

    def __init__(
        self,
        repository: RepositoryAccessor,
        graph: DependencyGraph,
        config: MonoverConfig = None,
        repo_root: Optional[Path] = None,
    ):
        self.config = config or Config.get()
        self.repository = RepositorySnapshot(repository, self.config.branch_override)
        self.graph = graph
        self.repo_root = Path(repo_root) if repo_root else None
        self.calculator = VersionCalculator(self.config)

    @classmethod
    def from_path(cls, repo_path: Path, config: MonoverConfig = None) -> "MonorepoVersioner":
        """Open the git repository at ``repo_path`` and discover its projects."""
        config = config or Config.get()
        root = GitRepository.discover_root(Path(repo_path), config.git.git_executable) or Path(repo_path)
        repository = GitRepository(root, config.git)
        graph = ProjectDiscovery(config).build_graph(root)
        return cls(repository, graph, config, repo_root=root)

    def resolve_project(self, name: str) -> VersionResult:
        """
        Resolve one project by name.

        Raises:
            ResolutionError: If the project is unknown.
            RepositoryAccessError: If repository history cannot be read.
        """
        project = self.graph.get_project(name)
        if project is None:
            raise ResolutionError(name, f"Unknown project: {name}")

        dependency_paths = self.graph.dependency_paths(
            name, transitive=self.config.change_detection.transitive_dependencies
        )
        return self.calculator.calculate(
            project,
            self.repository,
            dependency_paths=dependency_paths,
            repo_root=str(self.repo_root) if self.repo_root else None,
        )

    def resolve_all(
        self,
        names: Optional[Iterable[str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ResolutionRun:
        """
        Resolve many projects and collect per-project outcomes.

        Args:
            names: Projects to resolve; defaults to every project.
            cancel_event: When set, projects not yet started are cancelled.

        Returns:
            ResolutionRun with one result per requested project.
        """
        selected = list(names) if names is not None else self.graph.topological_order()
        run = ResolutionRun(
            run_id=str(uuid.uuid4())[:8],
            repository=str(self.repo_root or "."),
        )
        for name in selected:
            run.add_project(name)

        try:
            run.branch = self.repository.resolve_branch_name()
        except MonoverError as e:
            logger.error(f"Cannot determine branch: {e}")

        logger.info(f"Starting resolution run {run.run_id} for {len(selected)} project(s)")

        workers = max(1, min(self.config.max_workers, len(selected) or 1))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="monover") as pool:
            futures = [
                pool.submit(self._resolve_into, run, name, cancel_event)
                for name in selected
            ]
            for future in futures:
                future.result()

        logger.info(
            f"Run {run.run_id} finished: "
            f"{len(run.versions)} resolved, "
            f"{len(selected) - len(run.versions)} not resolved"
        )
        return run

    def _resolve_into(
        self, run: ResolutionRun, name: str, cancel_event: Optional[threading.Event]
    ) -> None:
        """Resolve one project and record the outcome on ``run``."""
        try:
            if cancel_event is not None and cancel_event.is_set():
                raise ResolutionCancelledError(
                    pending=len(run.projects_with_status(ProjectStatus.PENDING))
                )

            run.record_start(name)
            version_result = self.resolve_project(name)
            run.record_completion(
                name,
                str(version_result.version),
                output=version_result,
                details=version_result.to_dict(),
            )
            logger.info(f"{name}: {version_result.version} ({version_result.change_reason})")

        except ResolutionCancelledError:
            run.record_cancelled(name)
            logger.info(f"{name}: cancelled")

        except MonoverError as e:
            run.record_failure(name, str(e), details=e.details)
            logger.error(f"{name}: resolution failed: {e}")

        except Exception as e:
            run.record_failure(name, str(e))
            logger.exception(f"Unexpected error resolving {name}")
