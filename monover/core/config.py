"""
Configuration management for monover.

Provides centralized configuration for branch classification, tag
handling, change detection and git access with sensible defaults.
Configuration can be loaded from JSON or YAML files and overridden
from the environment.
"""

import os
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from dotenv import load_dotenv

from monover.core.exceptions import ConfigurationError
from monover.utils.validation import validate_project_name

DEFAULT_CONFIG_FILES = ("monover.yml", "monover.yaml", "monover.json")

INCREMENT_TYPES = ("patch", "minor", "major")
PRERELEASE_TYPES = ("none", "alpha", "beta", "rc")


@dataclass
class BranchConfig:
    """Configuration for branch classification."""

    # Exact (case-insensitive) names of the main line
    main_branch_names: Set[str] = field(default_factory=lambda: {
        "main", "master",
    })

    # Exact (case-insensitive) names of the integration line
    dev_branch_names: Set[str] = field(default_factory=lambda: {
        "dev", "develop", "development",
    })

    # Prefixes stripped from feature branches when building the slug
    feature_prefixes: List[str] = field(default_factory=lambda: [
        "feature/", "bugfix/", "hotfix/",
    ])


@dataclass
class VersioningConfig:
    """Configuration for tag parsing and version bumps."""

    tag_prefix: str = "v"

    # Version used when no valid tag is reachable from the tip
    base_version: str = "0.0.0"

    # patch, minor or major; applies to main branch bumps
    default_increment: str = "patch"

    # none, alpha, beta or rc
    prerelease_type: str = "none"


@dataclass
class ChangeDetectionConfig:
    """Configuration for change detection."""

    # Changed paths matching these globs never count as changes
    ignore_patterns: List[str] = field(default_factory=list)

    # Flatten the dependency graph before diffing
    transitive_dependencies: bool = False

    # Changed paths matching these globs require the named bump on the
    # main line; the highest match wins over default_increment
    major_patterns: List[str] = field(default_factory=list)
    minor_patterns: List[str] = field(default_factory=list)
    patch_patterns: List[str] = field(default_factory=list)


@dataclass
class GitConfig:
    """Configuration for git subprocess access."""

    git_executable: str = "git"

    # Timeout for each git invocation (seconds)
    git_timeout: int = 60


@dataclass
class ProjectConfig:
    """Per-project settings declared in the configuration file."""

    name: str
    path: str = ""
    dependencies: List[str] = field(default_factory=list)
    force_version: Optional[str] = None
    additional_monitor_paths: List[str] = field(default_factory=list)

    # Overrides versioning.prerelease_type for this project
    prerelease_type: Optional[str] = None


@dataclass
class MonoverConfig:
    """Master configuration combining all sections."""

    branches: BranchConfig = field(default_factory=BranchConfig)
    versioning: VersioningConfig = field(default_factory=VersioningConfig)
    change_detection: ChangeDetectionConfig = field(default_factory=ChangeDetectionConfig)
    git: GitConfig = field(default_factory=GitConfig)
    projects: Dict[str, ProjectConfig] = field(default_factory=dict)

    # Emit change detection diagnostics
    debug: bool = False

    # Parallel per-project resolutions
    max_workers: int = 4

    # Branch name override for detached checkouts
    branch_override: Optional[str] = None

    # Files marking a project directory during discovery
    project_markers: List[str] = field(default_factory=lambda: [
        "pyproject.toml", "setup.py", "package.json", "Cargo.toml",
        "go.mod", "*.csproj", "*.fsproj", "*.vbproj",
    ])

    # Directories skipped during discovery
    discovery_ignore: List[str] = field(default_factory=lambda: [
        ".git", "node_modules", ".venv", "venv", "__pycache__",
        "build", "dist", "target", "bin", "obj", "*.egg-info",
    ])

    def validate(self) -> None:
        """
        Check enumerated values and numeric bounds.

        Raises:
            ConfigurationError: If a value is out of range.
        """
        increment = self.versioning.default_increment.lower()
        if increment not in INCREMENT_TYPES:
            raise ConfigurationError(
                f"Invalid default_increment: {self.versioning.default_increment}",
                details={"allowed": list(INCREMENT_TYPES)},
            )
        prerelease = self.versioning.prerelease_type.lower()
        if prerelease not in PRERELEASE_TYPES:
            raise ConfigurationError(
                f"Invalid prerelease_type: {self.versioning.prerelease_type}",
                details={"allowed": list(PRERELEASE_TYPES)},
            )
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.git.git_timeout <= 0:
            raise ConfigurationError("git_timeout must be positive")
        for name, project in self.projects.items():
            is_valid, error = validate_project_name(name)
            if not is_valid:
                raise ConfigurationError(error, details={"project": name})
            if project.prerelease_type and project.prerelease_type.lower() not in PRERELEASE_TYPES:
                raise ConfigurationError(
                    f"Invalid prerelease_type for {name}: {project.prerelease_type}",
                    details={"project": name, "allowed": list(PRERELEASE_TYPES)},
                )


class Config:
    """
    Central configuration manager providing access to all settings.

    Supports loading from environment variables and configuration files.
    """

    _instance: Optional["Config"] = None
    _config: MonoverConfig = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = MonoverConfig()
        return cls._instance

    @classmethod
    def get(cls) -> MonoverConfig:
        """Get the current configuration."""
        if cls._instance is None:
            cls()
        return cls._instance._config

    @classmethod
    def reset(cls) -> MonoverConfig:
        """Restore the default configuration."""
        instance = cls()
        instance._config = MonoverConfig()
        return instance._config

    @classmethod
    def discover_config_file(cls, repo_root: str) -> Optional[Path]:
        """Find a default configuration file in the repository root."""
        for name in DEFAULT_CONFIG_FILES:
            candidate = Path(repo_root) / name
            if candidate.is_file():
                return candidate
        return None

    @classmethod
    def load_from_file(cls, config_path: str) -> MonoverConfig:
        """
        Load configuration from a JSON or YAML file.

        Args:
            config_path: Path to the configuration file.

        Returns:
            Loaded MonoverConfig instance.

        Raises:
            ConfigurationError: If the file is missing, cannot be parsed
                or has unknown keys.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                details={"path": str(config_path)},
            )

        with open(config_path, "r", encoding="utf-8") as f:
            try:
                if config_path.suffix.lower() in (".yml", ".yaml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Cannot parse configuration file: {e}",
                    details={"path": str(config_path)},
                )

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                details={"path": str(config_path)},
            )

        instance = cls()
        instance._config = cls._dict_to_config(data)
        instance._config.validate()
        return instance._config

    @classmethod
    def load_from_env(cls, dotenv_path: Optional[str] = None) -> MonoverConfig:
        """
        Load configuration overrides from environment variables.

        A ``.env`` file is read first; variables already present in the
        environment win. Variables are prefixed with MONOVER_.

        Returns:
            MonoverConfig with environment overrides applied.
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)

        instance = cls()
        config = instance._config

        if os.getenv("MONOVER_TAG_PREFIX") is not None:
            config.versioning.tag_prefix = os.getenv("MONOVER_TAG_PREFIX")

        if os.getenv("MONOVER_BASE_VERSION"):
            config.versioning.base_version = os.getenv("MONOVER_BASE_VERSION")

        if os.getenv("MONOVER_BRANCH"):
            config.branch_override = os.getenv("MONOVER_BRANCH")

        if os.getenv("MONOVER_MAX_WORKERS"):
            try:
                config.max_workers = int(os.getenv("MONOVER_MAX_WORKERS"))
            except ValueError:
                raise ConfigurationError(
                    "MONOVER_MAX_WORKERS must be an integer",
                    details={"value": os.getenv("MONOVER_MAX_WORKERS")},
                )

        if os.getenv("MONOVER_DEBUG"):
            config.debug = os.getenv("MONOVER_DEBUG").lower() in ("true", "1", "yes")

        config.validate()
        return config

    @staticmethod
    def _build_section(section_cls, data: Any, name: str):
        """Instantiate a section dataclass, rejecting unknown keys."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Section '{name}' must be a mapping")
        known = {f.name for f in fields(section_cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}",
                details={"section": name, "keys": sorted(unknown)},
            )
        return section_cls(**data)

    @staticmethod
    def _dict_to_config(data: dict) -> MonoverConfig:
        """Convert a dictionary to MonoverConfig."""
        config = MonoverConfig()
        build = Config._build_section

        known_top = {f.name for f in fields(MonoverConfig)}
        unknown = set(data) - known_top
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                details={"keys": sorted(unknown)},
            )

        if "branches" in data:
            branch_data = dict(data["branches"] or {})
            for key in ("main_branch_names", "dev_branch_names"):
                if key in branch_data:
                    branch_data[key] = set(branch_data[key])
            config.branches = build(BranchConfig, branch_data, "branches")

        if "versioning" in data:
            versioning_data = dict(data["versioning"] or {})
            if versioning_data.get("tag_prefix") is None:
                versioning_data.pop("tag_prefix", None)
            config.versioning = build(VersioningConfig, versioning_data, "versioning")

        if "change_detection" in data:
            config.change_detection = build(
                ChangeDetectionConfig, data["change_detection"] or {}, "change_detection"
            )

        if "git" in data:
            config.git = build(GitConfig, data["git"] or {}, "git")

        projects = data.get("projects") or {}
        if not isinstance(projects, dict):
            raise ConfigurationError("Section 'projects' must be a mapping of name to settings")
        for name, project_data in projects.items():
            if not isinstance(project_data or {}, dict):
                raise ConfigurationError(f"Section 'projects.{name}' must be a mapping")
            project_data = dict(project_data or {})
            project_data.setdefault("name", name)
            config.projects[name] = build(ProjectConfig, project_data, f"projects.{name}")

        for key in ("debug", "max_workers", "branch_override",
                    "project_markers", "discovery_ignore"):
            if key in data:
                setattr(config, key, data[key])

        return config

    @classmethod
    def save_to_file(cls, config_path: str) -> None:
        """
        Save current configuration to a JSON or YAML file.

        Args:
            config_path: Path to save the configuration file.
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        config = cls.get()
        data = cls._config_to_dict(config)

        with open(config_path, "w", encoding="utf-8") as f:
            if config_path.suffix.lower() in (".yml", ".yaml"):
                yaml.safe_dump(data, f, sort_keys=False)
            else:
                json.dump(data, f, indent=2)

    @staticmethod
    def _config_to_dict(config: MonoverConfig) -> dict:
        """Convert MonoverConfig to a dictionary."""
        return {
            "branches": {
                "main_branch_names": sorted(config.branches.main_branch_names),
                "dev_branch_names": sorted(config.branches.dev_branch_names),
                "feature_prefixes": config.branches.feature_prefixes,
            },
            "versioning": {
                "tag_prefix": config.versioning.tag_prefix,
                "base_version": config.versioning.base_version,
                "default_increment": config.versioning.default_increment,
                "prerelease_type": config.versioning.prerelease_type,
            },
            "change_detection": {
                "ignore_patterns": config.change_detection.ignore_patterns,
                "transitive_dependencies": config.change_detection.transitive_dependencies,
                "major_patterns": config.change_detection.major_patterns,
                "minor_patterns": config.change_detection.minor_patterns,
                "patch_patterns": config.change_detection.patch_patterns,
            },
            "git": {
                "git_executable": config.git.git_executable,
                "git_timeout": config.git.git_timeout,
            },
            "projects": {
                name: {
                    "path": project.path,
                    "dependencies": project.dependencies,
                    "force_version": project.force_version,
                    "additional_monitor_paths": project.additional_monitor_paths,
                    "prerelease_type": project.prerelease_type,
                }
                for name, project in config.projects.items()
            },
            "debug": config.debug,
            "max_workers": config.max_workers,
            "project_markers": config.project_markers,
            "discovery_ignore": config.discovery_ignore,
        }
