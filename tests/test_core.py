"""
Unit tests for core module components.
"""

import json
import os
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest import mock

import yaml

from monover.core.config import (
    Config,
    MonoverConfig,
    BranchConfig,
    VersioningConfig,
    ChangeDetectionConfig,
    GitConfig,
)
from monover.core.run import ProjectStatus, ResolutionRun
from monover.core.exceptions import (
    MonoverError,
    ConfigurationError,
    RepositoryAccessError,
    RepositoryValidationError,
    ResolutionError,
    ResolutionCancelledError,
)


class TestConfig(unittest.TestCase):
    """Tests for configuration management."""

    def setUp(self):
        Config.reset()

    def tearDown(self):
        Config.reset()

    def test_default_config(self):
        """Test that default configuration is created correctly."""
        config = MonoverConfig()

        self.assertIsInstance(config.branches, BranchConfig)
        self.assertIsInstance(config.versioning, VersioningConfig)
        self.assertIsInstance(config.change_detection, ChangeDetectionConfig)
        self.assertIsInstance(config.git, GitConfig)
        self.assertEqual(config.projects, {})
        self.assertFalse(config.debug)

    def test_branch_config_defaults(self):
        """Test branch name defaults."""
        config = BranchConfig()

        self.assertEqual(config.main_branch_names, {"main", "master"})
        self.assertEqual(config.dev_branch_names, {"dev", "develop", "development"})
        self.assertIn("feature/", config.feature_prefixes)

    def test_versioning_config_defaults(self):
        """Test tag prefix and base version defaults."""
        config = VersioningConfig()

        self.assertEqual(config.tag_prefix, "v")
        self.assertEqual(config.base_version, "0.0.0")
        self.assertEqual(config.default_increment, "patch")
        self.assertEqual(config.prerelease_type, "none")

    def test_singleton(self):
        """Test that the manager hands out one configuration."""
        self.assertIs(Config.get(), Config.get())

    def test_config_save_and_load_json(self):
        """Test configuration serialization and deserialization."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.json"
            Config.get().versioning.tag_prefix = "rel-"

            Config.save_to_file(str(config_path))

            with open(config_path) as f:
                data = json.load(f)
            self.assertIn("branches", data)
            self.assertIn("versioning", data)

            Config.reset()
            config = Config.load_from_file(str(config_path))
            self.assertEqual(config.versioning.tag_prefix, "rel-")
            self.assertEqual(config.branches.main_branch_names, {"main", "master"})

    def test_load_yaml_with_projects(self):
        """Test YAML configuration with project declarations."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.yml"
            config_path.write_text(yaml.safe_dump({
                "versioning": {"tag_prefix": "v", "default_increment": "minor"},
                "branches": {"main_branch_names": ["trunk"]},
                "change_detection": {"ignore_patterns": ["*.md"]},
                "projects": {
                    "api": {"path": "services/api", "dependencies": ["shared"]},
                    "shared": {"path": "libs/shared"},
                },
                "max_workers": 2,
            }))

            config = Config.load_from_file(config_path)

        self.assertEqual(config.versioning.default_increment, "minor")
        self.assertEqual(config.branches.main_branch_names, {"trunk"})
        self.assertEqual(config.change_detection.ignore_patterns, ["*.md"])
        self.assertEqual(config.projects["api"].name, "api")
        self.assertEqual(config.projects["api"].dependencies, ["shared"])
        self.assertEqual(config.max_workers, 2)

    def test_unknown_keys_rejected(self):
        """Test that typos in configuration files are reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.json"
            config_path.write_text(json.dumps({"versioning": {"tag_prefx": "v"}}))

            with self.assertRaises(ConfigurationError) as ctx:
                Config.load_from_file(config_path)

        self.assertIn("tag_prefx", str(ctx.exception))

    def test_invalid_increment_rejected(self):
        """Test validation of enumerated values."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.json"
            config_path.write_text(json.dumps({"versioning": {"default_increment": "huge"}}))

            with self.assertRaises(ConfigurationError):
                Config.load_from_file(config_path)

    def test_invalid_project_name_rejected(self):
        """Test that project names must be usable in scoped tags."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.json"
            config_path.write_text(json.dumps({"projects": {"my api": {"path": "api"}}}))

            with self.assertRaises(ConfigurationError) as ctx:
                Config.load_from_file(config_path)

        self.assertEqual(ctx.exception.details["project"], "my api")

    def test_malformed_file(self):
        """Test that unparseable files raise a configuration error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.json"
            config_path.write_text("{not json")

            with self.assertRaises(ConfigurationError):
                Config.load_from_file(config_path)

    def test_missing_file(self):
        """Test loading a file that does not exist."""
        with self.assertRaises(ConfigurationError) as ctx:
            Config.load_from_file("/nonexistent/monover.yml")

        self.assertEqual(ctx.exception.details["path"], "/nonexistent/monover.yml")

    def test_projects_as_list_rejected(self):
        """Test that projects written as a list are reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.yml"
            config_path.write_text("projects:\n  - name: api\n    path: api\n")

            with self.assertRaises(ConfigurationError) as ctx:
                Config.load_from_file(config_path)

        self.assertIn("projects", str(ctx.exception))

    def test_project_settings_must_be_mapping(self):
        """Test that a project declared with a plain value is reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.yml"
            config_path.write_text("projects:\n  api: services/api\n")

            with self.assertRaises(ConfigurationError):
                Config.load_from_file(config_path)

    def test_bump_patterns_and_project_prerelease(self):
        """Test loading bump patterns and a per-project pre-release type."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.yml"
            config_path.write_text(yaml.safe_dump({
                "change_detection": {
                    "major_patterns": ["**/schema/*"],
                    "minor_patterns": ["*.py"],
                },
                "projects": {"api": {"path": "api", "prerelease_type": "alpha"}},
            }))

            config = Config.load_from_file(config_path)

        self.assertEqual(config.change_detection.major_patterns, ["**/schema/*"])
        self.assertEqual(config.change_detection.patch_patterns, [])
        self.assertEqual(config.projects["api"].prerelease_type, "alpha")

    def test_invalid_project_prerelease_rejected(self):
        """Test validation of a per-project pre-release type."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "monover.json"
            config_path.write_text(json.dumps(
                {"projects": {"api": {"path": "api", "prerelease_type": "gamma"}}}
            ))

            with self.assertRaises(ConfigurationError) as ctx:
                Config.load_from_file(config_path)

        self.assertEqual(ctx.exception.details["project"], "api")

    def test_discover_config_file(self):
        """Test lookup of the default configuration file names."""
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertIsNone(Config.discover_config_file(tmpdir))

            (Path(tmpdir) / "monover.yaml").write_text("debug: true\n")
            self.assertEqual(
                Config.discover_config_file(tmpdir), Path(tmpdir) / "monover.yaml"
            )

    def test_load_from_env(self):
        """Test environment overrides."""
        env = {
            "MONOVER_TAG_PREFIX": "ver",
            "MONOVER_BASE_VERSION": "1.0.0",
            "MONOVER_BRANCH": "release/3.0",
            "MONOVER_MAX_WORKERS": "8",
            "MONOVER_DEBUG": "true",
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, env):
                config = Config.load_from_env(dotenv_path=Path(tmpdir) / ".env")

        self.assertEqual(config.versioning.tag_prefix, "ver")
        self.assertEqual(config.versioning.base_version, "1.0.0")
        self.assertEqual(config.branch_override, "release/3.0")
        self.assertEqual(config.max_workers, 8)
        self.assertTrue(config.debug)

    def test_load_from_dotenv(self):
        """Test that a .env file supplies overrides."""
        with tempfile.TemporaryDirectory() as tmpdir:
            dotenv_path = Path(tmpdir) / ".env"
            dotenv_path.write_text("MONOVER_BASE_VERSION=2.0.0\n")

            with mock.patch.dict(os.environ, {}, clear=False):
                os.environ.pop("MONOVER_BASE_VERSION", None)
                config = Config.load_from_env(dotenv_path=dotenv_path)

        self.assertEqual(config.versioning.base_version, "2.0.0")

    def test_invalid_env_worker_count(self):
        """Test that a non-numeric worker count is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, {"MONOVER_MAX_WORKERS": "many"}):
                with self.assertRaises(ConfigurationError):
                    Config.load_from_env(dotenv_path=Path(tmpdir) / ".env")


class TestResolutionRun(unittest.TestCase):
    """Tests for resolution run state."""

    def _run(self):
        run = ResolutionRun(run_id="test-123", repository="/path/to/repo", branch="main")
        for name in ("api", "web"):
            run.add_project(name)
        return run

    def test_run_creation(self):
        """Test run creation."""
        run = self._run()

        self.assertEqual(run.run_id, "test-123")
        self.assertIsInstance(run.created_at, datetime)
        self.assertEqual(run.get_status("api"), ProjectStatus.PENDING)

    def test_status_tracking(self):
        """Test project status transitions."""
        run = self._run()

        run.record_start("api")
        self.assertEqual(run.get_status("api"), ProjectStatus.RUNNING)

        run.record_completion("api", "1.0.1", details={"version_changed": True})
        self.assertEqual(run.get_status("api"), ProjectStatus.COMPLETED)
        self.assertIsNotNone(run.results["api"].duration_ms)
        self.assertEqual(run.versions, {"api": "1.0.1"})
        self.assertFalse(run.succeeded)

    def test_failure_tracking(self):
        """Test recording of a failed project."""
        run = self._run()

        run.record_start("web")
        run.record_failure("web", "diff failed", details={"stage": "Repository"})

        self.assertEqual(run.get_status("web"), ProjectStatus.FAILED)
        self.assertEqual(run.results["web"].error, "diff failed")
        self.assertEqual(run.projects_with_status(ProjectStatus.FAILED), ["web"])

    def test_cancelled(self):
        """Test recording of a cancelled project."""
        run = self._run()

        run.record_cancelled("api")

        self.assertEqual(run.get_status("api"), ProjectStatus.CANCELLED)
        self.assertIsNone(run.results["api"].duration_ms)

    def test_succeeded(self):
        """Test that a run succeeds when every project completes."""
        run = self._run()
        run.record_completion("api", "1.0.0")
        run.record_completion("web", "2.0.0")

        self.assertTrue(run.succeeded)

    def test_run_save_and_load(self):
        """Test run persistence."""
        with tempfile.TemporaryDirectory() as tmpdir:
            run_path = Path(tmpdir) / "run.json"
            run = self._run()
            run.record_start("api")
            run.record_completion("api", "1.0.1")
            run.record_failure("web", "boom")

            run.save(run_path)
            loaded = ResolutionRun.load(run_path)

        self.assertEqual(loaded.run_id, "test-123")
        self.assertEqual(loaded.branch, "main")
        self.assertEqual(loaded.versions, {"api": "1.0.1"})
        self.assertEqual(loaded.results["web"].error, "boom")
        self.assertIsNotNone(loaded.results["api"].started_at)


class TestExceptions(unittest.TestCase):
    """Tests for custom exceptions."""

    def test_monover_error(self):
        """Test base error."""
        error = MonoverError("Test error", stage="test", details={"key": "value"})

        self.assertEqual(str(error), "[test] Test error")
        self.assertEqual(error.stage, "test")
        self.assertEqual(error.details, {"key": "value"})

    def test_error_without_stage(self):
        """Test rendering without a stage."""
        self.assertEqual(str(MonoverError("plain")), "plain")

    def test_configuration_error(self):
        """Test configuration error."""
        error = ConfigurationError("Bad value")

        self.assertEqual(error.stage, "Configuration")
        self.assertIn("Bad value", str(error))

    def test_repository_validation_error(self):
        """Test repository validation error."""
        error = RepositoryValidationError("/invalid/path", "Not a git work tree")

        self.assertIsInstance(error, RepositoryAccessError)
        self.assertIn("Not a git work tree", str(error))
        self.assertEqual(error.details["path"], "/invalid/path")

    def test_resolution_error(self):
        """Test per-project resolution error."""
        error = ResolutionError("api", "Unknown project: api")

        self.assertEqual(error.project, "api")
        self.assertEqual(error.details["project"], "api")

    def test_cancelled_error(self):
        """Test cancellation error."""
        error = ResolutionCancelledError(pending=3)

        self.assertEqual(error.details["pending"], 3)
        self.assertIn("3", str(error))


if __name__ == "__main__":
    unittest.main()
