"""
Unit tests for run formatters.
"""

import json
import tempfile
import unittest
from pathlib import Path

from monover.core.run import ResolutionRun
from monover.reporting.formatter import JSONFormatter, TextFormatter, get_formatter


class TestFormatters(unittest.TestCase):
    """Tests for text and JSON output."""

    def setUp(self):
        self.run = ResolutionRun(run_id="abc12345", repository="/repo", branch="dev")
        for name in ("api", "web", "worker"):
            self.run.add_project(name)
        self.run.record_start("api")
        self.run.record_completion(
            "api", "1.0.0-dev.3",
            details={"change_reason": "Dev branch: 3 commit(s) since base"},
        )
        self.run.record_failure("web", "[Repository] diff failed")
        self.run.record_cancelled("worker")

    def test_json_format(self):
        """Test JSON output structure."""
        data = json.loads(JSONFormatter().format(self.run))

        self.assertEqual(data["branch"], "dev")
        self.assertEqual(data["versions"], {"api": "1.0.0-dev.3"})
        self.assertFalse(data["succeeded"])
        self.assertEqual(data["results"]["web"]["status"], "failed")

    def test_json_without_details(self):
        """Test compact JSON output."""
        data = json.loads(JSONFormatter(include_details=False).format(self.run))

        self.assertNotIn("results", data)

    def test_text_format(self):
        """Test text output lines."""
        text = TextFormatter().format(self.run)

        self.assertIn("Branch: dev", text)
        self.assertIn("1.0.0-dev.3  (Dev branch: 3 commit(s) since base)", text)
        self.assertIn("FAILED: [Repository] diff failed", text)
        self.assertIn("CANCELLED", text)

    def test_text_without_reasons(self):
        """Test text output without change reasons."""
        text = TextFormatter(show_reasons=False).format(self.run)

        self.assertNotIn("Dev branch", text)

    def test_save(self):
        """Test writing output to a file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "out" / "versions.json"

            JSONFormatter().save(self.run, path)

            self.assertTrue(path.exists())
            self.assertEqual(json.loads(path.read_text())["run_id"], "abc12345")

    def test_get_formatter(self):
        """Test formatter lookup."""
        self.assertIsInstance(get_formatter("text"), TextFormatter)
        self.assertIsInstance(get_formatter("json"), JSONFormatter)
        with self.assertRaises(ValueError):
            get_formatter("xml")


if __name__ == "__main__":
    unittest.main()
