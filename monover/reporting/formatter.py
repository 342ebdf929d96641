"""
Output formatters for resolution runs.

Renders a ResolutionRun as human-readable text or as JSON for
consumption by build tooling.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from monover.core.run import ProjectStatus, ResolutionRun

logger = logging.getLogger(__name__)


class RunFormatter(ABC):
    """Abstract base class for run formatters."""

    @abstractmethod
    def format(self, run: ResolutionRun) -> str:
        """Format a run to string."""
        pass

    def save(self, run: ResolutionRun, path: Path) -> None:
        """Save formatted run to file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.format(run))
        logger.info(f"Versions written to {path}")


class JSONFormatter(RunFormatter):
    """
    Formats runs as JSON.

    The ``versions`` map holds one entry per resolved project; full
    per-project details live under ``results``.
    """

    def __init__(self, indent: int = 2, include_details: bool = True):
        self.indent = indent
        self.include_details = include_details

    def format(self, run: ResolutionRun) -> str:
        """Format run as JSON string."""
        data: Dict[str, Any] = {
            "run_id": run.run_id,
            "repository": run.repository,
            "branch": run.branch,
            "generated_at": datetime.now().isoformat(),
            "succeeded": run.succeeded,
            "versions": run.versions,
        }
        if self.include_details:
            data["results"] = {
                name: result.to_dict()
                for name, result in sorted(run.results.items())
            }
        return json.dumps(data, indent=self.indent, default=self._json_serializer)

    def _json_serializer(self, obj: Any) -> Any:
        """Custom JSON serializer for non-standard types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        return str(obj)


class TextFormatter(RunFormatter):
    """Formats runs as an aligned plain-text table."""

    def __init__(self, show_reasons: bool = True):
        self.show_reasons = show_reasons

    def format(self, run: ResolutionRun) -> str:
        """Format run as text."""
        lines = []
        width = max([len(name) for name in run.results] + [7])

        lines.append(f"Branch: {run.branch or 'unknown'}")
        lines.append("-" * (width + 30))

        for name, result in sorted(run.results.items()):
            if result.status == ProjectStatus.COMPLETED:
                line = f"{name:<{width}}  {result.version}"
                reason = result.details.get("change_reason")
                if self.show_reasons and reason:
                    line += f"  ({reason})"
            elif result.status == ProjectStatus.FAILED:
                line = f"{name:<{width}}  FAILED: {result.error}"
            else:
                line = f"{name:<{width}}  {result.status.value.upper()}"
            lines.append(line)

        return "\n".join(lines) + "\n"


def get_formatter(output_format: str) -> RunFormatter:
    """Formatter for ``text`` or ``json``."""
    formatters = {
        "text": TextFormatter,
        "json": JSONFormatter,
    }
    if output_format not in formatters:
        raise ValueError(f"Unknown output format: {output_format}")
    return formatters[output_format]()
