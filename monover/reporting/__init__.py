"""
Output generation for resolution runs.
"""

from monover.reporting.formatter import RunFormatter, JSONFormatter, TextFormatter, get_formatter

__all__ = [
    "RunFormatter",
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
]
