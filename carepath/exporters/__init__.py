"""
Export functionality for carepath.
"""

from .json_export import INPUT_KEY, build_report, export_json
from .markdown import export_markdown

__all__ = [
    "INPUT_KEY",
    "build_report",
    "export_json",
    "export_markdown",
]
