"""
JSON exporter for carepath.

Exports a recommendation result, with the submitted intake echoed under
the ``_input`` key, as human-readable JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from carepath.models import GenerationResult

INPUT_KEY = "_input"


def build_report(
    result: GenerationResult | Mapping[str, Any],
    intake: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Result dict augmented with the echoed intake."""
    if isinstance(result, GenerationResult):
        data = result.model_dump(mode="json")
    else:
        data = dict(result)
    if intake is not None:
        data[INPUT_KEY] = dict(intake)
    return data


def export_json(
    result: GenerationResult | Mapping[str, Any],
    intake: Mapping[str, Any] | None = None,
    output_path: Path | None = None,
    indent: int = 2,
) -> str:
    """
    Export a recommendation report to JSON format.

    Args:
        result: The engine result (or an already augmented dict)
        intake: Optional intake payload to echo under ``_input``
        output_path: Optional path to write the JSON file
        indent: JSON indentation level

    Returns:
        JSON string representation of the report
    """
    data = build_report(result, intake)
    json_str = json.dumps(data, indent=indent, ensure_ascii=False, default=str)

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_str, encoding="utf-8")

    return json_str
