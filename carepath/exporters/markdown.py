"""
Markdown exporter for carepath.

Renders a recommendation report for caregivers and therapists.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from carepath.engines.emotion import emotion_level
from carepath.exporters.json_export import INPUT_KEY, build_report
from carepath.models import GenerationResult

DISCLAIMER = (
    "This report is illustrative guidance generated from a short questionnaire. "
    "It is not a diagnostic instrument and does not replace assessment by a "
    "qualified clinician."
)

_ASSESSMENT_LABELS = [
    ("eye_contact", "Eye Contact"),
    ("speech_level", "Speech Level"),
    ("social_response", "Social Response"),
    ("sensory_reactions", "Sensory Reactions"),
]


def _split_title(activity: str) -> tuple[str | None, str]:
    """Split 'Title: description' activities."""
    title, sep, body = activity.partition(":")
    if not sep or len(title) > 80:
        return None, activity
    return title.strip(), body.strip()


def _emotion_lines(emotion: Mapping[str, Any]) -> list[str]:
    lines = ["## Emotion Analysis", ""]
    dominant = str(emotion.get("dominant_emotion", "unknown"))
    confidence = float(emotion.get("confidence") or 0)
    lines.append(f"**Primary Emotion:** {dominant.title()} ({confidence:.1f}% confidence)")
    lines.append("")

    all_emotions = emotion.get("all_emotions") or {}
    if all_emotions:
        lines.append("| Emotion | Percentage | Level |")
        lines.append("|---------|------------|-------|")
        ranked = sorted(all_emotions.items(), key=lambda item: float(item[1]), reverse=True)
        for name, pct in ranked:
            pct = float(pct)
            lines.append(f"| {str(name).title()} | {pct:.1f}% | {emotion_level(pct)} |")
        lines.append("")
    lines.append("*Emotion analysis is a heuristic placeholder, not clinical inference.*")
    lines.append("")
    return lines


def export_markdown(
    result: GenerationResult | Mapping[str, Any],
    intake: Mapping[str, Any] | None = None,
    output_path: Path | None = None,
    generated_at: datetime | None = None,
) -> str:
    """
    Export a recommendation report to Markdown format.

    Args:
        result: The engine result (or an already augmented dict)
        intake: Intake payload; defaults to the result's ``_input`` key
        output_path: Optional path to write the Markdown file
        generated_at: Timestamp shown in the header (defaults to now)

    Returns:
        Markdown string representation of the report
    """
    report = build_report(result, intake)
    intake = report.get(INPUT_KEY) or {}
    generated_at = generated_at or datetime.now()
    lines = []

    # Header
    lines.append("# Developmental Recommendation Report")
    lines.append("")
    lines.append(f"**Generated:** {generated_at.strftime('%Y-%m-%d %H:%M')}")
    lines.append("")

    # Child details
    if intake:
        lines.append("## Child Details")
        lines.append("")
        if intake.get("child_name"):
            lines.append(f"- **Name:** {intake['child_name']}")
        lines.append(f"- **Age:** {intake.get('age', 'Not specified')}")
        if intake.get("father_name"):
            lines.append(f"- **Father/Guardian:** {intake['father_name']}")
        if intake.get("mother_name"):
            lines.append(f"- **Mother/Guardian:** {intake['mother_name']}")
        lines.append("")

        lines.append("## Assessment Summary")
        lines.append("")
        lines.append("| Area | Rating |")
        lines.append("|------|--------|")
        for key, label in _ASSESSMENT_LABELS:
            lines.append(f"| {label} | {intake.get(key) or 'Not specified'} |")
        lines.append("")

        emotion = intake.get("emotion_data")
        if isinstance(emotion, Mapping) and emotion:
            lines.extend(_emotion_lines(emotion))

    # Recommendations
    lines.append("## Focus Areas")
    lines.append("")
    for area in report.get("focus_areas", []):
        lines.append(f"- {area}")
    lines.append("")

    lines.append("## Therapy Goals")
    lines.append("")
    goals = report.get("therapy_goals", [])
    if goals:
        for i, goal in enumerate(goals, 1):
            lines.append(f"{i}. {goal}")
    else:
        lines.append("*No goals generated.*")
    lines.append("")

    lines.append("## Recommended Activities")
    lines.append("")
    for activity in report.get("activities", []):
        title, body = _split_title(activity)
        if title:
            lines.append(f"### {title}")
            lines.append("")
            lines.append(body)
        else:
            lines.append(f"- {activity}")
        lines.append("")

    if report.get("notes"):
        lines.append("## Notes")
        lines.append("")
        lines.append(report["notes"])
        lines.append("")

    lines.append("---")
    lines.append("")
    lines.append(f"*{DISCLAIMER}*")
    lines.append("")

    markdown = "\n".join(lines)

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(markdown, encoding="utf-8")

    return markdown
