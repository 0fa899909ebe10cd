#!/usr/bin/env python3
"""
carepath CLI

Command-line interface for generating intake recommendations.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def setup_paths():
    """Add the project root to sys.path for imports."""
    root = Path(__file__).parent
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


setup_paths()

from carepath.models import EyeContact, SensoryReactions, SocialResponse, SpeechLevel


def _choices(enum_cls) -> click.Choice:
    return click.Choice([e.value for e in enum_cls], case_sensitive=False)


def _canonical(enum_cls, value: str) -> str:
    """Map a case-insensitive choice back to the enum's spelling."""
    for member in enum_cls:
        if member.value.lower() == value.lower():
            return member.value
    return value


def _print_result(result, title: str) -> None:
    console.print()
    console.print(Panel(
        "\n".join(f"• {area}" for area in result.focus_areas),
        title=f"[bold]{title}[/bold]",
        subtitle="Focus areas",
    ))

    table = Table(title="Therapy Goals", show_lines=False)
    table.add_column("#", style="dim", width=3)
    table.add_column("Goal")
    for i, goal in enumerate(result.therapy_goals, 1):
        table.add_row(str(i), goal)
    console.print(table)

    table = Table(title="Activities", show_lines=True)
    table.add_column("Activity", style="cyan", no_wrap=True)
    table.add_column("Description")
    for activity in result.activities:
        name, sep, body = activity.partition(":")
        if sep:
            table.add_row(name.strip(), body.strip())
        else:
            table.add_row("", activity)
    console.print(table)

    console.print(f"\n[dim]{result.notes}[/dim]")


@click.group()
@click.version_option(version="0.1.0", prog_name="carepath")
@click.option("--verbose", "-v", is_flag=True, help="Show engine debug logging")
def cli(verbose: bool):
    """
    carepath - Intake Questionnaire Recommendations

    Turn a short developmental intake questionnaire into focus areas,
    therapy goals and activities.
    """
    from carepath.log import setup_logging
    setup_logging(level="DEBUG" if verbose else "WARNING", fmt="rich")


@cli.command()
@click.option("--age", type=click.IntRange(1, 18), required=True, help="Child age in years")
@click.option("--eye-contact", type=_choices(EyeContact), required=True, help="Eye contact rating")
@click.option("--speech-level", type=_choices(SpeechLevel), required=True, help="Speech level rating")
@click.option("--social-response", type=_choices(SocialResponse), required=True, help="Social response rating")
@click.option("--sensory-reactions", type=_choices(SensoryReactions), required=True, help="Sensory reaction pattern")
@click.option("--child-name", type=str, help="Child's name (shown in the report only)")
@click.option("--father-name", type=str, help="Father or primary guardian's name")
@click.option("--mother-name", type=str, help="Mother or secondary guardian's name")
@click.option("--with-emotion", is_flag=True, help="Attach a placeholder emotion estimate")
@click.option("--emotion-seed", type=int, help="Seed for the placeholder emotion estimate")
@click.option("--seed", type=int, help="Engine seed for reproducibility")
@click.option("--tick", type=int, help="Seed tick (seconds) instead of the current time")
@click.option("--no-llm", is_flag=True, help="Use the rule engine only")
@click.option("--format", "fmt", type=click.Choice(["table", "json", "markdown"]), default="table",
              help="Output format")
@click.option("--output", "-o", type=click.Path(), help="Write the report to this file")
def generate(
    age: int,
    eye_contact: str,
    speech_level: str,
    social_response: str,
    sensory_reactions: str,
    child_name: Optional[str],
    father_name: Optional[str],
    mother_name: Optional[str],
    with_emotion: bool,
    emotion_seed: Optional[int],
    seed: Optional[int],
    tick: Optional[int],
    no_llm: bool,
    fmt: str,
    output: Optional[str],
):
    """
    Generate recommendations for one child.

    Examples:

        carepath generate --age 2 --eye-contact Poor --speech-level Fluent \\
            --social-response Active --sensory-reactions Typical

        carepath generate --age 7 --eye-contact Moderate --speech-level Limited \\
            --social-response Passive --sensory-reactions Sensitive --no-llm -o report.md --format markdown
    """
    from carepath.engines import RecommendationService, estimate_emotions
    from carepath.exporters import export_json, export_markdown
    from carepath.models import IntakeRecord

    try:
        record = IntakeRecord(
            age=age,
            eye_contact=_canonical(EyeContact, eye_contact),
            speech_level=_canonical(SpeechLevel, speech_level),
            social_response=_canonical(SocialResponse, social_response),
            sensory_reactions=_canonical(SensoryReactions, sensory_reactions),
            child_name=child_name,
            father_name=father_name,
            mother_name=mother_name,
            emotion_data=estimate_emotions(emotion_seed) if with_emotion else None,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid intake: {e}[/red]")
        sys.exit(1)

    payload = record.to_payload()
    service = RecommendationService(use_llm=not no_llm)
    with console.status("Generating recommendations..."):
        result = service.generate(payload, seed=seed, tick=tick)

    out_path = Path(output) if output else None
    if fmt == "json":
        text = export_json(result, payload, out_path)
        if not out_path:
            console.print_json(text)
    elif fmt == "markdown":
        text = export_markdown(result, payload, out_path)
        if not out_path:
            console.print(text, markup=False)
    else:
        _print_result(result, title=child_name or f"Age {age}")
        if out_path:
            export_markdown(result, payload, out_path)

    if out_path:
        console.print(f"[green]✓ Report written to {out_path}[/green]")


@cli.command("estimate-emotion")
@click.option("--seed", type=int, help="Random seed for reproducibility")
def estimate_emotion(seed: Optional[int]):
    """Print a placeholder emotion estimate (no image is analyzed)."""
    from carepath.engines import emotion_level, estimate_emotions

    estimate = estimate_emotions(seed)
    table = Table(title=f"Primary emotion: {estimate.dominant_emotion.value} ({estimate.confidence:.0f}%)")
    table.add_column("Emotion")
    table.add_column("Percentage", justify="right")
    table.add_column("Level")
    for name, pct in estimate.sorted_emotions():
        table.add_row(name.title(), f"{pct:.0f}%", emotion_level(pct))
    console.print(table)


@cli.command()
def rules():
    """List the recommendation rules in evaluation order."""
    from carepath.engines import RecommendationEngine

    table = Table(title="Recommendation Rules (evaluation order)")
    table.add_column("#", style="dim", width=3)
    table.add_column("Rule", style="cyan")
    table.add_column("Kind")
    table.add_column("Condition")
    table.add_column("Age bands")
    for i, rule in enumerate(RecommendationEngine().describe_rules(), 1):
        table.add_row(str(i), rule["name"], rule["kind"], rule["condition"], ", ".join(rule["bands"]) or "-")
    console.print(table)


@cli.command()
@click.argument("report_path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), help="Output file path")
def export(report_path: str, output: Optional[str]):
    """Render a saved JSON report as Markdown."""
    from carepath.exporters import export_markdown

    path = Path(report_path)
    report = json.loads(path.read_text(encoding="utf-8"))
    out_path = Path(output) if output else path.with_suffix(".md")
    export_markdown(report, output_path=out_path)
    console.print(f"[green]✓ Exported to {out_path}[/green]")


if __name__ == "__main__":
    cli()
