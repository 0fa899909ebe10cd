"""
Prompt construction for AI-generated recommendations.
"""

from __future__ import annotations

from typing import Any, Mapping

SYSTEM_PROMPT = (
    "You support early-intervention therapists working with children. "
    "Reply with a single JSON object and nothing else."
)


def _format_emotions(emotion: Mapping[str, Any]) -> str:
    text = (
        f"Emotion Analysis: Primary emotion detected is {emotion.get('dominant_emotion')} "
        f"with {emotion.get('confidence')}% confidence."
    )
    all_emotions = emotion.get("all_emotions")
    if isinstance(all_emotions, Mapping) and all_emotions:
        breakdown = ", ".join(f"{name}: {value}%" for name, value in all_emotions.items())
        text += f" All emotions detected: {breakdown}."
    return text


def build_prompt(payload: Mapping[str, Any]) -> str:
    """User prompt embedding the intake fields and optional emotion estimate."""
    lines = [
        f"Child age: {payload.get('age')}",
        f"Eye contact: {payload.get('eye_contact')}",
        f"Speech level: {payload.get('speech_level')}",
        f"Social response: {payload.get('social_response')}",
        f"Sensory reactions: {payload.get('sensory_reactions')}",
    ]

    emotion = payload.get("emotion_data")
    if isinstance(emotion, Mapping) and emotion:
        lines.append("")
        lines.append(_format_emotions(emotion))
        basis = "this child's responses and emotional state"
        emotion_hint = " Consider the detected emotions when providing recommendations."
    else:
        basis = "this child's responses"
        emotion_hint = ""

    lines.append("")
    lines.append(
        f"Based on {basis}, give 3 short therapy goals and 2 activities that can help "
        f"improvement.{emotion_hint} Return JSON with keys: focus_areas (list of strings), "
        "therapy_goals (list of 3 strings), activities (list of 2 strings)."
    )
    return "\n".join(lines)


def extract_json_text(response: str) -> str:
    """Strip a Markdown code fence around a JSON reply, if present."""
    response = response.strip()
    if response.startswith("```"):
        response = response.split("```")[1]
        if response.startswith("json"):
            response = response[4:]
    return response.strip()
