"""
LLM integration for carepath.
"""

from .client import LLMClient, LLMResponseError, get_client, set_client
from .prompts import SYSTEM_PROMPT, build_prompt, extract_json_text

__all__ = [
    "LLMClient",
    "LLMResponseError",
    "SYSTEM_PROMPT",
    "build_prompt",
    "extract_json_text",
    "get_client",
    "set_client",
]
