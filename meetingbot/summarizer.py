"""
Meeting summarisation utilities.

This module holds the instructions and the response schema sent to the
generative model, and turns the model's answer back into a summary
dictionary.  A summary is only accepted when it is a JSON object carrying
every key of :data:`REQUIRED_KEYS`; anything else is rejected as a whole so
that no partial summary is ever stored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from .errors import UpstreamAPIError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = (
    "key_discussion_points",
    "important_decisions",
    "action_items",
    "meeting_highlights",
    "follow_up_tasks",
    "overall_summary",
)

MEETING_SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "key_discussion_points": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A list of the key topics that were discussed in the meeting.",
        },
        "important_decisions": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "A list of the important decisions that were officially made.",
        },
        "action_items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "item": {"type": "STRING", "description": "The action item or task to be completed."},
                    "owner": {"type": "STRING", "description": "The person or team assigned to the item."},
                    "deadline": {
                        "type": "STRING",
                        "description": "The deadline, e.g. 'YYYY-MM-DD', or 'N/A' if not specified.",
                    },
                },
                "required": ["item", "owner", "deadline"],
            },
            "description": "A list of all actionable tasks assigned during the meeting.",
        },
        "meeting_highlights": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Notable moments, positive outcomes or key achievements from the meeting.",
        },
        "follow_up_tasks": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "task": {"type": "STRING", "description": "The follow-up task to be completed."},
                    "deadline": {"type": "STRING", "description": "The deadline for the task, or 'N/A'."},
                },
                "required": ["task", "deadline"],
            },
            "description": "Follow-up tasks discussed that are not formal action items.",
        },
        "overall_summary": {
            "type": "STRING",
            "description": "A professional narrative analysis of the entire meeting (minimum 200 words).",
        },
    },
    "required": list(REQUIRED_KEYS),
}

SUMMARY_PROMPT = """\
You're an expert meeting analyst. Analyze the meeting transcript and generate \
a comprehensive summary in strict JSON format with these keys:
- "key_discussion_points": array of key topics discussed (minimum 5 items)
- "important_decisions": array of important decisions made
- "action_items": array of objects with "item", "owner", and "deadline" properties
- "meeting_highlights": array of notable moments/achievements
- "follow_up_tasks": array of objects with "task" and "deadline" properties
- "overall_summary": string (minimum 200 words) providing comprehensive analysis

Requirements:
1. Use detailed, professional language
2. Include all important technical details
3. Extract deadlines where mentioned
4. Identify action owners from speaker names
5. Maintain strict JSON format - no additional text

Meeting transcript:
"""


def build_prompt(transcript: str) -> str:
    return SUMMARY_PROMPT + transcript


def parse_summary(text: str) -> Dict[str, Any]:
    """Decode the model's answer and check it carries every required key.

    Args:
        text: Raw text returned by the model.

    Returns:
        The summary dictionary.

    Raises:
        UpstreamAPIError: If ``text`` is not a JSON object or lacks a key.
    """
    try:
        summary = json.loads(text)
    except ValueError as exc:
        raise UpstreamAPIError(f"Failed to parse JSON: {exc}", body=text) from exc
    if not isinstance(summary, dict):
        raise UpstreamAPIError("Summary response is not a JSON object", body=text)
    for key in REQUIRED_KEYS:
        if key not in summary:
            logger.warning("Summary response missing key %s", key)
            raise UpstreamAPIError(f"Missing required key in response: {key}", details={"missing_key": key})
    return summary
