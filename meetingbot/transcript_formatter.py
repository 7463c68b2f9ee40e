"""
Transcript formatting utilities.

The bot gateway identifies a meeting by the short id the meeting platform
uses internally, and returns transcripts as a list of segments, each
carrying a speaker name and the words spoken.  The functions in this module
derive that id from a meeting URL and rebuild the segment list into the
plain-text form handed to the summariser.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from .errors import StoreError, ValidationError

GOOGLE_MEET_MARKER = "meet.google.com"
GOOGLE_MEET_PLATFORM = "google_meet"
UNKNOWN_SPEAKER = "Unknown"


def derive_platform_meeting_id(meeting_url: str) -> str:
    """Return the platform meeting id embedded in ``meeting_url``.

    The id is the last path segment with any query string removed, so
    ``https://meet.google.com/abc-defg-hij?authuser=0`` yields
    ``abc-defg-hij``.

    Raises:
        ValidationError: If the URL has no usable final segment.
    """
    meeting_id = meeting_url.split("/")[-1].split("?")[0]
    if not meeting_id:
        raise ValidationError(f"Could not derive a meeting id from {meeting_url!r}")
    return meeting_id


def ensure_supported_platform(meeting_url: str) -> str:
    """Return the gateway platform tag for ``meeting_url``.

    Only Google Meet is supported.

    Raises:
        ValidationError: For any URL without the Google Meet host.
    """
    if not isinstance(meeting_url, str) or GOOGLE_MEET_MARKER not in meeting_url:
        raise ValidationError("Only Google Meet URLs are supported")
    return GOOGLE_MEET_PLATFORM


def parse_segments(raw: str) -> Optional[List[Dict[str, str]]]:
    """Extract ``{speaker, text}`` segments from a raw gateway transcript body.

    Returns ``None`` when the body is not JSON or carries no segment list, in
    which case only the raw text is kept.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("segments"), list):
        return None
    segments: List[Dict[str, str]] = []
    for seg in data["segments"]:
        if not isinstance(seg, dict):
            continue
        segments.append({"speaker": seg.get("speaker") or UNKNOWN_SPEAKER, "text": (seg.get("text") or "").strip()})
    return segments


def coerce_segments(value: Any) -> List[Dict[str, Any]]:
    """Accept a stored ``final_transcription`` value as a list of segments.

    JSON columns come back from the store already decoded, but rows written
    by older clients hold the list serialised as a string.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise StoreError("final_transcription is not valid JSON") from None
    if not isinstance(value, list):
        raise StoreError("final_transcription must be a list of segments")
    return value


def format_segments(segments: Iterable[Dict[str, Any]]) -> str:
    """Flatten segments into ``"<speaker>: <text>"`` lines separated by blank lines.

    Args:
        segments: Dictionaries with ``speaker`` and ``text`` keys.  A
            missing or empty speaker is labelled ``Unknown``.

    Returns:
        A single string containing the formatted transcript.
    """
    lines = [f"{seg.get('speaker') or UNKNOWN_SPEAKER}: {seg.get('text', '')}" for seg in segments]
    return "\n\n".join(lines)
