"""
Meetings table access.

Rows in the ``meetings`` table are created elsewhere; the handlers only
read and update individual columns of an existing row, always addressed by
its ``id``.  Every Supabase failure is raised as a :class:`StoreError`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import create_client

from .errors import StoreError

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MeetingStore:
    def __init__(self, client, *, table: str = "meetings"):
        self.client = client
        self.table = table

    @classmethod
    def from_credentials(cls, url: str, service_role_key: str, *, table: str = "meetings") -> "MeetingStore":
        return cls(create_client(url, service_role_key), table=table)

    def fetch(self, meeting_id: str, columns: str) -> Dict[str, Any]:
        """Return the selected ``columns`` of one meeting.

        Raises:
            StoreError: If the query fails or no row has ``meeting_id``.
        """
        try:
            result = self.client.table(self.table).select(columns).eq("id", meeting_id).limit(1).execute()
        except APIError as exc:
            raise StoreError(f"Error fetching meeting: {exc.message}", details=exc.details) from exc
        if not result.data:
            raise StoreError("Meeting not found", details={"meeting_id": meeting_id})
        return result.data[0]

    def update(self, meeting_id: str, **fields) -> None:
        """Write ``fields`` to the meeting row.

        Raises:
            StoreError: If Supabase rejects the write.
        """
        try:
            result = self.client.table(self.table).update(fields).eq("id", meeting_id).execute()
        except APIError as exc:
            raise StoreError(f"Error updating meeting: {exc.message}", details=exc.details) from exc
        if not result.data:
            logger.warning("Update of %s matched no meeting row %s", sorted(fields), meeting_id)

    def mark_bot_started(self, meeting_id: str) -> None:
        self.update(meeting_id, bot_started_at=utc_now())

    def save_transcript(
        self,
        meeting_id: str,
        transcript: str,
        *,
        segments: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        # A successful attempt clears the error left by an earlier failed one.
        fields: Dict[str, Any] = {
            "transcription": transcript,
            "transcription_attempted_at": utc_now(),
            "transcription_error": None,
        }
        if segments is not None:
            fields["final_transcription"] = segments
        self.update(meeting_id, **fields)

    def mark_transcription_failed(self, meeting_id: str, error: str) -> None:
        self.update(meeting_id, transcription_attempted_at=utc_now(), transcription_error=error)

    def get_final_transcription(self, meeting_id: str) -> Any:
        return self.fetch(meeting_id, "id, final_transcription").get("final_transcription")

    def save_summary(self, meeting_id: str, summary: Dict[str, Any]) -> None:
        self.update(meeting_id, meeting_summary_json=summary)

    def get_summary(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        return self.fetch(meeting_id, "id, meeting_summary_json").get("meeting_summary_json")

    def save_summary_embedding(self, meeting_id: str, embedding: List[float]) -> None:
        self.update(meeting_id, summary_embedding=embedding)
