"""
Meeting bot gateway wrapper.

This module encapsulates interaction with the Vexa bot gateway, which
joins a meeting with a recording bot, serves the transcript once the
meeting is over and removes the bot on request.  All calls authenticate
with the ``X-API-Key`` header.

Usage::

    from meetingbot.bot_service import BotService

    service = BotService(api_key, base_url="https://gateway.dev.vexa.ai")
    service.start_bot("google_meet", "abc-defg-hij", bot_name="EllenaTranscriber")
    text = service.get_transcript("google_meet", "abc-defg-hij")
"""

import logging
from typing import Any, Dict

import requests

from .errors import UpstreamAPIError, UpstreamTransportError

logger = logging.getLogger(__name__)


class BotService:
    def __init__(self, api_key: str, *, base_url: str, timeout: float = 30.0, session=None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {"X-API-Key": self.api_key}
        headers.update(kwargs.pop("headers", {}))
        try:
            return self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("Bot gateway %s %s failed: %s", method, path, exc)
            raise UpstreamTransportError(f"Could not reach bot gateway: {exc}") from exc

    def start_bot(self, platform: str, native_meeting_id: str, *, bot_name: str) -> Dict[str, Any]:
        """Ask the gateway to send a bot into the meeting.

        The gateway's answer is returned as-is whatever its status code;
        only an unreachable gateway or a non-JSON body is an error.
        """
        logger.info("Starting bot %s for %s/%s", bot_name, platform, native_meeting_id)
        response = self._request(
            "POST",
            "/bots",
            json={
                "platform": platform,
                "native_meeting_id": native_meeting_id,
                "bot_name": bot_name,
            },
        )
        try:
            return response.json()
        except ValueError:
            raise UpstreamAPIError(
                "Bot gateway returned a non-JSON response",
                status=response.status_code,
                body=response.text,
            ) from None

    def get_transcript(self, platform: str, native_meeting_id: str) -> str:
        """Return the raw transcript body for a meeting.

        Raises:
            UpstreamAPIError: If the gateway does not answer with a 2xx status.
        """
        response = self._request("GET", f"/transcripts/{platform}/{native_meeting_id}")
        if not response.ok:
            raise UpstreamAPIError(
                f"Transcript fetch failed with status {response.status_code}",
                status=response.status_code,
                body=response.text,
                details=response.text,
            )
        logger.info("Fetched transcript for %s/%s (%d chars)", platform, native_meeting_id, len(response.text))
        return response.text

    def stop_bot(self, platform: str, native_meeting_id: str) -> None:
        """Remove the bot from the meeting.

        Raises:
            UpstreamAPIError: If the gateway does not answer with a 2xx status.
        """
        response = self._request("DELETE", f"/bots/{platform}/{native_meeting_id}")
        if not response.ok:
            raise UpstreamAPIError(
                f"Bot stop failed with status {response.status_code}",
                status=response.status_code,
                body=response.text,
            )
        logger.info("Stopped bot for %s/%s", platform, native_meeting_id)
