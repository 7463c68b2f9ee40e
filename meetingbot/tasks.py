"""
Orchestration layer for the meeting bot workflow.

This module defines one handler per HTTP entrypoint in
:mod:`meetingbot.main`.  Each handler validates its payload, runs a short
fixed sequence of calls against the bot gateway, the generative model and
the meetings table, and returns the response body.  Handlers are composed
externally, in this order:

* **start-bot** sends a transcription bot into a Google Meet call.
* **fetch-transcript** pulls the transcript once the meeting is over and
  removes the bot.
* **summarize-transcription** turns the stored segments into a structured
  summary.
* **generate-embeddings** stores an embedding of that summary.
* **get-embedding** embeds an arbitrary search query, without storing it.

Failures are raised as :class:`~meetingbot.errors.MeetingBotError`
subclasses; the entrypoint turns them into JSON error responses.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .bot_service import BotService
from .config import Config
from .errors import ConfigurationError, MeetingBotError, StoreError, ValidationError
from .genai_service import TASK_RETRIEVAL_DOCUMENT, TASK_RETRIEVAL_QUERY, GenAIService
from .meeting_store import MeetingStore
from . import summarizer, transcript_formatter

logger = logging.getLogger(__name__)

SUPABASE_SETTINGS = ("supabase_url", "supabase_service_role_key")


class Services:
    """Lazily builds the upstream clients from a :class:`Config`.

    Clients passed in explicitly are used as-is, which is how tests swap in
    fakes.  Each accessor checks the settings its client needs first, so a
    missing key surfaces as a :class:`ConfigurationError` at request time.
    """

    def __init__(
        self,
        config: Config,
        *,
        bot_service: Optional[BotService] = None,
        genai_service: Optional[GenAIService] = None,
        store: Optional[MeetingStore] = None,
    ):
        self.config = config
        self._bot_service = bot_service
        self._genai_service = genai_service
        self._store = store

    def bot_service(self) -> BotService:
        self.config.require("vexa_api_key")
        if self._bot_service is None:
            self._bot_service = BotService(
                self.config.vexa_api_key,
                base_url=self.config.vexa_api_url,
                timeout=self.config.vexa_timeout,
            )
        return self._bot_service

    def genai_service(self) -> GenAIService:
        self.config.require("gemini_api_key")
        if self._genai_service is None:
            self._genai_service = GenAIService(
                self.config.gemini_api_key,
                model=self.config.genai_model,
                embedding_model=self.config.embedding_model,
            )
        return self._genai_service

    def store(self) -> MeetingStore:
        self.config.require(*SUPABASE_SETTINGS)
        if self._store is None:
            self._store = MeetingStore.from_credentials(
                self.config.supabase_url,
                self.config.supabase_service_role_key,
                table=self.config.meetings_table,
            )
        return self._store


@dataclass(frozen=True)
class Success:
    data: Any


@dataclass(frozen=True)
class Failure:
    error: MeetingBotError


Outcome = Union[Success, Failure]


def _log_event(event: str, **fields: Any) -> None:
    logger.info(json.dumps({"event": event, **fields}))


def _require_fields(payload: Dict[str, Any], *names: str) -> Tuple[Any, ...]:
    missing = [name for name in names if not payload.get(name)]
    if missing:
        raise ValidationError("Missing required fields: " + ", ".join(missing), details={"missing": missing})
    return tuple(payload[name] for name in names)


class Handler:
    """Base class for the HTTP handlers.

    Subclasses set :attr:`name`, :attr:`usage`, :attr:`required_settings` and
    implement :meth:`run`.
    """

    name = ""
    usage = ""
    required_settings: Tuple[str, ...] = ()
    # Status for every failure except configuration errors; None keeps the
    # error's own status.
    failure_status: Optional[int] = None
    cors = False

    def __init__(self, config: Config, services: Optional[Services] = None):
        self.config = config
        self.services = services or Services(config)

    def handle(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.config.require(*self.required_settings)
        return self.run(payload)

    def run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def status_for(self, error: MeetingBotError) -> int:
        if self.failure_status is not None and not isinstance(error, ConfigurationError):
            return self.failure_status
        return error.status_code


class StartBotHandler(Handler):
    name = "start-bot"
    usage = "POST a JSON body with 'meeting_url' and 'meeting_id' to start a transcription bot."
    required_settings = ("vexa_api_key",) + SUPABASE_SETTINGS

    def run(self, payload):
        meeting_url, meeting_id = _require_fields(payload, "meeting_url", "meeting_id")
        platform = transcript_formatter.ensure_supported_platform(meeting_url)
        native_id = transcript_formatter.derive_platform_meeting_id(meeting_url)

        result = self.services.bot_service().start_bot(platform, native_id, bot_name=self.config.bot_name)
        self.services.store().mark_bot_started(meeting_id)
        _log_event("bot_started", meeting_id=meeting_id, native_meeting_id=native_id)
        return result


class FetchTranscriptHandler(Handler):
    name = "fetch-transcript"
    usage = "POST a JSON body with 'meeting_url' and 'meeting_id' to fetch a finished transcript."
    required_settings = ("vexa_api_key",) + SUPABASE_SETTINGS

    def run(self, payload):
        meeting_url, meeting_id = _require_fields(payload, "meeting_url", "meeting_id")
        platform = transcript_formatter.ensure_supported_platform(meeting_url)
        native_id = transcript_formatter.derive_platform_meeting_id(meeting_url)

        outcome: Optional[Outcome] = None
        try:
            outcome = self._attempt(meeting_id, platform, native_id)
        finally:
            if not isinstance(outcome, Success):
                self._record_failed_attempt(meeting_id, outcome)
        if isinstance(outcome, Failure):
            raise outcome.error
        return outcome.data

    def _attempt(self, meeting_id: str, platform: str, native_id: str) -> Outcome:
        bot_service = self.services.bot_service()
        store = self.services.store()
        try:
            transcript = bot_service.get_transcript(platform, native_id)
        except MeetingBotError as exc:
            _log_event("transcript_fetch_failed", meeting_id=meeting_id, error=exc.message)
            return Failure(exc)

        response: Dict[str, Any] = {"success": True, "transcript": transcript}
        try:
            bot_service.stop_bot(platform, native_id)
        except MeetingBotError as exc:
            # A bot that will not leave never discards a fetched transcript.
            logger.warning("Could not stop bot for %s: %s", native_id, exc.message)
            response["message"] = f"Transcript fetched, but the bot could not be stopped: {exc.message}"

        try:
            store.save_transcript(meeting_id, transcript, segments=transcript_formatter.parse_segments(transcript))
        except MeetingBotError as exc:
            return Failure(exc)
        _log_event("transcript_saved", meeting_id=meeting_id, chars=len(transcript))
        return Success(response)

    def _record_failed_attempt(self, meeting_id: str, outcome: Optional[Outcome]) -> None:
        reason = outcome.error.message if isinstance(outcome, Failure) else "Unexpected error while fetching transcript"
        try:
            self.services.store().mark_transcription_failed(meeting_id, reason)
        except Exception:
            logger.exception("Could not record failed transcription attempt for %s", meeting_id)


class SummarizeTranscriptionHandler(Handler):
    name = "summarize-transcription"
    usage = "POST a JSON body with 'meeting_id' to summarise its final transcription."
    required_settings = ("gemini_api_key",) + SUPABASE_SETTINGS

    def run(self, payload):
        (meeting_id,) = _require_fields(payload, "meeting_id")
        store = self.services.store()

        stored = store.get_final_transcription(meeting_id)
        if not stored:
            raise StoreError("No transcription available")
        transcript = transcript_formatter.format_segments(transcript_formatter.coerce_segments(stored))

        text = self.services.genai_service().generate_json(
            summarizer.build_prompt(transcript), summarizer.MEETING_SUMMARY_SCHEMA
        )
        summary = summarizer.parse_summary(text)
        store.save_summary(meeting_id, summary)
        _log_event("summary_saved", meeting_id=meeting_id)
        return {"success": True, "summary": summary}


class GenerateEmbeddingsHandler(Handler):
    name = "generate-embeddings"
    usage = "POST a JSON body with 'meeting_id' to embed its stored summary."
    required_settings = ("gemini_api_key",) + SUPABASE_SETTINGS
    failure_status = 400
    cors = True

    def run(self, payload):
        (meeting_id,) = _require_fields(payload, "meeting_id")
        store = self.services.store()

        summary = store.get_summary(meeting_id)
        if not summary:
            raise StoreError("Error fetching meeting: No summary found")
        embedding = self.services.genai_service().embed(json.dumps(summary), task_type=TASK_RETRIEVAL_DOCUMENT)
        store.save_summary_embedding(meeting_id, embedding)
        _log_event("embedding_saved", meeting_id=meeting_id, dimensions=len(embedding))
        return {"success": True}


class GetEmbeddingHandler(Handler):
    name = "get-embedding"
    usage = "POST a JSON body with 'text' to embed a search query."
    required_settings = ("gemini_api_key",)
    failure_status = 400
    cors = True

    def run(self, payload):
        text = payload.get("text")
        if not text or not isinstance(text, str):
            raise ValidationError("No text provided for embedding")
        embedding = self.services.genai_service().embed(text, task_type=TASK_RETRIEVAL_QUERY)
        return {"embedding": embedding}


HANDLER_CLASSES = (
    StartBotHandler,
    FetchTranscriptHandler,
    SummarizeTranscriptionHandler,
    GenerateEmbeddingsHandler,
    GetEmbeddingHandler,
)


def build_handlers(config: Config, services: Optional[Services] = None) -> Dict[str, Handler]:
    """Instantiate every handler against one shared :class:`Services`, keyed by route name."""
    services = services or Services(config)
    return {cls.name: cls(config, services) for cls in HANDLER_CLASSES}
