"""
HTTP entrypoints for the meeting bot workflow.

This module exposes one Cloud Function per handler, each taking the
incoming Flask request:

* ``start_bot`` – send a transcription bot into a Google Meet call.
* ``fetch_transcript`` – store the finished transcript and remove the bot.
* ``summarize_transcription`` – store a structured summary of the transcript.
* ``generate_embeddings`` – store an embedding of the summary.
* ``get_embedding`` – embed a search query and return the vector.

The same handlers are mounted on a Flask app (``/start-bot``,
``/fetch-transcript``, ...) for local serving with
``python -m meetingbot.main``.

Environment variables:

* ``VEXA_API_KEY`` – API key for the bot gateway.
* ``SUPABASE_URL`` / ``SUPABASE_SERVICE_ROLE_KEY`` – meetings table access.
* ``GEMINI_API_KEY`` – API key for the generative model.
* ``LOG_LEVEL`` – logging level (defaults to ``INFO``).

See :mod:`meetingbot.config` for the optional settings.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, request

from . import tasks
from .config import Config
from .errors import MeetingBotError, ValidationError

logger = logging.getLogger(__name__)

CONFIG = Config.from_env()
logging.basicConfig(
    level=CONFIG.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
JSON_HEADERS = {"Content-Type": "application/json"}

CONFIG.log_status()
HANDLERS = tasks.build_handlers(CONFIG)


def dispatch(handler: tasks.Handler, req) -> tuple:
    """Run ``handler`` against an incoming request and build the response.

    Returns a ``(body, status, headers)`` tuple, which both Flask and the
    Cloud Functions runtime turn into a response.
    """
    headers = dict(JSON_HEADERS)
    if handler.cors:
        if req.method == "OPTIONS":
            return "ok", 200, dict(CORS_HEADERS)
        headers.update(CORS_HEADERS)
    if req.method != "POST":
        return {"error": handler.usage, "kind": "validation"}, 400, headers

    try:
        payload = req.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        logger.info(json.dumps({"event": "request", "handler": handler.name}))
        return handler.handle(payload), 200, headers
    except MeetingBotError as exc:
        logger.error(
            json.dumps({"event": "request_failed", "handler": handler.name, "kind": exc.kind.value, "error": exc.message})
        )
        return exc.to_dict(), handler.status_for(exc), headers
    except Exception as exc:
        logger.exception("Error in %s", handler.name)
        return {"error": str(exc), "kind": "internal"}, 500, headers


def start_bot(request) -> tuple:
    return dispatch(HANDLERS["start-bot"], request)


def fetch_transcript(request) -> tuple:
    return dispatch(HANDLERS["fetch-transcript"], request)


def summarize_transcription(request) -> tuple:
    return dispatch(HANDLERS["summarize-transcription"], request)


def generate_embeddings(request) -> tuple:
    return dispatch(HANDLERS["generate-embeddings"], request)


def get_embedding(request) -> tuple:
    return dispatch(HANDLERS["get-embedding"], request)


def create_app(handlers: Optional[Dict[str, Any]] = None) -> Flask:
    """Build a Flask app routing ``/<handler name>`` to each handler."""
    handlers = HANDLERS if handlers is None else handlers
    app = Flask(__name__)

    def make_view(handler):
        def view():
            return dispatch(handler, request)

        return view

    for name, handler in handlers.items():
        app.add_url_rule(f"/{name}", endpoint=name, view_func=make_view(handler), methods=["GET", "POST", "OPTIONS"])
    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port)
