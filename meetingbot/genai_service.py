"""
Generative model wrapper.

Thin layer over the `google-generativeai` client (Gemini) used for two
things: schema-constrained JSON generation for meeting summaries, and
embedding vectors for stored summaries and ad hoc search queries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .errors import UpstreamAPIError, UpstreamTransportError

logger = logging.getLogger(__name__)

TASK_RETRIEVAL_DOCUMENT = "retrieval_document"
TASK_RETRIEVAL_QUERY = "retrieval_query"

# Raised by the gRPC transport when Gemini cannot be reached or times out.
TRANSPORT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.RetryError,
    ConnectionError,
)


class GenAIService:
    def __init__(self, api_key: str, *, model: str, embedding_model: str):
        genai.configure(api_key=api_key)
        self.model_name = model
        self.embedding_model = embedding_model

    def generate_json(
        self,
        prompt: str,
        schema: Dict[str, Any],
        *,
        temperature: float = 0.2,
        max_output_tokens: int = 4096,
    ) -> str:
        """Run ``prompt`` and return the text of the first candidate.

        The model is asked to answer with ``application/json`` matching
        ``schema``.  An empty or blocked answer yields ``"{}"`` so the caller's
        key validation reports what is missing.
        """
        logger.info("Calling generative model %s for structured output", self.model_name)
        model = genai.GenerativeModel(self.model_name)
        try:
            response = model.generate_content(
                prompt,
                generation_config={
                    "temperature": temperature,
                    "max_output_tokens": max_output_tokens,
                    "response_mime_type": "application/json",
                    "response_schema": schema,
                },
            )
        except TRANSPORT_ERRORS as exc:
            raise UpstreamTransportError(f"Could not reach Gemini API: {exc}") from exc
        except google_exceptions.GoogleAPIError as exc:
            raise UpstreamAPIError(f"Gemini API error: {exc}") from exc
        return _first_candidate_text(response) or "{}"

    def embed(self, text: str, *, task_type: str) -> List[float]:
        """Return the embedding vector of ``text`` for the given retrieval task."""
        logger.info("Requesting %s embedding from %s", task_type, self.embedding_model)
        try:
            result = genai.embed_content(model=self.embedding_model, content=text, task_type=task_type)
        except TRANSPORT_ERRORS as exc:
            raise UpstreamTransportError(f"Could not reach Gemini API: {exc}") from exc
        except google_exceptions.GoogleAPIError as exc:
            raise UpstreamAPIError(f"Error generating embedding: {exc}") from exc
        embedding = result.get("embedding") if isinstance(result, dict) else None
        if not embedding:
            raise UpstreamAPIError("Error generating embedding: response carried no vector")
        return list(embedding)


def _first_candidate_text(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return ""
    return getattr(parts[0], "text", "") or ""
