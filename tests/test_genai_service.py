from unittest.mock import Mock

import pytest
from google.api_core import exceptions as google_exceptions

import meetingbot.genai_service as gs
from meetingbot.errors import UpstreamAPIError, UpstreamTransportError


def fake_response(text):
    part = Mock(text=text)
    return Mock(candidates=[Mock(content=Mock(parts=[part]))])


@pytest.fixture
def fake_genai(monkeypatch):
    genai = Mock()
    monkeypatch.setattr(gs, "genai", genai)
    return genai


def test_generate_json(fake_genai):
    model = fake_genai.GenerativeModel.return_value
    model.generate_content.return_value = fake_response('{"a": 1}')
    service = gs.GenAIService("key", model="gemini-test", embedding_model="models/e")

    assert service.generate_json("prompt", {"type": "OBJECT"}) == '{"a": 1}'
    fake_genai.configure.assert_called_once_with(api_key="key")
    fake_genai.GenerativeModel.assert_called_once_with("gemini-test")
    config = model.generate_content.call_args.kwargs["generation_config"]
    assert config["response_mime_type"] == "application/json"
    assert config["response_schema"] == {"type": "OBJECT"}
    assert config["temperature"] == 0.2
    assert config["max_output_tokens"] == 4096


def test_generate_json_without_candidates(fake_genai):
    fake_genai.GenerativeModel.return_value.generate_content.return_value = Mock(candidates=[])
    service = gs.GenAIService("key", model="m", embedding_model="e")
    assert service.generate_json("prompt", {}) == "{}"


def test_generate_json_api_error(fake_genai):
    fake_genai.GenerativeModel.return_value.generate_content.side_effect = (
        google_exceptions.InvalidArgument("bad schema")
    )
    service = gs.GenAIService("key", model="m", embedding_model="e")
    with pytest.raises(UpstreamAPIError) as excinfo:
        service.generate_json("prompt", {})
    assert "bad schema" in excinfo.value.message


def test_embed(fake_genai):
    fake_genai.embed_content.return_value = {"embedding": [0.5, 0.25]}
    service = gs.GenAIService("key", model="m", embedding_model="models/embedding-001")

    assert service.embed("hello", task_type=gs.TASK_RETRIEVAL_QUERY) == [0.5, 0.25]
    fake_genai.embed_content.assert_called_once_with(
        model="models/embedding-001", content="hello", task_type="retrieval_query"
    )


def test_embed_error(fake_genai):
    fake_genai.embed_content.side_effect = google_exceptions.PermissionDenied("key revoked")
    service = gs.GenAIService("key", model="m", embedding_model="e")
    with pytest.raises(UpstreamAPIError):
        service.embed("hello", task_type=gs.TASK_RETRIEVAL_DOCUMENT)


def test_generate_json_unreachable(fake_genai):
    fake_genai.GenerativeModel.return_value.generate_content.side_effect = (
        google_exceptions.ServiceUnavailable("failed to connect to all addresses")
    )
    service = gs.GenAIService("key", model="m", embedding_model="e")
    with pytest.raises(UpstreamTransportError) as excinfo:
        service.generate_json("prompt", {})
    assert excinfo.value.kind.value == "upstream_transport"


def test_embed_deadline_exceeded(fake_genai):
    fake_genai.embed_content.side_effect = google_exceptions.DeadlineExceeded("deadline exceeded")
    service = gs.GenAIService("key", model="m", embedding_model="e")
    with pytest.raises(UpstreamTransportError):
        service.embed("hello", task_type=gs.TASK_RETRIEVAL_QUERY)
