import copy

import pytest
from postgrest.exceptions import APIError

from meetingbot.config import Config
from meetingbot.errors import UpstreamAPIError
from meetingbot.meeting_store import MeetingStore
from meetingbot.tasks import Services


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.action = None
        self.fields = None
        self.columns = "*"
        self.filters = {}
        self.row_limit = None

    def select(self, columns="*"):
        self.action = "select"
        self.columns = columns
        return self

    def update(self, fields):
        self.action = "update"
        self.fields = fields
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def _matches(self, row):
        return all(row.get(k) == v for k, v in self.filters.items())

    def execute(self):
        rows = self.client.tables.setdefault(self.table, [])
        if self.action == "update":
            if self.client.fail_updates:
                raise APIError({"message": "permission denied", "code": "42501", "hint": None, "details": None})
            matched = [row for row in rows if self._matches(row)]
            for row in matched:
                row.update(copy.deepcopy(self.fields))
            self.client.updates.append((self.table, dict(self.filters), copy.deepcopy(self.fields)))
            return FakeResponse([copy.deepcopy(row) for row in matched])
        matched = [copy.deepcopy(row) for row in rows if self._matches(row)]
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return FakeResponse(matched)


class FakeSupabaseClient:
    def __init__(self, rows=None):
        self.tables = {"meetings": [dict(r) for r in rows or []]}
        self.updates = []
        self.fail_updates = False

    def table(self, name):
        return FakeQuery(self, name)

    def row(self, meeting_id):
        return next(r for r in self.tables["meetings"] if r["id"] == meeting_id)


class FakeBotService:
    def __init__(self, transcript="hello world", transcript_error=None, stop_error=None, start_result=None):
        self.transcript = transcript
        self.transcript_error = transcript_error
        self.stop_error = stop_error
        self.start_result = start_result or {"id": 7, "status": "requested"}
        self.calls = []

    def start_bot(self, platform, native_meeting_id, *, bot_name):
        self.calls.append(("start", platform, native_meeting_id, bot_name))
        return self.start_result

    def get_transcript(self, platform, native_meeting_id):
        self.calls.append(("transcript", platform, native_meeting_id))
        if self.transcript_error:
            raise self.transcript_error
        return self.transcript

    def stop_bot(self, platform, native_meeting_id):
        self.calls.append(("stop", platform, native_meeting_id))
        if self.stop_error:
            raise self.stop_error


class FakeGenAIService:
    def __init__(self, response_text="{}", embedding=None):
        self.response_text = response_text
        self.embedding = embedding or [0.1, 0.2, 0.3]
        self.prompts = []
        self.embed_calls = []

    def generate_json(self, prompt, schema, **kwargs):
        self.prompts.append((prompt, schema))
        return self.response_text

    def embed(self, text, *, task_type):
        self.embed_calls.append((text, task_type))
        return list(self.embedding)


FULL_SUMMARY = {
    "key_discussion_points": ["roadmap", "hiring"],
    "important_decisions": ["ship in May"],
    "action_items": [{"item": "draft plan", "owner": "A", "deadline": "2026-05-01"}],
    "meeting_highlights": ["record quarter"],
    "follow_up_tasks": [{"task": "book venue", "deadline": "N/A"}],
    "overall_summary": "The team reviewed the roadmap.",
}


@pytest.fixture
def config():
    return Config(
        vexa_api_key="vexa-key",
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="service-key",
        gemini_api_key="gemini-key",
    )


@pytest.fixture
def supabase():
    return FakeSupabaseClient(
        rows=[
            {
                "id": "m1",
                "meeting_url": "https://meet.google.com/abc-defg-hij",
                "transcription": None,
                "transcription_error": None,
            }
        ]
    )


@pytest.fixture
def bot_service():
    return FakeBotService()


@pytest.fixture
def genai_service():
    return FakeGenAIService()


@pytest.fixture
def services(config, supabase, bot_service, genai_service):
    return Services(
        config,
        bot_service=bot_service,
        genai_service=genai_service,
        store=MeetingStore(supabase),
    )


@pytest.fixture
def gateway_error():
    return UpstreamAPIError(
        "Transcript fetch failed with status 404", status=404, body="not ready", details="not ready"
    )
