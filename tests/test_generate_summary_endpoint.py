"""
End-to-end tests for /generate-summary with the record store and the text
generator replaced by in-process fakes.
"""
import time

import pytest
from fastapi.testclient import TestClient

import summary_service.history as history_mod
import summary_service.processors.summary_generator as generator_mod
from summary_service import config
from summary_service.app import app
from summary_service import app as app_module
from summary_service.connectors import glide_connector
from summary_service.store import RecordStore, StoreError, StoreHandle

orchestrator = app_module.orchestrator

SUMMARY_TEXT = (
    "1. **Aaj ka Progress**: Fixture welding done\n"
    "2. **Current Status**: On track\n"
    "3. **Issues/Blockers**: None\n"
    "4. **Next Steps**: Send for painting"
)


class FakeStore(RecordStore):
    def __init__(self, rows=None, fail_reads=False, fail_appends=0):
        self.rows = list(rows or [])
        self.fail_reads = fail_reads
        self.fail_appends = fail_appends
        self.append_calls = 0

    def get_rows(self):
        if self.fail_reads:
            raise StoreError("sheet unreachable")
        return list(self.rows)

    def append_row(self, row):
        self.append_calls += 1
        if self.fail_appends > 0:
            self.fail_appends -= 1
            raise StoreError("write failed")
        self.rows.append(dict(row))


class FakeGenerator:
    def __init__(self, text=SUMMARY_TEXT, delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return {"text": self.text, "model": "fake", "response_id": "fake-1", "raw": {}}


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def generator(monkeypatch):
    gen = FakeGenerator()
    monkeypatch.setattr(generator_mod, "generate_summary", gen)
    return gen


@pytest.fixture
def client(monkeypatch, store, generator):
    monkeypatch.setattr(orchestrator, "store", StoreHandle(lambda: store))
    monkeypatch.setattr(orchestrator, "save_retry_delay", 0)
    monkeypatch.setattr(orchestrator, "history_limit", 5)
    monkeypatch.setattr(orchestrator, "generation_timeout", 5)
    monkeypatch.setattr(config, "GLIDE_API_TOKEN", "")
    return TestClient(app)


def _row(project_id, summary, ts="2025-01-01T00:00:00.000Z"):
    return {"Timestamp": ts, "ProjectID": project_id, "Summary": summary, "Key_Changes": ""}


def test_get_success_persists_record(client, store, generator):
    r = client.get("/generate-summary", params={"projectId": "42", "drawings": "Rev B", "process": "Welding"})
    assert r.status_code == 200
    j = r.json()
    assert j["success"] is True
    assert j["projectId"] == "42"
    assert j["summary"] == SUMMARY_TEXT
    assert j["keyChanges"] == "1. **Aaj ka Progress**: Fixture welding done"
    meta = j["metadata"]
    assert meta["previousSummariesCount"] == 0
    assert meta["savedToSheet"] is True
    assert "savedToGlide" not in meta
    assert isinstance(meta["executionTimeMs"], int)
    assert meta["timestamp"].endswith("Z")

    assert len(store.rows) == 1
    row = store.rows[0]
    assert row["ProjectID"] == "42"
    assert row["Summary"] == SUMMARY_TEXT
    assert row["Timestamp"] == meta["timestamp"]
    assert '"drawings": "Rev B"' in row["Data_Snapshot"]
    assert "- Engineering Drawings: Rev B" in generator.prompts[0]


def test_post_webhook_with_row_id_alias(client, store):
    r = client.post("/generate-summary", json={"Row ID": "row-5", "Materials": "Steel arrived", "Customer": "Acme"})
    assert r.status_code == 200
    assert r.json()["projectId"] == "row-5"
    assert store.rows[0]["ProjectID"] == "row-5"


def test_post_non_object_body_is_client_error(client, store, generator):
    r = client.post("/generate-summary", json=["projectId", "42"])
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert generator.prompts == []
    assert store.rows == []


@pytest.mark.parametrize("method", ["get", "post"])
def test_missing_identifier_returns_400_without_side_effects(client, store, generator, method):
    if method == "get":
        r = client.get("/generate-summary", params={"drawings": "Rev B"})
    else:
        r = client.post("/generate-summary", json={"drawings": "Rev B", "projectId": ""})
    assert r.status_code == 400
    j = r.json()
    assert j["success"] is False
    assert j["error"] == "ProjectID is required"
    assert "hint" in j
    assert generator.prompts == []
    assert store.append_calls == 0


def test_previous_summaries_count_is_capped_by_limit(client, store, generator):
    store.rows = [_row("42", f"day {i}") for i in range(7)] + [_row("8", "unrelated")]
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 200
    assert r.json()["metadata"]["previousSummariesCount"] == 5
    prompt = generator.prompts[0]
    assert "Day -5: day 2" in prompt
    assert "Day -1: day 6" in prompt
    assert "unrelated" not in prompt


def test_history_matches_trimmed_identifier(client, store):
    store.rows = [_row("42 ", "padded id")]
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.json()["metadata"]["previousSummariesCount"] == 1
    assert store.rows[-1]["Previous_Context"] == "Day -1: padded id"


def test_unreachable_store_for_history_still_succeeds(client, store, generator):
    store.fail_reads = True
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 200
    j = r.json()
    assert j["success"] is True
    assert j["metadata"]["previousSummariesCount"] == 0
    assert "No previous history" in generator.prompts[0]
    assert store.rows[0]["Previous_Context"] == ""


def test_generation_timeout_returns_500_and_persists_nothing(client, monkeypatch, store):
    monkeypatch.setattr(generator_mod, "generate_summary", FakeGenerator(delay=0.5))
    monkeypatch.setattr(orchestrator, "generation_timeout", 0.05)
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 500
    j = r.json()
    assert j["success"] is False
    assert j["error"] == "Failed to generate summary"
    assert "timed out" in j["details"]
    assert "executionTimeMs" in j["metadata"]
    assert store.append_calls == 0


def test_generation_error_returns_500(client, monkeypatch, store):
    monkeypatch.setattr(generator_mod, "generate_summary",
                        FakeGenerator(error=generator_mod.GenerationError("quota exceeded")))
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 500
    assert r.json()["details"] == "quota exceeded"
    assert store.rows == []


def test_save_retry_success_reports_saved_without_duplicates(client, store):
    store.fail_appends = 1
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 200
    assert r.json()["metadata"]["savedToSheet"] is True
    assert store.append_calls == 2
    assert len(store.rows) == 1


def test_save_failure_after_retry_still_returns_summary(client, store):
    store.fail_appends = 2
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 200
    j = r.json()
    assert j["success"] is True
    assert j["summary"] == SUMMARY_TEXT
    assert j["metadata"]["savedToSheet"] is False
    assert store.rows == []


def test_glide_push_reported_when_configured(client, monkeypatch):
    monkeypatch.setattr(config, "GLIDE_API_TOKEN", "tok")
    monkeypatch.setattr(config, "GLIDE_APP_ID", "app")
    monkeypatch.setattr(config, "GLIDE_TABLE_NAME", "Projects")
    calls = []
    monkeypatch.setattr(glide_connector, "set_summary_column", lambda row_id, summary: calls.append((row_id, summary)))
    r = client.get("/generate-summary", params={"rowID": "abc"})
    assert r.status_code == 200
    assert r.json()["metadata"]["savedToGlide"] is True
    assert calls == [("abc", SUMMARY_TEXT)]


def test_glide_failure_does_not_fail_request(client, monkeypatch, store):
    monkeypatch.setattr(config, "GLIDE_API_TOKEN", "tok")
    monkeypatch.setattr(config, "GLIDE_APP_ID", "app")
    monkeypatch.setattr(config, "GLIDE_TABLE_NAME", "Projects")

    def boom(row_id, summary):
        raise glide_connector.PropagationError("HTTP 500")

    monkeypatch.setattr(glide_connector, "set_summary_column", boom)
    r = client.get("/generate-summary", params={"rowID": "abc"})
    assert r.status_code == 200
    meta = r.json()["metadata"]
    assert meta["savedToGlide"] is False
    assert meta["savedToSheet"] is True


def test_unexpected_pipeline_error_returns_500(client, monkeypatch):
    def explode(*args, **kwargs):
        raise KeyError("boom")

    monkeypatch.setattr(history_mod, "fetch_previous_summaries", explode)
    r = client.get("/generate-summary", params={"projectId": "42"})
    assert r.status_code == 500
    j = r.json()
    assert j["success"] is False
    assert j["error"] == "Internal server error"
    assert "timestamp" in j["metadata"]


def test_unknown_route_lists_endpoints(client):
    r = client.get("/does-not-exist")
    assert r.status_code == 404
    j = r.json()
    assert j["success"] is False
    assert any("/generate-summary" in e for e in j["availableEndpoints"])


def test_root_documents_endpoints(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "generateSummary" in r.json()["endpoints"]


def test_health_reports_store_and_llm(client, monkeypatch, store):
    monkeypatch.setattr(config, "MOCK_LLM", True)
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "ok"
    assert j["version"] == config.VERSION
    assert j["services"] == {"sheets": True, "llm": True, "glide": False}

    store.fail_reads = True
    j = client.get("/health").json()
    assert j["status"] == "degraded"
    assert j["services"]["sheets"] is False


def test_post_with_identifier_in_query_and_empty_body(client, store):
    r = client.post("/generate-summary?projectId=42")
    assert r.status_code == 200
    assert r.json()["projectId"] == "42"
    assert store.rows[0]["ProjectID"] == "42"


def test_post_body_overrides_query_fields(client, store, generator):
    r = client.post("/generate-summary?projectId=42&drawings=old", json={"drawings": "Rev D"})
    assert r.status_code == 200
    assert "- Engineering Drawings: Rev D" in generator.prompts[0]


def test_post_invalid_json_is_client_error(client, store):
    r = client.post("/generate-summary", content=b"{not json",
                    headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert store.rows == []
