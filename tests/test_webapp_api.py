from __future__ import annotations

from datetime import date
import importlib
from typing import Optional

from fastapi.testclient import TestClient

from config.settings import CronSettings
from core import PipelineResult
from utils.exceptions import PipelineAbortedError


class StubPipeline:
    def __init__(self, error: Optional[PipelineAbortedError] = None) -> None:
        self.error = error
        self.dates = []

    async def run(self, target_date=None) -> PipelineResult:
        self.dates.append(target_date)
        if self.error is not None:
            raise self.error
        return PipelineResult(
            idea_id="idea-1",
            name="Bookkeeping for solo dog groomers",
            industry="Pet Industry",
            featured_date=target_date or date(2025, 4, 10),
            notifications_queued=4,
            candidate_label="groq-llama-8b",
        )


def _client(monkeypatch, pipeline: StubPipeline, **cron) -> TestClient:
    module = importlib.import_module("webapp.app")
    monkeypatch.setattr(module, "get_pipeline", lambda: pipeline)
    monkeypatch.setattr(module, "get_cron_settings", lambda: CronSettings(**cron))
    return TestClient(module.app)


def test_health(monkeypatch) -> None:
    client = _client(monkeypatch, StubPipeline())
    assert client.get("/api/health").json()["ok"] is True


def test_success_payload_and_get_alias(monkeypatch) -> None:
    pipeline = StubPipeline()
    client = _client(monkeypatch, pipeline)

    resp = client.post("/api/cron/generate-daily-idea")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "idea_id": "idea-1",
        "name": "Bookkeeping for solo dog groomers",
        "industry": "Pet Industry",
        "notifications_queued": 4,
    }

    assert client.get("/api/cron/generate-daily-idea").status_code == 200
    assert pipeline.dates == [None, None]


def test_date_query_is_passed_through(monkeypatch) -> None:
    pipeline = StubPipeline()
    client = _client(monkeypatch, pipeline)

    assert client.post("/api/cron/generate-daily-idea?date=2025-02-03").status_code == 200
    assert pipeline.dates == [date(2025, 2, 3)]
    assert client.post("/api/cron/generate-daily-idea?date=not-a-date").status_code == 400


def test_bearer_secret_is_required_when_configured(monkeypatch) -> None:
    client = _client(monkeypatch, StubPipeline(), secret="s3cret")

    denied = client.post("/api/cron/generate-daily-idea")
    assert denied.status_code == 401
    assert denied.json() == {"error": "unauthorized"}

    wrong = client.post("/api/cron/generate-daily-idea", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401

    ok = client.post("/api/cron/generate-daily-idea", headers={"Authorization": "Bearer s3cret"})
    assert ok.status_code == 200


def test_scheduler_header_is_accepted(monkeypatch) -> None:
    client = _client(monkeypatch, StubPipeline(), secret="s3cret", scheduler_token="tick")

    resp = client.post("/api/cron/generate-daily-idea", headers={"x-scheduler-token": "tick"})
    assert resp.status_code == 200
    assert client.post("/api/cron/generate-daily-idea", headers={"x-scheduler-token": "tock"}).status_code == 401


def test_existing_idea_maps_to_conflict(monkeypatch) -> None:
    error = PipelineAbortedError("check_existing", "already_exists", "exists", {"idea_id": "old"})
    client = _client(monkeypatch, StubPipeline(error))

    resp = client.post("/api/cron/generate-daily-idea")
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "error": "already_exists", "stage": "check_existing"}


def test_pipeline_failures_map_to_server_errors(monkeypatch) -> None:
    cases = [
        (PipelineAbortedError("generate", "generation_failed", "all failed"), 502),
        (PipelineAbortedError("recover", "parse_failed", "Expecting value"), 500),
        (PipelineAbortedError("persist", "write_failed", "insert failed"), 500),
    ]
    for error, status in cases:
        client = _client(monkeypatch, StubPipeline(error))
        resp = client.post("/api/cron/generate-daily-idea")
        assert resp.status_code == status
        assert resp.json()["error"] == error.reason
        assert "Expecting" not in resp.text


class CrashingPipeline:
    async def run(self, target_date=None) -> PipelineResult:
        raise RuntimeError("row missing id")


def test_internal_abort_keeps_json_error_shape(monkeypatch) -> None:
    error = PipelineAbortedError("sanitize", "internal_error", "OverflowError: int too large")
    client = _client(monkeypatch, StubPipeline(error))

    resp = client.post("/api/cron/generate-daily-idea")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "internal_error", "stage": "sanitize"}


def test_unexpected_exception_still_answers_with_json(monkeypatch) -> None:
    client = _client(monkeypatch, CrashingPipeline())

    resp = client.post("/api/cron/generate-daily-idea")
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"success": False, "error": "internal_error", "stage": "aborted"}
    assert "row missing id" not in resp.text


def test_shutdown_closes_pipeline_clients(monkeypatch) -> None:
    module = importlib.import_module("webapp.app")
    closed = []

    async def fake_close() -> None:
        closed.append(True)

    monkeypatch.setattr(module, "close_pipeline", fake_close)
    monkeypatch.setattr(module, "get_pipeline", lambda: StubPipeline())
    monkeypatch.setattr(module, "get_cron_settings", lambda: CronSettings())

    with TestClient(module.app) as client:
        assert client.post("/api/cron/generate-daily-idea").status_code == 200
        assert closed == []
    assert closed == [True]
