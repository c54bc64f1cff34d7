from __future__ import annotations

from datetime import date
import json
from typing import List, Optional

import pytest

from core import BackendCandidate, RawCompletion, SearchResult
from generation.fallback import ModelFallbackOrchestrator
from generation.llm.base import BaseLLM, LLMResponse
from idea_pipeline.driver import DailyIdeaPipeline
from idea_pipeline.notification import BaseNotificationDispatcher
from idea_pipeline.prompts import INDUSTRIES
from storage.idea_store import InMemoryIdeaStore
from utils.exceptions import AllCandidatesExhaustedError, PipelineAbortedError


TARGET = date(2025, 4, 10)

IDEA_JSON = json.dumps(
    {
        "name": "Bookkeeping for solo dog groomers",
        "one_liner": "Accounting that speaks grooming",
        "opportunity_score": 8.5,
        "problem_score": "7/10",
        "feasibility_score": 9,
        "trending_score": 6.2,
        "demand_level": "High",
        "competition_level": "low",
        "pain_points": ["Receipts everywhere"],
    }
)


class FakeOrchestrator:
    def __init__(self, text: Optional[str] = IDEA_JSON, error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str, *, system_prompt: Optional[str] = None) -> RawCompletion:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return RawCompletion(text=self.text, candidate_label="fake")


class CountingDispatcher(BaseNotificationDispatcher):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.ideas: List[str] = []

    async def queue_for_idea(self, idea_id: str) -> int:
        if self.fail:
            raise RuntimeError("mail queue down")
        self.ideas.append(idea_id)
        return 3


def _pipeline(store=None, orchestrator=None, dispatcher=None, research_fn=None) -> DailyIdeaPipeline:
    return DailyIdeaPipeline(
        store=store or InMemoryIdeaStore(),
        orchestrator=orchestrator or FakeOrchestrator(),
        dispatcher=dispatcher or CountingDispatcher(),
        research_fn=research_fn,
    )


@pytest.mark.asyncio
async def test_full_run_persists_and_notifies() -> None:
    store = InMemoryIdeaStore()
    dispatcher = CountingDispatcher()
    seen_queries: List[List[str]] = []

    async def research(queries: List[str]) -> List[SearchResult]:
        seen_queries.append(queries)
        return [SearchResult(title="Groomer forum", snippet="tax season pain", link="https://forum.example")]

    orchestrator = FakeOrchestrator()
    result = await _pipeline(store, orchestrator, dispatcher, research).run(TARGET)

    industry = INDUSTRIES[TARGET.timetuple().tm_yday % len(INDUSTRIES)]
    assert result.success is True
    assert result.industry == industry
    assert result.notifications_queued == 3
    assert dispatcher.ideas == [result.idea_id]
    assert len(seen_queries[0]) == 4
    assert "Groomer forum: tax season pain" in orchestrator.prompts[0]

    row = await store.get(result.idea_id)
    assert row["name"] == "Bookkeeping for solo dog groomers"
    assert row["featured_date"] == "2025-04-10"
    assert row["problem_score"] == 7.0
    assert row["demand_level"] == "high"
    assert row["sources"] == [{"title": "Groomer forum", "link": "https://forum.example"}]
    assert row["generation_prompt"] == industry
    assert row["generated_by"] == "ai-cron"


@pytest.mark.asyncio
async def test_second_run_for_same_date_is_rejected_and_stores_one_record() -> None:
    store = InMemoryIdeaStore()
    orchestrator = FakeOrchestrator()
    pipeline = _pipeline(store, orchestrator)

    first = await pipeline.run(TARGET)
    with pytest.raises(PipelineAbortedError) as exc_info:
        await pipeline.run(TARGET)

    assert exc_info.value.stage == "check_existing"
    assert exc_info.value.reason == "already_exists"
    assert exc_info.value.details["idea_id"] == first.idea_id
    assert len(orchestrator.prompts) == 1
    assert len(store.list_rows()) == 1


@pytest.mark.asyncio
async def test_generation_failure_aborts_before_persist() -> None:
    store = InMemoryIdeaStore()
    orchestrator = FakeOrchestrator(error=AllCandidatesExhaustedError("all failed", attempts=[]))

    with pytest.raises(PipelineAbortedError) as exc_info:
        await _pipeline(store, orchestrator).run(TARGET)

    assert (exc_info.value.stage, exc_info.value.reason) == ("generate", "generation_failed")
    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_unparseable_output_aborts_with_parse_failed() -> None:
    store = InMemoryIdeaStore()
    with pytest.raises(PipelineAbortedError) as exc_info:
        await _pipeline(store, FakeOrchestrator(text="I cannot help with that.")).run(TARGET)

    assert (exc_info.value.stage, exc_info.value.reason) == ("recover", "parse_failed")
    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_record_without_name_aborts_with_sanitize_failed() -> None:
    with pytest.raises(PipelineAbortedError) as exc_info:
        await _pipeline(orchestrator=FakeOrchestrator(text='{"one_liner": "no name"}')).run(TARGET)
    assert (exc_info.value.stage, exc_info.value.reason) == ("sanitize", "sanitize_failed")


@pytest.mark.asyncio
async def test_integer_store_still_accepts_the_idea() -> None:
    store = InMemoryIdeaStore(integer_score_columns=True)
    result = await _pipeline(store).run(TARGET)

    row = await store.get(result.idea_id)
    assert store.insert_calls == 2
    assert row["opportunity_score"] == 9
    assert row["trending_score"] == 6


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_the_run() -> None:
    store = InMemoryIdeaStore()
    result = await _pipeline(store, dispatcher=CountingDispatcher(fail=True)).run(TARGET)
    assert result.notifications_queued == 0
    assert len(store.list_rows()) == 1


@pytest.mark.asyncio
async def test_research_failure_falls_back_to_no_context() -> None:
    async def research(queries: List[str]) -> List[SearchResult]:
        raise RuntimeError("search down")

    orchestrator = FakeOrchestrator()
    result = await _pipeline(orchestrator=orchestrator, research_fn=research).run(TARGET)
    assert result.success is True
    assert "no web results" in orchestrator.prompts[0]


class QuotaThenOkLLM(BaseLLM):
    def __init__(self, label: str, log: List[str]) -> None:
        super().__init__(model=label)
        self.label = label
        self.log = log

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages, **kwargs) -> LLMResponse:
        self.log.append(self.label)
        if self.label == "A":
            raise RuntimeError("429 Too Many Requests")
        return LLMResponse(content=f"```json\n{IDEA_JSON}\n```", model=self.label)


@pytest.mark.asyncio
async def test_run_with_real_orchestrator_falls_back_to_second_candidate() -> None:
    log: List[str] = []

    async def no_sleep(seconds: float) -> None:
        raise AssertionError("quota errors must not back off")

    orchestrator = ModelFallbackOrchestrator(
        [BackendCandidate("A", 100), BackendCandidate("B", 100), BackendCandidate("C", 100)],
        llm_factory=lambda candidate: QuotaThenOkLLM(candidate.label, log),
        sleep=no_sleep,
    )
    result = await _pipeline(orchestrator=orchestrator).run(TARGET)

    assert log == ["A", "B"]
    assert result.candidate_label == "B"


class RowWithoutIdStore(InMemoryIdeaStore):
    async def find_by_date(self, featured_date: date) -> Optional[str]:
        row = {"featured_date": featured_date.isoformat()}
        return row["id"]


@pytest.mark.asyncio
async def test_unexpected_store_error_aborts_at_check_existing() -> None:
    with pytest.raises(PipelineAbortedError) as exc_info:
        await _pipeline(RowWithoutIdStore()).run(TARGET)

    assert (exc_info.value.stage, exc_info.value.reason) == ("check_existing", "internal_error")
    assert isinstance(exc_info.value.__cause__, KeyError)


@pytest.mark.asyncio
async def test_unexpected_backend_error_aborts_at_generate() -> None:
    store = InMemoryIdeaStore()
    orchestrator = FakeOrchestrator(error=TypeError("unexpected keyword argument 'proxies'"))

    with pytest.raises(PipelineAbortedError) as exc_info:
        await _pipeline(store, orchestrator).run(TARGET)

    assert (exc_info.value.stage, exc_info.value.reason) == ("generate", "internal_error")
    assert "TypeError" in exc_info.value.message
    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_oversized_integer_score_is_clamped_and_persisted() -> None:
    store = InMemoryIdeaStore()
    text = '{"name": "X", "opportunity_score": ' + "9" * 400 + "}"
    result = await _pipeline(store, FakeOrchestrator(text=text)).run(TARGET)

    row = await store.get(result.idea_id)
    assert row["opportunity_score"] == 10.0
