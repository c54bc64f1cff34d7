"""Daily idea pipeline: one linear pass from existence check to notification."""

from __future__ import annotations

from datetime import date, datetime, timezone
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from core import PipelineResult, PipelineStage, SanitizeContext, SearchResult
from generation.fallback import ModelFallbackOrchestrator
from research import build_research_queries
from storage.idea_store import BaseIdeaStore
from utils.exceptions import (
    AllCandidatesExhaustedError,
    PipelineAbortedError,
    RecoveryError,
    StorageError,
    WriteFailedError,
)

from .notification import BaseNotificationDispatcher
from .prompts import INDUSTRIES, SYSTEM_PROMPT, build_generation_prompt, pick_industry
from .recover import recover
from .sanitize import sanitize_idea
from .writer import IdeaWriter


logger = logging.getLogger(__name__)

RAW_LOG_LIMIT = 500

ResearchFn = Callable[[List[str]], Awaitable[List[SearchResult]]]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class DailyIdeaPipeline:
    """
    check_existing -> research -> generate -> recover -> sanitize -> persist -> notify.

    Every stage except research and notify aborts the run with a
    PipelineAbortedError carrying the stage and a short reason. Errors no
    stage anticipates surface as reason "internal_error" at the stage that
    was running.
    """

    def __init__(
        self,
        store: BaseIdeaStore,
        orchestrator: ModelFallbackOrchestrator,
        dispatcher: BaseNotificationDispatcher,
        research_fn: Optional[ResearchFn] = None,
        industries: Sequence[str] = INDUSTRIES,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.dispatcher = dispatcher
        self.research_fn = research_fn
        self.industries = tuple(industries)
        self.writer = IdeaWriter(store)

    async def run(self, target_date: Optional[date] = None) -> PipelineResult:
        featured_date = target_date or utc_today()
        trail: List[PipelineStage] = []
        try:
            return await self._run(featured_date, trail)
        except PipelineAbortedError:
            raise
        except Exception as exc:
            stage = trail[-1] if trail else PipelineStage.CHECK_EXISTING
            logger.exception(f"Daily idea run failed at {stage.value} for {featured_date}: {exc}")
            raise PipelineAbortedError(
                stage.value, "internal_error", f"{type(exc).__name__}: {exc}"
            ) from exc

    async def _run(self, featured_date: date, trail: List[PipelineStage]) -> PipelineResult:
        # check_existing
        self._enter(PipelineStage.CHECK_EXISTING, featured_date, trail)
        try:
            existing_id = await self.store.find_by_date(featured_date)
        except StorageError as exc:
            raise PipelineAbortedError(
                PipelineStage.CHECK_EXISTING.value, "store_unavailable", str(exc)
            ) from exc
        if existing_id:
            logger.info(f"Idea already exists for {featured_date}: {existing_id}")
            raise PipelineAbortedError(
                PipelineStage.CHECK_EXISTING.value,
                "already_exists",
                f"Idea already exists for {featured_date}",
                {"idea_id": existing_id},
            )

        industry = pick_industry(featured_date, self.industries)
        logger.info(f"Generating daily idea for industry: {industry}")

        # research
        self._enter(PipelineStage.RESEARCH, featured_date, trail)
        research = await self._research(industry, featured_date.year)

        # generate
        self._enter(PipelineStage.GENERATE, featured_date, trail)
        prompt = build_generation_prompt(industry, research)
        try:
            completion = await self.orchestrator.generate(prompt, system_prompt=SYSTEM_PROMPT)
        except AllCandidatesExhaustedError as exc:
            raise PipelineAbortedError(
                PipelineStage.GENERATE.value,
                "generation_failed",
                exc.message,
                {"attempts": len(exc.attempts)},
            ) from exc

        # recover
        self._enter(PipelineStage.RECOVER, featured_date, trail)
        try:
            record = recover(completion.text)
        except RecoveryError as exc:
            logger.error(f"Failed to parse model output from {completion.candidate_label}: {exc.message}")
            logger.error(f"Raw output (first {RAW_LOG_LIMIT} chars): {completion.text[:RAW_LOG_LIMIT]}")
            raise PipelineAbortedError(PipelineStage.RECOVER.value, "parse_failed", exc.message) from exc

        # sanitize
        self._enter(PipelineStage.SANITIZE, featured_date, trail)
        context = SanitizeContext(
            featured_date=featured_date,
            industry=industry,
            sources=research,
            generation_prompt=industry,
        )
        try:
            idea = sanitize_idea(record, context)
        except ValueError as exc:
            logger.error(f"Sanitize failed: {exc}")
            raise PipelineAbortedError(PipelineStage.SANITIZE.value, "sanitize_failed", str(exc)) from exc

        # persist
        self._enter(PipelineStage.PERSIST, featured_date, trail)
        try:
            idea_id = await self.writer.write(idea)
        except WriteFailedError as exc:
            reason = "already_exists" if exc.reason == "duplicate" else "write_failed"
            raise PipelineAbortedError(PipelineStage.PERSIST.value, reason, exc.message) from exc

        # notify
        self._enter(PipelineStage.NOTIFY, featured_date, trail)
        queued = await self._notify(idea_id)

        logger.info(f"Daily idea created: {idea.name} ({idea_id}) via {completion.candidate_label}")
        return PipelineResult(
            idea_id=idea_id,
            name=idea.name,
            industry=idea.industry,
            featured_date=featured_date,
            notifications_queued=queued,
            candidate_label=completion.candidate_label,
        )

    async def _research(self, industry: str, year: int) -> List[SearchResult]:
        if self.research_fn is None:
            return []
        try:
            results = await self.research_fn(build_research_queries(industry, year))
        except Exception as exc:
            logger.warning(f"Research failed, continuing without web context: {exc}")
            return []
        logger.info(f"Research returned {len(results)} results")
        return list(results)

    async def _notify(self, idea_id: str) -> int:
        try:
            return await self.dispatcher.queue_for_idea(idea_id)
        except Exception as exc:
            logger.error(f"Notification fan-out failed for {idea_id}: {exc}")
            return 0

    @staticmethod
    def _enter(stage: PipelineStage, featured_date: date, trail: List[PipelineStage]) -> None:
        trail.append(stage)
        logger.debug(f"pipeline stage={stage.value} date={featured_date}")
