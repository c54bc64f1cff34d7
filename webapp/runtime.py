"""Shared runtime singletons for the web and CLI entrypoints."""

from __future__ import annotations

from typing import Optional

from generation.fallback import ModelFallbackOrchestrator
from idea_pipeline.driver import DailyIdeaPipeline
from idea_pipeline.notification import build_dispatcher
from research import gather_research
from storage.idea_store import build_idea_store


_PIPELINE: Optional[DailyIdeaPipeline] = None


def build_pipeline() -> DailyIdeaPipeline:
    from config import get_research_settings

    research = get_research_settings()
    research_fn = None
    if research.enabled:
        async def research_fn(queries):
            return await gather_research(queries, limit=research.max_context_results)

    return DailyIdeaPipeline(
        store=build_idea_store(),
        orchestrator=ModelFallbackOrchestrator.from_settings(),
        dispatcher=build_dispatcher(),
        research_fn=research_fn,
    )


def get_pipeline() -> DailyIdeaPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = build_pipeline()
    return _PIPELINE


async def close_pipeline() -> None:
    """Release the store and dispatcher clients of the built pipeline, if any."""
    global _PIPELINE
    pipeline, _PIPELINE = _PIPELINE, None
    if pipeline is None:
        return
    try:
        await pipeline.store.aclose()
    finally:
        await pipeline.dispatcher.aclose()
