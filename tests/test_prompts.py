from __future__ import annotations

from datetime import date

from core import SearchResult
from idea_pipeline.prompts import INDUSTRIES, build_generation_prompt, pick_industry


def test_industry_rotates_by_day_of_year() -> None:
    assert len(INDUSTRIES) == 20
    assert pick_industry(date(2025, 1, 1)) == INDUSTRIES[1]
    assert pick_industry(date(2025, 1, 20)) == INDUSTRIES[0]
    assert pick_industry(date(2025, 1, 21)) == INDUSTRIES[1]


def test_custom_industry_list() -> None:
    assert pick_industry(date(2025, 1, 2), ["only"]) == "only"


def test_prompt_includes_industry_and_research_lines() -> None:
    prompt = build_generation_prompt(
        "Pet Industry",
        [SearchResult(title="Senior dogs", snippet="Owners lack vet access", link="https://x")],
    )
    assert '"Pet Industry"' in prompt
    assert "- Senior dogs: Owners lack vet access" in prompt
    assert '"opportunity_score"' in prompt
    assert "Return ONLY valid JSON" in prompt


def test_prompt_without_research_mentions_fallback() -> None:
    prompt = build_generation_prompt("Pet Industry", [])
    assert "no web results" in prompt
