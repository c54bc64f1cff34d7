from __future__ import annotations

from datetime import date

import pytest

from core import CandidateRecord, SanitizeContext, SearchResult
from idea_pipeline.recover import recover
from idea_pipeline.sanitize import (
    coerce_list,
    compute_total_score,
    name_jitter,
    normalize_level,
    parse_score,
    sanitize_idea,
)


def _context(**overrides) -> SanitizeContext:
    payload = {
        "featured_date": date(2025, 3, 14),
        "industry": "Health & Wellness",
        "generation_prompt": "Health & Wellness",
    }
    payload.update(overrides)
    return SanitizeContext(**payload)


def _record(**data) -> CandidateRecord:
    base = {"name": "Sleep tracking for night shift nurses"}
    base.update(data)
    return CandidateRecord(data=base)


def test_fenced_score_with_prose_is_parsed() -> None:
    raw = 'Sure! ```json\n{"name": "Test", "opportunity_score": "8.7 out of 10"}\n```'
    idea = sanitize_idea(recover(raw), _context())
    assert idea.opportunity_score == 8.7
    assert idea.name == "Test"


@pytest.mark.parametrize(
    "value, expected",
    [
        (7, 7.0),
        (7.25, 7.3),
        ("9/10", 9.0),
        (".5", 0.5),
        (15, 10.0),
        ("-3", 0.0),
        ("n/a", None),
        (None, None),
        (True, None),
        ([8], None),
        (float("nan"), None),
        (int("9" * 400), 10.0),
        (-int("9" * 400), 0.0),
        ("1e3", 10.0),
        ("2.5e-1", 0.3),
        ("1e400", 10.0),
        ("8.7e", 8.7),
    ],
)
def test_parse_score(value, expected) -> None:
    assert parse_score(value) == expected


def test_scores_are_clamped_in_the_idea() -> None:
    idea = sanitize_idea(
        _record(opportunity_score=42, problem_score=-1, feasibility_score="11", trending_score=75),
        _context(),
    )
    assert idea.opportunity_score == 10.0
    assert idea.problem_score == 0.0
    assert idea.feasibility_score == 10.0
    assert idea.trending_score == 10.0
    for value in (idea.opportunity_score, idea.problem_score, idea.feasibility_score, idea.total_score):
        assert 0.0 <= value <= 10.0


def test_total_is_mean_of_present_components() -> None:
    assert compute_total_score(8.0, 6.0, None, name="x") == 7.0
    assert compute_total_score(None, None, None, name="x") is None
    assert compute_total_score(9.0, 8.0, 7.0, name="x") == 8.0


def test_identical_components_get_deterministic_name_jitter() -> None:
    assert name_jitter("Test") == pytest.approx(-0.2)
    assert compute_total_score(7.0, 7.0, 7.0, name="Test") == 6.8
    assert compute_total_score(7.0, 7.0, 7.0, name="Test") == compute_total_score(7.0, 7.0, 7.0, name="Test")


@pytest.mark.parametrize("name", ["", "a", "Pet insurance for senior cats", "Ünïcode näme", "x" * 500])
def test_jitter_stays_within_bounds(name) -> None:
    jitter = name_jitter(name)
    assert -0.4 <= jitter <= 0.4
    total = compute_total_score(10.0, 10.0, 10.0, name=name)
    assert round(abs(total - 10.0), 1) <= 0.4
    assert total <= 10.0


@pytest.mark.parametrize(
    "value, expected",
    [
        ("HIGH", "high"),
        ("  Low ", "low"),
        ("moderate", "medium"),
        ("High - growing fast", "high"),
        ("low (few competitors)", "low"),
        ("enormous", "medium"),
        (None, "medium"),
        (3, "medium"),
    ],
)
def test_normalize_level(value, expected) -> None:
    assert normalize_level(value) == expected


def test_coerce_list_wraps_scalars_and_drops_blanks() -> None:
    assert coerce_list(None) == []
    assert coerce_list("") == []
    assert coerce_list("single pain") == ["single pain"]
    assert coerce_list({"model": "SaaS"}) == [{"model": "SaaS"}]
    assert coerce_list(("a", "b")) == ["a", "b"]


def test_camel_case_keys_are_accepted() -> None:
    idea = sanitize_idea(
        _record(oneLiner="Short pitch", painPoints=["p1"], competitionLevel="LOW", opportunityScore="6"),
        _context(),
    )
    assert idea.one_liner == "Short pitch"
    assert idea.pain_points == ["p1"]
    assert idea.competition_level == "low"
    assert idea.opportunity_score == 6.0


def test_context_fields_and_defaults_are_merged() -> None:
    sources = [SearchResult(title=f"t{i}", link=f"https://example.com/{i}", snippet="s") for i in range(15)]
    idea = sanitize_idea(_record(), _context(sources=sources))

    assert len(idea.sources) == 10
    assert idea.sources[0].link == "https://example.com/0"
    assert idea.featured_date == date(2025, 3, 14)
    assert idea.industry == "Health & Wellness"
    assert idea.generated_by == "ai-cron"
    assert idea.is_published is True and idea.is_featured is True
    assert idea.display_order == 0
    assert idea.demand_level == "medium"
    assert idea.total_score is None


def test_missing_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        sanitize_idea(CandidateRecord(data={"one_liner": "nameless"}), _context())


def test_sanitize_is_idempotent() -> None:
    record = _record(
        opportunity_score="8.75",
        problem_score=8.75,
        feasibility_score="8.75 (solid)",
        trending_score="7",
        demand_level="High demand",
        pain_points="only one",
        full_research_report={"verdict": "GO"},
    )
    context = _context(sources=[SearchResult(title="t", link="https://example.com")])

    first = sanitize_idea(record, context)
    second = sanitize_idea(CandidateRecord(data=first.to_row()), context)

    assert second == first
    assert sanitize_idea(record, context) == first
