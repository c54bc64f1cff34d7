"""Canonical data contracts for the daily idea pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# Keys the generation prompt asks for. Anything else in a recovered record is
# reported as unknown but kept on the record.
EXPECTED_RECORD_FIELDS = frozenset(
    {
        "name",
        "industry",
        "one_liner",
        "description",
        "target_audience",
        "core_problem",
        "opportunity_score",
        "problem_score",
        "feasibility_score",
        "trending_score",
        "demand_level",
        "competition_level",
        "market_size",
        "growth_rate",
        "pain_points",
        "monetization_ideas",
        "product_ideas",
        "validation_signals",
        "full_research_report",
    }
)

Level = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class BackendCandidate:
    """One configured text-generation backend, tried in list order."""

    label: str
    token_budget: int
    provider: str = "openai"
    model: str = ""


class AttemptOutcome(str, Enum):
    """Result classification of a single backend call."""

    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    QUOTA_EXCEEDED = "quota_exceeded"


@dataclass
class GenerationAttempt:
    """Ephemeral record of one backend call."""

    candidate: BackendCandidate
    attempt_number: int
    outcome: AttemptOutcome
    detail: str = ""


@dataclass
class RawCompletion:
    """Text produced by the first successful candidate."""

    text: str
    candidate_label: str
    attempts: List[GenerationAttempt] = field(default_factory=list)


class SearchResult(BaseModel):
    """One upstream research hit."""

    title: str = ""
    snippet: str = ""
    link: str = ""


class SourceLink(BaseModel):
    """Citation persisted with an idea."""

    title: str = ""
    link: str = ""


class CandidateRecord(BaseModel):
    """Syntactically valid, not yet validated, mapping recovered from model output."""

    data: Dict[str, Any] = Field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def unknown_fields(self) -> List[str]:
        return sorted(key for key in self.data if _snake(key) not in EXPECTED_RECORD_FIELDS)


class NormalizedIdea(BaseModel):
    """Final persisted shape of a daily niche idea."""

    name: str = Field(max_length=4000)
    industry: str = ""
    one_liner: str = ""
    description: str = ""
    target_audience: str = ""
    core_problem: str = ""

    opportunity_score: Optional[float] = None
    problem_score: Optional[float] = None
    feasibility_score: Optional[float] = None
    trending_score: Optional[float] = None
    total_score: Optional[float] = None

    demand_level: Level = "medium"
    competition_level: Level = "medium"

    market_size: str = ""
    growth_rate: str = ""

    pain_points: List[Any] = Field(default_factory=list)
    monetization_ideas: List[Any] = Field(default_factory=list)
    product_ideas: List[Any] = Field(default_factory=list)
    validation_signals: List[Any] = Field(default_factory=list)
    full_research_report: Optional[Dict[str, Any]] = None

    sources: List[SourceLink] = Field(default_factory=list, max_length=10)

    featured_date: date
    display_order: int = 0
    is_published: bool = True
    is_featured: bool = True
    generated_by: str = "ai-cron"
    generation_prompt: str = ""

    def to_row(self) -> Dict[str, Any]:
        """Store row: JSON-safe, date as ISO string."""
        return self.model_dump(mode="json")


class SanitizeContext(BaseModel):
    """Pipeline-side inputs the sanitizer merges into the record."""

    featured_date: date
    industry: str = ""
    sources: List[SearchResult] = Field(default_factory=list)
    generated_by: str = "ai-cron"
    generation_prompt: str = ""

    @field_validator("industry", "generated_by", "generation_prompt", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return str(value or "").strip()


class PipelineStage(str, Enum):
    """Driver states, in execution order."""

    CHECK_EXISTING = "check_existing"
    RESEARCH = "research"
    GENERATE = "generate"
    RECOVER = "recover"
    SANITIZE = "sanitize"
    PERSIST = "persist"
    NOTIFY = "notify"
    DONE = "done"
    ABORTED = "aborted"


class PipelineResult(BaseModel):
    """Outcome of a completed pipeline run."""

    success: bool = True
    idea_id: str
    name: str = ""
    industry: str = ""
    featured_date: date
    notifications_queued: int = 0
    candidate_label: str = ""
    stage: PipelineStage = PipelineStage.DONE


def _snake(key: str) -> str:
    out = []
    for ch in str(key):
        if ch.isupper():
            out.append("_" + ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")
