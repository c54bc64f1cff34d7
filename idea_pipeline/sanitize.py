"""Deterministic field normalization and scoring for recovered idea records."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

from core import CandidateRecord, NormalizedIdea, SanitizeContext, SourceLink


logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 10.0
MAX_NAME_LEN = 4000
MAX_SOURCES = 10
JITTER_STEPS = 9  # seeds 0..8 -> offsets -0.4..+0.4

_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d+)?|\.\d+)(?:[eE][-+]?\d+)?")
_LEVELS = ("low", "medium", "high")
_LEVEL_SYNONYMS = {
    "med": "medium",
    "mid": "medium",
    "moderate": "medium",
    "average": "medium",
    "very high": "high",
    "extreme": "high",
    "strong": "high",
    "very low": "low",
    "minimal": "low",
    "weak": "low",
}


def round_half_up(value: float, places: int = 1) -> float:
    """Round like a human would (2.25 -> 2.3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    return max(low, min(high, value))


def parse_score(value: Any) -> Optional[float]:
    """
    Numeric or numeric-like input -> float in [0, 10] with one decimal.

    Strings use their first number ("8.7 out of 10" -> 8.7). Booleans,
    containers and text without a number yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # integer beyond float range
            return SCORE_MAX if value > 0 else SCORE_MIN
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if not match:
            return None
        try:
            number = float(match.group(0))
        except ValueError:
            return None
        if math.isinf(number):
            # "1e400" is still a number, just out of range
            return SCORE_MAX if number > 0 else SCORE_MIN
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    try:
        return round_half_up(clamp(number))
    except InvalidOperation:
        return None


def normalize_level(value: Any, default: str = "medium") -> str:
    """Map free text onto low/medium/high; anything unrecognized is `default`."""
    text = re.sub(r"\s+", " ", str(value or "").strip().lower())
    if not text:
        return default
    if text in _LEVELS:
        return text
    if text in _LEVEL_SYNONYMS:
        return _LEVEL_SYNONYMS[text]
    # "High - growing fast", "low (few competitors)"
    head = re.split(r"[\s\-(,:;/]+", text, maxsplit=1)[0]
    if head in _LEVELS:
        return head
    return default


def coerce_list(value: Any) -> List[Any]:
    """Sequence as list; bare scalar or mapping wrapped; missing/blank -> []."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    if isinstance(value, (tuple, set)):
        return list(value)
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    return [value]


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value).strip()


def name_jitter(name: str) -> float:
    """Deterministic offset in [-0.4, 0.4] (0.1 steps) derived from `name`."""
    seed = sum(ord(ch) for ch in str(name or "")) % JITTER_STEPS
    return (seed - JITTER_STEPS // 2) / 10.0


def compute_total_score(
    opportunity: Optional[float],
    problem: Optional[float],
    feasibility: Optional[float],
    *,
    name: str,
) -> Optional[float]:
    """
    Mean of the non-null component scores, one decimal.

    Three identical components are treated as filler output and nudged by
    the name-derived jitter so repeated runs do not all land on one value.
    """
    components = [s for s in (opportunity, problem, feasibility) if s is not None]
    if not components:
        return None
    total = sum(components) / len(components)
    if len(components) == 3 and opportunity == problem == feasibility:
        total += name_jitter(name)
    return round_half_up(clamp(total))


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _pick(data: Dict[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    return data.get(_camel(key))


def _sources(context: SanitizeContext) -> List[SourceLink]:
    links = []
    for item in context.sources:
        title = str(item.title or "").strip()
        link = str(item.link or "").strip()
        if title or link:
            links.append(SourceLink(title=title, link=link))
        if len(links) >= MAX_SOURCES:
            break
    return links


def sanitize_idea(record: CandidateRecord, context: SanitizeContext) -> NormalizedIdea:
    """
    Normalize a recovered record into a NormalizedIdea.

    Pure: identical input always yields an identical result.

    Raises:
        ValueError: the record has no usable name
    """
    data = record.data

    name = coerce_text(_pick(data, "name"))[:MAX_NAME_LEN]
    if not name:
        raise ValueError("Recovered record has no name")

    unknown = record.unknown_fields()
    if unknown:
        logger.debug(f"Record carries unrecognized fields: {unknown}")

    opportunity = parse_score(_pick(data, "opportunity_score"))
    problem = parse_score(_pick(data, "problem_score"))
    feasibility = parse_score(_pick(data, "feasibility_score"))
    report = _pick(data, "full_research_report")

    return NormalizedIdea(
        name=name,
        industry=coerce_text(_pick(data, "industry")) or context.industry,
        one_liner=coerce_text(_pick(data, "one_liner")),
        description=coerce_text(_pick(data, "description")),
        target_audience=coerce_text(_pick(data, "target_audience")),
        core_problem=coerce_text(_pick(data, "core_problem")),
        opportunity_score=opportunity,
        problem_score=problem,
        feasibility_score=feasibility,
        trending_score=parse_score(_pick(data, "trending_score")),
        total_score=compute_total_score(opportunity, problem, feasibility, name=name),
        demand_level=normalize_level(_pick(data, "demand_level")),
        competition_level=normalize_level(_pick(data, "competition_level")),
        market_size=coerce_text(_pick(data, "market_size")),
        growth_rate=coerce_text(_pick(data, "growth_rate")),
        pain_points=coerce_list(_pick(data, "pain_points")),
        monetization_ideas=coerce_list(_pick(data, "monetization_ideas")),
        product_ideas=coerce_list(_pick(data, "product_ideas")),
        validation_signals=coerce_list(_pick(data, "validation_signals")),
        full_research_report=report if isinstance(report, dict) else None,
        sources=_sources(context),
        featured_date=context.featured_date,
        generated_by=context.generated_by or "ai-cron",
        generation_prompt=context.generation_prompt,
    )
