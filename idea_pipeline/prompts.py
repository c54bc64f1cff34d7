"""Industry rotation and generation prompt templates."""

from __future__ import annotations

from datetime import date
import json
from typing import List, Sequence

from core import SearchResult


INDUSTRIES = (
    "AI & Automation",
    "Remote Work & Productivity",
    "Health & Wellness",
    "Education & E-Learning",
    "Creator Economy",
    "Sustainability & Green Tech",
    "Finance & Investing",
    "Gaming & Entertainment",
    "E-commerce & Retail",
    "Real Estate & PropTech",
    "Food & Beverage",
    "Fitness & Sports",
    "Pet Industry",
    "Beauty & Personal Care",
    "Travel & Hospitality",
    "Parenting & Family",
    "Career & Professional Development",
    "Mental Health & Mindfulness",
    "Home & DIY",
    "B2B SaaS & Enterprise",
)

SYSTEM_PROMPT = (
    "You are an expert market researcher who finds specific, underserved niche "
    "business opportunities. You answer with a single JSON object and nothing else."
)

_RECORD_SHAPE = {
    "name": "Specific niche name, 5-8 words",
    "industry": "<industry>",
    "one_liner": "One compelling sentence describing the opportunity",
    "description": "2-3 paragraphs describing the niche",
    "target_audience": "Precise customer profile: demographics, psychographics, behaviors",
    "core_problem": "The painful problem this audience has that nobody solves well",
    "opportunity_score": 8.5,
    "problem_score": 8.0,
    "feasibility_score": 7.5,
    "trending_score": 7.0,
    "demand_level": "low | medium | high",
    "competition_level": "low | medium | high",
    "market_size": "Estimated market size, e.g. $2.5B growing at 12% CAGR",
    "growth_rate": "Annual growth rate with reasoning",
    "pain_points": ["Specific pain point with context"],
    "monetization_ideas": [
        {"model": "SaaS | Course | Template | Community | Marketplace | Consulting",
         "description": "How it makes money", "price_range": "$X-$Y", "recurring": True}
    ],
    "product_ideas": [
        {"type": "SaaS | Course | Template | Community | Tool", "name": "Product name",
         "tagline": "One-liner", "core_features": ["Feature"], "price_point": "$X/month",
         "build_time": "X weeks", "mvp_scope": "Minimum viable product"}
    ],
    "validation_signals": [
        {"signal": "Observed demand signal", "source": "Where it was found", "strength": "Strong | Moderate | Weak"}
    ],
    "full_research_report": {
        "executive_summary": "2-3 sentence overview",
        "market_analysis": {"overview": "", "key_trends": [], "drivers": []},
        "competitive_landscape": {"saturation_level": "", "major_players": [], "gaps_and_opportunities": []},
        "go_to_market_strategy": {"positioning": "", "channels": [], "quick_wins": []},
        "risk_assessment": {"risks": [], "overall_risk_level": ""},
        "action_plan": {"week_1": "", "month_1": "", "month_3": ""},
        "verdict": "GO | CAUTION with reasoning",
    },
}


def pick_industry(target_date: date, industries: Sequence[str] = INDUSTRIES) -> str:
    """Deterministic rotation: day of year modulo the industry count."""
    if not industries:
        raise ValueError("industries must not be empty")
    return industries[target_date.timetuple().tm_yday % len(industries)]


def format_research_context(research: Sequence[SearchResult]) -> str:
    lines: List[str] = []
    for item in research:
        title = str(item.title or "").strip()
        snippet = str(item.snippet or "").strip()
        if title or snippet:
            lines.append(f"- {title}: {snippet}")
    return "\n".join(lines) if lines else "- (no web results; rely on your own market knowledge)"


def build_generation_prompt(industry: str, research: Sequence[SearchResult]) -> str:
    shape = dict(_RECORD_SHAPE)
    shape["industry"] = industry
    return (
        f'Industry: "{industry}"\n\n'
        "Web research context:\n"
        f"{format_research_context(research)}\n\n"
        "Find ONE highly specific, underserved niche opportunity in this industry.\n\n"
        "Requirements:\n"
        '1. Specific, e.g. "Sleep tracking for night shift nurses" rather than "health apps"\n'
        "2. Backed by real demand signals from the research\n"
        "3. Low to medium competition\n"
        "4. Actionable for a solo founder or a small team\n\n"
        "All scores are numbers from 0 to 10.\n"
        "Return ONLY valid JSON with this shape:\n"
        f"{json.dumps(shape, indent=2)}"
    )
