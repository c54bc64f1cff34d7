"""
Idea Pipeline Module
Recovery, sanitization, persistence and the daily driver
"""
from .driver import DailyIdeaPipeline
from .notification import (
    BaseNotificationDispatcher,
    JsonlNotificationDispatcher,
    NullNotificationDispatcher,
    SupabaseEmailQueueDispatcher,
    build_dispatcher,
)
from .prompts import INDUSTRIES, build_generation_prompt, pick_industry
from .recover import recover
from .sanitize import compute_total_score, parse_score, sanitize_idea
from .writer import IdeaWriter, coerce_integer_scores, is_numeric_type_error

__all__ = [
    "DailyIdeaPipeline",
    "BaseNotificationDispatcher",
    "JsonlNotificationDispatcher",
    "NullNotificationDispatcher",
    "SupabaseEmailQueueDispatcher",
    "build_dispatcher",
    "INDUSTRIES",
    "build_generation_prompt",
    "pick_industry",
    "recover",
    "compute_total_score",
    "parse_score",
    "sanitize_idea",
    "IdeaWriter",
    "coerce_integer_scores",
    "is_numeric_type_error",
]
