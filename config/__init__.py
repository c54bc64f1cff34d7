"""
Configuration Management Module
Environment-driven settings for every pipeline collaborator
"""
from .settings import (
    Settings,
    get_settings,
    get_llm_settings,
    get_generation_settings,
    get_research_settings,
    get_store_settings,
    get_notification_settings,
    get_cron_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_llm_settings",
    "get_generation_settings",
    "get_research_settings",
    "get_store_settings",
    "get_notification_settings",
    "get_cron_settings",
]
