"""
Settings Configuration
Pydantic-validated configuration loaded from the environment / .env
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMSettings(BaseSettings):
    """Text-generation provider credentials and defaults"""
    temperature: float = Field(default=0.7, description="Sampling temperature")
    timeout: float = Field(default=60.0, description="Per-call timeout (seconds)")

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API Key")
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API Key")
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API Key")
    groq_builder_api_key: Optional[str] = Field(default=None, description="Dedicated Groq key for the 70B candidate")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1", description="Groq OpenAI-compatible endpoint")

    class Config:
        env_prefix = "LLM_"


class GenerationSettings(BaseSettings):
    """Fallback orchestration settings"""
    candidates: Optional[str] = Field(
        default=None,
        description="Ordered candidates: label=provider:model:token_budget,... (defaults when empty)",
    )
    max_attempts: int = Field(default=3, description="Attempts per candidate")
    base_delay: float = Field(default=5.0, description="First backoff delay (seconds)")
    max_delay: float = Field(default=20.0, description="Backoff cap (seconds)")

    class Config:
        env_prefix = "GENERATION_"


class ResearchSettings(BaseSettings):
    """Upstream web research settings"""
    enabled: bool = Field(default=True, description="Run web research before generation")
    request_timeout: float = Field(default=15.0, description="Per-request timeout (seconds)")
    max_results_per_query: int = Field(default=10, description="Results kept per engine query")
    max_context_results: int = Field(default=20, description="Results passed to the prompt")

    class Config:
        env_prefix = "RESEARCH_"


class StoreSettings(BaseSettings):
    """Record store settings"""
    provider: str = Field(default="memory", description="memory | supabase")
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_service_key: Optional[str] = Field(default=None, description="Supabase service-role key")
    ideas_table: str = Field(default="daily_niche_ideas", description="Ideas table")
    integer_score_columns: bool = Field(default=False, description="In-memory store mimics integer score columns")
    request_timeout: float = Field(default=20.0, description="REST timeout (seconds)")

    class Config:
        env_prefix = "STORE_"


class NotificationSettings(BaseSettings):
    """Downstream notification queue settings"""
    provider: str = Field(default="jsonl", description="jsonl | supabase | none")
    out_dir: str = Field(default="./data/notifications", description="JSONL output directory")
    recipients: str = Field(default="", description="Comma-separated recipient ids for the jsonl dispatcher")
    queue_table: str = Field(default="daily_idea_email_queue", description="Supabase queue table")
    profiles_table: str = Field(default="profiles", description="Supabase profiles table")
    batch_size: int = Field(default=1000, description="Queue insert batch size")

    class Config:
        env_prefix = "NOTIFY_"


class CronSettings(BaseSettings):
    """Job endpoint authentication"""
    secret: Optional[str] = Field(default=None, description="Bearer secret for the scheduler")
    scheduler_header: str = Field(default="x-scheduler-token", description="Scheduler-specific header name")
    scheduler_token: Optional[str] = Field(default=None, description="Expected scheduler header value")

    class Config:
        env_prefix = "CRON_"


class LoggingSettings(BaseSettings):
    """Logging configuration"""
    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default=None, description="Optional log file under logs/")
    use_rich: bool = Field(default=True, description="Rich console handler")

    class Config:
        env_prefix = "LOG_"


class Settings(BaseSettings):
    """Top-level settings aggregating every group"""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    cron: CronSettings = Field(default_factory=CronSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings, reading `config/.env` first when present."""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            llm=LLMSettings(),
            generation=GenerationSettings(),
            research=ResearchSettings(),
            store=StoreSettings(),
            notification=NotificationSettings(),
            cron=CronSettings(),
            logging=LoggingSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton"""
    return Settings.load_from_env_file()


def get_llm_settings() -> LLMSettings:
    return get_settings().llm


def get_generation_settings() -> GenerationSettings:
    return get_settings().generation


def get_research_settings() -> ResearchSettings:
    return get_settings().research


def get_store_settings() -> StoreSettings:
    return get_settings().store


def get_notification_settings() -> NotificationSettings:
    return get_settings().notification


def get_cron_settings() -> CronSettings:
    return get_settings().cron
