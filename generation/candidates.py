"""Ordered backend candidate list for the fallback orchestrator."""

from __future__ import annotations

import logging
from typing import List, Optional

from core import BackendCandidate
from utils.exceptions import ConfigurationError

from .llm.factory import SUPPORTED_PROVIDERS, provider_api_key


logger = logging.getLogger(__name__)


# Heavy model first, smaller/faster models next, Gemini as last resort.
DEFAULT_CANDIDATES: List[BackendCandidate] = [
    BackendCandidate(label="groq-70b-builder", token_budget=8000, provider="groq_builder", model="llama-3.3-70b-versatile"),
    BackendCandidate(label="groq-llama-8b", token_budget=8000, provider="groq", model="llama-3.1-8b-instant"),
    BackendCandidate(label="groq-mixtral", token_budget=8000, provider="groq", model="mixtral-8x7b-32768"),
    BackendCandidate(label="gemini-flash", token_budget=8192, provider="gemini", model="gemini-2.0-flash"),
]

_OPTIONAL_PROVIDERS = {"groq_builder"}


def parse_candidates(value: str) -> List[BackendCandidate]:
    """
    Parse ``label=provider:model:budget`` entries separated by commas.

    Order is preserved; it defines fallback priority.
    """
    candidates: List[BackendCandidate] = []
    seen = set()
    for chunk in str(value or "").split(","):
        entry = chunk.strip()
        if not entry:
            continue
        label, sep, rest = entry.partition("=")
        parts = rest.split(":") if sep else []
        if len(parts) != 3:
            raise ConfigurationError(f"Invalid candidate entry: {entry!r}", {"expected": "label=provider:model:budget"})
        provider, model, budget = (p.strip() for p in parts)
        label = label.strip()
        if provider.lower() not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(f"Unsupported provider in candidate {label!r}: {provider}")
        try:
            token_budget = int(budget)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid token budget in candidate {label!r}: {budget}") from exc
        if token_budget <= 0 or not label or not model:
            raise ConfigurationError(f"Incomplete candidate entry: {entry!r}")
        if label in seen:
            raise ConfigurationError(f"Duplicate candidate label: {label}")
        seen.add(label)
        candidates.append(BackendCandidate(label=label, token_budget=token_budget, provider=provider.lower(), model=model))
    return candidates


def load_candidates(value: Optional[str] = None) -> List[BackendCandidate]:
    """
    Resolve the configured candidate list.

    An explicit value (argument or ``GENERATION_CANDIDATES``) is used as-is.
    Otherwise the defaults are filtered to providers with an API key; the
    optional builder candidate is dropped when its key is missing. When no
    default has a key the list is kept whole so every failure shows in logs.
    """
    if value is None:
        from config import get_generation_settings

        value = get_generation_settings().candidates

    if str(value or "").strip():
        candidates = parse_candidates(value)
        if not candidates:
            raise ConfigurationError("GENERATION_CANDIDATES is set but empty")
        return candidates

    configured = [c for c in DEFAULT_CANDIDATES if provider_api_key(c.provider)]
    if configured:
        return configured

    logger.warning("No backend API keys configured; keeping default candidates")
    return [c for c in DEFAULT_CANDIDATES if c.provider not in _OPTIONAL_PROVIDERS]
