"""
Generation Module
Backend candidates, provider clients and the model fallback orchestrator
"""
from .candidates import DEFAULT_CANDIDATES, load_candidates, parse_candidates
from .fallback import ModelFallbackOrchestrator, is_quota_error, structured_error_codes

__all__ = [
    "DEFAULT_CANDIDATES",
    "load_candidates",
    "parse_candidates",
    "ModelFallbackOrchestrator",
    "is_quota_error",
    "structured_error_codes",
]
