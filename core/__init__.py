"""Core contracts and shared types for the daily idea pipeline."""

from .contracts import (
    EXPECTED_RECORD_FIELDS,
    AttemptOutcome,
    BackendCandidate,
    CandidateRecord,
    GenerationAttempt,
    NormalizedIdea,
    PipelineResult,
    PipelineStage,
    RawCompletion,
    SanitizeContext,
    SearchResult,
    SourceLink,
)

__all__ = [
    "EXPECTED_RECORD_FIELDS",
    "AttemptOutcome",
    "BackendCandidate",
    "CandidateRecord",
    "GenerationAttempt",
    "NormalizedIdea",
    "PipelineResult",
    "PipelineStage",
    "RawCompletion",
    "SanitizeContext",
    "SearchResult",
    "SourceLink",
]
