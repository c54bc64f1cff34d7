"""
Utils Module
Logging and the shared exception taxonomy
"""
from .logger import configure_from_settings, setup_logger
from .exceptions import (
    NicheRadarError,
    ConfigurationError,
    LLMError,
    QuotaExceededError,
    TransientGenerationError,
    AllCandidatesExhaustedError,
    RecoveryError,
    NoStructureFoundError,
    RecordParseError,
    StorageError,
    StoreError,
    DuplicateRecordError,
    WriteFailedError,
    PipelineAbortedError,
)

__all__ = [
    "setup_logger",
    "configure_from_settings",
    "NicheRadarError",
    "ConfigurationError",
    "LLMError",
    "QuotaExceededError",
    "TransientGenerationError",
    "AllCandidatesExhaustedError",
    "RecoveryError",
    "NoStructureFoundError",
    "RecordParseError",
    "StorageError",
    "StoreError",
    "DuplicateRecordError",
    "WriteFailedError",
    "PipelineAbortedError",
]
