"""
Custom Exceptions
Error taxonomy for the daily idea pipeline
"""
from typing import Any, Dict, List, Optional


class NicheRadarError(Exception):
    """Base exception for every pipeline failure"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(NicheRadarError):
    """Invalid or missing configuration"""
    pass


class LLMError(NicheRadarError):
    """Text-generation backend call failed"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class QuotaExceededError(LLMError):
    """Backend reported an exhausted usage allowance; advance to the next candidate"""
    pass


class TransientGenerationError(LLMError):
    """Backend failure worth retrying on the same candidate"""
    pass


class AllCandidatesExhaustedError(LLMError):
    """Every backend candidate failed"""

    def __init__(self, message: str, attempts: Optional[List[Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = list(attempts or [])


class RecoveryError(NicheRadarError):
    """Structured record could not be recovered from model output"""
    pass


class NoStructureFoundError(RecoveryError):
    """No object delimiters present in the text"""
    pass


class RecordParseError(RecoveryError):
    """
    Parsing failed even after repair.

    `message` is always the error from the first (pre-repair) parse.
    """

    def __init__(self, message: str, position: Optional[int] = None, **kwargs):
        super().__init__(message, kwargs)
        self.position = position


class StorageError(NicheRadarError):
    """Record store failure"""
    pass


class StoreError(StorageError):
    """Write or query rejected by the record store"""

    def __init__(self, message: str, code: Optional[str] = None, **kwargs):
        super().__init__(message, kwargs)
        self.code = code


class DuplicateRecordError(StoreError):
    """A record already exists for the unique featured date"""
    pass


class WriteFailedError(StorageError):
    """Persistence failed after the coercion retry; carries the sanitized record"""

    def __init__(
        self,
        message: str,
        record: Any = None,
        reason: str = "write_failed",
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, {"reason": reason})
        self.record = record
        self.reason = reason
        self.cause = cause


class PipelineAbortedError(NicheRadarError):
    """Pipeline driver stopped at `stage` with a machine-readable `reason`"""

    def __init__(self, stage: str, reason: str, message: str = "", details: Dict[str, Any] = None):
        super().__init__(message or reason, details)
        self.stage = stage
        self.reason = reason
