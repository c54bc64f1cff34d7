"""Ordered model fallback with per-candidate retry/backoff and quota detection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from core import AttemptOutcome, BackendCandidate, GenerationAttempt, RawCompletion
from utils.exceptions import (
    AllCandidatesExhaustedError,
    ConfigurationError,
    QuotaExceededError,
    TransientGenerationError,
)

from .llm.base import BaseLLM, Message


logger = logging.getLogger(__name__)

# Best-effort: providers word quota errors differently and not all of them
# expose a structured code, so the message is matched as well.
QUOTA_PHRASES = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "quota",
    "tokens per day",
    "exceeded",
    "too many requests",
    "resource_exhausted",
    "resource has been exhausted",
)
QUOTA_CODES = frozenset({"429", "rate_limit_exceeded", "resource_exhausted", "insufficient_quota"})

LLMFactory = Callable[[BackendCandidate], BaseLLM]
SleepFn = Callable[[float], Awaitable[None]]


def _code_text(value: Any) -> str:
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(int(value))
    return str(value or "").strip().lower()


def structured_error_codes(exc: BaseException) -> List[str]:
    """Collect status/error codes an SDK exception may carry."""
    values: List[Any] = [getattr(exc, attr, None) for attr in ("status_code", "code", "status")]

    response = getattr(exc, "response", None)
    if response is not None:
        values.append(getattr(response, "status_code", None))

    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            values.extend(error.get(key) for key in ("code", "type", "status"))

    return [code for code in (_code_text(v) for v in values if v is not None) if code]


def is_quota_error(exc: BaseException) -> bool:
    """
    True when a backend failure signals exhausted usage allowance.

    Structured codes (HTTP 429, ``rate_limit_exceeded``, ``RESOURCE_EXHAUSTED``)
    are checked first, then a case-insensitive substring match of the message.
    """
    if isinstance(exc, QuotaExceededError):
        return True
    if any(code in QUOTA_CODES for code in structured_error_codes(exc)):
        return True
    message = str(exc or "").lower()
    return any(phrase in message for phrase in QUOTA_PHRASES)


def _default_factory(candidate: BackendCandidate) -> BaseLLM:
    from .llm.factory import get_llm

    return get_llm(candidate.provider, candidate.model or None, max_tokens=candidate.token_budget)


class ModelFallbackOrchestrator:
    """
    Drive an ordered candidate list until one backend returns text.

    Per candidate: up to `max_attempts` calls. Quota/rate-limit failures
    abandon the candidate immediately; other failures wait
    ``min(base_delay * 2**(attempt-1), max_delay)`` seconds and retry.
    """

    def __init__(
        self,
        candidates: Iterable[BackendCandidate],
        *,
        llm_factory: Optional[LLMFactory] = None,
        sleep: SleepFn = asyncio.sleep,
        max_attempts: int = 3,
        base_delay: float = 5.0,
        max_delay: float = 20.0,
    ) -> None:
        self.candidates: List[BackendCandidate] = list(candidates)
        if not self.candidates:
            raise ConfigurationError("At least one backend candidate is required")
        self._llm_factory = llm_factory or _default_factory
        self._sleep = sleep
        self.max_attempts = max(1, int(max_attempts))
        self.base_delay = float(base_delay)
        self.max_delay = float(max_delay)

    @classmethod
    def from_settings(cls, candidates: Optional[Iterable[BackendCandidate]] = None, **kwargs) -> "ModelFallbackOrchestrator":
        from config import get_generation_settings

        from .candidates import load_candidates

        settings = get_generation_settings()
        kwargs.setdefault("max_attempts", settings.max_attempts)
        kwargs.setdefault("base_delay", settings.base_delay)
        kwargs.setdefault("max_delay", settings.max_delay)
        return cls(candidates if candidates is not None else load_candidates(), **kwargs)

    async def generate(self, prompt: str, *, system_prompt: Optional[str] = None) -> RawCompletion:
        """Return the first successful completion, or raise AllCandidatesExhaustedError."""
        messages = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(prompt))

        attempts: List[GenerationAttempt] = []
        for candidate in self.candidates:
            text = await self._run_candidate(candidate, messages, attempts)
            if text is not None:
                return RawCompletion(text=text, candidate_label=candidate.label, attempts=attempts)

        labels = [c.label for c in self.candidates]
        logger.error(f"All generation candidates exhausted: {labels}")
        raise AllCandidatesExhaustedError(
            "All generation candidates exhausted",
            attempts=attempts,
            candidates=labels,
        )

    async def _run_candidate(
        self,
        candidate: BackendCandidate,
        messages: List[Message],
        attempts: List[GenerationAttempt],
    ) -> Optional[str]:
        try:
            llm = self._llm_factory(candidate)
        except (ConfigurationError, ValueError) as exc:
            logger.warning(f"Skipping candidate {candidate.label}: {exc}")
            attempts.append(GenerationAttempt(candidate, 0, AttemptOutcome.TRANSIENT_FAILURE, str(exc)))
            return None

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception_type(TransientGenerationError),
            before_sleep=self._log_backoff(candidate),
            reraise=True,
        )

        text: Optional[str] = None
        try:
            async for attempt in retrying:
                with attempt:
                    text = await self._call(llm, candidate, messages, attempt.retry_state.attempt_number, attempts)
        except QuotaExceededError:
            logger.warning(f"Quota signal on {candidate.label}; advancing to next candidate")
            return None
        except TransientGenerationError:
            logger.warning(f"Candidate {candidate.label} failed {self.max_attempts} attempts; advancing")
            return None
        finally:
            await llm.aclose()
        return text

    async def _call(
        self,
        llm: BaseLLM,
        candidate: BackendCandidate,
        messages: List[Message],
        attempt_number: int,
        attempts: List[GenerationAttempt],
    ) -> str:
        try:
            response = await llm.acomplete(messages, max_tokens=candidate.token_budget)
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"
            if is_quota_error(exc):
                self._record(attempts, candidate, attempt_number, AttemptOutcome.QUOTA_EXCEEDED, reason)
                raise QuotaExceededError(reason, provider=candidate.provider) from exc
            self._record(attempts, candidate, attempt_number, AttemptOutcome.TRANSIENT_FAILURE, reason)
            raise TransientGenerationError(reason, provider=candidate.provider) from exc

        text = str(response.content or "")
        if not text.strip():
            self._record(attempts, candidate, attempt_number, AttemptOutcome.TRANSIENT_FAILURE, "empty completion")
            raise TransientGenerationError("empty completion", provider=candidate.provider)

        if response.truncated:
            logger.warning(f"{candidate.label} hit its token budget ({candidate.token_budget}); output may be truncated")
        self._record(attempts, candidate, attempt_number, AttemptOutcome.SUCCESS, f"{len(text)} chars")
        return text

    @staticmethod
    def _record(
        attempts: List[GenerationAttempt],
        candidate: BackendCandidate,
        attempt_number: int,
        outcome: AttemptOutcome,
        detail: str,
    ) -> None:
        attempts.append(GenerationAttempt(candidate, attempt_number, outcome, detail))
        log = logger.info if outcome == AttemptOutcome.SUCCESS else logger.warning
        log(
            f"generation attempt candidate={candidate.label} attempt={attempt_number} "
            f"outcome={outcome.value} detail={detail[:300]}"
        )

    @staticmethod
    def _log_backoff(candidate: BackendCandidate) -> Callable[[RetryCallState], None]:
        def _before_sleep(retry_state: RetryCallState) -> None:
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.info(f"Retrying {candidate.label} in {delay:.1f}s (after attempt {retry_state.attempt_number})")

        return _before_sleep
