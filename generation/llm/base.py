"""
LLM backend contract
Messages, responses and the abstract completion backend
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
import inspect
from typing import Any, Dict, List, Optional


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(MessageRole.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(MessageRole.USER, content)


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def truncated(self) -> bool:
        """True when the backend stopped on its token budget."""
        return str(self.finish_reason or "").lower() in {"length", "max_tokens", "max_output_tokens"}


class BaseLLM(ABC):
    """
    One text-generation backend.

    SDK exceptions propagate unchanged; the fallback orchestrator inspects
    their status and error codes to tell quota exhaustion from transient
    failures. SDK-level retries must stay disabled for the same reason.
    """

    def __init__(
        self,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
        **kwargs,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.extra_config = kwargs

    @property
    @abstractmethod
    def provider(self) -> str:
        ...

    @abstractmethod
    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: conversation messages
            **kwargs: per-call overrides (temperature, max_tokens)
        """

    async def aclose(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"


class SDKClientMixin:
    """Lazily built async SDK client, closed by `aclose`."""

    _sdk_client: Any = None

    def _build_client(self) -> Any:
        raise NotImplementedError

    @property
    def client(self) -> Any:
        if self._sdk_client is None:
            self._sdk_client = self._build_client()
        return self._sdk_client

    async def aclose(self) -> None:
        client, self._sdk_client = self._sdk_client, None
        close = getattr(client, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result
