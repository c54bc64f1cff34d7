"""
Anthropic backend
Claude messages API; the system prompt travels outside the message list
"""
from typing import Any, List, Optional

from .base import BaseLLM, LLMResponse, Message, MessageRole, SDKClientMixin
from .openai_llm import token_usage


class AnthropicLLM(SDKClientMixin, BaseLLM):
    def __init__(self, model: str = "claude-3-5-haiku-latest", api_key: Optional[str] = None, **kwargs):
        super().__init__(model, **kwargs)
        self.api_key = api_key

    @property
    def provider(self) -> str:
        return "anthropic"

    def _build_client(self) -> Any:
        from anthropic import AsyncAnthropic

        return AsyncAnthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        system = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
        params = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages if m.role != MessageRole.SYSTEM],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if system:
            params["system"] = system

        response = await self.client.messages.create(**params)
        return LLMResponse(
            content="".join(block.text for block in response.content if block.type == "text"),
            model=response.model,
            usage=token_usage(response.usage.input_tokens, response.usage.output_tokens),
            finish_reason=response.stop_reason,
            raw_response=response,
        )
