"""
OpenAI-compatible backend
Chat completions against OpenAI, Groq or DeepSeek hosts
"""
from typing import Any, List, Optional

from .base import BaseLLM, LLMResponse, Message, SDKClientMixin


class OpenAILLM(SDKClientMixin, BaseLLM):
    """
    One class for every OpenAI-compatible host.

    Groq and DeepSeek differ only by `base_url` and the name reported in
    attempt logs (`provider_name`).
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        **kwargs,
    ):
        super().__init__(model, **kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self._provider_name = provider_name

    @property
    def provider(self) -> str:
        return self._provider_name

    def _build_client(self) -> Any:
        from openai import AsyncOpenAI

        return AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout, max_retries=0)

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[m.to_dict() for m in messages],
            temperature=kwargs.get("temperature", self.temperature),
            max_tokens=kwargs.get("max_tokens", self.max_tokens),
        )
        choice = response.choices[0]
        usage = response.usage
        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage=token_usage(usage.prompt_tokens, usage.completion_tokens) if usage else {},
            finish_reason=choice.finish_reason,
            raw_response=response,
        )


def token_usage(prompt: Optional[int], completion: Optional[int]) -> dict:
    prompt, completion = int(prompt or 0), int(completion or 0)
    return {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion}
