"""
Gemini backend
Last-resort candidate in the default fallback chain
"""
from typing import List, Optional

from .base import BaseLLM, LLMResponse, Message, MessageRole


class GeminiLLM(BaseLLM):
    def __init__(self, model: str = "gemini-2.0-flash", api_key: Optional[str] = None, **kwargs):
        super().__init__(model, **kwargs)
        self.api_key = api_key

    @property
    def provider(self) -> str:
        return "gemini"

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        import google.generativeai as genai

        genai.configure(api_key=self.api_key)
        system = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
        contents = [
            {"role": "model" if m.role == MessageRole.ASSISTANT else "user", "parts": [m.content]}
            for m in messages
            if m.role != MessageRole.SYSTEM
        ]
        model = genai.GenerativeModel(
            model_name=self.model,
            generation_config={
                "temperature": kwargs.get("temperature", self.temperature),
                "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
            },
            system_instruction=system or None,
        )
        response = await model.generate_content_async(contents, request_options={"timeout": self.timeout})

        # response.text raises on blocked candidates; an empty string is retried upstream
        candidate = response.candidates[0] if response.candidates else None
        parts = candidate.content.parts if candidate and candidate.content else []
        meta = getattr(response, "usage_metadata", None)
        usage = {}
        if meta is not None:
            usage = {
                "prompt_tokens": meta.prompt_token_count,
                "completion_tokens": meta.candidates_token_count,
                "total_tokens": meta.total_token_count,
            }
        return LLMResponse(
            content="".join(getattr(part, "text", "") or "" for part in parts),
            model=self.model,
            usage=usage,
            finish_reason=candidate.finish_reason.name if candidate else None,
            raw_response=response,
        )
