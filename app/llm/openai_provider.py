"""
OpenAI-compatible provider.

Talks to any endpoint speaking the OpenAI chat completions API (Groq by
default) through the official SDK with a custom base_url.
"""
import logging
from typing import Optional, Dict
from openai import OpenAI, APIError

from app.core.config import LLM_API_KEY, LLM_BASE_URL, LLM_MODEL
from app.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Chat completions through the OpenAI SDK."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or LLM_API_KEY
        if not self.api_key:
            raise ValueError("LLM_API_KEY not configured")
        self.base_url = base_url or LLM_BASE_URL
        self.default_model = model or LLM_MODEL
        self.client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        logger.info(f"LLM provider initialized: base_url={self.base_url}, model={self.default_model}")

    def chat(
        self,
        messages: list[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        model = model or self.default_model
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 1000,
                **kwargs
            )
        except APIError as e:
            logger.error(f"LLM API error: model={model}, error={e}", exc_info=True)
            raise

        usage = response.usage
        return LLMResponse(
            content=response.choices[0].message.content or "",
            tokens_in=usage.prompt_tokens if usage else 0,
            tokens_out=usage.completion_tokens if usage else 0,
            model=model,
            metadata={"finish_reason": response.choices[0].finish_reason},
        )


_provider: Optional[LLMProvider] = None


def get_provider() -> LLMProvider:
    """Process-wide provider, built on first use."""
    global _provider
    if _provider is None:
        _provider = OpenAIProvider()
    return _provider
