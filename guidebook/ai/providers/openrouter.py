"""OpenRouter provider implementation using the openai SDK."""

from __future__ import annotations

import logging
import os

from openai import APIStatusError, AsyncOpenAI, RateLimitError as OpenAIRateLimitError

from guidebook.ai.errors import ProviderError, ProviderOverloadedError, RateLimitError, is_overloaded_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterTextProvider:
  """OpenAI-compatible chat completions against OpenRouter."""

  def __init__(self, *, api_key: str, model: str, base_url: str | None = None, name: str | None = None) -> None:
    if not api_key:
      raise ValueError("An OpenRouter API key is required")
    self.name = name or f"openrouter:{model}"
    self._model = model

    # OpenRouter accepts optional attribution headers.
    default_headers = {}
    referer = os.getenv("OPENROUTER_HTTP_REFERER")
    if referer:
      default_headers["HTTP-Referer"] = referer
    title = os.getenv("OPENROUTER_TITLE")
    if title:
      default_headers["X-Title"] = title

    self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or DEFAULT_BASE_URL, default_headers=default_headers or None)

  async def generate(self, prompt: str) -> str:
    try:
      response = await self._client.chat.completions.create(model=self._model, messages=[{"role": "user", "content": prompt}])
    except OpenAIRateLimitError as exc:
      raise RateLimitError(str(exc), provider=self.name, status_code=exc.status_code) from exc
    except APIStatusError as exc:
      if is_overloaded_error(exc):
        raise ProviderOverloadedError(str(exc), provider=self.name, status_code=exc.status_code) from exc
      raise

    content = response.choices[0].message.content if response.choices else None
    if not content:
      raise ProviderError("OpenRouter returned an empty response.", provider=self.name)

    if response.usage:
      logger.debug("OpenRouter usage provider=%s prompt_tokens=%s completion_tokens=%s", self.name, response.usage.prompt_tokens, response.usage.completion_tokens)
    return content
