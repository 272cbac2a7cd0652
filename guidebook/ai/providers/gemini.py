"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import logging

from google import genai

from guidebook.ai.errors import ProviderError, ProviderOverloadedError, RateLimitError, is_overloaded_error, is_rate_limit_error, status_code_of

logger = logging.getLogger(__name__)


class GeminiTextProvider:
  """Gemini client bound to one API key."""

  def __init__(self, *, api_key: str, model: str, name: str | None = None) -> None:
    if not api_key:
      raise ValueError("A Gemini API key is required")
    self.name = name or f"gemini:{model}"
    self._model = model
    self._client = genai.Client(api_key=api_key)

  async def generate(self, prompt: str) -> str:
    """Generate text with the async client so the event loop is never blocked."""
    try:
      response = await self._client.aio.models.generate_content(model=self._model, contents=prompt)
    except Exception as exc:
      # Tag transient failures so the rotation client can react without SDK knowledge.
      if is_rate_limit_error(exc):
        raise RateLimitError(str(exc), provider=self.name, status_code=status_code_of(exc)) from exc
      if is_overloaded_error(exc):
        raise ProviderOverloadedError(str(exc), provider=self.name, status_code=status_code_of(exc)) from exc
      raise

    text = response.text
    if not text:
      raise ProviderError("Gemini returned an empty response.", provider=self.name)

    if response.usage_metadata:
      logger.debug("Gemini usage provider=%s prompt_tokens=%s completion_tokens=%s", self.name, response.usage_metadata.prompt_token_count, response.usage_metadata.candidates_token_count)
    return text
