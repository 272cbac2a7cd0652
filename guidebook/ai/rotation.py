"""Round-robin provider rotation with exponential backoff."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from guidebook.ai.errors import ProviderConfigurationError, RetriesExhaustedError, is_overloaded_error, is_rate_limit_error, is_transient_error
from guidebook.ai.json_parser import parse_json_with_fallback
from guidebook.ai.providers import TextProvider, build_provider, provider_configs_from_settings
from guidebook.config import Settings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class ProviderRotationClient:
  """Generate text across interchangeable providers.

  A single request walks the providers in round-robin order and moves on only when a provider reports a rate
  limit or quota error. The whole rotation is retried up to ``max_attempts`` times when it ends in a transient
  failure, sleeping ``base_delay * 2 ** (attempt - 1)`` seconds between attempts. Any other error propagates
  immediately.
  """

  def __init__(self, providers: Sequence[TextProvider], *, max_attempts: int = 5, base_delay: float = 6.0, sleep: Sleep | None = None) -> None:
    if not providers:
      raise ProviderConfigurationError("At least one text generation provider must be configured (GEMINI_API_KEY or OPENROUTER_API_KEY).")
    if max_attempts < 1:
      raise ValueError("max_attempts must be at least 1")
    self._providers = list(providers)
    self._max_attempts = max_attempts
    self._base_delay = base_delay
    self._sleep = sleep or asyncio.sleep
    self._cursor = 0
    # Orchestrations may share one client; the cursor read/advance must be atomic.
    self._cursor_lock = threading.Lock()

  @property
  def provider_count(self) -> int:
    return len(self._providers)

  def _next_provider(self) -> TextProvider:
    with self._cursor_lock:
      provider = self._providers[self._cursor]
      self._cursor = (self._cursor + 1) % len(self._providers)
    return provider

  async def _generate_with_rotation(self, prompt: str) -> str:
    """Try each provider at most once, moving on only for rate limits."""
    last_error: Exception | None = None
    for position in range(len(self._providers)):
      provider = self._next_provider()
      try:
        return await provider.generate(prompt)
      except Exception as exc:
        if not is_rate_limit_error(exc):
          raise
        last_error = exc
        logger.warning("Provider %s rate limited (%d/%d), rotating to next provider", provider.name, position + 1, len(self._providers))

    assert last_error is not None
    raise last_error

  async def generate_text(self, prompt: str) -> str:
    """Return generated text or raise a classified error."""
    for attempt in range(1, self._max_attempts + 1):
      try:
        return await self._generate_with_rotation(prompt)
      except Exception as exc:
        if not is_transient_error(exc):
          raise
        if attempt == self._max_attempts:
          raise RetriesExhaustedError(f"Text generation failed after {attempt} attempts: {exc}", attempts=attempt, last_error=exc) from exc

        delay = self._base_delay * 2 ** (attempt - 1)
        reason = "overloaded" if is_overloaded_error(exc) else "rate limited"
        logger.warning("All providers %s (attempt %d/%d). Retrying in %.1fs", reason, attempt, self._max_attempts, delay)
        await self._sleep(delay)

    raise AssertionError("unreachable")

  async def generate_json(self, prompt: str) -> Any:
    """Generate text and parse it as JSON; malformed JSON is raised as ``ValueError``."""
    text = await self.generate_text(prompt)
    try:
      return parse_json_with_fallback(text)
    except json.JSONDecodeError as exc:
      raise ValueError(f"Provider returned malformed JSON: {exc}") from exc


def build_rotation_client(settings: Settings) -> ProviderRotationClient:
  """Build the client from configured credentials; fails when none are present."""
  providers = [build_provider(config) for config in provider_configs_from_settings(settings)]
  logger.info("Configured %d text generation provider(s)", len(providers))
  return ProviderRotationClient(providers, max_attempts=settings.provider_max_attempts, base_delay=settings.provider_retry_base_seconds)
