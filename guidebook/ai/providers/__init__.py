"""Provider selection from configuration."""

from __future__ import annotations

from guidebook.ai.errors import ProviderConfigurationError
from guidebook.ai.providers.base import ProviderConfig, ProviderKind, TextProvider
from guidebook.ai.providers.gemini import GeminiTextProvider
from guidebook.ai.providers.openrouter import OpenRouterTextProvider
from guidebook.config import Settings


def build_provider(config: ProviderConfig) -> TextProvider:
  """Instantiate the client for one configured backend."""
  match config.kind:
    case ProviderKind.GEMINI:
      return GeminiTextProvider(api_key=config.api_key, model=config.model, name=config.label)
    case ProviderKind.OPENROUTER:
      return OpenRouterTextProvider(api_key=config.api_key, model=config.model, base_url=config.base_url, name=config.label)
  raise ProviderConfigurationError(f"Unsupported provider kind: {config.kind!r}")


def provider_configs_from_settings(settings: Settings) -> list[ProviderConfig]:
  """Return configured backends in rotation order: Gemini keys first, then OpenRouter keys."""
  configs = [ProviderConfig(kind=ProviderKind.GEMINI, api_key=key, model=settings.gemini_model) for key in settings.gemini_api_keys]
  configs.extend(ProviderConfig(kind=ProviderKind.OPENROUTER, api_key=key, model=settings.openrouter_model, base_url=settings.openrouter_base_url) for key in settings.openrouter_api_keys)
  return configs


__all__ = ["ProviderConfig", "ProviderKind", "TextProvider", "build_provider", "provider_configs_from_settings"]
