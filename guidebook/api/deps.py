"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from guidebook.ai.errors import ProviderConfigurationError
from guidebook.ai.rotation import ProviderRotationClient


def get_text_client(request: Request) -> ProviderRotationClient:
  """Return the rotation client built during startup."""
  client = getattr(request.app.state, "text_client", None)
  if client is None:
    raise ProviderConfigurationError("No text generation provider is configured.")
  return client
