"""Provider contracts shared by every text generation backend."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ProviderKind(str, Enum):
  """Supported text generation backends."""

  GEMINI = "gemini"
  OPENROUTER = "openrouter"


@dataclass(frozen=True)
class ProviderConfig:
  """One configured backend: its kind plus the credential that selects an account."""

  kind: ProviderKind
  api_key: str
  model: str
  base_url: str | None = None

  @property
  def label(self) -> str:
    """Return a log-safe identifier that never exposes the full key."""
    return f"{self.kind.value}:{self.model}:...{self.api_key[-4:]}"


class TextProvider(Protocol):
  """A backend that turns a prompt into text."""

  name: str

  async def generate(self, prompt: str) -> str:
    """Return the full response text or raise."""
    ...
