"""Error taxonomy for text generation and pipeline validation."""

from __future__ import annotations

_RATE_LIMIT_MARKERS = ("rate limit", "ratelimit", "quota", "resource exhausted", "resource_exhausted", "too many requests")
_OVERLOAD_MARKERS = ("overloaded", "unavailable")


class ProviderConfigurationError(RuntimeError):
  """Raised when no generation provider can be built from configuration."""


class ProviderError(RuntimeError):
  """Base class for classified provider failures."""

  def __init__(self, message: str, *, provider: str | None = None, status_code: int | None = None) -> None:
    super().__init__(message)
    self.provider = provider
    self.status_code = status_code


class RateLimitError(ProviderError):
  """The provider rejected the call because a rate limit or quota was hit."""


class ProviderOverloadedError(ProviderError):
  """The provider is temporarily overloaded or unavailable."""


class RetriesExhaustedError(ProviderError):
  """Every retry attempt ended in a transient failure."""

  def __init__(self, message: str, *, attempts: int, last_error: BaseException) -> None:
    super().__init__(message)
    self.attempts = attempts
    self.last_error = last_error


class OutlineValidationError(ValueError):
  """The generated outline does not have the required structure."""


def status_code_of(exc: BaseException) -> int | None:
  """Return the HTTP status carried by an SDK exception, if any."""
  for attr in ("status_code", "code", "status"):
    value = getattr(exc, attr, None)
    if isinstance(value, int):
      return value
  response = getattr(exc, "response", None)
  value = getattr(response, "status_code", None)
  if isinstance(value, int):
    return value
  return None


def is_rate_limit_error(exc: BaseException) -> bool:
  """Classify quota and 429 responses across SDKs."""
  if isinstance(exc, RateLimitError):
    return True
  if status_code_of(exc) == 429:
    return True
  message = str(exc).lower()
  return "429" in message or any(marker in message for marker in _RATE_LIMIT_MARKERS)


def is_overloaded_error(exc: BaseException) -> bool:
  """Classify 503 and overload responses across SDKs."""
  if isinstance(exc, ProviderOverloadedError):
    return True
  if status_code_of(exc) == 503:
    return True
  message = str(exc).lower()
  return "503" in message or any(marker in message for marker in _OVERLOAD_MARKERS)


def is_transient_error(exc: BaseException) -> bool:
  return is_rate_limit_error(exc) or is_overloaded_error(exc)
