from __future__ import annotations

import pytest

from guidebook.ai.errors import ProviderConfigurationError, ProviderOverloadedError, RateLimitError, RetriesExhaustedError, is_overloaded_error, is_rate_limit_error
from guidebook.ai.rotation import ProviderRotationClient


class ScriptedProvider:
  """Provider that replays a scripted list of results or exceptions."""

  def __init__(self, name: str, outcomes: list[object]) -> None:
    self.name = name
    self._outcomes = list(outcomes)
    self.calls = 0

  async def generate(self, prompt: str) -> str:
    self.calls += 1
    outcome = self._outcomes.pop(0) if self._outcomes else f"{self.name} ok"
    if isinstance(outcome, Exception):
      raise outcome
    return str(outcome)


class RecordingSleep:
  def __init__(self) -> None:
    self.delays: list[float] = []

  async def __call__(self, delay: float) -> None:
    self.delays.append(delay)


def test_rotation_requires_a_provider() -> None:
  with pytest.raises(ProviderConfigurationError):
    ProviderRotationClient([])


@pytest.mark.anyio
async def test_rate_limited_provider_rotates_to_next_within_one_attempt() -> None:
  first = ScriptedProvider("p0", [RateLimitError("429 quota exceeded")])
  second = ScriptedProvider("p1", ["hello"])
  sleep = RecordingSleep()
  client = ProviderRotationClient([first, second], sleep=sleep)

  assert await client.generate_text("prompt") == "hello"
  assert first.calls == 1
  assert second.calls == 1
  assert sleep.delays == []


@pytest.mark.anyio
async def test_all_rate_limited_backs_off_exponentially_then_succeeds() -> None:
  limited = RateLimitError("Resource exhausted")
  providers = [ScriptedProvider("p0", [limited, limited, "done"]), ScriptedProvider("p1", [limited, limited])]
  sleep = RecordingSleep()
  client = ProviderRotationClient(providers, base_delay=6.0, sleep=sleep)

  # Attempt 1 and 2 exhaust both providers; attempt 3 starts at p0 again and succeeds.
  assert await client.generate_text("prompt") == "done"
  assert sleep.delays == [6.0, 12.0]


@pytest.mark.anyio
async def test_overload_retries_without_rotation_and_exhausts() -> None:
  provider = ScriptedProvider("p0", [ProviderOverloadedError("503 overloaded")] * 5)
  sleep = RecordingSleep()
  client = ProviderRotationClient([provider], max_attempts=5, base_delay=1.0, sleep=sleep)

  with pytest.raises(RetriesExhaustedError) as exc_info:
    await client.generate_text("prompt")

  assert exc_info.value.attempts == 5
  assert isinstance(exc_info.value.last_error, ProviderOverloadedError)
  assert provider.calls == 5
  assert sleep.delays == [1.0, 2.0, 4.0, 8.0]


@pytest.mark.anyio
async def test_non_transient_error_propagates_immediately() -> None:
  provider = ScriptedProvider("p0", [ValueError("bad request")])
  backup = ScriptedProvider("p1", ["unused"])
  sleep = RecordingSleep()
  client = ProviderRotationClient([provider, backup], sleep=sleep)

  with pytest.raises(ValueError, match="bad request"):
    await client.generate_text("prompt")
  assert backup.calls == 0
  assert sleep.delays == []


@pytest.mark.anyio
async def test_cursor_advances_across_requests() -> None:
  providers = [ScriptedProvider("p0", []), ScriptedProvider("p1", []), ScriptedProvider("p2", [])]
  client = ProviderRotationClient(providers, sleep=RecordingSleep())

  results = [await client.generate_text("prompt") for _ in range(4)]

  assert results == ["p0 ok", "p1 ok", "p2 ok", "p0 ok"]


@pytest.mark.anyio
async def test_generate_json_strips_fences_and_rejects_garbage() -> None:
  provider = ScriptedProvider("p0", ['```json\n{"chapters": []}\n```', "not json at all"])
  client = ProviderRotationClient([provider], sleep=RecordingSleep())

  assert await client.generate_json("prompt") == {"chapters": []}
  with pytest.raises(ValueError, match="malformed JSON"):
    await client.generate_json("prompt")


class StatusError(Exception):
  def __init__(self, message: str, status_code: int) -> None:
    super().__init__(message)
    self.status_code = status_code


def test_error_classification_uses_status_and_message() -> None:
  assert is_rate_limit_error(StatusError("slow down", 429))
  assert is_rate_limit_error(RuntimeError("Too Many Requests"))
  assert is_rate_limit_error(RuntimeError("quota exceeded for project"))
  assert is_overloaded_error(StatusError("try later", 503))
  assert is_overloaded_error(RuntimeError("The model is overloaded"))
  assert not is_rate_limit_error(RuntimeError("invalid api key"))
  assert not is_overloaded_error(RuntimeError("invalid api key"))
