"""Minimal ``.env`` support so local runs pick up credentials without exporting them."""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_VARIABLE = "GUIDEBOOK_ENV_FILE"


def default_env_path() -> Path:
  """``$GUIDEBOOK_ENV_FILE`` when set, otherwise ``.env`` next to the ``guidebook`` package."""
  explicit = os.getenv(ENV_FILE_VARIABLE)
  if explicit:
    return Path(explicit).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return value[1:-1]
  # Unquoted values may carry a trailing comment.
  return value.split(" #", 1)[0].rstrip()


def read_env_file(path: Path) -> dict[str, str]:
  """Parse ``KEY=value`` lines, tolerating ``export`` prefixes, comments and quotes."""
  entries: dict[str, str] = {}
  if not path.is_file():
    return entries
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    line = raw_line.strip()
    if not line or line.startswith("#"):
      continue
    line = line.removeprefix("export ").lstrip()
    key, sep, value = line.partition("=")
    if sep and key.strip():
      entries[key.strip()] = _unquote(value.strip())
  return entries


def load_env_file(path: Path, *, override: bool = False) -> int:
  """Copy entries into ``os.environ``; returns how many variables were set."""
  applied = 0
  for key, value in read_env_file(path).items():
    if override or key not in os.environ:
      os.environ[key] = value
      applied += 1
  return applied
