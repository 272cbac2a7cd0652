"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from guidebook.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the guidebook service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  gcp_project_id: str | None
  gcs_storage_host: str | None
  documents_bucket: str
  documents_object_prefix: str
  gemini_api_keys: tuple[str, ...]
  gemini_model: str
  openrouter_api_keys: tuple[str, ...]
  openrouter_model: str
  openrouter_base_url: str
  provider_max_attempts: int
  provider_retry_base_seconds: float
  min_chapters: int
  max_chapters: int
  default_chapters: int
  project_lookup_retry_seconds: float
  worker_poll_interval_seconds: float
  worker_min_start_interval_seconds: float
  worker_visibility_timeout_seconds: int
  task_max_attempts: int
  task_retry_base_seconds: float
  task_priority: int


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("GUIDEBOOK_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("GUIDEBOOK_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  return value or None


def _parse_keys(single: str | None, many: str | None) -> tuple[str, ...]:
  """Merge a single key and a comma-separated key list, dropping blanks and duplicates in order."""
  keys: list[str] = []
  candidates = [single or ""] + (many or "").split(",")
  for candidate in candidates:
    key = candidate.strip()
    if key and key not in keys:
      keys.append(key)
  return tuple(keys)


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("GUIDEBOOK_ENV", "development").lower()
  # Toggle verbose SQL echo and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("GUIDEBOOK_DEBUG"))
  allowed_origins = _parse_origins(os.getenv("GUIDEBOOK_ALLOWED_ORIGINS"))

  log_max_bytes = _positive_int("GUIDEBOOK_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("GUIDEBOOK_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("GUIDEBOOK_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of 4xx HTTPExceptions for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("GUIDEBOOK_LOG_HTTP_4XX"))

  gemini_api_keys = _parse_keys(os.getenv("GEMINI_API_KEY"), os.getenv("GEMINI_API_KEYS"))
  openrouter_api_keys = _parse_keys(os.getenv("OPENROUTER_API_KEY"), os.getenv("OPENROUTER_API_KEYS"))

  min_chapters = _positive_int("GUIDEBOOK_MIN_CHAPTERS", "5")
  max_chapters = _positive_int("GUIDEBOOK_MAX_CHAPTERS", "30")
  default_chapters = _positive_int("GUIDEBOOK_DEFAULT_CHAPTERS", "10")
  if not min_chapters <= default_chapters <= max_chapters:
    raise ValueError("GUIDEBOOK_DEFAULT_CHAPTERS must sit between GUIDEBOOK_MIN_CHAPTERS and GUIDEBOOK_MAX_CHAPTERS.")

  task_max_attempts = _positive_int("GUIDEBOOK_TASK_MAX_ATTEMPTS", "2")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=allowed_origins,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    pg_dsn=_optional_str(os.getenv("GUIDEBOOK_PG_DSN")),
    gcp_project_id=_optional_str(os.getenv("GUIDEBOOK_GCP_PROJECT_ID")),
    gcs_storage_host=_optional_str(os.getenv("GUIDEBOOK_GCS_STORAGE_HOST")),
    documents_bucket=(os.getenv("GUIDEBOOK_DOCUMENTS_BUCKET") or "guidebook-documents").strip(),
    documents_object_prefix=(os.getenv("GUIDEBOOK_DOCUMENTS_OBJECT_PREFIX") or "books").strip().strip("/"),
    gemini_api_keys=gemini_api_keys,
    gemini_model=(os.getenv("GUIDEBOOK_GEMINI_MODEL") or "gemini-2.5-flash-lite").strip(),
    openrouter_api_keys=openrouter_api_keys,
    openrouter_model=(os.getenv("GUIDEBOOK_OPENROUTER_MODEL") or "openai/gpt-oss-120b:free").strip(),
    openrouter_base_url=(os.getenv("GUIDEBOOK_OPENROUTER_BASE_URL") or "https://openrouter.ai/api/v1").strip(),
    provider_max_attempts=_positive_int("GUIDEBOOK_PROVIDER_MAX_ATTEMPTS", "5"),
    provider_retry_base_seconds=_positive_float("GUIDEBOOK_PROVIDER_RETRY_BASE_SECONDS", "6"),
    min_chapters=min_chapters,
    max_chapters=max_chapters,
    default_chapters=default_chapters,
    project_lookup_retry_seconds=_positive_float("GUIDEBOOK_PROJECT_LOOKUP_RETRY_SECONDS", "1"),
    worker_poll_interval_seconds=_positive_float("GUIDEBOOK_WORKER_POLL_INTERVAL_SECONDS", "2"),
    worker_min_start_interval_seconds=_positive_float("GUIDEBOOK_WORKER_MIN_START_INTERVAL_SECONDS", "2"),
    worker_visibility_timeout_seconds=_positive_int("GUIDEBOOK_WORKER_VISIBILITY_TIMEOUT_SECONDS", "900"),
    task_max_attempts=task_max_attempts,
    task_retry_base_seconds=_positive_float("GUIDEBOOK_TASK_RETRY_BASE_SECONDS", "5"),
    task_priority=int(os.getenv("GUIDEBOOK_TASK_PRIORITY", "10")),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring unrelated service configuration."""

  return DatabaseSettings(debug=_parse_bool(os.getenv("GUIDEBOOK_DEBUG")), pg_dsn=_optional_str(os.getenv("GUIDEBOOK_PG_DSN")))
