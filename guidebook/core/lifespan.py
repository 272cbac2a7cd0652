import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from guidebook.ai.rotation import build_rotation_client
from guidebook.core.database import dispose_engine
from guidebook.core.logging import initialize_logging
from guidebook.notifications.events import get_event_bus
from guidebook.services.storage_client import build_storage_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Initialize logging and providers on startup; release the engine on shutdown."""
  from guidebook.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("guidebook.core.lifespan")
  initialize_logging(settings)
  logger.info("Starting guidebook engine (environment=%s, database=%s)", settings.environment, _redact_dsn(settings.pg_dsn))

  # Raises ProviderConfigurationError without any API key; the app refuses to start.
  client = build_rotation_client(settings)
  app.state.text_client = client
  logger.info("Text generation ready with %d provider(s)", client.provider_count)

  try:
    storage_client = build_storage_client(settings)
    await storage_client.ensure_bucket()
    logger.info("Documents bucket ensured: %s", storage_client.bucket_name)
  except Exception as exc:  # noqa: BLE001
    logger.warning("Failed to ensure documents bucket at startup: %s", exc)

  try:
    yield
  finally:
    await get_event_bus().drain()
    await dispose_engine()
    logger.info("Shutdown complete")


def _redact_dsn(raw: str | None) -> str:
  """Redact credentials from a DSN while keeping host/db visible."""
  if not raw:
    return "<unset>"
  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"
  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  database = parsed.path.lstrip("/")
  path = f"/{database}" if database else ""
  return f"{parsed.scheme}://{netloc}{path}"
