"""Object storage for rendered documents."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlparse, urlunparse

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage
from starlette.concurrency import run_in_threadpool

from guidebook.config import Settings
from guidebook.utils.ids import generate_id, sanitize_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
  url: str
  public_id: str
  size: int


class DocumentStorage(Protocol):
  async def upload(self, buffer: bytes, filename: str, content_type: str) -> UploadResult:
    """Store a rendered document and return its public location."""
    ...

  async def delete(self, public_id: str) -> None:
    """Remove a stored document."""
    ...


def object_name_for(prefix: str, filename: str, *, unique: str | None = None) -> str:
  """Build ``<prefix>/documents/<sanitized stem>_<unique>.<ext>``."""
  stem, dot, extension = filename.rpartition(".")
  if not dot:
    stem, extension = filename, ""
  name = f"{sanitize_filename(stem)}_{unique or generate_id()[:8]}"
  if extension:
    name = f"{name}.{extension.lower()}"
  return "/".join(part for part in (prefix, "documents", name) if part)


class StorageClient:
  """Thin wrapper over GCS and emulator access for document uploads."""

  def __init__(self, settings: Settings) -> None:
    self._bucket_name = settings.documents_bucket
    self._prefix = settings.documents_object_prefix
    self._storage_host = settings.gcs_storage_host
    # Ensure emulator endpoint is visible to the SDK in local development.
    if self._storage_host:
      emulator_endpoint = _normalize_emulator_endpoint(self._storage_host)
      os.environ["STORAGE_EMULATOR_HOST"] = emulator_endpoint
      self._client = storage.Client(project=settings.gcp_project_id or "local-dev", credentials=AnonymousCredentials(), client_options={"api_endpoint": emulator_endpoint})
    else:
      self._client = storage.Client(project=settings.gcp_project_id)

  @property
  def bucket_name(self) -> str:
    return self._bucket_name

  async def ensure_bucket(self) -> None:
    """Create the bucket when missing, only against the emulator."""
    if not self._storage_host:
      return
    bucket = self._client.bucket(self._bucket_name)

    def _create_if_missing() -> None:
      if not bucket.exists(client=self._client):
        self._client.create_bucket(bucket)

    await run_in_threadpool(_create_if_missing)

  async def upload(self, buffer: bytes, filename: str, content_type: str) -> UploadResult:
    object_name = object_name_for(self._prefix, filename)
    blob = self._client.bucket(self._bucket_name).blob(object_name)
    blob.content_disposition = f'attachment; filename="{filename}"'
    blob.cache_control = "public, max-age=86400"
    await run_in_threadpool(blob.upload_from_string, buffer, content_type=content_type)
    logger.info("Uploaded %s to gs://%s/%s (%d bytes)", filename, self._bucket_name, object_name, len(buffer))
    return UploadResult(url=blob.public_url, public_id=object_name, size=len(buffer))

  async def delete(self, public_id: str) -> None:
    blob = self._client.bucket(self._bucket_name).blob(public_id)
    await run_in_threadpool(blob.delete)


def build_storage_client(settings: Settings) -> StorageClient:
  return StorageClient(settings)


def _normalize_emulator_endpoint(raw_endpoint: str) -> str:
  """Normalize emulator endpoint so the SDK receives scheme+host+port only."""
  parsed = urlparse(raw_endpoint)
  if not parsed.scheme or not parsed.netloc:
    return raw_endpoint.rstrip("/")
  return urlunparse((parsed.scheme, parsed.netloc, "", "", "", "")).rstrip("/")
