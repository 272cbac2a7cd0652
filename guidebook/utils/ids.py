"""Identifier and naming utilities."""

from __future__ import annotations

import re
import uuid

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def generate_id() -> str:
  """Return a new opaque row identifier."""
  return str(uuid.uuid4())


def sanitize_filename(value: str, *, fallback: str = "document") -> str:
  """Lowercase a title and collapse everything that is not alphanumeric into underscores."""
  slug = _NON_SLUG_RE.sub("_", value.lower()).strip("_")
  return slug or fallback
