from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from guidebook.ai.orchestrator import GenerationRequest
from guidebook.config import get_settings

LanguageName = Literal["ENGLISH", "GERMAN", "FRENCH", "SPANISH", "ITALIAN"]
DocumentTypeName = Literal["PDF", "DOCX"]


def _to_camel(string: str) -> str:
  """Convert snake_case to camelCase so the API accepts frontend-style payloads."""
  parts = string.split("_")
  if not parts:
    return string
  return parts[0] + "".join(part[:1].upper() + part[1:] for part in parts[1:])


class CamelModel(BaseModel):
  model_config = ConfigDict(populate_by_name=True, extra="ignore", alias_generator=_to_camel)


class GenerateTravelGuideRequest(CamelModel):
  """Book metadata for a content generation run."""

  title: StrictStr = Field(min_length=1, description="Book title.", examples=["Lisbon Unfolded"])
  subtitle: StrictStr | None = Field(default=None, description="Optional subtitle.")
  author: StrictStr = Field(min_length=1, description="Author name shown on the title and copyright pages.")
  description: StrictStr | None = Field(default=None, description="Optional free-text description.")
  number_of_chapters: int | None = Field(default=None, validate_default=True, description="Total chapters including introduction and conclusion. Bounds and default come from settings.")

  @field_validator("title", "author")
  @classmethod
  def _strip_required(cls, value: str) -> str:
    stripped = value.strip()
    if not stripped:
      raise ValueError("must not be blank")
    return stripped

  @field_validator("number_of_chapters")
  @classmethod
  def _chapters_within_bounds(cls, value: int | None) -> int:
    settings = get_settings()
    if value is None:
      return settings.default_chapters
    if not settings.min_chapters <= value <= settings.max_chapters:
      raise ValueError(f"must be between {settings.min_chapters} and {settings.max_chapters}")
    return value

  def to_generation_request(self) -> GenerationRequest:
    return GenerationRequest(title=self.title, subtitle=self.subtitle, author=self.author, description=self.description, number_of_chapters=self.number_of_chapters)


class GenerationStartedResponse(CamelModel):
  message: str
  job_id: str
  project_id: str
  steps: list[str]


class JobStatusResponse(CamelModel):
  """Status payload for a background job."""

  job_id: str
  project_id: str
  type: str
  status: str
  progress: int
  result: dict[str, Any] | None = None
  error: str | None = None
  created_at: datetime | None = None
  started_at: datetime | None = None
  completed_at: datetime | None = None


class DocumentRequest(CamelModel):
  type: DocumentTypeName
  language: LanguageName = "ENGLISH"
  title: StrictStr | None = None
  subtitle: StrictStr | None = None
  author: StrictStr | None = None
  include_images: bool = True


class DocumentEnqueuedResponse(CamelModel):
  message: str
  task_id: str
  project_id: str
  type: DocumentTypeName
  language: LanguageName


class GenerateAllRequest(CamelModel):
  languages: list[LanguageName] | None = Field(default=None, description="Restrict generation to these languages; defaults to English plus every completed translation.")


class GenerateAllResponse(CamelModel):
  message: str
  project_id: str
  task_ids: list[str]
  skipped: list[str]


class DocumentLink(CamelModel):
  id: str
  filename: str
  type: DocumentTypeName
  language: LanguageName
  size: str
  size_bytes: int | None = None
  url: str | None = None
  storage_key: str | None = None
  created_at: datetime | None = None


class DownloadLinksResponse(CamelModel):
  project_id: str
  title: str
  total_documents: int
  documents: list[DocumentLink]
  by_language: dict[str, list[DocumentLink]]
  message: str | None = None


class TranslateRequest(CamelModel):
  target_language: LanguageName


class TranslationStartedResponse(CamelModel):
  message: str
  job_id: str
  translation_id: str
  project_id: str
  target_language: LanguageName
