"""Storage interface for rendered documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Protocol

from guidebook.jobs.models import utc_now
from guidebook.storage.projects_repo import Language

DocumentType = Literal["PDF", "DOCX"]
DocumentStatus = Literal["PENDING", "GENERATING", "COMPLETED", "FAILED"]

DOCUMENT_TYPES: tuple[DocumentType, ...] = ("PDF", "DOCX")


class DuplicateDocumentError(Exception):
  """Raised when a document already exists for (project, type, language)."""

  def __init__(self, project_id: str, document_type: str, language: str) -> None:
    super().__init__(f"A {document_type} document in {language} already exists for project {project_id}.")
    self.project_id = project_id
    self.document_type = document_type
    self.language = language


@dataclass
class DocumentRecord:
  document_id: str
  project_id: str
  type: DocumentType
  language: Language
  filename: str
  url: str | None = None
  storage_key: str | None = None
  size: int | None = None
  status: DocumentStatus = "PENDING"
  created_at: datetime = field(default_factory=utc_now)
  completed_at: datetime | None = None


class DocumentsRepository(Protocol):
  """Repository contract for rendered artifacts."""

  async def create_document(self, record: DocumentRecord) -> DocumentRecord:
    """Insert a document; raises ``DuplicateDocumentError`` when the key is taken."""

  async def get_document(self, project_id: str, document_type: DocumentType, language: Language) -> DocumentRecord | None:
    """Fetch the document for one (project, type, language) key."""

  async def list_completed(self, project_id: str) -> list[DocumentRecord]:
    """Return completed documents ordered by language then type."""
