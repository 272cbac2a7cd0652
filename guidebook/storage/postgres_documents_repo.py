"""Postgres-backed repository for rendered documents."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from guidebook.core.database import get_session_factory
from guidebook.schema.documents import Document
from guidebook.storage.documents_repo import DocumentRecord, DocumentsRepository, DocumentType, DuplicateDocumentError
from guidebook.storage.projects_repo import Language


class PostgresDocumentsRepository(DocumentsRepository):
  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def create_document(self, record: DocumentRecord) -> DocumentRecord:
    async with self._session_factory() as session:
      row = Document(id=record.document_id, project_id=record.project_id, type=record.type, language=record.language, filename=record.filename, url=record.url, storage_key=record.storage_key, size=record.size, status=record.status, created_at=record.created_at, completed_at=record.completed_at)
      session.add(row)
      try:
        await session.commit()
      except IntegrityError as exc:
        await session.rollback()
        # The unique index is the source of truth for one document per key.
        if "ux_documents_project_type_language" in str(exc.orig):
          raise DuplicateDocumentError(record.project_id, record.type, record.language) from exc
        raise
      await session.refresh(row)
      return self._model_to_record(row)

  async def get_document(self, project_id: str, document_type: DocumentType, language: Language) -> DocumentRecord | None:
    async with self._session_factory() as session:
      stmt = select(Document).where(Document.project_id == project_id, Document.type == document_type, Document.language == language)
      row = (await session.execute(stmt)).scalar_one_or_none()
      return self._model_to_record(row) if row is not None else None

  async def list_completed(self, project_id: str) -> list[DocumentRecord]:
    async with self._session_factory() as session:
      stmt = select(Document).where(Document.project_id == project_id, Document.status == "COMPLETED").order_by(Document.language.asc(), Document.type.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  @staticmethod
  def _model_to_record(row: Document) -> DocumentRecord:
    return DocumentRecord(document_id=row.id, project_id=row.project_id, type=row.type, language=row.language, filename=row.filename, url=row.url, storage_key=row.storage_key, size=row.size, status=row.status, created_at=row.created_at, completed_at=row.completed_at)
