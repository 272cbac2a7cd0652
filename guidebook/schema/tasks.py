from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from guidebook.core.database import Base


class DocumentTask(Base):
  """Durable queue row consumed by the document rendering worker."""

  __tablename__ = "document_tasks"
  __table_args__ = (Index("ix_document_tasks_claim", "status", "priority", "available_at"),)

  id: Mapped[str] = mapped_column(String, primary_key=True)
  payload: Mapped[dict] = mapped_column(JSONB, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False, default="queued", server_default="queued")
  priority: Mapped[int] = mapped_column(Integer, nullable=False, default=10, server_default="10")
  attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=2, server_default="2")
  available_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
  job_id: Mapped[str | None] = mapped_column(String, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
