from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from guidebook.core.database import Base


class Document(Base):
  __tablename__ = "documents"
  __table_args__ = (UniqueConstraint("project_id", "type", "language", name="ux_documents_project_type_language"),)

  id: Mapped[str] = mapped_column(String, primary_key=True)
  project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
  type: Mapped[str] = mapped_column(String, nullable=False)
  language: Mapped[str] = mapped_column(String, nullable=False)
  filename: Mapped[str] = mapped_column(String, nullable=False)
  url: Mapped[str | None] = mapped_column(String, nullable=True)
  storage_key: Mapped[str | None] = mapped_column(String, nullable=True)
  size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
  status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING", server_default="PENDING", index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
