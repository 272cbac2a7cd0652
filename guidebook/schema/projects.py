from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from guidebook.core.database import Base


class Project(Base):
  __tablename__ = "projects"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  subtitle: Mapped[str | None] = mapped_column(String, nullable=True)
  author: Mapped[str | None] = mapped_column(String, nullable=True)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT", server_default="DRAFT", index=True)
  number_of_chapters: Mapped[int] = mapped_column(Integer, nullable=False, default=10, server_default="10")
  content_length: Mapped[int | None] = mapped_column(Integer, nullable=True)
  user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Chapter(Base):
  __tablename__ = "chapters"
  __table_args__ = (UniqueConstraint("project_id", "order", name="ux_chapters_project_order"),)

  id: Mapped[str] = mapped_column(String, primary_key=True)
  project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  order: Mapped[int] = mapped_column(Integer, nullable=False)
  content: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Image(Base):
  __tablename__ = "images"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
  url: Mapped[str] = mapped_column(String, nullable=False)
  caption: Mapped[str | None] = mapped_column(String, nullable=True)
  chapter_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
  position: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
  is_map: Mapped[bool] = mapped_column(default=False, server_default="false", nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Translation(Base):
  __tablename__ = "translations"
  __table_args__ = (UniqueConstraint("project_id", "language", name="ux_translations_project_language"),)

  id: Mapped[str] = mapped_column(String, primary_key=True)
  project_id: Mapped[str] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
  language: Mapped[str] = mapped_column(String, nullable=False)
  title: Mapped[str] = mapped_column(String, nullable=False)
  subtitle: Mapped[str | None] = mapped_column(String, nullable=True)
  content: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
  status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING", server_default="PENDING")
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
