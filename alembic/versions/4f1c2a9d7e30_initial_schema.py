"""Initial schema: projects, content, jobs, documents and the document task queue.

Revision ID: 4f1c2a9d7e30
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "4f1c2a9d7e30"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
  return [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)]


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "projects",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("subtitle", sa.String(), nullable=True),
    sa.Column("author", sa.String(), nullable=True),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("status", sa.String(), server_default="DRAFT", nullable=False),
    sa.Column("number_of_chapters", sa.Integer(), server_default="10", nullable=False),
    sa.Column("content_length", sa.Integer(), nullable=True),
    sa.Column("user_id", sa.String(), nullable=True),
    *_timestamps(),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_projects_status"), "projects", ["status"], unique=False)
  op.create_index(op.f("ix_projects_user_id"), "projects", ["user_id"], unique=False)

  op.create_table(
    "chapters",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("project_id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("order", sa.Integer(), nullable=False),
    sa.Column("content", sa.Text(), nullable=False),
    *_timestamps(),
    sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("project_id", "order", name="ux_chapters_project_order"),
  )
  op.create_index(op.f("ix_chapters_project_id"), "chapters", ["project_id"], unique=False)

  op.create_table(
    "images",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("project_id", sa.String(), nullable=False),
    sa.Column("url", sa.String(), nullable=False),
    sa.Column("caption", sa.String(), nullable=True),
    sa.Column("chapter_number", sa.Integer(), nullable=True),
    sa.Column("position", sa.Integer(), server_default="0", nullable=False),
    sa.Column("is_map", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    *_timestamps(),
    sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_images_project_id"), "images", ["project_id"], unique=False)

  op.create_table(
    "translations",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("project_id", sa.String(), nullable=False),
    sa.Column("language", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("subtitle", sa.String(), nullable=True),
    sa.Column("content", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("status", sa.String(), server_default="PENDING", nullable=False),
    *_timestamps(),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("project_id", "language", name="ux_translations_project_language"),
  )
  op.create_index(op.f("ix_translations_project_id"), "translations", ["project_id"], unique=False)

  op.create_table(
    "jobs",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("project_id", sa.String(), nullable=False),
    sa.Column("kind", sa.String(), nullable=False),
    sa.Column("status", sa.String(), server_default="PENDING", nullable=False),
    sa.Column("progress", sa.Integer(), server_default="0", nullable=False),
    sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("result", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("error", sa.Text(), nullable=True),
    *_timestamps(),
    sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_jobs_project_id"), "jobs", ["project_id"], unique=False)
  op.create_index(op.f("ix_jobs_kind"), "jobs", ["kind"], unique=False)
  op.create_index(op.f("ix_jobs_status"), "jobs", ["status"], unique=False)

  op.create_table(
    "documents",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("project_id", sa.String(), nullable=False),
    sa.Column("type", sa.String(), nullable=False),
    sa.Column("language", sa.String(), nullable=False),
    sa.Column("filename", sa.String(), nullable=False),
    sa.Column("url", sa.String(), nullable=True),
    sa.Column("storage_key", sa.String(), nullable=True),
    sa.Column("size", sa.BigInteger(), nullable=True),
    sa.Column("status", sa.String(), server_default="PENDING", nullable=False),
    *_timestamps(),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("project_id", "type", "language", name="ux_documents_project_type_language"),
  )
  op.create_index(op.f("ix_documents_project_id"), "documents", ["project_id"], unique=False)
  op.create_index(op.f("ix_documents_status"), "documents", ["status"], unique=False)

  op.create_table(
    "document_tasks",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("status", sa.String(), server_default="queued", nullable=False),
    sa.Column("priority", sa.Integer(), server_default="10", nullable=False),
    sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
    sa.Column("max_attempts", sa.Integer(), server_default="2", nullable=False),
    sa.Column("available_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("last_error", sa.Text(), nullable=True),
    sa.Column("job_id", sa.String(), nullable=True),
    *_timestamps(),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_document_tasks_claim", "document_tasks", ["status", "priority", "available_at"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index("ix_document_tasks_claim", table_name="document_tasks")
  op.drop_table("document_tasks")
  op.drop_index(op.f("ix_documents_status"), table_name="documents")
  op.drop_index(op.f("ix_documents_project_id"), table_name="documents")
  op.drop_table("documents")
  op.drop_index(op.f("ix_jobs_status"), table_name="jobs")
  op.drop_index(op.f("ix_jobs_kind"), table_name="jobs")
  op.drop_index(op.f("ix_jobs_project_id"), table_name="jobs")
  op.drop_table("jobs")
  op.drop_index(op.f("ix_translations_project_id"), table_name="translations")
  op.drop_table("translations")
  op.drop_index(op.f("ix_images_project_id"), table_name="images")
  op.drop_table("images")
  op.drop_index(op.f("ix_chapters_project_id"), table_name="chapters")
  op.drop_table("chapters")
  op.drop_index(op.f("ix_projects_user_id"), table_name="projects")
  op.drop_index(op.f("ix_projects_status"), table_name="projects")
  op.drop_table("projects")
