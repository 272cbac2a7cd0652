"""Factories for the default repository implementations."""

from __future__ import annotations

from guidebook.storage.documents_repo import DocumentsRepository
from guidebook.storage.jobs_repo import JobsRepository
from guidebook.storage.postgres_documents_repo import PostgresDocumentsRepository
from guidebook.storage.postgres_jobs_repo import PostgresJobsRepository
from guidebook.storage.postgres_projects_repo import PostgresProjectsRepository
from guidebook.storage.projects_repo import ProjectsRepository


def get_jobs_repo() -> JobsRepository:
  return PostgresJobsRepository()


def get_projects_repo() -> ProjectsRepository:
  return PostgresProjectsRepository()


def get_documents_repo() -> DocumentsRepository:
  return PostgresDocumentsRepository()
