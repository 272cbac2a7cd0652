"""Service layer for project translations."""

from __future__ import annotations

import logging
from dataclasses import replace

from fastapi import BackgroundTasks, HTTPException, status

from guidebook.ai.translator import BookTranslator, TranslationPipeline
from guidebook.ai.writer import TextGenerator
from guidebook.api.models import TranslateRequest, TranslationStartedResponse
from guidebook.jobs.models import JobRecord
from guidebook.notifications.events import get_event_bus
from guidebook.storage.factory import get_jobs_repo, get_projects_repo
from guidebook.storage.jobs_repo import JobsRepository
from guidebook.storage.projects_repo import BASE_LANGUAGE, ProjectsRepository, TranslationRecord
from guidebook.utils.ids import generate_id

logger = logging.getLogger(__name__)


def _get_jobs_repo() -> JobsRepository:
  return get_jobs_repo()


def _get_projects_repo() -> ProjectsRepository:
  return get_projects_repo()


def _get_pipeline(generator: TextGenerator, jobs_repo: JobsRepository, projects_repo: ProjectsRepository) -> TranslationPipeline:
  return TranslationPipeline(translator=BookTranslator(generator), jobs_repo=jobs_repo, projects_repo=projects_repo, events=get_event_bus())


async def start_translation(project_id: str, request: TranslateRequest, background_tasks: BackgroundTasks, generator: TextGenerator) -> TranslationStartedResponse:
  """Validate the request, reset the translation record and schedule the translation run."""
  jobs_repo = _get_jobs_repo()
  projects_repo = _get_projects_repo()
  language = request.target_language

  project = await projects_repo.get_project(project_id)
  if project is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project with ID {project_id} not found")
  if await projects_repo.count_chapters(project_id) == 0:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project has no content to translate")
  if language == BASE_LANGUAGE:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot translate to English - source content is already in English")

  existing = await projects_repo.get_translation(project_id, language)
  if existing is not None and existing.status == "COMPLETED":
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Translation to {language} already exists")

  if existing is None:
    translation = await projects_repo.save_translation(TranslationRecord(translation_id=generate_id(), project_id=project_id, language=language, title=project.title, subtitle=project.subtitle))
  else:
    translation = await projects_repo.save_translation(replace(existing, status="PENDING"))

  job = JobRecord(job_id=generate_id(), project_id=project_id, kind="TRANSLATION", data={"targetLanguage": language})
  await jobs_repo.create_job(job)
  await projects_repo.update_project(project_id, status="TRANSLATING")
  logger.info("Created translation job %s for project %s to %s", job.job_id, project_id, language)

  pipeline = _get_pipeline(generator, jobs_repo, projects_repo)
  background_tasks.add_task(pipeline.run, job_id=job.job_id, project_id=project_id, language=language)
  return TranslationStartedResponse(message=f"Translation to {language} started", job_id=job.job_id, translation_id=translation.translation_id, project_id=project_id, target_language=language)
