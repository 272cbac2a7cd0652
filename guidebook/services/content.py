"""Service layer for travel guide content generation."""

from __future__ import annotations

import asyncio
import logging

from fastapi import BackgroundTasks, HTTPException, status

from guidebook.ai.orchestrator import GENERATION_STEPS, GenerationPipeline
from guidebook.ai.writer import BookWriter, TextGenerator
from guidebook.api.models import GenerateTravelGuideRequest, GenerationStartedResponse, JobStatusResponse
from guidebook.config import Settings
from guidebook.jobs.models import JobRecord
from guidebook.notifications.events import get_event_bus
from guidebook.storage.factory import get_jobs_repo, get_projects_repo
from guidebook.storage.jobs_repo import JobsRepository
from guidebook.storage.projects_repo import ProjectRecord, ProjectsRepository
from guidebook.utils.ids import generate_id

logger = logging.getLogger(__name__)

_JOB_NOT_FOUND_MSG = "Job not found."


def _get_jobs_repo() -> JobsRepository:
  return get_jobs_repo()


def _get_projects_repo() -> ProjectsRepository:
  return get_projects_repo()


def _get_pipeline(generator: TextGenerator, jobs_repo: JobsRepository, projects_repo: ProjectsRepository) -> GenerationPipeline:
  return GenerationPipeline(writer=BookWriter(generator), jobs_repo=jobs_repo, projects_repo=projects_repo, events=get_event_bus())


async def _find_project(projects_repo: ProjectsRepository, project_id: str, settings: Settings) -> ProjectRecord:
  # The project row may be committed by another service moments before this request arrives.
  project = await projects_repo.get_project(project_id)
  if project is None:
    logger.warning("Project %s not found, retrying in %.1fs", project_id, settings.project_lookup_retry_seconds)
    await asyncio.sleep(settings.project_lookup_retry_seconds)
    project = await projects_repo.get_project(project_id)
  if project is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Project with ID {project_id} not found")
  return project


async def start_generation(project_id: str, request: GenerateTravelGuideRequest, settings: Settings, background_tasks: BackgroundTasks, generator: TextGenerator) -> GenerationStartedResponse:
  """Create a content generation job and schedule the pipeline after the response is sent."""
  jobs_repo = _get_jobs_repo()
  projects_repo = _get_projects_repo()
  await _find_project(projects_repo, project_id, settings)

  generation_request = request.to_generation_request()
  job = JobRecord(job_id=generate_id(), project_id=project_id, kind="CONTENT_GENERATION", data=generation_request.to_payload())
  await jobs_repo.create_job(job)
  logger.info("Created content generation job %s for project %s (%d chapters)", job.job_id, project_id, generation_request.number_of_chapters)

  pipeline = _get_pipeline(generator, jobs_repo, projects_repo)
  background_tasks.add_task(pipeline.run, job_id=job.job_id, project_id=project_id, request=generation_request)
  return GenerationStartedResponse(message="Travel guide book generation started", job_id=job.job_id, project_id=project_id, steps=list(GENERATION_STEPS))


def job_status_from_record(record: JobRecord) -> JobStatusResponse:
  return JobStatusResponse(
    job_id=record.job_id,
    project_id=record.project_id,
    type=record.kind,
    status=record.status,
    progress=record.progress,
    result=record.result,
    error=record.error,
    created_at=record.created_at,
    started_at=record.started_at,
    completed_at=record.completed_at,
  )


async def get_generation_status(job_id: str) -> JobStatusResponse:
  record = await _get_jobs_repo().get_job(job_id)
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  return job_status_from_record(record)
