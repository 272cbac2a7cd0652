"""Content generation pipeline for one project run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from guidebook.ai.writer import BookWriter, copyright_page, table_of_contents, title_page
from guidebook.jobs.models import utc_now
from guidebook.jobs.progress import JobCanceledError, JobProgressTracker
from guidebook.notifications.events import CHAPTER_GENERATED, GENERATION_COMPLETED, GENERATION_FAILED, EventBus
from guidebook.storage.jobs_repo import JobsRepository
from guidebook.storage.projects_repo import ABOUT_BOOK_ORDER, COPYRIGHT_ORDER, FRONT_MATTER_CHAPTERS, TABLE_OF_CONTENTS_ORDER, TITLE_PAGE_ORDER, ChapterRecord, ProjectsRepository
from guidebook.utils.ids import generate_id

logger = logging.getLogger(__name__)

INTRODUCTION_ORDER = FRONT_MATTER_CHAPTERS

OUTLINE_PROGRESS = 10
FRONT_MATTER_PROGRESS = 15
INTRODUCTION_PROGRESS = 25
MAIN_CHAPTERS_PROGRESS = 85
CONCLUSION_PROGRESS = 95

GENERATION_STEPS = (
  "Step 1: Generating detailed book outline",
  "Step 2: Generating front matter and table of contents",
  "Step 3: Writing introduction",
  "Step 4: Writing main chapters",
  "Step 5: Writing conclusion",
)


@dataclass(frozen=True)
class GenerationRequest:
  """Book metadata captured when generation is requested."""

  title: str
  author: str
  subtitle: str | None = None
  description: str | None = None
  number_of_chapters: int = 10

  def to_payload(self) -> dict[str, Any]:
    return {"title": self.title, "subtitle": self.subtitle, "author": self.author, "description": self.description, "numberOfChapters": self.number_of_chapters}


def expected_chapter_total(number_of_chapters: int) -> int:
  return FRONT_MATTER_CHAPTERS + number_of_chapters


class GenerationPipeline:
  """Drive outline, front matter, introduction, main chapters and conclusion in strict order.

  Each chapter is committed as soon as it is written and the job row is the single source of progress.
  Any error aborts the remaining steps, fails the job, and marks the project failed when it still exists.
  """

  def __init__(self, *, writer: BookWriter, jobs_repo: JobsRepository, projects_repo: ProjectsRepository, events: EventBus, copyright_year: int | None = None) -> None:
    self._writer = writer
    self._jobs_repo = jobs_repo
    self._projects_repo = projects_repo
    self._events = events
    self._copyright_year = copyright_year

  async def run(self, *, job_id: str, project_id: str, request: GenerationRequest) -> None:
    """Execute one pipeline run; never raises so it can be scheduled fire-and-forget."""
    tracker = JobProgressTracker(job_id=job_id, jobs_repo=self._jobs_repo)
    try:
      if await tracker.start() is None:
        logger.error("Job %s not found; skipping generation for project %s", job_id, project_id)
        return
      await self._generate(tracker, project_id=project_id, request=request)
    except JobCanceledError as exc:
      logger.info("Generation for project %s stopped: %s", project_id, exc)
      await self._mark_project_failed(project_id)
      self._events.emit(GENERATION_FAILED, {"projectId": project_id, "jobId": job_id, "error": str(exc)})
    except Exception as exc:  # noqa: BLE001
      message = str(exc) or type(exc).__name__
      logger.error("Book generation failed for project %s job %s: %s", project_id, job_id, message, exc_info=True)
      try:
        await tracker.fail(message)
      except Exception:  # noqa: BLE001
        logger.exception("Could not record failure on job %s", job_id)
      await self._mark_project_failed(project_id)
      self._events.emit(GENERATION_FAILED, {"projectId": project_id, "jobId": job_id, "error": message})

  async def _generate(self, tracker: JobProgressTracker, *, project_id: str, request: GenerationRequest) -> None:
    total = request.number_of_chapters
    project = await self._projects_repo.update_project(project_id, status="GENERATING_CONTENT", number_of_chapters=total)
    if project is None:
      raise LookupError(f"Project {project_id} not found")

    # Step 1: outline. Validation fails the run before anything is written.
    logger.info("Step 1: Generating book outline for '%s' with %d chapters", request.title, total)
    outline = await self._writer.generate_outline(request.title, request.subtitle, total)
    await tracker.checkpoint(OUTLINE_PROGRESS, result={"outline": outline.to_dict()})

    # A fresh run replaces content from earlier runs instead of appending to it.
    removed = await self._projects_repo.delete_chapters(project_id)
    if removed:
      logger.info("Removed %d chapters from a previous run of project %s", removed, project_id)

    # Step 2: front matter.
    logger.info("Step 2: Generating front matter")
    year = self._copyright_year or utc_now().year
    await self._save_chapter(project_id, "Title Page", TITLE_PAGE_ORDER, title_page(request.title, request.subtitle, request.author))
    await self._save_chapter(project_id, "Copyright", COPYRIGHT_ORDER, copyright_page(request.author, year))
    await self._save_chapter(project_id, "About Book", ABOUT_BOOK_ORDER, await self._writer.write_about_book(request.title))
    await self._save_chapter(project_id, "Table of Contents", TABLE_OF_CONTENTS_ORDER, table_of_contents(outline))
    await tracker.checkpoint(FRONT_MATTER_PROGRESS)

    # Step 3: introduction.
    logger.info("Step 3: Writing introduction")
    introduction = await self._writer.write_introduction(request.title, request.subtitle, outline)
    await self._save_chapter(project_id, outline.introduction.title, INTRODUCTION_ORDER, introduction)
    await tracker.checkpoint(INTRODUCTION_PROGRESS)

    # Step 4: main chapters, progress spread linearly from 25 to 85.
    main_chapters = outline.main_chapters
    logger.info("Step 4: Writing %d main chapters", len(main_chapters))
    span = MAIN_CHAPTERS_PROGRESS - INTRODUCTION_PROGRESS
    for position, chapter in enumerate(main_chapters, start=1):
      logger.info("Writing Chapter %d: %s (%d/%d)", chapter.number, chapter.title, position, len(main_chapters))
      content = await self._writer.write_chapter(request.title, request.subtitle, chapter)
      await self._save_chapter(project_id, chapter.title, INTRODUCTION_ORDER + position, content)
      await tracker.checkpoint(INTRODUCTION_PROGRESS + round(position * span / len(main_chapters)))
      self._events.emit(CHAPTER_GENERATED, {"projectId": project_id, "chapterNumber": chapter.number, "totalChapters": len(outline.chapters)})
    await tracker.checkpoint(MAIN_CHAPTERS_PROGRESS)

    # Step 5: conclusion.
    logger.info("Step 5: Writing conclusion")
    conclusion = await self._writer.write_conclusion(request.title, request.subtitle, outline)
    await self._save_chapter(project_id, outline.conclusion.title, INTRODUCTION_ORDER + len(main_chapters) + 1, conclusion)
    await tracker.checkpoint(CONCLUSION_PROGRESS)

    saved = await self._projects_repo.count_chapters(project_id)
    expected = expected_chapter_total(total)
    warnings: list[str] = []
    if saved != expected:
      warning = f"Expected {expected} chapters but {saved} were saved."
      logger.warning("Project %s: %s", project_id, warning)
      warnings.append(warning)
    else:
      logger.info("Saved %d chapters (expected %d)", saved, expected)

    await tracker.complete({"totalChapters": saved, "expectedChapters": expected, "message": "Book content generation completed successfully", "warnings": warnings})

    if await self._projects_repo.update_project(project_id, status="COMPLETED") is None:
      logger.error("Project %s not found during generation update", project_id)
    self._events.emit(GENERATION_COMPLETED, {"projectId": project_id, "jobId": tracker.job_id})
    logger.info("Travel guide generation completed for project %s", project_id)

  async def _save_chapter(self, project_id: str, title: str, order: int, content: str) -> None:
    await self._projects_repo.add_chapter(ChapterRecord(chapter_id=generate_id(), project_id=project_id, title=title, order=order, content=content))

  async def _mark_project_failed(self, project_id: str) -> None:
    """Best-effort status update; a failure here must not mask the original error."""
    try:
      if await self._projects_repo.update_project(project_id, status="FAILED") is None:
        logger.warning("Project %s no longer exists; skipping failed status update", project_id)
    except Exception:  # noqa: BLE001
      logger.exception("Could not mark project %s as failed", project_id)
