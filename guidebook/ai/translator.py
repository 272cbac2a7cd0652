"""Translation of generated book content into one target language."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from guidebook.ai import prompts
from guidebook.ai.writer import TextGenerator
from guidebook.jobs.models import utc_now
from guidebook.jobs.progress import JobCanceledError, JobProgressTracker
from guidebook.notifications.events import TRANSLATION_CHAPTER_COMPLETED, TRANSLATION_COMPLETED, TRANSLATION_FAILED, EventBus
from guidebook.storage.jobs_repo import JobsRepository
from guidebook.storage.projects_repo import FRONT_MATTER_CHAPTERS, ChapterRecord, Language, ProjectsRepository

logger = logging.getLogger(__name__)

METADATA_PROGRESS = 10
FRONT_MATTER_PROGRESS = 25
CHAPTERS_PROGRESS_SPAN = 70


class BookTranslator:
  def __init__(self, generator: TextGenerator) -> None:
    self._generator = generator

  async def translate_text(self, text: str, language: Language, *, keep_style: bool = True) -> str:
    if not text or not text.strip():
      return text
    translated = await self._generator.generate_text(prompts.translation_prompt(text, language, keep_style=keep_style))
    return translated.strip()

  async def translate_metadata(self, title: str, subtitle: str | None, language: Language) -> tuple[str, str | None]:
    translated_title = await self.translate_text(title, language, keep_style=False)
    translated_subtitle = await self.translate_text(subtitle, language, keep_style=False) if subtitle else subtitle
    return translated_title, translated_subtitle

  async def translate_chapter(self, chapter: ChapterRecord, language: Language) -> dict[str, Any]:
    title = await self.translate_text(chapter.title, language, keep_style=False)
    content = await self.translate_text(chapter.content, language, keep_style=True)
    return {"title": title, "content": content, "order": chapter.order}


class TranslationPipeline:
  """Translate metadata, front matter and content chapters of one project.

  The stored translation content is a flat list of ``{title, content, order}`` entries in chapter order,
  so renderers can substitute chapter ``i`` with entry ``i``.
  """

  def __init__(self, *, translator: BookTranslator, jobs_repo: JobsRepository, projects_repo: ProjectsRepository, events: EventBus) -> None:
    self._translator = translator
    self._jobs_repo = jobs_repo
    self._projects_repo = projects_repo
    self._events = events

  async def run(self, *, job_id: str, project_id: str, language: Language) -> None:
    """Execute one translation run; never raises so it can be scheduled fire-and-forget."""
    tracker = JobProgressTracker(job_id=job_id, jobs_repo=self._jobs_repo)
    try:
      if await tracker.start() is None:
        logger.error("Job %s not found; skipping translation for project %s", job_id, project_id)
        return
      await self._translate(tracker, project_id=project_id, language=language)
    except Exception as exc:  # noqa: BLE001
      message = str(exc) or type(exc).__name__
      if isinstance(exc, JobCanceledError):
        logger.info("Translation of project %s to %s stopped: %s", project_id, language, message)
      else:
        logger.error("Translation of project %s to %s failed: %s", project_id, language, message, exc_info=True)
        try:
          await tracker.fail(message)
        except Exception:  # noqa: BLE001
          logger.exception("Could not record failure on job %s", job_id)
      await self._mark_failed(project_id, language)
      self._events.emit(TRANSLATION_FAILED, {"projectId": project_id, "jobId": job_id, "language": language, "error": message})

  async def _translate(self, tracker: JobProgressTracker, *, project_id: str, language: Language) -> None:
    bundle = await self._projects_repo.get_project_bundle(project_id)
    if bundle is None:
      raise LookupError(f"Project {project_id} not found")
    translation = await self._projects_repo.get_translation(project_id, language)
    if translation is None:
      raise LookupError(f"No {language} translation record for project {project_id}")
    translation = await self._projects_repo.save_translation(replace(translation, status="IN_PROGRESS"))

    project = bundle.project
    front_matter = [chapter for chapter in bundle.chapters if chapter.order < FRONT_MATTER_CHAPTERS]
    content_chapters = [chapter for chapter in bundle.chapters if chapter.order >= FRONT_MATTER_CHAPTERS]
    logger.info("Translating %d front matter pages and %d content chapters to %s", len(front_matter), len(content_chapters), language)

    title, subtitle = await self._translator.translate_metadata(project.title, project.subtitle, language)
    translation = await self._projects_repo.save_translation(replace(translation, title=title, subtitle=subtitle))
    await tracker.checkpoint(METADATA_PROGRESS)

    translated_front = [await self._translator.translate_chapter(chapter, language) for chapter in front_matter]
    await tracker.checkpoint(FRONT_MATTER_PROGRESS)

    translated_chapters: list[dict[str, Any]] = []
    for index, chapter in enumerate(content_chapters):
      translated_chapters.append(await self._translator.translate_chapter(chapter, language))
      await tracker.checkpoint(FRONT_MATTER_PROGRESS + round((index + 1) * CHAPTERS_PROGRESS_SPAN / len(content_chapters)))
      self._events.emit(TRANSLATION_CHAPTER_COMPLETED, {"projectId": project_id, "translationId": translation.translation_id, "chapterNumber": index + 1, "totalChapters": len(content_chapters), "language": language})

    await self._projects_repo.save_translation(replace(translation, content=[*translated_front, *translated_chapters], status="COMPLETED", completed_at=utc_now()))
    await tracker.complete({"translationId": translation.translation_id, "language": language, "frontMatterTranslated": len(translated_front), "chaptersTranslated": len(translated_chapters), "totalPages": len(translated_front) + len(translated_chapters)})

    if await self._projects_repo.update_project(project_id, status="COMPLETED") is None:
      logger.error("Project %s not found after translation", project_id)
    self._events.emit(TRANSLATION_COMPLETED, {"projectId": project_id, "translationId": translation.translation_id, "language": language, "jobId": tracker.job_id})
    logger.info("Translation of project %s to %s completed", project_id, language)

  async def _mark_failed(self, project_id: str, language: Language) -> None:
    try:
      translation = await self._projects_repo.get_translation(project_id, language)
      if translation is not None:
        await self._projects_repo.save_translation(replace(translation, status="FAILED"))
      if await self._projects_repo.update_project(project_id, status="FAILED") is None:
        logger.warning("Project %s no longer exists; skipping failed status update", project_id)
    except Exception:  # noqa: BLE001
      logger.exception("Could not mark translation of project %s to %s as failed", project_id, language)
