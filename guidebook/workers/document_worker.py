"""Standalone consumer of the document rendering queue."""

from __future__ import annotations

import asyncio
import gc
import logging
import resource
import signal
import sys
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from guidebook.config import Settings, get_settings
from guidebook.core.database import dispose_engine
from guidebook.core.logging import initialize_logging
from guidebook.jobs.models import JobRecord, utc_now
from guidebook.jobs.progress import JobProgressTracker
from guidebook.notifications.events import DOCUMENT_GENERATED, EventBus, get_event_bus
from guidebook.rendering import DocumentRenderer, RenderChapter, RenderImage, RenderRequest, build_renderers
from guidebook.services.storage_client import DocumentStorage, build_storage_client
from guidebook.services.tasks.factory import get_task_queue
from guidebook.services.tasks.interface import DocumentTask, DocumentTaskPayload, DocumentTaskQueue
from guidebook.storage.documents_repo import DocumentRecord, DocumentsRepository, DuplicateDocumentError
from guidebook.storage.factory import get_documents_repo, get_jobs_repo, get_projects_repo
from guidebook.storage.jobs_repo import JobsRepository
from guidebook.storage.projects_repo import BASE_LANGUAGE, ProjectBundle, ProjectsRepository
from guidebook.utils.ids import generate_id

logger = logging.getLogger(__name__)

CONTENT_READY_PROGRESS = 20
RENDERED_PROGRESS = 50
UPLOADED_PROGRESS = 80

JOB_KIND_BY_TYPE = {"PDF": "PDF_GENERATION", "DOCX": "DOCX_GENERATION"}


def _max_rss_mb() -> float:
  # ru_maxrss is kilobytes on Linux and bytes on macOS.
  usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
  divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
  return usage / divisor


async def assemble_request(bundle: ProjectBundle, payload: DocumentTaskPayload, projects_repo: ProjectsRepository) -> RenderRequest:
  """Resolve title overrides and translated chapters for the requested language."""
  project = bundle.project
  title = payload.title or project.title
  subtitle = payload.subtitle or project.subtitle
  chapters = [RenderChapter(title=chapter.title, content=chapter.content, order=chapter.order) for chapter in bundle.chapters]

  if payload.language != BASE_LANGUAGE:
    translation = await projects_repo.get_translation(project.project_id, payload.language)
    if translation is None:
      logger.warning("No %s translation for project %s, using original content", payload.language, project.project_id)
    else:
      title = translation.title or title
      subtitle = translation.subtitle or subtitle
      translated = translation.content
      # Chapter i takes translated entry i; missing entries keep the original text.
      substituted: list[RenderChapter] = []
      for index, chapter in enumerate(chapters):
        entry = translated[index] if index < len(translated) else {}
        substituted.append(RenderChapter(title=entry.get("title") or chapter.title, content=entry.get("content") or chapter.content, order=chapter.order))
      chapters = substituted

  images = tuple(RenderImage(url=image.url, caption=image.caption, chapter_number=image.chapter_number, is_map=image.is_map) for image in bundle.images) if payload.include_images else ()
  return RenderRequest(title=title, subtitle=subtitle, author=payload.author or project.author or "", language=payload.language, chapters=tuple(chapters), images=images)


class DocumentRenderingWorker:
  """Pull one task at a time, keeping at least ``min_start_interval`` seconds between task starts."""

  def __init__(
    self,
    *,
    queue: DocumentTaskQueue,
    projects_repo: ProjectsRepository,
    jobs_repo: JobsRepository,
    documents_repo: DocumentsRepository,
    renderers: Mapping[str, DocumentRenderer],
    storage: DocumentStorage,
    events: EventBus,
    poll_interval: float = 2.0,
    min_start_interval: float = 2.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
  ) -> None:
    self._queue = queue
    self._projects_repo = projects_repo
    self._jobs_repo = jobs_repo
    self._documents_repo = documents_repo
    self._renderers = dict(renderers)
    self._storage = storage
    self._events = events
    self._poll_interval = poll_interval
    self._min_start_interval = min_start_interval
    self._clock = clock
    self._sleep = sleep
    self._last_start: float | None = None
    self._stop_event = asyncio.Event()

  def request_stop(self) -> None:
    """Finish the task in flight and exit the loop."""
    if not self._stop_event.is_set():
      logger.info("Shutdown requested; finishing current task")
    self._stop_event.set()

  @property
  def stopping(self) -> bool:
    return self._stop_event.is_set()

  async def run_forever(self) -> None:
    logger.info("Document worker started (poll=%.1fs, min spacing=%.1fs)", self._poll_interval, self._min_start_interval)
    while not self.stopping:
      try:
        processed = await self.run_once()
      except Exception:  # noqa: BLE001
        # Queue or database outages should not kill the worker process.
        logger.exception("Document worker iteration failed")
        processed = False
      if not processed:
        await self._idle()
    logger.info("Document worker stopped")

  async def _idle(self) -> None:
    try:
      await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
    except TimeoutError:
      pass

  async def _respect_start_interval(self) -> None:
    if self._last_start is None:
      return
    remaining = self._min_start_interval - (self._clock() - self._last_start)
    if remaining > 0:
      await self._sleep(remaining)

  async def run_once(self) -> bool:
    """Claim and process one task; returns ``False`` when the queue was empty."""
    await self._respect_start_interval()
    if self.stopping:
      return False
    task = await self._queue.claim_next()
    if task is None:
      return False

    self._last_start = self._clock()
    payload = task.payload
    logger.info("[START] task=%s %s-%s project=%s attempt=%d/%d rss=%.1fMB", task.task_id, payload.type, payload.language, payload.project_id, task.attempts, task.max_attempts, _max_rss_mb())
    started = time.perf_counter()
    try:
      document = await self.process(task)
    except Exception as exc:  # noqa: BLE001
      message = str(exc) or type(exc).__name__
      will_retry = await self._queue.mark_failed(task.task_id, message)
      logger.error("[FAILED] task=%s %s-%s project=%s attempt=%d/%d retry=%s error=%s", task.task_id, payload.type, payload.language, payload.project_id, task.attempts, task.max_attempts, will_retry, message, exc_info=True)
    else:
      await self._queue.mark_done(task.task_id)
      logger.info("[DONE] task=%s document=%s took %.1fs", task.task_id, document.document_id, time.perf_counter() - started)
    finally:
      collected = gc.collect()
      logger.info("[MEMORY] task=%s gc_collected=%d max_rss=%.1fMB", task.task_id, collected, _max_rss_mb())
    return True

  async def process(self, task: DocumentTask) -> DocumentRecord:
    """Render, upload and record one document, advancing a job row at fixed checkpoints."""
    payload = task.payload
    renderer = self._renderers.get(payload.type)
    if renderer is None:
      raise ValueError(f"Unsupported document type: {payload.type}")

    bundle = await self._projects_repo.get_project_bundle(payload.project_id)
    if bundle is None:
      raise LookupError(f"Project {payload.project_id} not found")
    logger.info("Found project %s with %d chapters and %d images", payload.project_id, len(bundle.chapters), len(bundle.images))

    job = JobRecord(job_id=generate_id(), project_id=payload.project_id, kind=JOB_KIND_BY_TYPE[payload.type], data={**payload.to_dict(), "taskId": task.task_id, "attempt": task.attempts})
    await self._jobs_repo.create_job(job)
    tracker = JobProgressTracker(job_id=job.job_id, jobs_repo=self._jobs_repo)
    await tracker.start()

    try:
      await self._queue.attach_job(task.task_id, job.job_id)
      request = await assemble_request(bundle, payload, self._projects_repo)
      await tracker.checkpoint(CONTENT_READY_PROGRESS)

      rendered = await renderer.render(request)
      await tracker.checkpoint(RENDERED_PROGRESS)

      uploaded = await self._storage.upload(rendered.buffer, rendered.filename, rendered.content_type)
      await tracker.checkpoint(UPLOADED_PROGRESS)

      record = DocumentRecord(document_id=generate_id(), project_id=payload.project_id, type=payload.type, language=payload.language, filename=rendered.filename, url=uploaded.url, storage_key=uploaded.public_id, size=uploaded.size, status="COMPLETED", completed_at=utc_now())
      try:
        document = await self._documents_repo.create_document(record)
      except DuplicateDocumentError:
        await self._discard_upload(uploaded.public_id)
        raise

      await tracker.complete({"documentId": document.document_id, "filename": document.filename, "url": document.url})
    except Exception as exc:
      try:
        await tracker.fail(str(exc) or type(exc).__name__)
      except Exception:  # noqa: BLE001
        logger.exception("Could not record failure on job %s", job.job_id)
      raise

    self._events.emit(DOCUMENT_GENERATED, {"projectId": payload.project_id, "documentId": document.document_id, "type": document.type, "language": document.language, "jobId": job.job_id})
    return document

  async def _discard_upload(self, public_id: str) -> None:
    try:
      await self._storage.delete(public_id)
    except Exception:  # noqa: BLE001
      logger.warning("Could not delete orphaned upload %s", public_id, exc_info=True)


def build_worker(settings: Settings) -> DocumentRenderingWorker:
  return DocumentRenderingWorker(
    queue=get_task_queue(settings),
    projects_repo=get_projects_repo(),
    jobs_repo=get_jobs_repo(),
    documents_repo=get_documents_repo(),
    renderers=build_renderers(),
    storage=build_storage_client(settings),
    events=get_event_bus(),
    poll_interval=settings.worker_poll_interval_seconds,
    min_start_interval=settings.worker_min_start_interval_seconds,
  )


async def _run(settings: Settings) -> None:
  worker = build_worker(settings)
  loop = asyncio.get_running_loop()
  for signum in (signal.SIGTERM, signal.SIGINT):
    loop.add_signal_handler(signum, worker.request_stop)
  try:
    await worker.run_forever()
  finally:
    await get_event_bus().drain()
    await dispose_engine()


def main() -> None:
  """Console entry point for the document worker process."""
  settings = get_settings()
  initialize_logging(settings)
  asyncio.run(_run(settings))


if __name__ == "__main__":
  main()
