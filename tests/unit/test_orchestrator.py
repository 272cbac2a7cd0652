from __future__ import annotations

import pytest

from guidebook.ai.orchestrator import GenerationPipeline, GenerationRequest, expected_chapter_total
from guidebook.ai.writer import BookWriter
from guidebook.jobs.models import JobRecord
from guidebook.storage.projects_repo import ChapterRecord, ProjectRecord


class FakeGenerator:
  """Text generator returning a fixed outline and numbered chapter bodies."""

  def __init__(self, outline: dict, *, fail_on_call: int | None = None) -> None:
    self._outline = outline
    self._fail_on_call = fail_on_call
    self.text_calls = 0

  async def generate_json(self, prompt: str) -> dict:
    return self._outline

  async def generate_text(self, prompt: str) -> str:
    self.text_calls += 1
    if self._fail_on_call == self.text_calls:
      raise RuntimeError("provider exploded")
    return f"Generated body {self.text_calls}"


def _seed(projects_repo, jobs_repo) -> None:
  projects_repo.add_project(ProjectRecord(project_id="project-1", title="Lisbon Unfolded", author="Ana Sousa"))


async def _run(pipeline: GenerationPipeline, jobs_repo, *, chapters: int = 10) -> JobRecord:
  await jobs_repo.create_job(JobRecord(job_id="job-1", project_id="project-1", kind="CONTENT_GENERATION"))
  await pipeline.run(job_id="job-1", project_id="project-1", request=GenerationRequest(title="Lisbon Unfolded", subtitle="A Slow Travel Guide", author="Ana Sousa", number_of_chapters=chapters))
  return jobs_repo.jobs["job-1"]


def _pipeline(generator, jobs_repo, projects_repo, events) -> GenerationPipeline:
  return GenerationPipeline(writer=BookWriter(generator), jobs_repo=jobs_repo, projects_repo=projects_repo, events=events, copyright_year=2026)


@pytest.mark.anyio
async def test_ten_chapter_run_saves_fourteen_ordered_chapters(jobs_repo, projects_repo, events, make_outline) -> None:
  _seed(projects_repo, jobs_repo)
  pipeline = _pipeline(FakeGenerator(make_outline(10)), jobs_repo, projects_repo, events)

  record = await _run(pipeline, jobs_repo)

  chapters = await projects_repo.list_chapters("project-1")
  assert expected_chapter_total(10) == 14
  assert [chapter.order for chapter in chapters] == list(range(14))
  assert [chapter.title for chapter in chapters[:5]] == ["Title Page", "Copyright", "About Book", "Table of Contents", "Introduction"]
  assert chapters[5].title == "Chapter Topic 2"
  assert chapters[-1].title == "Conclusion"
  assert chapters[1].content.startswith("Copyright © 2026 Ana Sousa.")

  assert record.status == "COMPLETED"
  assert record.progress == 100
  assert record.result["totalChapters"] == 14
  assert record.result["warnings"] == []
  assert len(record.result["outline"]["chapters"]) == 10
  assert projects_repo.projects["project-1"].status == "COMPLETED"
  assert projects_repo.projects["project-1"].number_of_chapters == 10
  assert events.names().count("content.chapter.generated") == 8
  assert events.names()[-1] == "content.generation.completed"


@pytest.mark.anyio
async def test_progress_is_monotonic_through_fixed_checkpoints(jobs_repo, projects_repo, events, make_outline) -> None:
  _seed(projects_repo, jobs_repo)
  pipeline = _pipeline(FakeGenerator(make_outline(6)), jobs_repo, projects_repo, events)

  await _run(pipeline, jobs_repo, chapters=6)

  log = jobs_repo.progress_log
  assert log == sorted(log)
  for checkpoint in (10, 15, 25, 85, 95, 100):
    assert checkpoint in log
  # Four main chapters spread 25..85 in steps of 15.
  assert [value for value in log if 25 < value < 85] == [40, 55, 70]


@pytest.mark.anyio
async def test_outline_with_wrong_chapter_count_fails_without_writing(jobs_repo, projects_repo, events, make_outline) -> None:
  _seed(projects_repo, jobs_repo)
  previous = ChapterRecord(chapter_id="old", project_id="project-1", title="Old", order=0, content="kept")
  await projects_repo.add_chapter(previous)
  generator = FakeGenerator(make_outline(8))
  pipeline = _pipeline(generator, jobs_repo, projects_repo, events)

  record = await _run(pipeline, jobs_repo)

  assert record.status == "FAILED"
  assert "8 chapters but 10 were requested" in record.error
  assert generator.text_calls == 0
  assert await projects_repo.list_chapters("project-1") == [previous]
  assert projects_repo.projects["project-1"].status == "FAILED"
  assert events.names() == ["content.generation.failed"]


@pytest.mark.anyio
async def test_mid_run_failure_keeps_committed_chapters_and_progress(jobs_repo, projects_repo, events, make_outline) -> None:
  _seed(projects_repo, jobs_repo)
  # Call 1 is About Book, 2 the introduction, 3 the first main chapter.
  pipeline = _pipeline(FakeGenerator(make_outline(10), fail_on_call=4), jobs_repo, projects_repo, events)

  record = await _run(pipeline, jobs_repo)

  assert record.status == "FAILED"
  assert record.error == "provider exploded"
  assert 25 < record.progress < 85
  assert await projects_repo.count_chapters("project-1") == 6
  assert projects_repo.projects["project-1"].status == "FAILED"


@pytest.mark.anyio
async def test_rerun_replaces_chapters_from_previous_run(jobs_repo, projects_repo, events, make_outline) -> None:
  _seed(projects_repo, jobs_repo)
  pipeline = _pipeline(FakeGenerator(make_outline(5)), jobs_repo, projects_repo, events)
  await _run(pipeline, jobs_repo, chapters=5)

  jobs_repo.jobs.clear()
  await _run(pipeline, jobs_repo, chapters=5)

  assert await projects_repo.count_chapters("project-1") == 9
  assert jobs_repo.jobs["job-1"].result["warnings"] == []


@pytest.mark.anyio
async def test_missing_project_fails_job(jobs_repo, projects_repo, events, make_outline) -> None:
  pipeline = _pipeline(FakeGenerator(make_outline(5)), jobs_repo, projects_repo, events)

  record = await _run(pipeline, jobs_repo, chapters=5)

  assert record.status == "FAILED"
  assert "project-1" in record.error
  assert events.names() == ["content.generation.failed"]


@pytest.mark.anyio
async def test_cancelled_job_stays_cancelled_and_project_fails(jobs_repo, projects_repo, events, make_outline) -> None:
  _seed(projects_repo, jobs_repo)

  class CancellingGenerator(FakeGenerator):
    async def generate_text(self, prompt: str) -> str:
      await jobs_repo.update_job("job-1", status="CANCELLED")
      return await super().generate_text(prompt)

  pipeline = _pipeline(CancellingGenerator(make_outline(5)), jobs_repo, projects_repo, events)

  record = await _run(pipeline, jobs_repo, chapters=5)

  assert record.status == "CANCELLED"
  assert projects_repo.projects["project-1"].status == "FAILED"
  assert events.names()[-1] == "content.generation.failed"
