from __future__ import annotations

import pytest

from guidebook.ai.translator import BookTranslator, TranslationPipeline
from guidebook.jobs.models import JobRecord
from guidebook.storage.projects_repo import ChapterRecord, ProjectRecord, TranslationRecord


class EchoTranslator:
  """Generator that tags the last line of the prompt's source text with the target language."""

  def __init__(self, *, fail: bool = False) -> None:
    self.prompts: list[str] = []
    self._fail = fail

  async def generate_text(self, prompt: str) -> str:
    self.prompts.append(prompt)
    if self._fail:
      raise RuntimeError("translation provider down")
    source = prompt.split("Original English text:\n", 1)[1].split("\n\nProvide ONLY", 1)[0]
    return f"[fr] {source}"

  async def generate_json(self, prompt: str) -> dict:
    raise AssertionError("not used")


async def _seed(projects_repo, jobs_repo, *, content_chapters: int = 3) -> None:
  projects_repo.add_project(ProjectRecord(project_id="project-1", title="Lisbon Unfolded", subtitle="A Slow Travel Guide", author="Ana Sousa", status="TRANSLATING"))
  for order in range(4 + content_chapters):
    await projects_repo.add_chapter(ChapterRecord(chapter_id=f"c{order}", project_id="project-1", title=f"Title {order}", order=order, content=f"Body {order}"))
  await projects_repo.save_translation(TranslationRecord(translation_id="tr-1", project_id="project-1", language="FRENCH", title="Lisbon Unfolded"))
  await jobs_repo.create_job(JobRecord(job_id="job-1", project_id="project-1", kind="TRANSLATION"))


def _pipeline(generator, jobs_repo, projects_repo, events) -> TranslationPipeline:
  return TranslationPipeline(translator=BookTranslator(generator), jobs_repo=jobs_repo, projects_repo=projects_repo, events=events)


@pytest.mark.anyio
async def test_translation_stores_every_chapter_in_order(jobs_repo, projects_repo, events) -> None:
  await _seed(projects_repo, jobs_repo)

  await _pipeline(EchoTranslator(), jobs_repo, projects_repo, events).run(job_id="job-1", project_id="project-1", language="FRENCH")

  translation = projects_repo.translations[("project-1", "FRENCH")]
  assert translation.status == "COMPLETED"
  assert translation.completed_at is not None
  assert translation.title == "[fr] Lisbon Unfolded"
  assert translation.subtitle == "[fr] A Slow Travel Guide"
  assert [entry["order"] for entry in translation.content] == list(range(7))
  assert translation.content[5] == {"title": "[fr] Title 5", "content": "[fr] Body 5", "order": 5}

  record = jobs_repo.jobs["job-1"]
  assert record.status == "COMPLETED"
  assert record.result == {"translationId": "tr-1", "language": "FRENCH", "frontMatterTranslated": 4, "chaptersTranslated": 3, "totalPages": 7}
  assert projects_repo.projects["project-1"].status == "COMPLETED"
  assert events.names() == ["translation.chapter.completed"] * 3 + ["translation.completed"]


@pytest.mark.anyio
async def test_translation_progress_follows_metadata_front_matter_and_chapters(jobs_repo, projects_repo, events) -> None:
  await _seed(projects_repo, jobs_repo, content_chapters=4)

  await _pipeline(EchoTranslator(), jobs_repo, projects_repo, events).run(job_id="job-1", project_id="project-1", language="FRENCH")

  assert [value for value in jobs_repo.progress_log if value] == [10, 25, 43, 60, 77, 95, 100]


@pytest.mark.anyio
async def test_titles_skip_style_instructions_and_bodies_keep_them(jobs_repo, projects_repo, events) -> None:
  await _seed(projects_repo, jobs_repo, content_chapters=1)
  generator = EchoTranslator()

  await _pipeline(generator, jobs_repo, projects_repo, events).run(job_id="job-1", project_id="project-1", language="FRENCH")

  title_prompt = next(prompt for prompt in generator.prompts if prompt.endswith("Title 4\n\nProvide ONLY the translated text, no explanations or notes:"))
  body_prompt = next(prompt for prompt in generator.prompts if "Body 4\n" in prompt)
  assert "Translate accurately while maintaining clarity." in title_prompt
  assert "conversational, personal tone" in body_prompt
  assert "to French" in body_prompt


@pytest.mark.anyio
async def test_translation_failure_marks_translation_and_project_failed(jobs_repo, projects_repo, events) -> None:
  await _seed(projects_repo, jobs_repo)

  await _pipeline(EchoTranslator(fail=True), jobs_repo, projects_repo, events).run(job_id="job-1", project_id="project-1", language="FRENCH")

  assert jobs_repo.jobs["job-1"].status == "FAILED"
  assert jobs_repo.jobs["job-1"].error == "translation provider down"
  assert projects_repo.translations[("project-1", "FRENCH")].status == "FAILED"
  assert projects_repo.projects["project-1"].status == "FAILED"
  assert events.names() == ["translation.failed"]
