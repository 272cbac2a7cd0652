"""Book outline model and structural validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from guidebook.ai.errors import OutlineValidationError

SECTIONS_PER_CHAPTER = 3
SUBSECTIONS_PER_SECTION = 3


@dataclass(frozen=True)
class SectionOutline:
  title: str
  subsections: tuple[str, ...]


@dataclass(frozen=True)
class ChapterOutline:
  number: int
  title: str
  sections: tuple[SectionOutline, ...]

  def to_dict(self) -> dict[str, Any]:
    return {"chapterNumber": self.number, "chapterTitle": self.title, "sections": [{"sectionTitle": section.title, "subsections": list(section.subsections)} for section in self.sections]}


@dataclass(frozen=True)
class Outline:
  """Ordered generation plan: introduction, main chapters, conclusion."""

  chapters: tuple[ChapterOutline, ...]

  @property
  def introduction(self) -> ChapterOutline:
    return self.chapters[0]

  @property
  def main_chapters(self) -> tuple[ChapterOutline, ...]:
    return self.chapters[1:-1]

  @property
  def conclusion(self) -> ChapterOutline:
    return self.chapters[-1]

  def to_dict(self) -> dict[str, Any]:
    return {"chapters": [chapter.to_dict() for chapter in self.chapters]}


def _require_title(value: Any, where: str) -> str:
  if not isinstance(value, str) or not value.strip():
    raise OutlineValidationError(f"{where} is missing a title.")
  return value.strip()


def validate_outline(payload: Any, expected_chapters: int) -> Outline:
  """Validate a raw outline payload and return the typed outline.

  The payload must be ``{"chapters": [...]}`` with exactly ``expected_chapters`` entries, each carrying exactly
  three sections of exactly three subsections. Chapter numbers are normalized to their 1-based position.
  """
  if not isinstance(payload, dict) or not isinstance(payload.get("chapters"), list):
    raise OutlineValidationError("Outline must be an object with a 'chapters' array.")

  raw_chapters = payload["chapters"]
  if len(raw_chapters) != expected_chapters:
    raise OutlineValidationError(f"Outline has {len(raw_chapters)} chapters but {expected_chapters} were requested.")

  chapters: list[ChapterOutline] = []
  for index, raw_chapter in enumerate(raw_chapters, start=1):
    where = f"Chapter {index}"
    if not isinstance(raw_chapter, dict):
      raise OutlineValidationError(f"{where} must be an object.")
    title = _require_title(raw_chapter.get("chapterTitle"), where)

    raw_sections = raw_chapter.get("sections")
    if not isinstance(raw_sections, list):
      raise OutlineValidationError(f"{where} ('{title}') is missing a sections array.")
    if len(raw_sections) != SECTIONS_PER_CHAPTER:
      raise OutlineValidationError(f"{where} ('{title}') has {len(raw_sections)} sections; expected {SECTIONS_PER_CHAPTER}.")

    sections: list[SectionOutline] = []
    for section_index, raw_section in enumerate(raw_sections, start=1):
      section_where = f"{where} section {section_index}"
      if not isinstance(raw_section, dict):
        raise OutlineValidationError(f"{section_where} must be an object.")
      section_title = _require_title(raw_section.get("sectionTitle"), section_where)
      raw_subsections = raw_section.get("subsections")
      if not isinstance(raw_subsections, list):
        raise OutlineValidationError(f"{section_where} ('{section_title}') is missing a subsections array.")
      if len(raw_subsections) != SUBSECTIONS_PER_SECTION:
        raise OutlineValidationError(f"{section_where} ('{section_title}') has {len(raw_subsections)} subsections; expected {SUBSECTIONS_PER_SECTION}.")
      subsections = tuple(_require_title(item, f"{section_where} subsection {position}") for position, item in enumerate(raw_subsections, start=1))
      sections.append(SectionOutline(title=section_title, subsections=subsections))

    chapters.append(ChapterOutline(number=index, title=title, sections=tuple(sections)))

  return Outline(chapters=tuple(chapters))
