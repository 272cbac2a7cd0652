"""Storage interface for projects, their chapters, images and translations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol

ProjectStatus = Literal["DRAFT", "GENERATING_CONTENT", "TRANSLATING", "GENERATING_DOCUMENTS", "COMPLETED", "FAILED"]
Language = Literal["ENGLISH", "GERMAN", "FRENCH", "SPANISH", "ITALIAN"]
TranslationStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED", "FAILED"]

BASE_LANGUAGE: Language = "ENGLISH"
LANGUAGES: tuple[Language, ...] = ("ENGLISH", "GERMAN", "FRENCH", "SPANISH", "ITALIAN")

# Front matter slots; content chapters start at FRONT_MATTER_CHAPTERS.
TITLE_PAGE_ORDER = 0
COPYRIGHT_ORDER = 1
ABOUT_BOOK_ORDER = 2
TABLE_OF_CONTENTS_ORDER = 3
FRONT_MATTER_CHAPTERS = 4


@dataclass
class ProjectRecord:
  project_id: str
  title: str
  subtitle: str | None = None
  author: str | None = None
  description: str | None = None
  status: ProjectStatus = "DRAFT"
  number_of_chapters: int = 10
  user_id: str | None = None


@dataclass(frozen=True)
class ChapterRecord:
  chapter_id: str
  project_id: str
  title: str
  order: int
  content: str


@dataclass(frozen=True)
class ImageRecord:
  image_id: str
  project_id: str
  url: str
  caption: str | None = None
  chapter_number: int | None = None
  position: int = 0
  is_map: bool = False


@dataclass
class ProjectBundle:
  """A project with chapters sorted by order and its images."""

  project: ProjectRecord
  chapters: list[ChapterRecord] = field(default_factory=list)
  images: list[ImageRecord] = field(default_factory=list)


@dataclass
class TranslationRecord:
  translation_id: str
  project_id: str
  language: Language
  title: str
  subtitle: str | None = None
  content: list[dict[str, Any]] = field(default_factory=list)
  status: TranslationStatus = "PENDING"
  completed_at: datetime | None = None


class ProjectsRepository(Protocol):
  """Repository contract for project content."""

  async def get_project(self, project_id: str) -> ProjectRecord | None:
    """Fetch a project by identifier."""

  async def get_project_bundle(self, project_id: str) -> ProjectBundle | None:
    """Fetch a project together with its chapters and images."""

  async def update_project(self, project_id: str, *, status: ProjectStatus | None = None, number_of_chapters: int | None = None) -> ProjectRecord | None:
    """Apply partial updates; returns ``None`` when the project is gone."""

  async def add_chapter(self, record: ChapterRecord) -> None:
    """Persist one chapter row."""

  async def list_chapters(self, project_id: str) -> list[ChapterRecord]:
    """Return chapters sorted by order."""

  async def count_chapters(self, project_id: str) -> int:
    """Return the number of persisted chapters."""

  async def delete_chapters(self, project_id: str) -> int:
    """Delete every chapter of a project and return how many were removed."""

  async def get_translation(self, project_id: str, language: Language) -> TranslationRecord | None:
    """Fetch the translation for one language."""

  async def list_translations(self, project_id: str) -> list[TranslationRecord]:
    """Return every translation of a project."""

  async def save_translation(self, record: TranslationRecord) -> TranslationRecord:
    """Insert or update the translation keyed by (project, language)."""
