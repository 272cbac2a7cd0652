"""Render request/response types shared by the PDF and DOCX renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from guidebook.storage.projects_repo import TABLE_OF_CONTENTS_ORDER, TITLE_PAGE_ORDER
from guidebook.utils.ids import sanitize_filename


@dataclass(frozen=True)
class RenderChapter:
  title: str
  content: str
  order: int

  @property
  def preformatted(self) -> bool:
    # Located by slot so translated titles are still recognised.
    return self.order == TABLE_OF_CONTENTS_ORDER


@dataclass(frozen=True)
class RenderImage:
  url: str
  caption: str | None = None
  chapter_number: int | None = None
  is_map: bool = False


@dataclass(frozen=True)
class RenderRequest:
  title: str
  author: str
  language: str
  subtitle: str | None = None
  chapters: tuple[RenderChapter, ...] = ()
  images: tuple[RenderImage, ...] = field(default=())

  @property
  def body_chapters(self) -> list[RenderChapter]:
    """Every chapter except the stored title page; renderers build the title block from the request."""
    return [chapter for chapter in self.chapters if chapter.order != TITLE_PAGE_ORDER]

  def images_for(self, chapter: RenderChapter) -> list[RenderImage]:
    """Images pinned to a chapter; ``chapter_number`` refers to the chapter's order."""
    return [image for image in self.images if not image.is_map and image.chapter_number == chapter.order]

  @property
  def map_images(self) -> list[RenderImage]:
    return [image for image in self.images if image.is_map]


@dataclass(frozen=True)
class RenderedDocument:
  buffer: bytes
  filename: str
  content_type: str


class DocumentRenderer(Protocol):
  async def render(self, request: RenderRequest) -> RenderedDocument:
    """Render the whole book into one binary document."""
    ...


def build_filename(title: str, language: str, extension: str) -> str:
  return f"{sanitize_filename(title, fallback='travel_guide')}_{language.lower()}.{extension}"
