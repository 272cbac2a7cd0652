"""Book content generation on top of a text generator."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from guidebook.ai import prompts
from guidebook.ai.outline import ChapterOutline, Outline, validate_outline

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
  async def generate_text(self, prompt: str) -> str: ...

  async def generate_json(self, prompt: str) -> Any: ...


class BookWriter:
  """Produce outline, chapters and front matter for one travel guide."""

  def __init__(self, generator: TextGenerator) -> None:
    self._generator = generator

  async def generate_outline(self, title: str, subtitle: str | None, number_of_chapters: int) -> Outline:
    """Generate an outline and fail with ``OutlineValidationError`` if its shape is wrong."""
    payload = await self._generator.generate_json(prompts.outline_prompt(title, subtitle, number_of_chapters))
    outline = validate_outline(payload, number_of_chapters)
    logger.info("Outline generated for '%s' with %d chapters", title, len(outline.chapters))
    return outline

  async def write_introduction(self, title: str, subtitle: str | None, outline: Outline) -> str:
    return await self._generator.generate_text(prompts.introduction_prompt(title, subtitle, outline.introduction))

  async def write_chapter(self, title: str, subtitle: str | None, chapter: ChapterOutline) -> str:
    return await self._generator.generate_text(prompts.chapter_prompt(title, subtitle, chapter))

  async def write_conclusion(self, title: str, subtitle: str | None, outline: Outline) -> str:
    return await self._generator.generate_text(prompts.conclusion_prompt(title, subtitle, outline.conclusion))

  async def write_about_book(self, title: str) -> str:
    return await self._generator.generate_text(prompts.about_book_prompt(title))


def title_page(title: str, subtitle: str | None, author: str) -> str:
  lines = [title]
  if subtitle:
    lines.append(subtitle)
  return "\n".join(lines) + f"\n\n\n(Including a map at the Last Page)\n\n\n\nBy\n{author}"


def copyright_page(author: str, year: int) -> str:
  return (
    f"Copyright © {year} {author}. All rights reserved.\n\n"
    "No part of this book may be reproduced, stored in a retrieval system, or transmitted in any form or by any means, "
    "electronic, mechanical, photocopying, recording, or otherwise, without the prior written permission of the publisher, "
    "except for the use of brief quotations in a review or academic work."
  )


def table_of_contents(outline: Outline) -> str:
  """Render chapters, sections (two-space indent) and subsections (four-space indent)."""
  parts = ["Table of Contents\n\n"]
  for chapter in outline.chapters:
    parts.append(f"Chapter {chapter.number}\n{chapter.title}\n\n")
    for section in chapter.sections:
      parts.append(f"  {section.title}\n")
      parts.extend(f"    {subsection}\n" for subsection in section.subsections)
      parts.append("\n")
    parts.append("\n")
  return "".join(parts)
