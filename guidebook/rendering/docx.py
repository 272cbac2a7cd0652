"""DOCX rendering with python-docx."""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping

import httpx
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.image.exceptions import UnrecognizedImageError
from docx.shared import Inches, Pt
from starlette.concurrency import run_in_threadpool

from guidebook.rendering.contracts import RenderedDocument, RenderImage, RenderRequest, build_filename

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
IMAGE_WIDTH = Inches(5.5)


async def fetch_images(images: list[RenderImage], *, client: httpx.AsyncClient | None = None, timeout: float = 20.0) -> dict[str, bytes]:
  """Download image bytes by URL; failures are logged and skipped."""
  fetched: dict[str, bytes] = {}
  if not images:
    return fetched

  owns_client = client is None
  http = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
  try:
    for image in images:
      if image.url in fetched:
        continue
      try:
        response = await http.get(image.url)
        response.raise_for_status()
      except httpx.HTTPError as exc:
        logger.warning("Skipping image %s: %s", image.url, exc)
        continue
      fetched[image.url] = response.content
  finally:
    if owns_client:
      await http.aclose()
  return fetched


def _add_picture(document, image: RenderImage, payloads: Mapping[str, bytes]) -> None:
  data = payloads.get(image.url)
  if data is None:
    return
  try:
    document.add_picture(io.BytesIO(data), width=IMAGE_WIDTH)
  except UnrecognizedImageError:
    logger.warning("Skipping image %s: unsupported format", image.url)
    return
  document.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER
  if image.caption:
    caption = document.add_paragraph(image.caption)
    caption.alignment = WD_ALIGN_PARAGRAPH.CENTER
    caption.runs[0].italic = True


def _add_body(document, content: str, *, preformatted: bool) -> None:
  if preformatted:
    # Keep line breaks and indentation, e.g. for the table of contents.
    for line in content.splitlines():
      document.add_paragraph(line)
    return
  for block in content.split("\n\n"):
    text = block.strip()
    if not text:
      continue
    if text.startswith(("- ", "* ")):
      for item in text.splitlines():
        document.add_paragraph(item.lstrip("-* ").strip(), style="List Bullet")
    elif text.startswith("#"):
      document.add_heading(text.lstrip("#").strip(), level=2)
    else:
      document.add_paragraph(text.replace("\n", " "))


def build_docx(request: RenderRequest, payloads: Mapping[str, bytes]) -> bytes:
  document = Document()
  document.styles["Normal"].font.size = Pt(11)

  heading = document.add_heading(request.title, level=0)
  heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
  if request.subtitle:
    subtitle = document.add_paragraph(request.subtitle)
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
  if request.author:
    byline = document.add_paragraph(f"By {request.author}")
    byline.alignment = WD_ALIGN_PARAGRAPH.CENTER

  for chapter in request.body_chapters:
    document.add_paragraph().add_run().add_break(WD_BREAK.PAGE)
    document.add_heading(chapter.title, level=1)
    _add_body(document, chapter.content, preformatted=chapter.preformatted)
    for image in request.images_for(chapter):
      _add_picture(document, image, payloads)

  if request.map_images:
    document.add_paragraph().add_run().add_break(WD_BREAK.PAGE)
    document.add_heading("Map", level=1)
    for image in request.map_images:
      _add_picture(document, image, payloads)

  buffer = io.BytesIO()
  document.save(buffer)
  return buffer.getvalue()


class DocxRenderer:
  def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
    self._http_client = http_client

  async def render(self, request: RenderRequest) -> RenderedDocument:
    payloads = await fetch_images(list(request.images), client=self._http_client)
    data = await run_in_threadpool(build_docx, request, payloads)
    filename = build_filename(request.title, request.language, "docx")
    logger.info("Rendered DOCX %s: %d bytes, %d chapters, %d images", filename, len(data), len(request.chapters), len(payloads))
    return RenderedDocument(buffer=data, filename=filename, content_type=DOCX_CONTENT_TYPE)
