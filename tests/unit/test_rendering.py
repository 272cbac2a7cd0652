from __future__ import annotations

import io

import httpx
import pytest
from docx import Document

from guidebook.rendering import RenderChapter, RenderImage, RenderRequest, build_filename
from guidebook.rendering.docx import build_docx, fetch_images
from guidebook.rendering.pdf import build_html
from guidebook.services.storage_client import object_name_for


def _request(**overrides) -> RenderRequest:
  values = {
    "title": "Lisbon Unfolded",
    "subtitle": "A Slow Travel Guide",
    "author": "Ana Reis",
    "language": "ENGLISH",
    "chapters": (
      RenderChapter(title="Table of Contents", content="Introduction\n    Getting Around", order=3),
      RenderChapter(title="Introduction", content="Welcome to **Lisbon**.\n\n- Trams\n- Ferries", order=4),
    ),
    "images": (
      RenderImage(url="https://img.example.test/tram.png", caption="Tram 28 <uphill>", chapter_number=4),
      RenderImage(url="https://img.example.test/map.png", is_map=True),
    ),
  }
  values.update(overrides)
  return RenderRequest(**values)


def test_build_filename_slugs_title_and_language() -> None:
  assert build_filename("Lisbon: Unfolded!", "FRENCH", "pdf") == "lisbon_unfolded_french.pdf"
  assert build_filename("???", "ENGLISH", "docx") == "travel_guide_english.docx"


def test_object_name_is_prefixed_and_unique_suffixed() -> None:
  assert object_name_for("books", "Lisbon Guide.PDF", unique="abc123") == "books/documents/lisbon_guide_abc123.pdf"
  assert object_name_for("", "notes", unique="x") == "documents/notes_x"


def test_images_are_split_between_chapters_and_map_section() -> None:
  request = _request()
  assert [image.caption for image in request.images_for(request.chapters[1])] == ["Tram 28 <uphill>"]
  assert request.images_for(request.chapters[0]) == []
  assert [image.url for image in request.map_images] == ["https://img.example.test/map.png"]


def test_build_html_renders_markdown_and_escapes_text() -> None:
  document = build_html(_request())
  assert "<strong>Lisbon</strong>" in document
  assert "<pre>Introduction\n    Getting Around</pre>" in document
  assert "Tram 28 &lt;uphill&gt;" in document
  assert "<h2>Map</h2>" in document
  assert 'lang="en"' in document


def test_build_docx_writes_headings_and_bullets() -> None:
  data = build_docx(_request(images=()), {})
  document = Document(io.BytesIO(data))
  texts = [paragraph.text for paragraph in document.paragraphs]
  assert "Lisbon Unfolded" in texts
  assert "By Ana Reis" in texts
  assert "Introduction" in texts
  assert "Trams" in texts and "Ferries" in texts
  assert "    Getting Around" in texts


@pytest.mark.anyio
async def test_fetch_images_skips_failed_downloads() -> None:
  def handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/tram.png":
      return httpx.Response(200, content=b"png-bytes")
    return httpx.Response(404)

  images = [RenderImage(url="https://img.example.test/tram.png"), RenderImage(url="https://img.example.test/missing.png"), RenderImage(url="https://img.example.test/tram.png")]
  async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
    fetched = await fetch_images(images, client=client)

  assert fetched == {"https://img.example.test/tram.png": b"png-bytes"}


def test_translated_table_of_contents_keeps_indentation() -> None:
  request = _request(
    language="FRENCH",
    images=(),
    chapters=(
      RenderChapter(title="Table des matières", content="Chapitre 1\n  Section\n    Sous-partie", order=3),
      RenderChapter(title="Introduction", content="Bienvenue.", order=4),
    ),
  )

  assert "<pre>Chapitre 1\n  Section\n    Sous-partie</pre>" in build_html(request)
  texts = [paragraph.text for paragraph in Document(io.BytesIO(build_docx(request, {}))).paragraphs]
  assert "    Sous-partie" in texts


def test_stored_title_page_is_not_rendered_twice_and_blank_author_has_no_byline() -> None:
  request = _request(
    author="",
    images=(),
    chapters=(
      RenderChapter(title="Title Page", content="Lisbon Unfolded\n\nBy Ana Reis", order=0),
      RenderChapter(title="Copyright", content="Copyright notice", order=1),
    ),
  )

  html_document = build_html(request)
  assert "<h2>Title Page</h2>" not in html_document
  assert 'class="author"' not in html_document
  assert "<h2>Copyright</h2>" in html_document

  texts = [paragraph.text for paragraph in Document(io.BytesIO(build_docx(request, {}))).paragraphs]
  assert "Title Page" not in texts
  assert not any(text.startswith("By ") for text in texts)
  assert "Copyright" in texts
