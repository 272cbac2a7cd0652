"""PDF rendering through markdown and WeasyPrint."""

from __future__ import annotations

import html
import logging

import markdown
from starlette.concurrency import run_in_threadpool
from weasyprint import HTML

from guidebook.rendering.contracts import RenderedDocument, RenderImage, RenderRequest, build_filename

logger = logging.getLogger(__name__)

_STYLESHEET = """
@page { size: A5; margin: 18mm 16mm; @bottom-center { content: counter(page); font-size: 9pt; color: #666; } }
@page:first { @bottom-center { content: none; } }
body { font-family: Georgia, "Times New Roman", serif; font-size: 10.5pt; line-height: 1.5; color: #222; }
.title-page { page-break-after: always; text-align: center; padding-top: 30%; }
.title-page h1 { font-size: 26pt; margin-bottom: 6mm; }
.title-page .subtitle { font-size: 14pt; font-style: italic; }
.title-page .author { margin-top: 25mm; font-size: 13pt; }
.chapter { page-break-before: always; }
.chapter h2 { font-size: 17pt; border-bottom: 1px solid #ccc; padding-bottom: 2mm; }
.chapter pre { white-space: pre-wrap; font-family: inherit; }
figure { margin: 6mm 0; text-align: center; }
figure img { max-width: 100%; max-height: 120mm; }
figcaption { font-size: 9pt; color: #555; }
"""


def _figure(image: RenderImage) -> str:
  caption = f"<figcaption>{html.escape(image.caption)}</figcaption>" if image.caption else ""
  return f'<figure><img src="{html.escape(image.url, quote=True)}" alt="{html.escape(image.caption or "")}"/>{caption}</figure>'


def build_html(request: RenderRequest) -> str:
  """Build the book as one HTML document; chapter bodies are treated as markdown."""
  subtitle = f'<p class="subtitle">{html.escape(request.subtitle)}</p>' if request.subtitle else ""
  author = f'<p class="author">By {html.escape(request.author)}</p>' if request.author else ""
  parts = [f'<section class="title-page"><h1>{html.escape(request.title)}</h1>{subtitle}{author}</section>']

  for chapter in request.body_chapters:
    # The table of contents relies on exact indentation.
    if chapter.preformatted:
      body = f"<pre>{html.escape(chapter.content)}</pre>"
    else:
      body = markdown.markdown(chapter.content, extensions=["tables", "sane_lists"])
    figures = "".join(_figure(image) for image in request.images_for(chapter))
    parts.append(f'<section class="chapter"><h2>{html.escape(chapter.title)}</h2>{body}{figures}</section>')

  if request.map_images:
    parts.append('<section class="chapter"><h2>Map</h2>' + "".join(_figure(image) for image in request.map_images) + "</section>")

  return f'<!DOCTYPE html><html lang="{request.language[:2].lower()}"><head><meta charset="utf-8"><title>{html.escape(request.title)}</title><style>{_STYLESHEET}</style></head><body>{"".join(parts)}</body></html>'


class PdfRenderer:
  async def render(self, request: RenderRequest) -> RenderedDocument:
    html_document = build_html(request)
    # WeasyPrint is synchronous and CPU bound.
    pdf_bytes = await run_in_threadpool(lambda: HTML(string=html_document).write_pdf())
    filename = build_filename(request.title, request.language, "pdf")
    logger.info("Rendered PDF %s: %d bytes, %d chapters", filename, len(pdf_bytes), len(request.chapters))
    return RenderedDocument(buffer=pdf_bytes, filename=filename, content_type="application/pdf")
