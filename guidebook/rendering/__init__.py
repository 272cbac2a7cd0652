"""Document renderers keyed by document type."""

from __future__ import annotations

from guidebook.rendering.contracts import DocumentRenderer, RenderChapter, RenderedDocument, RenderImage, RenderRequest, build_filename
from guidebook.rendering.docx import DocxRenderer
from guidebook.rendering.pdf import PdfRenderer


def build_renderers() -> dict[str, DocumentRenderer]:
  return {"PDF": PdfRenderer(), "DOCX": DocxRenderer()}


__all__ = ["DocumentRenderer", "DocxRenderer", "PdfRenderer", "RenderChapter", "RenderImage", "RenderRequest", "RenderedDocument", "build_filename", "build_renderers"]
