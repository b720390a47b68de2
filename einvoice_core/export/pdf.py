"""
PDF Export
==========

Renders HTML into a paginated PDF with PyMuPDF's Story layout engine.
"""

from pathlib import Path
from typing import Optional
import logging

import fitz  # PyMuPDF

from einvoice_core.errors import ExportFailure
from einvoice_core.export.base import BaseExporter, ExportResult

logger = logging.getLogger(__name__)

DEFAULT_CSS = "body { font-family: sans-serif; }"


class PyMuPDFExporter(BaseExporter):
    """
    HTML to PDF backend based on ``fitz.Story``.

    Args:
        paper_size: PyMuPDF paper name ("a4", "letter", ...)
        margin: Page margin in points on every side
        user_css: Extra CSS applied on top of the document's own styles
        max_pages: Abort layouts that run longer than this
    """

    def __init__(self,
                 paper_size: str = "a4",
                 margin: float = 36.0,
                 user_css: Optional[str] = None,
                 max_pages: int = 500):
        self.paper_size = paper_size
        self.margin = margin
        self.user_css = user_css if user_css is not None else DEFAULT_CSS
        self.max_pages = max_pages

    def export(self, html: str, output_path: Path) -> ExportResult:
        output_path = Path(output_path)

        mediabox = fitz.paper_rect(self.paper_size)
        where = mediabox + (self.margin, self.margin, -self.margin, -self.margin)

        logger.info(f"Rendering PDF ({self.paper_size}) to {output_path}")
        page_count = 0
        try:
            story = fitz.Story(html=html, user_css=self.user_css)
            writer = fitz.DocumentWriter(str(output_path))
            try:
                more = True
                while more:
                    if page_count >= self.max_pages:
                        raise ExportFailure(f"Layout exceeded {self.max_pages} pages")
                    device = writer.begin_page(mediabox)
                    more, _ = story.place(where)
                    story.draw(device)
                    writer.end_page()
                    page_count += 1
            finally:
                writer.close()
        except ExportFailure:
            raise
        except (RuntimeError, ValueError, fitz.mupdf.FzErrorBase) as e:
            logger.error(f"PDF rendering failed: {e}")
            raise ExportFailure(f"PDF rendering failed: {e}") from e

        result = ExportResult(
            output_path=output_path,
            page_count=page_count,
            size_bytes=output_path.stat().st_size,
            metadata={"paper_size": self.paper_size, "backend": "pymupdf"},
        )
        logger.info(f"PDF written: {result.summary()}")
        return result
