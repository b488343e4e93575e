"""
PDF page renderer using PyMuPDF
"""

import asyncio
from typing import AsyncIterator

import fitz  # PyMuPDF

from processors.errors import RenderFailure
from processors.models import Page
from utils.logger import logger
from utils.validators import validate_pdf_bytes


class DocumentRenderer:
    """Rasterize every page of a PDF document to PNG bitmaps"""

    def __init__(self, scale: float = 1.5):
        """
        Initialize document renderer

        Args:
            scale: Zoom factor applied to the 72 dpi page size
        """
        self.scale = scale

    def _open(self, document: bytes) -> "fitz.Document":
        try:
            validate_pdf_bytes(document)
            doc = fitz.open(stream=document, filetype="pdf")
        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            raise RenderFailure("Failed to load or render the PDF file.") from e

        if doc.page_count == 0:
            doc.close()
            raise RenderFailure("The PDF file has no pages.")
        return doc

    def _render_page(self, doc: "fitz.Document", index: int) -> Page:
        page = doc[index]
        matrix = fitz.Matrix(self.scale, self.scale)
        pix = page.get_pixmap(matrix=matrix)
        page_data = Page(
            page_number=index + 1,
            image=pix.tobytes("png"),
            width=pix.width,
            height=pix.height,
        )
        pix = None
        return page_data

    async def render(self, document: bytes) -> AsyncIterator[Page]:
        """
        Render a PDF page by page

        Args:
            document: Raw PDF bytes

        Yields:
            Pages in ascending page number order
        """
        doc = await asyncio.to_thread(self._open, document)
        try:
            total_pages = doc.page_count
            logger.info(f"📄 Rendering {total_pages} pages at scale {self.scale}")

            for index in range(total_pages):
                try:
                    page = await asyncio.to_thread(self._render_page, doc, index)
                except Exception as e:
                    logger.error(f"Failed to render page {index + 1}: {e}")
                    raise RenderFailure("Failed to load or render the PDF file.") from e

                logger.debug(f"Rendered page {page.page_number}/{total_pages} ({page.width}x{page.height})")
                yield page
        finally:
            doc.close()
