"""Per-page text recovery from P&ID PDFs."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import fitz  # PyMuPDF
from PIL import Image
from PyPDF2 import PdfReader

from config import Settings
from .logging_utils import get_logger
from .ocr_processor import OCRProcessor
from .pipeline import RawPage

logger = get_logger(__name__)


class PageReadError(RuntimeError):
    """Raised when no page text can be recovered from a PDF."""


class PageTextReader:
    """Read the text layer of every page, optionally falling back to OCR."""

    def __init__(self, settings: Settings, ocr_processor: Optional[OCRProcessor] = None):
        self.settings = settings
        self._ocr_processor = ocr_processor

    @property
    def ocr_processor(self) -> OCRProcessor:
        if self._ocr_processor is None:
            self._ocr_processor = OCRProcessor(self.settings)
        return self._ocr_processor

    def read_pages(self, pdf_path: Path) -> List[RawPage]:
        """
        Return one RawPage per PDF page, numbered from 1.

        Args:
            pdf_path: Location of the P&ID PDF.

        Returns:
            Pages in document order. A page without recoverable text has empty text.
        """
        pdf_path = Path(pdf_path).resolve()
        if not pdf_path.exists():
            raise PageReadError(f"PDF not found: {pdf_path}")

        try:
            pages = self._read_with_pymupdf(pdf_path)
            logger.info("Read text from %s pages using PyMuPDF", len(pages))
            return pages
        except Exception as primary_error:  # pylint: disable=broad-except
            logger.warning("PyMuPDF text extraction failed (%s). Falling back to PyPDF2.", primary_error)
            try:
                pages = self._read_with_pypdf2(pdf_path)
                logger.info("Read text from %s pages using PyPDF2 fallback", len(pages))
                return pages
            except Exception as fallback_error:  # pylint: disable=broad-except
                raise PageReadError(
                    f"Unable to read PDF with PyMuPDF or PyPDF2: {fallback_error}"
                ) from fallback_error

    def _read_with_pymupdf(self, pdf_path: Path) -> List[RawPage]:
        pages: List[RawPage] = []
        with fitz.open(pdf_path) as document:
            for page_index in range(len(document)):
                page = document.load_page(page_index)
                text = page.get_text("text") or ""
                if not text.strip() and self.settings.ocr_fallback:
                    text = self._ocr_page(page, page_index + 1)
                pages.append(RawPage(page_number=page_index + 1, text=text))
        return pages

    def _read_with_pypdf2(self, pdf_path: Path) -> List[RawPage]:
        reader = PdfReader(str(pdf_path))
        pages: List[RawPage] = []
        for page_index, page in enumerate(reader.pages):
            pages.append(RawPage(page_number=page_index + 1, text=page.extract_text() or ""))
        if self.settings.ocr_fallback and any(not page.text.strip() for page in pages):
            logger.warning("OCR fallback needs PyMuPDF rendering; blank pages are left empty.")
        return pages

    def _ocr_page(self, page: "fitz.Page", page_number: int) -> str:
        zoom = self.settings.pdf_render_dpi / 72.0
        pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
        mode = "RGBA" if pixmap.alpha else "RGB"
        image = Image.frombytes(mode, [pixmap.width, pixmap.height], pixmap.samples)
        try:
            if pixmap.alpha:
                image = image.convert("RGB")
            result = self.ocr_processor.recognize(image, page_number)
        finally:
            image.close()
        logger.debug("OCR recovered %s characters on page %s", len(result.text), page_number)
        return result.text
