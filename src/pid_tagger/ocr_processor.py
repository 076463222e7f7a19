"""OCR fallback for scanned P&ID pages that carry no text layer."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from PIL import Image
import pytesseract
from pytesseract import Output

from config import Settings
from .logging_utils import get_logger

logger = get_logger(__name__)

# A backend returns the page text and per-word confidences in the 0..1 range.
OCRCallable = Callable[[Image.Image], Tuple[str, Iterable[float]]]


class OCRProcessingError(RuntimeError):
    """Raised when OCR fails for a given page."""


@dataclass(frozen=True)
class OCRResult:
    page_number: int
    text: str
    average_confidence: Optional[float] = None


class OCRProcessor:
    """Recognize text in rendered page images using a configurable backend."""

    def __init__(
        self,
        settings: Settings,
        backend: Optional[str] = None,
        custom_callable: Optional[OCRCallable] = None,
    ):
        self.settings = settings
        self.backend = backend or settings.ocr_backend
        self.custom_callable = custom_callable or self._load_custom_callable()

    def recognize(self, image: Image.Image, page_number: int) -> OCRResult:
        """Run OCR on one page image."""
        if self.custom_callable:
            text, confidences = self.custom_callable(image)
        elif self.backend == "tesseract":
            text, confidences = self._run_tesseract(image)
        else:
            raise OCRProcessingError(f"Unsupported OCR backend '{self.backend}'.")

        average = self._average(confidences)
        if average is not None and average < self.settings.ocr_warn_threshold:
            logger.warning(
                "Low OCR confidence for page %s (avg=%.2f). Tags may be missed; review the source PDF.",
                page_number,
                average,
            )
        return OCRResult(page_number=page_number, text=text, average_confidence=average)

    def _run_tesseract(self, image: Image.Image) -> Tuple[str, List[float]]:
        try:
            text = pytesseract.image_to_string(image)
            data = pytesseract.image_to_data(image, output_type=Output.DICT)
        except pytesseract.TesseractNotFoundError as exc:
            raise OCRProcessingError(
                "Tesseract binary not found. Install it or configure a custom OCR backend."
            ) from exc

        confidences: List[float] = []
        for word, confidence in zip(data["text"], data["conf"]):
            if not word.strip():
                continue
            try:
                value = float(confidence)
            except ValueError:
                continue
            if value < 0:
                continue
            confidences.append(min(max(value / 100.0, 0.0), 1.0))
        return text, confidences

    @staticmethod
    def _average(confidences: Iterable[float]) -> Optional[float]:
        values = list(confidences)
        if not values:
            return None
        return sum(values) / len(values)

    def _load_custom_callable(self) -> Optional[OCRCallable]:
        backend_path = self.backend
        if backend_path == "tesseract":
            return None
        if backend_path == "custom":
            if not self.settings.ocr_handler:
                raise OCRProcessingError("Custom OCR backend selected but PIDTAG_OCR_HANDLER is not set.")
            backend_path = self.settings.ocr_handler
        try:
            module_name, func_name = backend_path.rsplit(":", 1)
        except ValueError:
            raise OCRProcessingError(
                "Custom OCR backend must be specified as 'module:function'."
            ) from None

        module = importlib.import_module(module_name)
        callable_obj = getattr(module, func_name, None)
        if callable_obj is None:
            raise OCRProcessingError(f"Function '{func_name}' not found in module '{module_name}'.")
        return callable_obj
