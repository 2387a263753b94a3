from __future__ import annotations

import logging
from io import BytesIO
from typing import List

import pdfplumber
import pytesseract

from settings.config import settings

logger = logging.getLogger(__name__)


def _ocr_page(page, dpi: int, lang: str) -> str:
    image = page.to_image(resolution=dpi).original
    return pytesseract.image_to_string(image, lang=lang).strip()


def extract_text(
    content: bytes,
    ocr_enabled: bool | None = None,
    ocr_max_pages: int | None = None,
    ocr_dpi: int | None = None,
    max_pages: int | None = None,
) -> str:
    """
    Text of a PDF: the embedded text layer where there is one, tesseract OCR
    for pages that are only images. Blocking; run it off the event loop.
    """
    ocr_enabled = settings.OCR_ENABLED if ocr_enabled is None else ocr_enabled
    ocr_max_pages = settings.OCR_MAX_PAGES if ocr_max_pages is None else ocr_max_pages
    ocr_dpi = settings.OCR_DPI if ocr_dpi is None else ocr_dpi
    max_pages = settings.MAX_PAGES if max_pages is None else max_pages

    texts: List[str] = []
    ocr_pages = 0
    with pdfplumber.open(BytesIO(content)) as pdf:
        for index, page in enumerate(pdf.pages[:max_pages]):
            text = (page.extract_text() or "").strip()
            if not text and ocr_enabled and ocr_pages < ocr_max_pages:
                ocr_pages += 1
                try:
                    text = _ocr_page(page, ocr_dpi, settings.OCR_LANG)
                except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
                    logger.warning(f"OCR failed on page {index + 1}: {e}")
                    text = ""
            if text:
                texts.append(text)
    logger.debug(f"Extracted {sum(len(t) for t in texts)} chars, OCR on {ocr_pages} page(s)")
    return "\n\n".join(texts)
