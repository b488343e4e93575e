"""
Tesseract OCR Extractor - local OCR backend that needs no API key
"""

import asyncio
import io
from typing import List, Optional, Sequence

import numpy as np
import pytesseract
from PIL import Image, ImageEnhance, ImageFilter

from processors.errors import ExtractionFailure
from processors.models import Page
from utils.config import Config, get_config
from utils.logger import logger, log_extraction_result


class TesseractExtractor:
    """Tesseract based OCR over rendered page images"""

    def __init__(self, config: Optional[Config] = None):
        self.name = "Tesseract-OCR"
        self.config = config or get_config()
        self.languages = self.config.processing.tesseract_languages
        # PSM 6: uniform block of text, OEM 3: LSTM + legacy engines
        self.tesseract_config = '--oem 3 --psm 6'

    def _preprocess_image(self, img: Image.Image) -> Image.Image:
        """Improve OCR accuracy on rendered pages"""
        try:
            if img.mode != 'L':
                img = img.convert('L')

            img = img.filter(ImageFilter.MedianFilter(size=3))
            img = ImageEnhance.Contrast(img).enhance(1.3)
            img = img.filter(ImageFilter.SHARPEN)

            width, height = img.size
            if width < 1500:
                scale = 1500 / width
                img = img.resize((int(width * scale), int(height * scale)), Image.Resampling.LANCZOS)

            # Mean threshold binarization
            img_array = np.array(img)
            threshold = np.mean(img_array)
            img_array = np.where(img_array > threshold, 255, 0).astype(np.uint8)
            return Image.fromarray(img_array)

        except Exception as e:
            logger.warning(f"Image preprocessing failed: {e}")
            return img

    def _extract_page(self, page: Page) -> str:
        img = self._preprocess_image(Image.open(io.BytesIO(page.image)))
        text = pytesseract.image_to_string(img, lang=self.languages, config=self.tesseract_config)
        return text.strip()

    def _extract_sync(self, pages: Sequence[Page]) -> str:
        page_texts: List[str] = []
        for page in pages:
            page_texts.append(self._extract_page(page))
            logger.debug(f"Tesseract: page {page.page_number} done")
        return '\n\n'.join(text for text in page_texts if text)

    async def extract(self, pages: Sequence[Page]) -> str:
        """
        Extract text from page images in page order

        Args:
            pages: Selected pages, ordered by page number

        Returns:
            Combined text of all pages
        """
        if not pages:
            return ""

        logger.info(f"🔍 Tesseract OCR on pages {[page.page_number for page in pages]}")
        try:
            text = await asyncio.to_thread(self._extract_sync, pages)
        except Exception as e:
            logger.error(f"❌ Tesseract processing failed: {e}")
            log_extraction_result(self.name, False, str(e))
            raise ExtractionFailure("Failed to perform OCR on the document pages.") from e

        log_extraction_result(self.name, True, f"{len(text)} chars from {len(pages)} pages")
        return text
