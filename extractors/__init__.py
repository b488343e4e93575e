"""
Text extraction backends for the OCR stage
"""

from typing import Optional, Union

from utils.config import Config, get_config

from .llm_extractor import LLMExtractor
from .tesseract_extractor import TesseractExtractor


def get_extractor(config: Optional[Config] = None) -> Union[LLMExtractor, TesseractExtractor]:
    """Build the extractor selected by processing.ocr_backend"""
    config = config or get_config()
    if config.processing.ocr_backend == "tesseract":
        return TesseractExtractor(config)
    return LLMExtractor(config)


__all__ = [
    'LLMExtractor',
    'TesseractExtractor',
    'get_extractor'
]
