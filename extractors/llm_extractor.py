"""
LLM (Claude/GPT) based multimodal OCR over page images
"""

import asyncio
import base64
import io
from typing import Any, Dict, List, Optional, Sequence

from PIL import Image
from anthropic import Anthropic
from openai import OpenAI

from processors.errors import ExtractionFailure
from processors.models import Page
from prompts import OCR_PROMPT
from utils.config import Config, get_config
from utils.logger import logger, log_extraction_result
from utils.rate_limiter import APIRateLimiters, get_rate_limiters


class LLMExtractor:
    """Extract the combined text of several pages with one multimodal request"""

    def __init__(self, config: Optional[Config] = None, rate_limiters: Optional[APIRateLimiters] = None):
        """Initialize LLM extractor; SDK clients are created on first use"""
        self.name: str = "LLM"
        self.config = config or get_config()
        self.rate_limiters = rate_limiters or get_rate_limiters()
        self._anthropic_client: Optional[Anthropic] = None
        self._openai_client: Optional[OpenAI] = None

    @property
    def provider(self) -> str:
        return self.config.llm.provider

    @property
    def model(self) -> str:
        if self.provider == "anthropic":
            return self.config.llm.claude_ocr_model
        return self.config.llm.openai_ocr_model

    @property
    def anthropic_client(self) -> Anthropic:
        if self._anthropic_client is None:
            if not self.config.llm.anthropic_api_key:
                logger.warning("ANTHROPIC_API_KEY is not set; OCR requests will be rejected")
            self._anthropic_client = Anthropic(api_key=self.config.llm.anthropic_api_key)
        return self._anthropic_client

    @property
    def openai_client(self) -> OpenAI:
        if self._openai_client is None:
            if not self.config.llm.openai_api_key:
                logger.warning("OPENAI_API_KEY is not set; OCR requests will be rejected")
            self._openai_client = OpenAI(api_key=self.config.llm.openai_api_key)
        return self._openai_client

    def _resize_image_if_needed(self, image_bytes: bytes) -> bytes:
        """
        Resize image if it exceeds the provider's maximum dimension

        Args:
            image_bytes: Original PNG bytes

        Returns:
            Resized image bytes if needed, otherwise original bytes
        """
        max_dimension = self.config.processing.max_image_dimension
        try:
            img = Image.open(io.BytesIO(image_bytes))
            width, height = img.size

            if max(width, height) <= max_dimension:
                return image_bytes

            scale = max_dimension / max(width, height)
            new_width = int(width * scale)
            new_height = int(height * scale)
            logger.info(f"📐 Resizing image from {width}x{height} to {new_width}x{new_height}")

            img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)
            output = io.BytesIO()
            img.save(output, format='PNG', optimize=True)
            return output.getvalue()

        except Exception as e:
            logger.warning(f"Failed to resize image: {e}. Using original image.")
            return image_bytes

    def _encode_pages(self, pages: Sequence[Page]) -> List[str]:
        return [
            base64.b64encode(self._resize_image_if_needed(page.image)).decode('utf-8')
            for page in pages
        ]

    def _call_claude(self, images_base64: List[str]) -> str:
        """Call Claude API with the OCR prompt followed by every page image"""
        content: List[Dict[str, Any]] = [{"type": "text", "text": OCR_PROMPT}]
        for img_base64 in images_base64:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/png",
                    "data": img_base64
                }
            })

        message = self.anthropic_client.messages.create(
            model=self.config.llm.claude_ocr_model,
            max_tokens=self.config.llm.max_tokens,
            temperature=self.config.llm.temperature,
            messages=[{"role": "user", "content": content}]
        )
        return message.content[0].text if message.content else ""

    def _call_openai(self, images_base64: List[str]) -> str:
        """Call OpenAI API with the OCR prompt followed by every page image"""
        content: List[Dict[str, Any]] = [{"type": "text", "text": OCR_PROMPT}]
        for img_base64 in images_base64:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/png;base64,{img_base64}"}
            })

        completion_params: Dict[str, Any] = {
            "model": self.config.llm.openai_ocr_model,
            "messages": [{"role": "user", "content": content}]
        }

        # GPT-5 has different parameter requirements
        if "gpt-5" in self.config.llm.openai_ocr_model.lower():
            completion_params["max_completion_tokens"] = self.config.llm.max_tokens
        else:
            completion_params["max_tokens"] = self.config.llm.max_tokens
            completion_params["temperature"] = self.config.llm.temperature

        response = self.openai_client.chat.completions.create(**completion_params)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _extract_sync(self, pages: Sequence[Page]) -> str:
        images_base64 = self._encode_pages(pages)
        if self.provider == "anthropic":
            return self._call_claude(images_base64)
        return self._call_openai(images_base64)

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

        page_numbers = [page.page_number for page in pages]
        logger.info(f"🔍 OCR on pages {page_numbers} with {self.model}")

        try:
            await self.rate_limiters.get_limiter(self.provider).acquire()
            text = await asyncio.to_thread(self._extract_sync, pages)
        except Exception as e:
            logger.error(f"Error during OCR: {e}")
            log_extraction_result(self.name, False, str(e))
            raise ExtractionFailure("Failed to perform OCR on the document pages.") from e

        log_extraction_result(self.name, True, f"{len(text)} chars from {len(pages)} pages")
        return text
