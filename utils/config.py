"""
Configuration management for the agentic document analyzer
"""

import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class LLMConfig(BaseModel):
    """LLM provider configuration"""
    provider: str = Field(default="anthropic", pattern="^(anthropic|openai)$")
    anthropic_api_key: str = Field(default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", ""))
    openai_api_key: str = Field(default_factory=lambda: os.environ.get("OPENAI_API_KEY", ""))
    claude_ocr_model: str = Field(default="claude-sonnet-4-20250514")
    openai_ocr_model: str = Field(default="gpt-5-2025-08-07")
    max_tokens: int = Field(default=16384)
    agent_max_tokens: int = Field(default=4096)
    temperature: float = Field(default=0.1)


class ProcessingConfig(BaseModel):
    """Pipeline stage configuration"""
    render_scale: float = Field(default=1.5, gt=0, le=6)
    ocr_backend: str = Field(default="llm", pattern="^(llm|tesseract)$")
    stream_agent_output: bool = Field(default=True)
    ocr_timeout: float = Field(default=600.0, gt=0)
    agent_timeout: float = Field(default=600.0, gt=0)
    max_image_dimension: int = Field(default=7999, ge=256)
    tesseract_languages: str = Field(default="eng")


class Config(BaseModel):
    """Main analyzer configuration"""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)


# Global configuration instance
_config = None


def get_config() -> Config:
    """Get current configuration"""
    global _config
    if _config is None:
        _config = Config()
    return _config
