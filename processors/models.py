"""
Data model shared by the pipeline stages and the presentation layer
"""

import base64
import re
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Provider tag for results produced by the system instead of a model
SYSTEM_PROVIDER = "System"

PROVIDER_LABELS = {
    'anthropic': 'Claude (Anthropic)',
    'openai': 'OpenAI',
}

_OPENAI_MODEL_PATTERN = re.compile(r"^(gpt|o\d)", re.IGNORECASE)


def provider_for_model(model: str) -> str:
    """Resolve the API provider serving a model identifier"""
    if 'claude' in model.lower():
        return 'anthropic'
    if _OPENAI_MODEL_PATTERN.match(model):
        return 'openai'
    raise ValueError(f"Unknown model provider for '{model}'")


class ProcessingState(str, Enum):
    """What the session is currently doing"""
    IDLE = "idle"
    RENDERING_DOCUMENT = "rendering_document"
    EXTRACTING_TEXT = "extracting_text"
    RUNNING_AGENTS = "running_agents"
    COMPLETE = "complete"
    ERRORED = "errored"


BUSY_STATES = frozenset({
    ProcessingState.RENDERING_DOCUMENT,
    ProcessingState.EXTRACTING_TEXT,
    ProcessingState.RUNNING_AGENTS,
})


class Page(BaseModel):
    """One rasterized page of the current document"""
    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    image: bytes = Field(repr=False)
    width: int = 0
    height: int = 0
    mime_type: str = "image/png"

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.image).decode('utf-8')

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"


class AgentDefinition(BaseModel):
    """A named prompt/model pairing applied to extracted text"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    prompt: str
    model: str

    @field_validator("model")
    @classmethod
    def model_has_provider(cls, value: str) -> str:
        provider_for_model(value)
        return value

    @property
    def provider(self) -> str:
        return provider_for_model(self.model)

    @property
    def provider_label(self) -> str:
        return PROVIDER_LABELS.get(self.provider, self.provider)


class AnalysisResult(BaseModel):
    """Output of one agent for one analysis run"""
    model_config = ConfigDict(frozen=True)

    agent_name: str
    output: str
    latency_in_seconds: float = Field(ge=0)
    provider: str
    model: str

    @property
    def is_error(self) -> bool:
        return self.provider == SYSTEM_PROVIDER


class LatencyPoint(BaseModel):
    agent_name: str
    latency_in_seconds: float
    provider: str


class OutputLengthPoint(BaseModel):
    agent_name: str
    character_count: int
    scale_max: float


class DashboardData(BaseModel):
    """Comparison series derived from the current results"""
    latency: List[LatencyPoint] = Field(default_factory=list)
    output_length: List[OutputLengthPoint] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    """Read-only view of the session handed to the presentation layer"""
    model_config = ConfigDict(frozen=True)

    state: ProcessingState
    pages: List[Page] = Field(default_factory=list)
    selected_pages: List[int] = Field(default_factory=list)
    extracted_text: str = ""
    selected_agents: List[str] = Field(default_factory=list)
    results: List[AnalysisResult] = Field(default_factory=list)
    partial_outputs: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    dashboard: DashboardData = Field(default_factory=DashboardData)

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES
