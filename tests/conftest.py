"""Shared fixtures and fake collaborators for the analyzer test suite."""

import asyncio
import io
from typing import Dict, List, Optional

import pytest
from PIL import Image

from processors.errors import RenderFailure
from processors.models import AgentDefinition, Page
from processors.session import AnalysisSession
from utils.config import Config, LLMConfig, ProcessingConfig
from utils.rate_limiter import APIRateLimiters


def make_png(width: int = 40, height: int = 60, color: str = "white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_page(page_number: int) -> Page:
    return Page(page_number=page_number, image=f"page-{page_number}".encode(), width=40, height=60)


class FakeRenderer:
    """Yields `page_count` pages, optionally out of order or failing midway."""

    def __init__(self, page_count: int = 3, fail_after: Optional[int] = None, order: Optional[List[int]] = None):
        self.page_count = page_count
        self.fail_after = fail_after
        self.order = order
        self.calls: List[bytes] = []

    async def render(self, document: bytes):
        self.calls.append(document)
        for index, page_number in enumerate(self.order or range(1, self.page_count + 1)):
            if self.fail_after is not None and index >= self.fail_after:
                raise RenderFailure("Failed to load or render the PDF file.")
            await asyncio.sleep(0)
            yield make_page(page_number)


class FakeExtractor:
    def __init__(self, text: str = "Q1 revenue grew 10%.", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[List[int]] = []

    async def extract(self, pages):
        self.calls.append([page.page_number for page in pages])
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.text


class BlockingExtractor:
    """Holds the extraction open until `release` is set."""

    def __init__(self, text: str = "blocked text"):
        self.text = text
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def extract(self, pages):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self.text


class BlockingRenderer:
    """Yields page 1, then holds rendering open until `release` is set."""

    def __init__(self, page_count: int = 2):
        self.page_count = page_count
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def render(self, document: bytes):
        yield make_page(1)
        self.started.set()
        await self.release.wait()
        for page_number in range(2, self.page_count + 1):
            yield make_page(page_number)


class FakeAgentRunner:
    """
    Scripted agent client.

    outputs: agent name -> str (single value) or list of fragments (streamed)
    delays: agent name -> seconds to wait before answering
    failures: agent name -> exception to raise
    """

    def __init__(
        self,
        outputs: Optional[Dict[str, object]] = None,
        delays: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[str, Exception]] = None,
    ):
        self.outputs = outputs or {}
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls: List[tuple] = []

    async def _stream(self, fragments):
        for fragment in fragments:
            await asyncio.sleep(0)
            yield fragment

    async def run(self, agent, text):
        self.calls.append((agent.name, text))
        delay = self.delays.get(agent.name, 0)
        if delay:
            await asyncio.sleep(delay)
        if agent.name in self.failures:
            raise self.failures[agent.name]
        output = self.outputs.get(agent.name, f"{agent.name} output")
        if isinstance(output, list):
            return self._stream(output)
        return output


class BlockingAgentRunner:
    """Streams `first`, then waits for `release` before streaming `rest`."""

    def __init__(self, first: str = "Rev", rest: str = "enue"):
        self.first = first
        self.rest = rest
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: List[str] = []

    async def _stream(self):
        yield self.first
        self.started.set()
        await self.release.wait()
        yield self.rest

    def run(self, agent, text):
        self.calls.append(agent.name)
        return self._stream()


TEST_AGENTS = [
    AgentDefinition(name="Summarizer", prompt="Summarize the document.", model="claude-3-5-haiku-20241022"),
    AgentDefinition(name="Keywords", prompt="List the keywords.", model="claude-sonnet-4-20250514"),
    AgentDefinition(name="Sentiment", prompt="Classify the sentiment.", model="gpt-4o"),
]


@pytest.fixture
def config():
    return Config(
        llm=LLMConfig(anthropic_api_key="test-key", openai_api_key="test-key"),
        processing=ProcessingConfig(ocr_timeout=5.0, agent_timeout=5.0),
    )


@pytest.fixture
def fast_limiters():
    return APIRateLimiters(rates={'anthropic': 1000.0, 'openai': 1000.0, 'general': 1000.0})


@pytest.fixture
def make_session(config):
    """Build a session wired to fake collaborators."""

    def _make(renderer=None, extractor=None, agent_runner=None, agents=None, on_change=None, session_config=None):
        return AnalysisSession(
            config=session_config or config,
            renderer=renderer or FakeRenderer(),
            extractor=extractor or FakeExtractor(),
            agent_runner=agent_runner or FakeAgentRunner(),
            agents=agents if agents is not None else TEST_AGENTS,
            on_change=on_change,
        )

    return _make
