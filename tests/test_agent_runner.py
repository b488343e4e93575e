"""Tests for the agent execution client with mocked SDK clients."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from processors.agent_runner import AgentRunner
from processors.errors import AgentExecutionFailure
from processors.models import AgentDefinition
from prompts import AGENT_SYSTEM_INSTRUCTION, DOCUMENT_CONTENT_SEPARATOR
from utils.config import Config, LLMConfig, ProcessingConfig

CLAUDE_AGENT = AgentDefinition(name="Summarizer", prompt="Summarize.", model="claude-3-5-haiku-20241022")
GPT_AGENT = AgentDefinition(name="Sentiment", prompt="Classify.", model="gpt-4o")


class FakeAnthropicStream:
    def __init__(self, fragments):
        self.fragments = fragments

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def _texts(self):
        for fragment in self.fragments:
            yield fragment

    @property
    def text_stream(self):
        return self._texts()


async def openai_chunks(fragments):
    for fragment in fragments:
        yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=fragment))])


def make_runner(fast_limiters, stream: bool) -> AgentRunner:
    config = Config(
        llm=LLMConfig(anthropic_api_key="test-key", openai_api_key="test-key"),
        processing=ProcessingConfig(stream_agent_output=stream),
    )
    runner = AgentRunner(config, rate_limiters=fast_limiters)
    runner._anthropic_client = MagicMock()
    runner._openai_client = MagicMock()
    return runner


async def test_claude_single_response(fast_limiters):
    runner = make_runner(fast_limiters, stream=False)
    runner.anthropic_client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text="A short summary.")])
    )

    output = await runner.run(CLAUDE_AGENT, "Q1 revenue grew 10%.")

    assert output == "A short summary."
    kwargs = runner.anthropic_client.messages.create.call_args.kwargs
    assert kwargs["model"] == "claude-3-5-haiku-20241022"
    assert kwargs["system"] == AGENT_SYSTEM_INSTRUCTION
    user_message = kwargs["messages"][0]["content"]
    assert user_message == f"Summarize.\n\n{DOCUMENT_CONTENT_SEPARATOR}\nQ1 revenue grew 10%."


async def test_claude_stream_yields_fragments(fast_limiters):
    runner = make_runner(fast_limiters, stream=True)
    runner.anthropic_client.messages.stream = MagicMock(return_value=FakeAnthropicStream(["Rev", "enue"]))

    fragments = await runner.run(CLAUDE_AGENT, "text")

    assert [fragment async for fragment in fragments] == ["Rev", "enue"]


async def test_openai_stream_skips_empty_deltas(fast_limiters):
    runner = make_runner(fast_limiters, stream=True)
    runner.openai_client.chat.completions.create = AsyncMock(return_value=openai_chunks(["Neu", None, "tral"]))

    fragments = await runner.run(GPT_AGENT, "text")

    assert [fragment async for fragment in fragments] == ["Neu", "tral"]
    kwargs = runner.openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["messages"][0] == {"role": "system", "content": AGENT_SYSTEM_INSTRUCTION}
    assert kwargs["max_tokens"] == 4096
    assert "temperature" in kwargs


async def test_gpt5_uses_max_completion_tokens(fast_limiters):
    runner = make_runner(fast_limiters, stream=False)
    runner.openai_client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="ok"))])
    )
    agent = AgentDefinition(name="Pro", prompt="p", model="gpt-5-2025-08-07")

    assert await runner.run(agent, "text") == "ok"

    kwargs = runner.openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["max_completion_tokens"] == 4096
    assert "temperature" not in kwargs


async def test_sdk_error_becomes_agent_execution_failure(fast_limiters):
    runner = make_runner(fast_limiters, stream=False)
    runner.anthropic_client.messages.create = AsyncMock(side_effect=RuntimeError("overloaded"))

    with pytest.raises(AgentExecutionFailure) as excinfo:
        await runner.run(CLAUDE_AGENT, "text")

    assert excinfo.value.agent_name == "Summarizer"
    assert "overloaded" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


async def test_stream_error_surfaces_while_iterating(fast_limiters):
    runner = make_runner(fast_limiters, stream=True)
    runner.openai_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("connection reset"))

    fragments = await runner.run(GPT_AGENT, "text")

    with pytest.raises(AgentExecutionFailure, match="connection reset"):
        [fragment async for fragment in fragments]
