"""
Agent execution client for Claude and OpenAI chat models
"""

from typing import Any, AsyncIterator, Dict, Optional, Union

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from processors.errors import AgentExecutionFailure
from processors.models import AgentDefinition
from prompts import AGENT_SYSTEM_INSTRUCTION, get_agent_prompt
from utils.config import Config, get_config
from utils.logger import logger
from utils.rate_limiter import APIRateLimiters, get_rate_limiters


class AgentRunner:
    """Run one analysis agent against extracted document text"""

    def __init__(self, config: Optional[Config] = None, rate_limiters: Optional[APIRateLimiters] = None):
        """Initialize agent runner; SDK clients are created on first use"""
        self.config = config or get_config()
        self.rate_limiters = rate_limiters or get_rate_limiters()
        self._anthropic_client: Optional[AsyncAnthropic] = None
        self._openai_client: Optional[AsyncOpenAI] = None

    @property
    def anthropic_client(self) -> AsyncAnthropic:
        if self._anthropic_client is None:
            if not self.config.llm.anthropic_api_key:
                logger.warning("ANTHROPIC_API_KEY is not set; agent requests will be rejected")
            self._anthropic_client = AsyncAnthropic(api_key=self.config.llm.anthropic_api_key)
        return self._anthropic_client

    @property
    def openai_client(self) -> AsyncOpenAI:
        if self._openai_client is None:
            if not self.config.llm.openai_api_key:
                logger.warning("OPENAI_API_KEY is not set; agent requests will be rejected")
            self._openai_client = AsyncOpenAI(api_key=self.config.llm.openai_api_key)
        return self._openai_client

    def _openai_params(self, agent: AgentDefinition, document_text: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": agent.model,
            "messages": [
                {"role": "system", "content": AGENT_SYSTEM_INSTRUCTION},
                {"role": "user", "content": get_agent_prompt(agent.prompt, document_text)},
            ]
        }
        # GPT-5 only supports temperature=1 and max_completion_tokens
        if "gpt-5" in agent.model.lower():
            params["max_completion_tokens"] = self.config.llm.agent_max_tokens
        else:
            params["max_tokens"] = self.config.llm.agent_max_tokens
            params["temperature"] = self.config.llm.temperature
        return params

    def _anthropic_params(self, agent: AgentDefinition, document_text: str) -> Dict[str, Any]:
        return {
            "model": agent.model,
            "max_tokens": self.config.llm.agent_max_tokens,
            "temperature": self.config.llm.temperature,
            "system": AGENT_SYSTEM_INSTRUCTION,
            "messages": [{"role": "user", "content": get_agent_prompt(agent.prompt, document_text)}],
        }

    async def _complete(self, agent: AgentDefinition, document_text: str) -> str:
        """Single request returning the whole output"""
        await self.rate_limiters.get_limiter(agent.provider).acquire()
        try:
            if agent.provider == "anthropic":
                message = await self.anthropic_client.messages.create(
                    **self._anthropic_params(agent, document_text)
                )
                return "".join(block.text for block in message.content if block.type == "text")

            response = await self.openai_client.chat.completions.create(
                **self._openai_params(agent, document_text)
            )
            if not response.choices:
                return ""
            return response.choices[0].message.content or ""

        except Exception as e:
            logger.error(f'Error running agent "{agent.name}": {e}')
            raise AgentExecutionFailure(agent.name, str(e)) from e

    async def _stream(self, agent: AgentDefinition, document_text: str) -> AsyncIterator[str]:
        """Yield output fragments as the model produces them"""
        await self.rate_limiters.get_limiter(agent.provider).acquire()
        try:
            if agent.provider == "anthropic":
                async with self.anthropic_client.messages.stream(
                    **self._anthropic_params(agent, document_text)
                ) as stream:
                    async for text in stream.text_stream:
                        yield text
                return

            stream = await self.openai_client.chat.completions.create(
                stream=True, **self._openai_params(agent, document_text)
            )
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content

        except Exception as e:
            logger.error(f'Error running agent "{agent.name}": {e}')
            raise AgentExecutionFailure(agent.name, str(e)) from e

    async def run(self, agent: AgentDefinition, document_text: str) -> Union[str, AsyncIterator[str]]:
        """
        Start an agent run

        Args:
            agent: Agent definition to execute
            document_text: Extracted document text

        Returns:
            The full output, or an async iterator of output fragments when
            processing.stream_agent_output is enabled
        """
        logger.debug(f"🤖 Starting agent '{agent.name}' on {agent.model}")
        if self.config.processing.stream_agent_output:
            return self._stream(agent, document_text)
        return await self._complete(agent, document_text)
