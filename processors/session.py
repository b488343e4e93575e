"""
Analysis session: page/agent selection state and pipeline sequencing

The session owns every piece of mutable state. The presentation layer reads
snapshots and forwards user intents; the renderer, extractor and agent runner
only return values that the session applies.
"""

import asyncio
import inspect
import time
from collections.abc import Iterable
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set

from processors.aggregation import build_dashboard
from processors.errors import (
    AgentExecutionFailure,
    ExtractionFailure,
    InputValidationError,
    PipelineError,
    RenderFailure,
)
from processors.models import (
    BUSY_STATES,
    SYSTEM_PROVIDER,
    AgentDefinition,
    AnalysisResult,
    DashboardData,
    Page,
    ProcessingState,
    SessionSnapshot,
)
from utils.config import Config, get_config
from utils.logger import logger


async def iterate_fragments(produced: Any) -> AsyncIterator[str]:
    """Normalize an agent's output (str, iterable or async iterable) to fragments"""
    if isinstance(produced, str):
        yield produced
    elif hasattr(produced, "__aiter__"):
        async for fragment in produced:
            yield fragment
    elif isinstance(produced, Iterable):
        for fragment in produced:
            yield fragment
    else:
        raise TypeError(f"Unsupported agent output type: {type(produced).__name__}")


class AnalysisSession:
    """State machine driving render → OCR → multi-agent analysis"""

    def __init__(
        self,
        config: Optional[Config] = None,
        renderer=None,
        extractor=None,
        agent_runner=None,
        agents: Optional[Iterable[AgentDefinition]] = None,
        on_change: Optional[Callable[[SessionSnapshot], None]] = None,
    ):
        """
        Initialize an analysis session

        Args:
            config: Optional configuration object
            renderer: Object with `render(bytes) -> AsyncIterator[Page]`
            extractor: Object with async `extract(pages) -> str`
            agent_runner: Object with `run(agent, text)` returning a str or fragments
            agents: Agents available for selection (built-in catalog by default)
            on_change: Called with a fresh snapshot after every change
        """
        self.config = config or get_config()

        # Collaborators are built lazily so tests can inject fakes without API keys
        if renderer is None:
            from processors.document_renderer import DocumentRenderer
            renderer = DocumentRenderer(scale=self.config.processing.render_scale)
        if extractor is None:
            from extractors import get_extractor
            extractor = get_extractor(self.config)
        if agent_runner is None:
            from processors.agent_runner import AgentRunner
            agent_runner = AgentRunner(self.config)
        if agents is None:
            from agent_catalog import AGENTS
            agents = AGENTS

        self.renderer = renderer
        self.extractor = extractor
        self.agent_runner = agent_runner
        self.on_change = on_change

        self.agents: Dict[str, AgentDefinition] = {}
        for agent in agents:
            if agent.name in self.agents:
                raise ValueError(f"Duplicate agent name: {agent.name}")
            # Resolving the label raises ValueError for a model with no known provider
            logger.debug(f"Registered agent '{agent.name}' ({agent.provider_label})")
            self.agents[agent.name] = agent

        self.state = ProcessingState.IDLE
        self.document: Optional[bytes] = None
        self.pages: List[Page] = []
        self.selected_pages: Set[int] = set()
        self.extracted_text: str = ""
        # Insertion order is the selection order
        self.selected_agents: Dict[str, AgentDefinition] = {}
        self.results: List[AnalysisResult] = []
        self.partial_outputs: Dict[str, str] = {}
        self.error: Optional[PipelineError] = None

        self._generation = 0
        self._closed = False

    # ----- read side -----

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    @property
    def dashboard(self) -> DashboardData:
        # Computed on demand so it always reflects the current results
        return build_dashboard(self.results)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            pages=list(self.pages),
            selected_pages=sorted(self.selected_pages),
            extracted_text=self.extracted_text,
            selected_agents=list(self.selected_agents),
            results=list(self.results),
            partial_outputs=dict(self.partial_outputs),
            error=self.error_message,
            error_kind=self.error.kind if self.error else None,
            dashboard=self.dashboard,
        )

    # ----- internal helpers -----

    def _notify(self):
        if self.on_change is not None:
            self.on_change(self.snapshot())

    def _set_state(self, state: ProcessingState):
        if state != self.state:
            logger.info(f"State: {self.state.value} → {state.value}")
        self.state = state
        self._notify()

    def _reject(self, message: str) -> bool:
        logger.warning(f"⚠️ Rejected: {message}")
        self.error = InputValidationError(message)
        self._notify()
        return False

    def _can_start_stage(self) -> bool:
        if self._closed:
            return self._reject("The session has been closed.")
        if self.is_busy:
            return self._reject("Another operation is already in progress.")
        return True

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    def close(self):
        """Discard any result that arrives from work still in flight"""
        self._closed = True
        self._generation += 1
        logger.debug("Session closed")

    # ----- intents -----

    async def select_document(self, document: bytes) -> bool:
        """
        Load a new document and render all of its pages

        Args:
            document: Raw PDF bytes

        Returns:
            True when every page was rendered
        """
        if not self._can_start_stage():
            return False

        self._generation += 1
        generation = self._generation

        self.document = document
        self.pages = []
        self.selected_pages = set()
        self.extracted_text = ""
        self.selected_agents = {}
        self.results = []
        self.partial_outputs = {}
        self.error = None
        self._set_state(ProcessingState.RENDERING_DOCUMENT)

        rendered: List[Page] = []
        try:
            async for page in self.renderer.render(document):
                rendered.append(page)

            rendered.sort(key=lambda page: page.page_number)
            page_numbers = [page.page_number for page in rendered]
            if not rendered:
                raise RenderFailure("The PDF file has no pages.")
            if page_numbers != list(range(1, len(rendered) + 1)):
                raise RenderFailure(f"Renderer returned an incomplete page sequence: {page_numbers}")

        except Exception as e:
            if self._is_stale(generation):
                logger.debug("Discarding render failure from a replaced document")
                return False
            failure = e if isinstance(e, RenderFailure) else RenderFailure(
                "Failed to load or render the PDF file."
            )
            logger.error(f"Error processing PDF: {e}")
            self.error = failure
            self._set_state(ProcessingState.ERRORED)
            return False

        if self._is_stale(generation):
            logger.debug("Discarding pages rendered for a replaced document")
            return False

        self.pages = rendered
        self.selected_pages = set(page_numbers)
        self.error = None
        logger.info(f"✅ Rendered {len(rendered)} pages")
        self._set_state(ProcessingState.IDLE)
        return True

    def toggle_page(self, page_number: int) -> bool:
        """Add or remove a page from the OCR selection"""
        if page_number not in {page.page_number for page in self.pages}:
            return self._reject(f"Page {page_number} does not exist in the current document.")

        if page_number in self.selected_pages:
            self.selected_pages.discard(page_number)
        else:
            self.selected_pages.add(page_number)
        self._notify()
        return True

    def toggle_agent(self, agent_name: str) -> bool:
        """Add an agent to the end of the selection, or remove it"""
        agent = self.agents.get(agent_name)
        if agent is None:
            return self._reject(f"Unknown agent: {agent_name}")

        if agent_name in self.selected_agents:
            del self.selected_agents[agent_name]
        else:
            self.selected_agents[agent_name] = agent
        self._notify()
        return True

    async def request_extraction(self) -> bool:
        """
        Run OCR on the selected pages

        Returns:
            True when text was extracted
        """
        if not self._can_start_stage():
            return False

        pages = [page for page in self.pages if page.page_number in self.selected_pages]
        if not pages:
            return self._reject("Please select at least one page for OCR.")

        generation = self._generation
        self.error = None
        self._set_state(ProcessingState.EXTRACTING_TEXT)

        try:
            text = await asyncio.wait_for(
                self.extractor.extract(pages),
                timeout=self.config.processing.ocr_timeout
            )
        except asyncio.TimeoutError:
            if self._is_stale(generation):
                return False
            logger.error(f"OCR timed out after {self.config.processing.ocr_timeout}s")
            self.error = ExtractionFailure("Text extraction timed out.")
            self._set_state(ProcessingState.IDLE)
            return False
        except Exception as e:
            if self._is_stale(generation):
                return False
            logger.error(f"OCR failed: {e}")
            self.error = e if isinstance(e, ExtractionFailure) else ExtractionFailure(
                str(e) or "An unknown OCR error occurred."
            )
            self._set_state(ProcessingState.IDLE)
            return False

        if self._is_stale(generation):
            logger.debug("Discarding OCR result for a replaced document")
            return False

        self.extracted_text = text or ""
        self.error = None
        logger.info(f"✅ Extracted {len(self.extracted_text)} chars from pages {[p.page_number for p in pages]}")
        self._set_state(ProcessingState.IDLE)
        return True

    async def request_analysis(self) -> bool:
        """
        Run every selected agent concurrently over the extracted text

        Returns:
            True when the batch completed (individual agents may have failed)
        """
        if not self._can_start_stage():
            return False
        if not self.extracted_text:
            return self._reject("Please perform OCR on the document first.")
        if not self.selected_agents:
            return self._reject("Please select at least one agent to run.")

        agents = list(self.selected_agents.values())
        document_text = self.extracted_text
        generation = self._generation

        self.error = None
        self.results = []
        self.partial_outputs = {agent.name: "" for agent in agents}
        self._set_state(ProcessingState.RUNNING_AGENTS)
        logger.info(f"🚀 Running {len(agents)} agents: {[agent.name for agent in agents]}")

        results = await asyncio.gather(
            *[self._run_agent(agent, document_text, generation) for agent in agents]
        )

        if self._is_stale(generation):
            logger.debug("Discarding agent results for a replaced document")
            return False

        self.results = list(results)
        self.error = None
        failed = sum(1 for result in self.results if result.is_error)
        logger.info(f"✨ Analysis complete: {len(self.results) - failed} succeeded, {failed} failed")
        self._set_state(ProcessingState.COMPLETE)
        return True

    # ----- agent fan-out -----

    async def _collect_output(self, agent: AgentDefinition, document_text: str, generation: int) -> str:
        produced = self.agent_runner.run(agent, document_text)
        if inspect.isawaitable(produced):
            produced = await produced

        output = ""
        fragments = iterate_fragments(produced)
        try:
            async for fragment in fragments:
                if not fragment:
                    continue
                output += fragment
                if not self._is_stale(generation):
                    self.partial_outputs[agent.name] = output
                    self._notify()
        finally:
            await fragments.aclose()
            if hasattr(produced, "aclose"):
                await produced.aclose()
        return output

    async def _run_agent(self, agent: AgentDefinition, document_text: str, generation: int) -> AnalysisResult:
        """Run one agent; failures become an error-tagged result"""
        provider = agent.provider_label
        start_time = time.perf_counter()
        try:
            output = await asyncio.wait_for(
                self._collect_output(agent, document_text, generation),
                timeout=self.config.processing.agent_timeout
            )
            latency = time.perf_counter() - start_time
            logger.info(f"✅ Agent '{agent.name}' finished in {latency:.2f}s ({len(output)} chars)")
            return AnalysisResult(
                agent_name=agent.name,
                output=output,
                latency_in_seconds=latency,
                provider=provider,
                model=agent.model,
            )

        except Exception as e:
            latency = time.perf_counter() - start_time
            if isinstance(e, asyncio.TimeoutError):
                failure = AgentExecutionFailure(agent.name, f"timed out after {self.config.processing.agent_timeout}s")
            elif isinstance(e, AgentExecutionFailure):
                failure = e
            else:
                failure = AgentExecutionFailure(agent.name, str(e) or type(e).__name__)
            logger.error(f"Error with agent {agent.name}: {failure}")
            return AnalysisResult(
                agent_name=agent.name,
                output=f"Error: {failure}",
                latency_in_seconds=latency,
                provider=SYSTEM_PROVIDER,
                model=agent.model,
            )
