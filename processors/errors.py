"""
Error taxonomy for the analysis pipeline
"""


class PipelineError(Exception):
    """Base class for every user-visible pipeline error"""
    kind = "pipeline"


class InputValidationError(PipelineError):
    """A local precondition was not met; nothing was sent to a service"""
    kind = "validation"


class RenderFailure(PipelineError):
    """The document could not be parsed or rasterized"""
    kind = "render"


class ExtractionFailure(PipelineError):
    """The text extraction service failed; the user may retry"""
    kind = "extraction"


class AgentExecutionFailure(PipelineError):
    """A single agent failed; recorded as that agent's result"""
    kind = "agent"

    def __init__(self, agent_name: str, message: str):
        self.agent_name = agent_name
        super().__init__(f'Agent "{agent_name}" failed to execute: {message}')
