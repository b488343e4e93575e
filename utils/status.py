"""
Display metadata for pipeline processing states
"""

from typing import NamedTuple

from processors.models import ProcessingState


class StatusDescription(NamedTuple):
    label: str
    style_hint: str


# style_hint values are rich style strings
_STATUS_MAP = {
    ProcessingState.IDLE: StatusDescription("Awaiting Document", "grey62"),
    ProcessingState.RENDERING_DOCUMENT: StatusDescription("Rendering PDF...", "bold blue"),
    ProcessingState.EXTRACTING_TEXT: StatusDescription("Performing OCR...", "bold magenta"),
    ProcessingState.RUNNING_AGENTS: StatusDescription("Running Agents...", "bold yellow"),
    ProcessingState.COMPLETE: StatusDescription("Analysis Complete", "bold green"),
    ProcessingState.ERRORED: StatusDescription("An Error Occurred", "bold red"),
}


def describe(state: ProcessingState) -> StatusDescription:
    """Map a processing state to its label and style hint"""
    return _STATUS_MAP[ProcessingState(state)]
