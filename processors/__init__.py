"""
Processor modules for the document analysis pipeline
"""

from .agent_runner import AgentRunner
from .document_renderer import DocumentRenderer
from .models import AgentDefinition, AnalysisResult, Page, ProcessingState, SessionSnapshot
from .session import AnalysisSession

__all__ = [
    'AgentRunner',
    'AgentDefinition',
    'AnalysisResult',
    'AnalysisSession',
    'DocumentRenderer',
    'Page',
    'ProcessingState',
    'SessionSnapshot'
]
