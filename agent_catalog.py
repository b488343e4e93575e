"""
Built-in analysis agents
"""

from typing import List

from processors.models import AgentDefinition

FAST_MODEL = "claude-3-5-haiku-20241022"
PRO_MODEL = "claude-sonnet-4-20250514"

AGENTS: List[AgentDefinition] = [
    AgentDefinition(
        name="Document Summarizer",
        prompt="Provide a concise summary of this document, accurately capturing its core arguments and main findings.",
        model=FAST_MODEL,
    ),
    AgentDefinition(
        name="Keyword Extractor",
        prompt="Extract the most important keywords and technical terms from the document. Present them as a comma-separated list.",
        model=FAST_MODEL,
    ),
    AgentDefinition(
        name="Sentiment Analyzer",
        prompt="Analyze the overall sentiment of the document. Classify it as Positive, Negative, or Neutral, and provide a brief explanation for your reasoning.",
        model=PRO_MODEL,
    ),
    AgentDefinition(
        name="Action Item Identifier",
        prompt="List all specific action items, tasks, and to-dos mentioned in the document. If there are none, state that explicitly.",
        model=PRO_MODEL,
    ),
    AgentDefinition(
        name="Risk Assessment",
        prompt="Conduct a thorough risk assessment based on the document's content. Identify potential risks, underlying assumptions, and uncertainties. Formulate challenging questions about the content.",
        model=PRO_MODEL,
    ),
]


def get_agent(name: str) -> AgentDefinition:
    """Look up a built-in agent by name"""
    for agent in AGENTS:
        if agent.name == name:
            return agent
    raise KeyError(f"Unknown agent: {name}")
