"""
LLM Prompts for the Agentic Document Analyzer

This module contains all prompts used by the OCR stage and the analysis agents.
All prompts are centrally managed here for consistency and maintainability.
"""


# ===== EXTRACTION PROMPTS (Used by LLMExtractor) =====

# Multi-page OCR prompt - page images follow this text in page order
OCR_PROMPT = """You are an expert OCR system. Extract ALL text from the following document pages.

REQUIREMENTS:
1. Pages are provided sequentially - keep them in the order given
2. Combine the text of all pages into a single, coherent document
3. Extract EVERY word and character, including headers, footers and tables
4. DO NOT summarize, abbreviate or skip anything
5. DO NOT add any commentary or formatting beyond the extracted text itself

Output only the extracted text."""


# ===== AGENT PROMPTS (Used by AgentRunner) =====

# System instruction shared by every analysis agent
AGENT_SYSTEM_INSTRUCTION = (
    "You are a meticulous, multilingual document analyst AI. "
    "Follow the user's instructions precisely. Be concise but complete. "
    "Prioritize correctness and faithfulness to the source document."
)

DOCUMENT_CONTENT_SEPARATOR = "--- DOCUMENT CONTENT ---"


def get_agent_prompt(agent_prompt: str, document_text: str) -> str:
    """
    Build the user message for an analysis agent

    Args:
        agent_prompt: The agent's task instruction
        document_text: Text extracted from the selected pages

    Returns:
        Complete user prompt
    """
    return f"{agent_prompt}\n\n{DOCUMENT_CONTENT_SEPARATOR}\n{document_text}"
