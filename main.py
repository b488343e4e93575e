#!/usr/bin/env python3
"""
Agentic Document Analyzer
Main CLI interface: render a PDF, OCR the selected pages, run analysis agents
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from rich.table import Table

from agent_catalog import AGENTS, get_agent
from processors.models import ProcessingState, SessionSnapshot
from processors.session import AnalysisSession
from utils.config import Config, get_config
from utils.logger import console, log_step, logger, setup_logger
from utils.status import describe
from utils.validators import parse_page_spec, validate_pdf_file


def print_status(snapshot: SessionSnapshot):
    status = describe(snapshot.state)
    console.print(f"[{status.style_hint}]● {status.label}[/{status.style_hint}]")


def print_results(snapshot: SessionSnapshot):
    """Render the agent outputs and the comparison series"""
    for result in snapshot.results:
        style = "red" if result.is_error else "green"
        console.rule(f"[{style}]{result.agent_name}[/{style}]")
        console.print(f"[dim]{result.provider} · {result.model} · {result.latency_in_seconds:.2f}s[/dim]")
        console.print(result.output)

    table = Table(title="Agent comparison")
    table.add_column("Agent")
    table.add_column("Provider")
    table.add_column("Latency (s)", justify="right")
    table.add_column("Output length", justify="right")
    for latency, length in zip(snapshot.dashboard.latency, snapshot.dashboard.output_length):
        table.add_row(
            latency.agent_name,
            latency.provider,
            f"{latency.latency_in_seconds:.2f}",
            f"{length.character_count} / {length.scale_max:.0f}",
        )
    console.print(table)


def build_report(pdf_path: str, snapshot: SessionSnapshot) -> dict:
    return {
        'pdf_path': pdf_path,
        'state': snapshot.state.value,
        'total_pages': len(snapshot.pages),
        'selected_pages': snapshot.selected_pages,
        'extracted_chars': len(snapshot.extracted_text),
        'error': snapshot.error,
        'results': [result.model_dump() for result in snapshot.results],
        'dashboard': snapshot.dashboard.model_dump(),
    }


async def run_analysis(
    pdf_path: str,
    agent_names: List[str],
    pages: Optional[List[int]] = None,
    config: Optional[Config] = None,
    session: Optional[AnalysisSession] = None,
) -> SessionSnapshot:
    """
    Drive one session through load → page selection → OCR → analysis

    Args:
        pdf_path: Path to input PDF
        agent_names: Agents to run, in order
        pages: Pages to OCR (default: all pages)
        config: Optional configuration object
        session: Optional pre-built session

    Returns:
        Final session snapshot
    """
    session = session or AnalysisSession(config)
    try:
        log_step("Rendering document", pdf_path)
        with console.status(describe(ProcessingState.RENDERING_DOCUMENT).label):
            if not await session.select_document(Path(pdf_path).read_bytes()):
                return session.snapshot()

        if pages is not None:
            for page_number in sorted(session.selected_pages):
                if page_number not in pages:
                    session.toggle_page(page_number)
            missing = [n for n in pages if n not in session.selected_pages]
            if missing:
                logger.warning(f"Ignoring pages outside the document: {missing}")

        log_step("Extracting text", f"pages {sorted(session.selected_pages)}")
        with console.status(describe(ProcessingState.EXTRACTING_TEXT).label):
            if not await session.request_extraction():
                return session.snapshot()

        for name in agent_names:
            if not session.toggle_agent(name):
                return session.snapshot()

        log_step("Running agents", ", ".join(agent_names))
        with console.status(describe(ProcessingState.RUNNING_AGENTS).label):
            await session.request_analysis()

        return session.snapshot()
    finally:
        session.close()


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Agentic Document Analyzer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples: python main.py --in report.pdf --pages 1,3-4 --agents "Document Summarizer" "Risk Assessment"
        """
    )

    parser.add_argument(
        '--in', '-i',
        dest='input_pdf',
        type=str,
        help='Input PDF file path'
    )

    parser.add_argument(
        '--pages', '-p',
        type=str,
        help='Pages to OCR, e.g. "1,3-5" (default: all pages)'
    )

    parser.add_argument(
        '--agents', '-a',
        nargs='+',
        default=[],
        help='Agent names to run, in order'
    )

    parser.add_argument(
        '--all-agents',
        action='store_true',
        help='Run every built-in agent'
    )

    parser.add_argument(
        '--list-agents',
        action='store_true',
        help='List built-in agents and exit'
    )

    parser.add_argument(
        '--llm',
        type=str,
        choices=['openai', 'anthropic'],
        default='anthropic',
        help='LLM provider used for OCR'
    )

    parser.add_argument(
        '--ocr',
        type=str,
        choices=['llm', 'tesseract'],
        default='llm',
        help='Text extraction backend'
    )

    parser.add_argument(
        '--no-stream',
        action='store_true',
        help='Request each agent output in one response instead of streaming'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print a JSON report instead of formatted output'
    )

    args = parser.parse_args()

    if args.list_agents:
        for agent in AGENTS:
            console.print(f"[bold]{agent.name}[/bold] [dim]({agent.model})[/dim]")
        return 0

    if not args.input_pdf:
        parser.error("--in is required")

    agent_names = [agent.name for agent in AGENTS] if args.all_agents else args.agents
    if not agent_names:
        parser.error("select at least one agent with --agents or --all-agents")
    try:
        agent_names = [get_agent(name).name for name in agent_names]
    except KeyError as e:
        parser.error(e.args[0])

    setup_logger(level="INFO")
    config = get_config()
    config.llm.provider = args.llm
    config.processing.ocr_backend = args.ocr
    config.processing.stream_agent_output = not args.no_stream
    logger.info(f"✅ Using {config.processing.ocr_backend} OCR ({config.llm.provider})")

    try:
        validate_pdf_file(args.input_pdf)
        pages = parse_page_spec(args.pages) if args.pages else None
        snapshot = asyncio.run(run_analysis(args.input_pdf, agent_names, pages, config))
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(build_report(args.input_pdf, snapshot), indent=2, ensure_ascii=False))
    else:
        print_status(snapshot)
        if snapshot.results:
            print_results(snapshot)

    if snapshot.state != ProcessingState.COMPLETE:
        print(f"\n❌ Error: {snapshot.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
