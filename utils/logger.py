"""
Logging utilities for the document analyzer
"""

import sys
from loguru import logger
from rich.console import Console

# Configure console for rich output
console = Console()

LOG_FILE = "agentic_doc_analyzer.log"

# Configure logger
logger.remove()  # Remove default handler
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)

# Add file logging
logger.add(
    LOG_FILE,
    rotation="10 MB",
    retention="7 days",
    level="INFO"
)


def log_extraction_result(extractor_name: str, success: bool, details: str = ""):
    """Log extraction result with appropriate formatting"""
    if success:
        logger.success(f"{extractor_name}: Extraction completed. {details}")
    else:
        logger.error(f"{extractor_name}: Extraction failed. {details}")


def log_step(step: str, description: str = ""):
    """Log a pipeline step"""
    logger.info(f"[STEP] {step}: {description}")
    console.print(f"[bold blue]→[/bold blue] {step}", style="bold")
    if description:
        console.print(f"  {description}", style="dim")


def setup_logger(level: str = "INFO"):
    """
    Setup logger with specified level

    Args:
        level: Logging level for the console sink
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=level.upper()
    )
    # Keep file logging at DEBUG level
    logger.add(
        LOG_FILE,
        rotation="10 MB",
        retention="7 days",
        level="DEBUG"
    )
    return logger


__all__ = ['logger', 'console', 'log_extraction_result', 'log_step', 'setup_logger']
