"""
Validation utilities for uploaded documents and CLI input
"""

from pathlib import Path
from typing import List

PDF_HEADER = b'%PDF-'


def validate_pdf_bytes(data: bytes) -> bool:
    """
    Validate that in-memory data looks like a PDF document

    Args:
        data: Raw document bytes

    Returns:
        True if the data carries a PDF header
    """
    if not data:
        raise ValueError("Empty document")

    # Some producers emit a few junk bytes before the header
    if PDF_HEADER not in data[:1024]:
        raise ValueError("Invalid PDF header")

    return True


def validate_pdf_file(file_path: str) -> bool:
    """
    Validate if the provided file is a valid PDF

    Args:
        file_path: Path to the PDF file

    Returns:
        True if valid PDF, False otherwise
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if not path.is_file():
        raise ValueError(f"Not a file: {file_path}")

    if path.suffix.lower() != '.pdf':
        raise ValueError(f"Not a PDF file: {file_path}")

    if path.stat().st_size == 0:
        raise ValueError(f"Empty file: {file_path}")

    with open(path, 'rb') as f:
        header = f.read(5)
        if header != PDF_HEADER:
            raise ValueError(f"Invalid PDF header: {file_path}")

    return True


def parse_page_spec(spec: str) -> List[int]:
    """
    Parse a page list such as "1,3-5" into sorted unique page numbers

    Args:
        spec: Comma separated page numbers and inclusive ranges

    Returns:
        Sorted list of 1-indexed page numbers
    """
    pages = set()
    for part in spec.split(','):
        part = part.strip()
        if not part:
            continue
        if '-' in part:
            start_text, end_text = part.split('-', 1)
            start, end = int(start_text), int(end_text)
            if start > end:
                raise ValueError(f"Invalid page range: {part}")
            pages.update(range(start, end + 1))
        else:
            pages.add(int(part))

    if not pages:
        raise ValueError("No pages given")
    if min(pages) < 1:
        raise ValueError("Page numbers start at 1")

    return sorted(pages)
