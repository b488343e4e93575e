"""Tests for the PyMuPDF renderer using small in-memory PDFs."""

import fitz
import pytest

from conftest import FakeAgentRunner, FakeExtractor
from processors.document_renderer import DocumentRenderer
from processors.errors import RenderFailure
from processors.models import ProcessingState
from processors.session import AnalysisSession


def make_pdf(page_count: int) -> bytes:
    doc = fitz.open()
    for page_number in range(1, page_count + 1):
        page = doc.new_page(width=200, height=300)
        page.insert_text((20, 40), f"Page {page_number}")
    data = doc.tobytes()
    doc.close()
    return data


async def collect(renderer, document):
    return [page async for page in renderer.render(document)]


async def test_renders_pages_in_order_as_png():
    pages = await collect(DocumentRenderer(scale=1.5), make_pdf(3))

    assert [page.page_number for page in pages] == [1, 2, 3]
    assert all(page.image.startswith(b"\x89PNG") for page in pages)
    assert abs(pages[0].width - 300) <= 1
    assert abs(pages[0].height - 450) <= 1


async def test_scale_changes_bitmap_size():
    small, = await collect(DocumentRenderer(scale=1.0), make_pdf(1))
    large, = await collect(DocumentRenderer(scale=2.0), make_pdf(1))

    assert large.width > small.width


async def test_non_pdf_bytes_raise_render_failure():
    with pytest.raises(RenderFailure):
        await collect(DocumentRenderer(), b"hello, not a pdf")


async def test_empty_bytes_raise_render_failure():
    with pytest.raises(RenderFailure):
        await collect(DocumentRenderer(), b"")


async def test_session_with_real_renderer(config):
    session = AnalysisSession(
        config=config,
        renderer=DocumentRenderer(scale=1.0),
        extractor=FakeExtractor(),
        agent_runner=FakeAgentRunner(),
        agents=[],
    )

    assert await session.select_document(make_pdf(4)) is True
    assert session.selected_pages == {1, 2, 3, 4}

    assert await session.select_document(b"garbage") is False
    assert session.state == ProcessingState.ERRORED
    assert session.pages == []
