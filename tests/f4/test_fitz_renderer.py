"""Tests for the PyMuPDF document loader."""

import asyncio

import fitz
import pytest

from studyhub.viewer.renderer import DocumentLoadError, FitzDocumentLoader, RenderTarget

PAGES = [
    "Chapter 1: Cells\n\nAll living things are made of cells.",
    "Chapter 2: Nutrition\n\nGreen plants make food by photosynthesis.",
    "Chapter 3: Transport\n\nWater moves up the xylem.",
]


@pytest.fixture
def pdf_bytes():
    doc = fitz.open()
    for content in PAGES:
        page = doc.new_page()
        page.insert_text((72, 72), content)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_path(tmp_path, pdf_bytes):
    path = tmp_path / "biology.pdf"
    path.write_bytes(pdf_bytes)
    return path


class TestFitzDocumentLoader:
    @pytest.mark.asyncio
    async def test_load_from_path(self, pdf_path):
        document = await FitzDocumentLoader().load(pdf_path)
        try:
            assert document.page_count == 3
            page = await document.get_page(2)
            assert "photosynthesis" in await page.get_text_content()
        finally:
            document.close()

    @pytest.mark.asyncio
    async def test_load_from_string_path(self, pdf_path):
        document = await FitzDocumentLoader().load(str(pdf_path))
        assert document.page_count == 3
        document.close()

    @pytest.mark.asyncio
    async def test_load_from_bytes(self, pdf_bytes):
        document = await FitzDocumentLoader().load(pdf_bytes)
        page = await document.get_page(1)
        assert "Cells" in await page.get_text_content()
        document.close()

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentLoadError, match="not found"):
            await FitzDocumentLoader().load(tmp_path / "nope.pdf")

    @pytest.mark.asyncio
    async def test_garbage_bytes(self):
        with pytest.raises(DocumentLoadError):
            await FitzDocumentLoader().load(b"this is not a pdf")

    @pytest.mark.asyncio
    async def test_page_out_of_range(self, pdf_bytes):
        document = await FitzDocumentLoader().load(pdf_bytes)
        with pytest.raises(IndexError):
            await document.get_page(4)
        document.close()


class TestFitzRendering:
    @pytest.mark.asyncio
    async def test_render_produces_png(self, pdf_bytes):
        document = await FitzDocumentLoader().load(pdf_bytes)
        page = await document.get_page(1)
        target = RenderTarget(id="main")

        result = await page.render(target, 1.0)

        assert result is target
        assert target.image.startswith(b"\x89PNG")
        assert target.page_number == 1
        assert target.width > 0 and target.height > 0
        document.close()

    @pytest.mark.asyncio
    async def test_scale_changes_size(self, pdf_bytes):
        document = await FitzDocumentLoader().load(pdf_bytes)
        page = await document.get_page(1)
        small = await page.render(RenderTarget(id="a"), 1.0)
        large = await page.render(RenderTarget(id="b"), 2.0)

        assert large.width > small.width
        document.close()

    @pytest.mark.asyncio
    async def test_cancelled_render_leaves_target_empty(self, pdf_bytes):
        document = await FitzDocumentLoader().load(pdf_bytes)
        page = await document.get_page(1)
        target = RenderTarget(id="main")

        task = page.render(target, 1.0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()
        assert target.image is None
        document.close()
