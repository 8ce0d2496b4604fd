"""Fixtures for F4 tests - document viewer.

Fake documents keep pages in memory. Page lookups only suspend when a
``page_gate`` is given, so extraction otherwise yields at its explicit
yield points; renders wait on a gate event the test releases.
"""

import asyncio

import pytest

from studyhub.core.progress_tracker import ProgressTracker
from studyhub.viewer.renderer import DocumentLoadError, RenderTarget


class FakePage:
    def __init__(self, number: int, text: str, gate: asyncio.Event | None, fail: bool = False):
        self.number = number
        self.text = text
        self.gate = gate
        self.fail = fail
        self.renders = 0

    async def get_text_content(self) -> str:
        if self.fail:
            raise RuntimeError(f"bad glyphs on page {self.number}")
        return self.text

    def render(self, target: RenderTarget, scale: float) -> asyncio.Task:
        self.renders += 1
        return asyncio.create_task(self._render(target, scale))

    async def _render(self, target: RenderTarget, scale: float) -> RenderTarget:
        if self.gate is not None:
            await self.gate.wait()
        target.page_number = self.number
        target.scale = scale
        target.width = int(100 * scale)
        target.height = int(140 * scale)
        target.image = f"page-{self.number}".encode()
        return target


class FakeDocument:
    def __init__(
        self, page_count: int, gate=None, failing_pages=(), page_gate=None, broken_pages=()
    ):
        self.page_count = page_count
        self.closed = False
        self.page_gate = page_gate
        self.broken_pages = set(broken_pages)
        self.pages = {
            n: FakePage(n, f"Text of page {n}", gate, fail=n in failing_pages)
            for n in range(1, page_count + 1)
        }

    async def get_page(self, number: int) -> FakePage:
        if self.page_gate is not None:
            await self.page_gate.wait()
        if number not in self.pages:
            raise IndexError(number)
        if number in self.broken_pages:
            raise RuntimeError(f"page {number} tree is damaged")
        return self.pages[number]

    def close(self) -> None:
        self.closed = True


class FakeLoader:
    """Loader returning one prepared document (or raising)."""

    def __init__(self, document: FakeDocument | None = None, error: str | None = None):
        self.document = document
        self.error = error
        self.load_gate: asyncio.Event | None = None
        self.locators = []

    async def load(self, locator) -> FakeDocument:
        self.locators.append(locator)
        if self.load_gate is not None:
            await self.load_gate.wait()
        if self.error:
            raise DocumentLoadError(self.error)
        return self.document


@pytest.fixture
def tracker(store):
    return ProgressTracker(store)


@pytest.fixture
def make_loader():
    def _make(page_count: int = 10, **kwargs) -> FakeLoader:
        return FakeLoader(FakeDocument(page_count, **kwargs))

    return _make


@pytest.fixture
def failing_loader():
    return FakeLoader(error="Document not found: missing.pdf")
