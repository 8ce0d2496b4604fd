"""Document rendering adapter.

The viewer session only depends on the small protocol below:

    loader.load(locator) -> Document {page_count, get_page(n)}
    page.get_text_content() -> str
    page.render(target, scale) -> cancelable asyncio.Task

``FitzDocumentLoader`` implements it with PyMuPDF. PyMuPDF documents
are not thread-safe, so page work runs on the event loop thread in
short synchronous steps.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

import fitz
import httpx
import structlog

logger = structlog.get_logger(__name__)

Locator = Union[str, Path, bytes]


class DocumentLoadError(Exception):
    """Raised when a document cannot be acquired or opened."""

    pass


@dataclass
class RenderTarget:
    """A drawing surface (canvas) that receives rendered page images."""

    id: str
    page_number: int | None = None
    scale: float | None = None
    width: int = 0
    height: int = 0
    image: bytes | None = None  # PNG


class Page(Protocol):
    number: int

    async def get_text_content(self) -> str: ...

    def render(self, target: RenderTarget, scale: float) -> asyncio.Task: ...


class Document(Protocol):
    page_count: int

    async def get_page(self, number: int) -> Page: ...

    def close(self) -> None: ...


class DocumentLoader(Protocol):
    async def load(self, locator: Locator) -> Document: ...


# =============================================================================
# PYMUPDF IMPLEMENTATION
# =============================================================================


class FitzPage:
    """One page of a PyMuPDF document (1-indexed)."""

    def __init__(self, doc: fitz.Document, number: int):
        self._doc = doc
        self.number = number

    async def get_text_content(self) -> str:
        return self._doc[self.number - 1].get_text()

    def render(self, target: RenderTarget, scale: float) -> asyncio.Task:
        return asyncio.create_task(self._render(target, scale))

    async def _render(self, target: RenderTarget, scale: float) -> RenderTarget:
        # Yield first so a superseded request can be cancelled before drawing
        await asyncio.sleep(0)
        page = self._doc[self.number - 1]
        pixmap = page.get_pixmap(matrix=fitz.Matrix(scale, scale))
        target.image = pixmap.tobytes("png")
        target.width = pixmap.width
        target.height = pixmap.height
        target.page_number = self.number
        target.scale = scale
        return target


class FitzDocument:
    def __init__(self, doc: fitz.Document):
        self._doc = doc
        self.page_count = len(doc)

    async def get_page(self, number: int) -> FitzPage:
        if not 1 <= number <= self.page_count:
            raise IndexError(f"Page {number} out of range 1..{self.page_count}")
        return FitzPage(self._doc, number)

    def close(self) -> None:
        self._doc.close()


class FitzDocumentLoader:
    """Opens PDFs from a path, raw bytes or an http(s) URL."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def _fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            raise DocumentLoadError(f"Could not download document {url}: {e}") from e

    async def load(self, locator: Locator) -> FitzDocument:
        if isinstance(locator, str) and locator.startswith(("http://", "https://")):
            locator = await self._fetch(locator)

        try:
            if isinstance(locator, bytes):
                doc = fitz.open(stream=locator, filetype="pdf")
            else:
                path = Path(locator)
                if not path.exists():
                    raise DocumentLoadError(f"Document not found: {path}")
                doc = fitz.open(path)
        except DocumentLoadError:
            raise
        except Exception as e:
            raise DocumentLoadError(f"Could not open document: {e}") from e

        if doc.is_encrypted:
            doc.close()
            raise DocumentLoadError("Document is password-protected")

        logger.debug("renderer.loaded", pages=len(doc))
        return FitzDocument(doc)
