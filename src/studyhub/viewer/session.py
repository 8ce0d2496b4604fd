"""Document viewer sessions.

A session manages viewing one material:

    IDLE -> LOADING -> READY -> CLOSED
                   \\-> FAILED -> CLOSED

Once READY, a background task walks pages 1..N in order and fills
``page_texts``. It yields to the event loop every few pages and checks
a session-scoped cancel flag before each page. Page renders are separate
tasks, one per render target: a new request for a target cancels the
previous in-flight one.

``close()`` is the single cleanup routine. Explicit close, ``async with``
exit and manager shutdown all go through it; it cancels extraction and
every outstanding render, then releases the document.
"""

from __future__ import annotations

import asyncio
import uuid
from enum import Enum

import structlog

from studyhub.core.entities import Material, Progress
from studyhub.core.progress_tracker import ProgressTracker
from studyhub.viewer.renderer import (
    Document,
    DocumentLoader,
    DocumentLoadError,
    RenderTarget,
)

logger = structlog.get_logger(__name__)

CONTEXT_PAGES = 5


class ViewerState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class ViewerStateError(RuntimeError):
    """Operation not allowed in the session's current state."""

    pass


class DocumentViewerSession:
    """Lifecycle of one opened material."""

    def __init__(
        self,
        material: Material,
        user_id: str,
        loader: DocumentLoader,
        tracker: ProgressTracker,
        yield_every: int = 3,
        render_scale: float = 1.5,
        session_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self.material = material
        self.user_id = user_id
        self.loader = loader
        self.tracker = tracker
        self.yield_every = max(1, yield_every)
        self.render_scale = render_scale

        self.state = ViewerState.IDLE
        self.error: str | None = None
        self.page_count = 0
        self.current_page = 1
        self.page_texts: dict[int, str] = {}
        self.extraction_complete = False

        self._document: Document | None = None
        self._cancelled = False
        self._extraction_task: asyncio.Task | None = None
        self._renders: dict[str, tuple[asyncio.Task, int, float]] = {}
        self._render_generations: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_extracting(self) -> bool:
        return self._extraction_task is not None and not self._extraction_task.done()

    async def open(self) -> ViewerState:
        """Load the document and start background text extraction."""
        if self.state != ViewerState.IDLE:
            raise ViewerStateError(f"Session already {self.state.value}")

        self.state = ViewerState.LOADING
        self.tracker.open(self.user_id, self.material.id)

        if self.material.is_digital and self.material.content is not None:
            self.page_count = 1
            self.page_texts = {1: self.material.content}
            self.extraction_complete = True
            self.state = ViewerState.READY
            logger.info("viewer.opened_digital", session_id=self.session_id)
            return self.state

        try:
            document = await self.loader.load(self.material.file_location)
        except DocumentLoadError as e:
            if self._cancelled:
                return self.state
            self.state = ViewerState.FAILED
            self.error = str(e)
            logger.warning(
                "viewer.load_failed",
                session_id=self.session_id,
                material_id=self.material.id,
                error=str(e),
            )
            return self.state

        if self._cancelled:
            # Closed while loading
            document.close()
            return self.state

        self._document = document
        self.page_count = document.page_count
        self.state = ViewerState.READY
        self._extraction_task = asyncio.create_task(self._extract_pages())

        logger.info(
            "viewer.opened",
            session_id=self.session_id,
            material_id=self.material.id,
            pages=self.page_count,
        )
        return self.state

    async def _extract_pages(self) -> None:
        for number in range(1, self.page_count + 1):
            if self._cancelled:
                return

            try:
                page = await self._document.get_page(number)
                text = await page.get_text_content()
            except Exception as e:
                logger.warning(
                    "viewer.page_extraction_failed",
                    session_id=self.session_id,
                    page=number,
                    error=str(e),
                )
                continue

            if self._cancelled:
                return
            self.page_texts[number] = text

            if number % self.yield_every == 0:
                await asyncio.sleep(0)

        self.extraction_complete = True
        logger.info(
            "viewer.extraction_complete",
            session_id=self.session_id,
            pages=len(self.page_texts),
        )

    async def wait_for_extraction(self) -> None:
        """Wait until background extraction has finished or was cancelled."""
        if self._extraction_task is not None:
            await asyncio.wait({self._extraction_task})

    async def close(self) -> None:
        """Cancel extraction and renders, release the document. Idempotent."""
        if self.state == ViewerState.CLOSED:
            return

        self._cancelled = True
        pending: list[asyncio.Task] = []

        if self._extraction_task is not None and not self._extraction_task.done():
            self._extraction_task.cancel()
            pending.append(self._extraction_task)

        for task, _, _ in self._renders.values():
            if not task.done():
                task.cancel()
                pending.append(task)
        self._renders.clear()

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._document is not None:
            self._document.close()
            self._document = None

        previous = self.state
        self.state = ViewerState.CLOSED
        logger.info(
            "viewer.closed",
            session_id=self.session_id,
            previous_state=previous.value,
            pages_extracted=len(self.page_texts),
        )

    async def __aenter__(self) -> DocumentViewerSession:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Navigation & progress
    # -------------------------------------------------------------------------

    def _require_ready(self) -> None:
        if self.state != ViewerState.READY:
            raise ViewerStateError(f"Session is {self.state.value}, not ready")

    def _check_page(self, page_number: int) -> None:
        if not 1 <= page_number <= self.page_count:
            raise ValueError(f"Page {page_number} out of range 1..{self.page_count}")

    def go_to_page(self, page_number: int) -> Progress:
        """Move to a page and checkpoint the reading position."""
        self._require_ready()
        self._check_page(page_number)
        self.current_page = page_number
        percent = round(page_number / self.page_count * 100)
        return self.tracker.update_position(self.user_id, self.material.id, percent)

    def mark_complete(self) -> Progress:
        return self.tracker.mark_complete(self.user_id, self.material.id)

    def text_for_page(self, page_number: int) -> str | None:
        """Extracted text of a page, or None if not extracted (yet)."""
        return self.page_texts.get(page_number)

    def text_for_context(self, max_pages: int = CONTEXT_PAGES) -> str:
        """Extracted text of the first pages, for AI quiz generation."""
        parts = []
        for number in range(1, min(self.page_count, max_pages) + 1):
            text = self.page_texts.get(number)
            if text is None:
                continue
            parts.append(f"--- Page {number} ---\n{text}\n")
        return "\n".join(parts)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    async def render_page(
        self,
        page_number: int,
        target: RenderTarget,
        scale: float | None = None,
    ) -> RenderTarget | None:
        """Render a page into a target.

        A newer request for the same target supersedes this one; the
        superseded call returns None. Render failures are logged and
        also return None.
        """
        self._require_ready()
        self._check_page(page_number)
        if self._cancelled:
            return None
        scale = scale or self.render_scale

        previous = self._renders.get(target.id)
        if previous is not None:
            task, prev_page, prev_scale = previous
            if not task.done() and prev_page == page_number and prev_scale == scale:
                return await self._await_render(task, page_number)
            task.cancel()
            del self._renders[target.id]

        # Claim the target before suspending so a newer request can supersede this one
        generation = self._render_generations.get(target.id, 0) + 1
        self._render_generations[target.id] = generation

        try:
            page = await self._document.get_page(page_number)
        except Exception as e:
            logger.warning(
                "viewer.render_failed",
                session_id=self.session_id,
                page=page_number,
                error=str(e),
            )
            return None

        if self._cancelled or self._render_generations.get(target.id) != generation:
            logger.debug(
                "viewer.render_superseded", session_id=self.session_id, page=page_number
            )
            return None

        task = page.render(target, scale)
        self._renders[target.id] = (task, page_number, scale)
        return await self._await_render(task, page_number)

    async def _await_render(
        self, task: asyncio.Task, page_number: int
    ) -> RenderTarget | None:
        # wait() leaves the render task alone if this caller is cancelled
        await asyncio.wait({task})

        if task.cancelled():
            logger.debug(
                "viewer.render_superseded", session_id=self.session_id, page=page_number
            )
            return None

        error = task.exception()
        if error is not None:
            logger.warning(
                "viewer.render_failed",
                session_id=self.session_id,
                page=page_number,
                error=str(error),
            )
            return None

        return task.result()


class ViewerSessionManager:
    """Keeps the open viewer sessions of this process."""

    def __init__(
        self,
        loader: DocumentLoader,
        tracker: ProgressTracker,
        yield_every: int = 3,
        render_scale: float = 1.5,
    ):
        self.loader = loader
        self.tracker = tracker
        self.yield_every = yield_every
        self.render_scale = render_scale
        self._sessions: dict[str, DocumentViewerSession] = {}
        self._lock = asyncio.Lock()

    async def open_session(self, material: Material, user_id: str) -> DocumentViewerSession:
        session = DocumentViewerSession(
            material=material,
            user_id=user_id,
            loader=self.loader,
            tracker=self.tracker,
            yield_every=self.yield_every,
            render_scale=self.render_scale,
        )
        async with self._lock:
            self._sessions[session.session_id] = session
        await session.open()
        return session

    async def get_session(self, session_id: str) -> DocumentViewerSession | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def close_session(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
