"""Reading progress tracking.

Turns viewer lifecycle events into progress upserts in the local store.

States per (user, material): Not Started -> Reading -> Completed.
- open: creates a Reading record at 0% if none exists; an existing
  record is returned untouched (reopening never resets Completed).
- update_position: Reading at the given percent. A Completed record
  stays Completed; only its last_read moves.
- mark_complete: Completed at 100%.
- mark_reading: explicit return from Completed to Reading.

Progress is device-local; it is never pushed to the remote mirror.
"""

from __future__ import annotations

from typing import Callable

import structlog

from studyhub.core.entities import Progress, ReadingStatus, utc_now
from studyhub.db.local_store import LocalStore

logger = structlog.get_logger(__name__)


class ProgressError(ValueError):
    """Invalid progress update."""

    pass


class ProgressTracker:
    """Per-user reading state backed by the local store."""

    def __init__(self, store: LocalStore, clock: Callable[[], str] = utc_now):
        self.store = store
        self.clock = clock

    def get(self, user_id: str, material_id: str) -> Progress | None:
        return self.store.get_progress(user_id, material_id)

    def status_of(self, user_id: str, material_id: str) -> ReadingStatus:
        progress = self.get(user_id, material_id)
        return progress.status if progress else ReadingStatus.NOT_STARTED

    def list_for_user(self, user_id: str) -> list[Progress]:
        return self.store.get_user_progress(user_id)

    def open(self, user_id: str, material_id: str) -> Progress:
        """Record that a material was opened."""
        existing = self.get(user_id, material_id)
        if existing is not None and existing.status != ReadingStatus.NOT_STARTED:
            return existing

        progress = Progress(
            material_id=material_id,
            status=ReadingStatus.READING,
            last_read=self.clock(),
            progress_percent=0,
        )
        self.store.update_progress(user_id, progress)
        logger.info("progress.started", user_id=user_id, material_id=material_id)
        return progress

    def update_position(self, user_id: str, material_id: str, percent: int) -> Progress:
        """Checkpoint the reading position (0-100)."""
        if not 0 <= percent <= 100:
            raise ProgressError(f"Progress percent out of range: {percent}")

        existing = self.get(user_id, material_id)
        if existing is not None and existing.status == ReadingStatus.COMPLETED:
            progress = Progress(
                material_id=material_id,
                status=ReadingStatus.COMPLETED,
                last_read=self.clock(),
                progress_percent=existing.progress_percent,
            )
        else:
            progress = Progress(
                material_id=material_id,
                status=ReadingStatus.READING,
                last_read=self.clock(),
                progress_percent=percent,
            )

        self.store.update_progress(user_id, progress)
        return progress

    def mark_complete(self, user_id: str, material_id: str) -> Progress:
        progress = Progress(
            material_id=material_id,
            status=ReadingStatus.COMPLETED,
            last_read=self.clock(),
            progress_percent=100,
        )
        self.store.update_progress(user_id, progress)
        logger.info("progress.completed", user_id=user_id, material_id=material_id)
        return progress

    def mark_reading(self, user_id: str, material_id: str) -> Progress:
        """Explicitly move a material back to Reading, keeping its percent."""
        existing = self.get(user_id, material_id)
        percent = existing.progress_percent if existing else 0
        progress = Progress(
            material_id=material_id,
            status=ReadingStatus.READING,
            last_read=self.clock(),
            progress_percent=percent,
        )
        self.store.update_progress(user_id, progress)
        return progress
