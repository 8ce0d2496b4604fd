"""Tests for reading progress tracking (F2)."""

import itertools

import pytest

from studyhub.core.entities import ReadingStatus
from studyhub.core.progress_tracker import ProgressError, ProgressTracker


@pytest.fixture
def tracker(store):
    """Tracker with a deterministic, strictly increasing clock."""
    ticks = itertools.count(1)
    return ProgressTracker(store, clock=lambda: f"2024-03-01T10:00:{next(ticks):02d}+00:00")


class TestOpen:
    def test_first_open_starts_reading(self, tracker):
        progress = tracker.open("u1", "m1")
        assert progress.status == ReadingStatus.READING
        assert progress.progress_percent == 0

    def test_reopen_keeps_position(self, tracker):
        tracker.open("u1", "m1")
        tracker.update_position("u1", "m1", 40)

        progress = tracker.open("u1", "m1")
        assert progress.progress_percent == 40

    def test_reopen_never_resets_completed(self, tracker):
        tracker.mark_complete("u1", "m1")

        progress = tracker.open("u1", "m1")
        assert progress.status == ReadingStatus.COMPLETED
        assert progress.progress_percent == 100

    def test_status_of_unopened(self, tracker):
        assert tracker.status_of("u1", "m1") == ReadingStatus.NOT_STARTED


class TestUpdatePosition:
    def test_single_record_per_material(self, tracker, store):
        """Repeated updates keep exactly one record."""
        for percent in (10, 20, 30):
            tracker.update_position("u1", "m1", percent)

        records = store.get_user_progress("u1")
        assert len(records) == 1
        assert records[0].progress_percent == 30

    @pytest.mark.parametrize("percent", [-1, 101])
    def test_out_of_range(self, tracker, percent):
        with pytest.raises(ProgressError):
            tracker.update_position("u1", "m1", percent)

    def test_completed_stays_completed(self, tracker):
        """Scrolling a finished material only refreshes last_read."""
        done = tracker.mark_complete("u1", "m1")

        progress = tracker.update_position("u1", "m1", 30)
        assert progress.status == ReadingStatus.COMPLETED
        assert progress.progress_percent == 100
        assert progress.last_read > done.last_read

    def test_mark_reading_reopens(self, tracker):
        tracker.mark_complete("u1", "m1")

        progress = tracker.mark_reading("u1", "m1")
        assert progress.status == ReadingStatus.READING
        assert progress.progress_percent == 100
        assert tracker.update_position("u1", "m1", 30).progress_percent == 30


class TestScenarioReadAndComplete:
    """Open, read, finish, then reopen on the same device."""

    def test_full_lifecycle(self, tracker, store):
        tracker.open("u1", "m1")
        tracker.update_position("u1", "m1", 50)
        tracker.mark_complete("u1", "m1")
        tracker.open("u1", "m1")

        records = store.get_user_progress("u1")
        assert len(records) == 1
        assert records[0].status == ReadingStatus.COMPLETED
        assert records[0].progress_percent == 100

    def test_users_are_independent(self, tracker):
        tracker.mark_complete("u1", "m1")
        tracker.open("u2", "m1")

        assert tracker.status_of("u1", "m1") == ReadingStatus.COMPLETED
        assert tracker.status_of("u2", "m1") == ReadingStatus.READING
        assert [p.material_id for p in tracker.list_for_user("u2")] == ["m1"]
