"""Tests for ProgressTracker: max-merge of server snapshots and local bumps."""

import itertools

import pytest

from attachment_uploader.schemas.queue import QueueStatus
from attachment_uploader.schemas.uploads import UploadStatus
from attachment_uploader.services.progress_tracker import ProgressTracker


@pytest.fixture
def tracker():
    return ProgressTracker()


class TestFold:
    def test_starts_at_zero(self, tracker):
        assert tracker.completed == 0
        assert tracker.total == 0

    def test_completed_counts_failed_items(self, tracker):
        tracker.fold(QueueStatus(pending=5, completed=3, failed=2, total=10))
        assert tracker.completed == 5
        assert tracker.total == 10

    def test_lower_snapshot_does_not_regress(self, tracker):
        tracker.fold(QueueStatus(completed=6, total=10))
        tracker.fold(QueueStatus(completed=4, total=8))
        assert tracker.completed == 6
        assert tracker.total == 10

    def test_total_grows_when_items_are_added(self, tracker):
        tracker.fold(QueueStatus(completed=2, total=10))
        tracker.fold(QueueStatus(completed=2, total=15))
        assert tracker.total == 15

    def test_reset(self, tracker):
        tracker.fold(QueueStatus(completed=2, total=10))
        tracker.reset()
        assert (tracker.completed, tracker.total) == (0, 0)


class TestBump:
    def test_bump_increments(self, tracker):
        tracker.fold(QueueStatus(completed=2, total=10))
        assert tracker.bump_completed() == 3

    def test_bump_capped_at_total(self, tracker):
        tracker.fold(QueueStatus(completed=9, total=10))
        tracker.bump_completed()
        tracker.bump_completed()
        assert tracker.completed == 10

    def test_bump_without_total(self, tracker):
        tracker.bump_completed()
        assert tracker.completed == 1

    def test_to_info(self, tracker):
        tracker.fold(QueueStatus(completed=2, total=10))
        info = tracker.to_info(UploadStatus.IN_PROGRESS)
        assert info.status == UploadStatus.IN_PROGRESS
        assert (info.current, info.total) == (2, 10)


def test_scenario_interleavings_are_monotonic():
    """3 local completions racing the second poll never move progress backwards."""
    events = ["bump", "bump", "bump", "fold"]
    second = QueueStatus(pending=4, completed=5, failed=0, total=10)

    for order in set(itertools.permutations(events)):
        tracker = ProgressTracker()
        tracker.fold(QueueStatus(pending=7, completed=2, failed=0, total=10))
        observed = [tracker.completed]
        for event in order:
            if event == "bump":
                tracker.bump_completed()
            else:
                tracker.fold(second)
            observed.append(tracker.completed)

        assert observed[0] == 2
        assert observed == sorted(observed), order
        assert min(observed) >= 2
        assert 5 <= observed[-1] <= 10
