"""Tests for the file-based JobQueue.

Covers directory layout, pending registration idempotence, oldest-first
listing with malformed entries, and the pending -> done transition including
the crash-recovery paths.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from power_position.jobs.job_queue import JobQueue, QueueError, QueueInitError

DAY = date(2024, 1, 16)


def _clock(hour: int):
    def _now() -> datetime:
        return datetime(2024, 1, 15, hour, 0, tzinfo=timezone.utc)
    return _now


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------
class TestInitialization:
    def test_creates_partitions(self, tmp_path):
        JobQueue(tmp_path / "root")
        for name in ("pending", "done", "out"):
            assert (tmp_path / "root" / name).is_dir()

    def test_existing_partitions_are_reused(self, tmp_path):
        (tmp_path / "pending").mkdir()
        (tmp_path / "pending" / "20240101.job").write_text("Created: x\n")
        queue = JobQueue(tmp_path)
        assert queue.pending_days() == [date(2024, 1, 1)]

    def test_unusable_root_raises_init_error(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file in the way")
        with pytest.raises(QueueInitError):
            JobQueue(blocker)

    def test_paths_use_fixed_width_day_key(self, job_queue, tmp_path):
        assert job_queue.pending_path(DAY) == tmp_path.resolve() / "pending" / "20240116.job"
        assert job_queue.done_path(DAY) == tmp_path.resolve() / "done" / "20240116.job"
        assert job_queue.output_path(DAY) == (
            tmp_path.resolve() / "out" / "PowerPosition_20240116.csv"
        )


# ---------------------------------------------------------------------------
# ensure_pending
# ---------------------------------------------------------------------------
class TestEnsurePending:
    def test_creates_marker_with_timestamp(self, tmp_path):
        queue = JobQueue(tmp_path, clock=_clock(9))
        assert queue.ensure_pending(DAY) is True
        assert queue.is_pending(DAY)
        content = queue.pending_path(DAY).read_text(encoding="utf-8")
        assert content == "Created: 2024-01-15T09:00:00+00:00\n"

    def test_second_call_keeps_original_creation_time(self, tmp_path):
        JobQueue(tmp_path, clock=_clock(9)).ensure_pending(DAY)
        later = JobQueue(tmp_path, clock=_clock(17))

        assert later.ensure_pending(DAY) is False
        content = later.pending_path(DAY).read_text(encoding="utf-8")
        assert "09:00:00" in content
        assert "17:00:00" not in content

    def test_noop_when_already_done(self, job_queue):
        job_queue.mark_done(DAY)
        assert job_queue.ensure_pending(DAY) is False
        assert not job_queue.is_pending(DAY)

    def test_write_failure_raises_queue_error(self, job_queue):
        job_queue.pending_dir.rmdir()
        with pytest.raises(QueueError):
            job_queue.ensure_pending(DAY)


# ---------------------------------------------------------------------------
# pending_days
# ---------------------------------------------------------------------------
class TestPendingDays:
    def test_empty_queue(self, job_queue):
        assert job_queue.pending_days() == []

    def test_sorted_oldest_first(self, job_queue):
        for d in (date(2024, 2, 1), date(2023, 12, 31), date(2024, 1, 16)):
            job_queue.ensure_pending(d)
        assert job_queue.pending_days() == [
            date(2023, 12, 31),
            date(2024, 1, 16),
            date(2024, 2, 1),
        ]

    def test_malformed_entries_are_skipped(self, job_queue):
        job_queue.ensure_pending(DAY)
        for name in ("garbage.job", "20241301.job", "2024116.job", "202401160.job"):
            (job_queue.pending_dir / name).write_text("junk")
        assert job_queue.pending_days() == [DAY]

    def test_non_job_files_ignored(self, job_queue):
        job_queue.ensure_pending(DAY)
        (job_queue.pending_dir / "20240117.txt").write_text("not a job")
        (job_queue.pending_dir / ".tmp_abc.tmp").write_text("temp litter")
        assert job_queue.pending_days() == [DAY]


# ---------------------------------------------------------------------------
# mark_done
# ---------------------------------------------------------------------------
class TestMarkDone:
    def test_moves_pending_to_done_with_both_timestamps(self, tmp_path):
        JobQueue(tmp_path, clock=_clock(9)).ensure_pending(DAY)
        queue = JobQueue(tmp_path, clock=_clock(23))

        queue.mark_done(DAY)

        assert queue.is_done(DAY)
        assert not queue.is_pending(DAY)
        assert queue.done_path(DAY).read_text(encoding="utf-8") == (
            "Created: 2024-01-15T09:00:00+00:00\n"
            "Completed: 2024-01-15T23:00:00+00:00\n"
        )

    def test_creates_done_marker_without_pending(self, tmp_path):
        queue = JobQueue(tmp_path, clock=_clock(23))
        queue.mark_done(DAY)
        assert queue.done_path(DAY).read_text(encoding="utf-8") == (
            "Completed: 2024-01-15T23:00:00+00:00\n"
        )

    def test_idempotent_on_done_day(self, tmp_path):
        JobQueue(tmp_path, clock=_clock(9)).mark_done(DAY)
        queue = JobQueue(tmp_path, clock=_clock(23))
        before = queue.done_path(DAY).read_bytes()

        queue.mark_done(DAY)
        queue.mark_done(DAY)

        assert queue.done_path(DAY).read_bytes() == before
        assert [p.name for p in queue.done_dir.iterdir()] == ["20240116.job"]

    def test_removes_leftover_pending_when_already_done(self, job_queue):
        # Crash between writing done and deleting pending leaves both
        job_queue.mark_done(DAY)
        job_queue.pending_path(DAY).write_text("Created: earlier\n")
        before = job_queue.done_path(DAY).read_bytes()

        job_queue.mark_done(DAY)

        assert not job_queue.is_pending(DAY)
        assert job_queue.done_path(DAY).read_bytes() == before

    def test_no_temp_files_left_in_done(self, job_queue):
        job_queue.ensure_pending(DAY)
        job_queue.mark_done(DAY)
        assert sorted(p.name for p in job_queue.done_dir.iterdir()) == ["20240116.job"]

    def test_failure_leaves_day_pending(self, job_queue):
        job_queue.ensure_pending(DAY)
        job_queue.done_dir.rmdir()

        with pytest.raises(QueueError):
            job_queue.mark_done(DAY)

        assert job_queue.is_pending(DAY)


# ---------------------------------------------------------------------------
# output_exists
# ---------------------------------------------------------------------------
def test_output_exists_tracks_csv(job_queue):
    assert job_queue.output_exists(DAY) is False
    Path(job_queue.output_path(DAY)).write_text("Local Time,Volume\n")
    assert job_queue.output_exists(DAY) is True
