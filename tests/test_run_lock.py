"""Tests for the single-job run lock."""

import threading

import pytest

from catalog_crawler.worker.run_lock import JobConflictError, RunLock


class TestRunLock:
    """Tests for RunLock."""

    def test_second_start_is_rejected(self):
        lock = RunLock()

        assert lock.try_start("Metro") is True
        assert lock.try_start("Adams Food Service") is False

        assert lock.in_progress is True
        assert lock.current_job == "Metro"

    def test_start_raises_with_current_holder(self):
        lock = RunLock()
        lock.start("Metro")

        with pytest.raises(JobConflictError) as exc_info:
            lock.start("Cater Choice")

        assert exc_info.value.current_job == "Metro"

    def test_stop_releases(self):
        lock = RunLock()
        lock.try_start("Metro")

        lock.stop()

        assert lock.in_progress is False
        assert lock.current_job is None
        assert lock.try_start("Cater Choice") is True

    def test_stop_when_idle_is_harmless(self):
        lock = RunLock()
        lock.stop()
        assert lock.info() == {"in_progress": False, "current_job": None, "started_at": None}

    def test_info_reports_running_job(self):
        lock = RunLock()
        lock.try_start("Metro")

        info = lock.info()

        assert info["in_progress"] is True
        assert info["current_job"] == "Metro"
        assert info["started_at"] is not None

    def test_concurrent_starts_admit_exactly_one(self):
        lock = RunLock()
        barrier = threading.Barrier(8)
        results = []

        def start(n):
            barrier.wait()
            results.append(lock.try_start(f"job-{n}"))

        threads = [threading.Thread(target=start, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert lock.current_job in {f"job-{n}" for n in range(8)}


def test_conflict_message_names_running_job():
    error = JobConflictError("Metro")
    assert str(error) == "Another scraper is already running: 'Metro'"
    assert error.current_job == "Metro"
