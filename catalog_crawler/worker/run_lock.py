"""Process-wide guard allowing one crawl job at a time."""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class JobConflictError(Exception):
    """Another job holds the run lock."""
    def __init__(self, current_job: Optional[str]):
        self.current_job = current_job
        super().__init__(f"Another scraper is already running: '{current_job}'")


class RunLock:
    """
    Single-slot job lock.

    A second start is rejected, never queued. The lock is not reentrant
    and is not shared across processes.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_progress = False
        self._current_job: Optional[str] = None
        self._started_at: Optional[datetime] = None

    def start(self, job_name: str) -> None:
        """
        Claim the lock for a job.

        Args:
            job_name: Name reported to rejected callers

        Raises:
            JobConflictError: If another job is running; names the holder at rejection time
        """
        with self._lock:
            if self._in_progress:
                logger.warning(f"Rejected '{job_name}': '{self._current_job}' is running")
                raise JobConflictError(self._current_job)
            self._in_progress = True
            self._current_job = job_name
            self._started_at = datetime.now(timezone.utc)
            logger.info(f"Acquired run lock for '{job_name}'")

    def try_start(self, job_name: str) -> bool:
        """Claim the lock for a job; False if another job is running."""
        try:
            self.start(job_name)
        except JobConflictError:
            return False
        return True

    def stop(self) -> None:
        """Release the lock. Safe to call when not held."""
        with self._lock:
            if self._in_progress:
                logger.info(f"Released run lock for '{self._current_job}'")
            self._in_progress = False
            self._current_job = None
            self._started_at = None

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return self._in_progress

    @property
    def current_job(self) -> Optional[str]:
        with self._lock:
            return self._current_job

    def info(self) -> Dict[str, Any]:
        """Snapshot for status endpoints."""
        with self._lock:
            return {
                "in_progress": self._in_progress,
                "current_job": self._current_job,
                "started_at": self._started_at.isoformat() if self._started_at else None,
            }


# Global run lock instance
run_lock = RunLock()
