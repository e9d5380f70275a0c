"""
In-memory job registry with time-based expiry.

Every entry carries its own lock. Inserts and removals rely on single
``dict`` operations, so readers never wait on a registry-wide lock.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from mt_adapter.work.errors import InternalConsistencyError
from mt_adapter.work.models import Job, JobState, TranslationResult

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    job: Job
    expires_at: float
    lock: threading.Lock = field(default_factory=threading.Lock)


class JobRegistry:
    def __init__(
        self,
        retention_duration: float,
        *,
        sliding: bool = False,
        reap_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if retention_duration <= 0:
            raise ValueError("retention_duration must be positive")
        self.retention_duration = retention_duration
        self.sliding = sliding
        self.reap_interval = reap_interval
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._stop = threading.Event()
        self._reaper: Optional[threading.Thread] = None

    def put(self, job: Job) -> None:
        entry = _Entry(job=job, expires_at=self._clock() + self.retention_duration)
        existing = self._entries.setdefault(job.job_id, entry)
        if existing is not entry:
            logger.error("job id collision: %s", job.job_id)
            raise InternalConsistencyError(f"job id '{job.job_id}' is already registered", job_id=job.job_id)

    def get(self, job_id: str) -> Optional[Job]:
        """Return a snapshot of the job, or None when unknown or expired."""
        entry = self._live_entry(job_id)
        if entry is None:
            return None
        with entry.lock:
            if self.sliding:
                entry.expires_at = self._clock() + self.retention_duration
            return dataclasses.replace(entry.job)

    def mark_running(self, job_id: str) -> bool:
        entry = self._live_entry(job_id)
        if entry is None:
            return False
        with entry.lock:
            job = entry.job
            if job.state is not JobState.PENDING:
                raise InternalConsistencyError(
                    f"job '{job_id}' cannot start from state {job.state.value}", job_id=job_id
                )
            job.state = JobState.RUNNING
            job.started_at = datetime.now(timezone.utc)
        return True

    def update_terminal(self, job_id: str, result: TranslationResult) -> bool:
        """Attach the terminal result. Returns False when the entry is already gone.

        A second terminal write raises and leaves the first result in place.
        """
        entry = self._entries.get(job_id)
        if entry is None:
            logger.warning("job %s was evicted before it finished", job_id)
            return False
        with entry.lock:
            job = entry.job
            if job.state.terminal:
                logger.error("job %s already finished as %s; refusing second result", job_id, job.state.value)
                raise InternalConsistencyError(f"job '{job_id}' already has a result", job_id=job_id)
            job.state = JobState.DONE if result.ok else JobState.FAILED
            job.result = result
            job.request = None
            job.completed_at = datetime.now(timezone.utc)
        return True

    def discard(self, job_id: str) -> None:
        self._entries.pop(job_id, None)

    def reap(self) -> int:
        """Remove expired entries, skipping any that are being written right now."""
        now = self._clock()
        removed = 0
        for job_id, entry in list(self._entries.items()):
            if entry.expires_at > now:
                continue
            if not entry.lock.acquire(blocking=False):
                continue
            try:
                # sliding expiry may have moved the deadline since the scan
                if entry.expires_at <= now and self._entries.get(job_id) is entry:
                    del self._entries[job_id]
                    removed += 1
            finally:
                entry.lock.release()
        if removed:
            logger.info("evicted %d expired job(s)", removed)
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    # --------- background reaper ----------
    def start(self) -> None:
        if self._reaper is not None:
            return
        self._stop.clear()
        self._reaper = threading.Thread(target=self._reap_loop, name="job-reaper", daemon=True)
        self._reaper.start()

    def stop(self) -> None:
        self._stop.set()
        if self._reaper is not None:
            self._reaper.join(timeout=5)
            self._reaper = None

    def clear(self) -> None:
        self._entries.clear()

    def _reap_loop(self) -> None:
        while not self._stop.wait(self.reap_interval):
            try:
                self.reap()
            except Exception:
                logger.exception("job reaper pass failed")

    def _live_entry(self, job_id: str) -> Optional[_Entry]:
        entry = self._entries.get(job_id)
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry
