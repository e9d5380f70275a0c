"""
Bounded execution pool for asynchronous translation jobs.

At most ``max_concurrent_jobs`` jobs run at once and at most
``max_queued_jobs`` more wait for a worker. Anything beyond that is refused
straight away with :class:`CapacityExceededError`.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Callable, Dict, Optional, Set

from mt_adapter.work.errors import CapacityExceededError, describe_exception
from mt_adapter.work.models import TranslationRequest, TranslationResponse, TranslationResult
from mt_adapter.work.registry import JobRegistry

logger = logging.getLogger(__name__)

EngineCall = Callable[[TranslationRequest], TranslationResponse]


class EngineCallTimeout(Exception):
    """The pool stopped waiting for the engine; not raised by engines themselves."""


class ExecutionPool:
    def __init__(
        self,
        registry: JobRegistry,
        *,
        max_concurrent_jobs: int,
        max_queued_jobs: int,
        engine_call_timeout: Optional[float] = None,
        max_abandoned_calls: int = 16,
    ):
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")
        if max_queued_jobs < 0:
            raise ValueError("max_queued_jobs must not be negative")
        if max_abandoned_calls < 1:
            raise ValueError("max_abandoned_calls must be at least 1")
        self.max_concurrent_jobs = max_concurrent_jobs
        self.max_queued_jobs = max_queued_jobs
        self.engine_call_timeout = engine_call_timeout
        self.max_abandoned_calls = max_abandoned_calls
        self._registry = registry
        self._slots = threading.BoundedSemaphore(max_concurrent_jobs + max_queued_jobs)
        self._executor = ThreadPoolExecutor(max_workers=max_concurrent_jobs, thread_name_prefix="translate_job")
        self._in_flight: Dict[str, Future] = {}
        self._abandoned: Set[threading.Thread] = set()
        self._abandoned_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def abandoned_calls(self) -> int:
        """Engine calls that timed out and are still running."""
        with self._abandoned_lock:
            self._abandoned = {t for t in self._abandoned if t.is_alive()}
            return len(self._abandoned)

    def submit(self, job_id: str, request: TranslationRequest, engine_call: EngineCall) -> None:
        """Queue the job and return at once; raises CapacityExceededError when full."""
        if self._closed:
            raise CapacityExceededError("execution pool is shut down", job_id=job_id)
        stuck = self.abandoned_calls
        if stuck >= self.max_abandoned_calls:
            logger.warning("rejecting job %s: %d engine calls still stuck after timing out", job_id, stuck)
            raise CapacityExceededError(
                f"Application busy: {stuck} translation engine calls are not responding, retry later",
                job_id=job_id,
            )
        if not self._slots.acquire(blocking=False):
            logger.warning("rejecting job %s: %d running/queued jobs", job_id, self.in_flight)
            raise CapacityExceededError(
                f"Application busy: {self.max_concurrent_jobs} jobs running and "
                f"{self.max_queued_jobs} queued, retry later",
                job_id=job_id,
            )
        try:
            future = self._executor.submit(self._run, job_id, request, engine_call)
        except RuntimeError as e:
            self._slots.release()
            raise CapacityExceededError(f"execution pool is shut down: {e}", job_id=job_id) from e
        self._in_flight[job_id] = future
        future.add_done_callback(lambda f, job_id=job_id: self._finished(job_id, f))

    def shutdown(self, wait: bool = True) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _run(self, job_id: str, request: TranslationRequest, engine_call: EngineCall) -> None:
        try:
            if not self._registry.mark_running(job_id):
                logger.warning("job %s expired before a worker picked it up", job_id)
                return
        except Exception:
            logger.exception("job %s could not be started", job_id)
            return

        logger.info("job %s started (%d segments)", job_id, len(request.segments))
        try:
            result = TranslationResult.success(self._call_engine(job_id, request, engine_call))
        except EngineCallTimeout as e:
            result = TranslationResult.failure(f"translation failed: {e}")
        except BaseException as e:
            result = TranslationResult.failure(f"translation failed: {describe_exception(e)}")

        if result.ok:
            logger.info("job %s done", job_id)
        else:
            logger.warning("job %s failed: %s", job_id, result.failure_detail)
        self._registry.update_terminal(job_id, result)

    def _call_engine(self, job_id: str, request: TranslationRequest, engine_call: EngineCall) -> TranslationResponse:
        if self.engine_call_timeout is None:
            return engine_call(request)

        # run on a throwaway thread so a stuck call only costs that thread, not a worker
        outcome: Future = Future()

        def call() -> None:
            if not outcome.set_running_or_notify_cancel():
                return
            try:
                outcome.set_result(engine_call(request))
            except BaseException as e:
                outcome.set_exception(e)

        thread = threading.Thread(target=call, name=f"engine-{job_id}", daemon=True)
        thread.start()
        done, _ = wait_futures([outcome], timeout=self.engine_call_timeout)
        if not done:
            with self._abandoned_lock:
                self._abandoned.add(thread)
            logger.warning("abandoning engine thread %s after %gs", thread.name, self.engine_call_timeout)
            raise EngineCallTimeout(f"engine call timed out after {self.engine_call_timeout:g}s")
        return outcome.result()

    def _finished(self, job_id: str, future: Future) -> None:
        self._in_flight.pop(job_id, None)
        self._slots.release()
        if future.cancelled():
            logger.warning("job %s cancelled before it started", job_id)
            self._registry.update_terminal(
                job_id, TranslationResult.failure("translation failed: service shut down before the job started")
            )
        elif future.exception() is not None:
            logger.error("job %s worker crashed", job_id, exc_info=future.exception())
