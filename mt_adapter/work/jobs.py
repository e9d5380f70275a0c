from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from mt_adapter.config import Settings
from mt_adapter.work.engine import LoopbackEngine, TranslationEngine
from mt_adapter.work.errors import (
    CapacityExceededError,
    EngineError,
    JobFailedError,
    JobNotFoundError,
    JobNotReadyError,
    describe_exception,
)
from mt_adapter.work.ids import new_job_id
from mt_adapter.work.models import (
    AsyncStatus,
    HealthStatus,
    Job,
    JobState,
    LanguagePair,
    Locale,
    StatusReport,
    TranslationRequest,
    TranslationResponse,
)
from mt_adapter.work.pool import ExecutionPool
from mt_adapter.work.registry import JobRegistry

logger = logging.getLogger(__name__)


# Keep this list short: "en" already covers "en_us", "en_gb", ... on the client side.
DEFAULT_LANGUAGE_PAIRS: Tuple[Tuple[Locale, Locale], ...] = (
    (Locale.EN, Locale.DE),
    (Locale.EN, Locale.CS),
    (Locale.EN, Locale.ZH_TW),
)


class JobController:
    """
    Owns the asynchronous translation job lifecycle.

    Submission registers a pending job and hands it to the execution pool
    without waiting; status and result queries only ever read the registry.
    """

    def __init__(
        self,
        registry: JobRegistry,
        pool: ExecutionPool,
        engine: TranslationEngine,
        *,
        id_factory: Callable[[], str] = new_job_id,
        language_pairs: Sequence[Tuple[Locale, Locale]] = DEFAULT_LANGUAGE_PAIRS,
    ):
        self.registry = registry
        self.pool = pool
        self.engine = engine
        self._id_factory = id_factory
        self._language_pairs = list(language_pairs)
        self._started = False

    @classmethod
    def from_settings(cls, settings: Settings, engine: Optional[TranslationEngine] = None) -> "JobController":
        registry = JobRegistry(
            settings.retention_duration,
            sliding=settings.retention_sliding,
            reap_interval=settings.reap_interval,
        )
        pool = ExecutionPool(
            registry,
            max_concurrent_jobs=settings.max_concurrent_jobs,
            max_queued_jobs=settings.max_queued_jobs,
            engine_call_timeout=settings.engine_call_timeout,
            max_abandoned_calls=settings.max_abandoned_engine_calls,
        )
        if engine is None:
            engine = LoopbackEngine(latency=settings.engine_latency)
        return cls(registry, pool, engine)

    # --------- lifecycle ----------
    def start(self) -> None:
        self.registry.start()
        self._started = True
        logger.info(
            "job controller started (workers=%d, backlog=%d, retention=%gs)",
            self.pool.max_concurrent_jobs,
            self.pool.max_queued_jobs,
            self.registry.retention_duration,
        )

    def shutdown(self, wait: bool = True) -> None:
        self._started = False
        self.pool.shutdown(wait=wait)
        self.registry.stop()
        self.registry.clear()
        logger.info("job controller stopped")

    # --------- async jobs ----------
    def submit_async(self, request: TranslationRequest) -> str:
        job_id = self._id_factory()
        owned = request.model_copy(deep=True)
        self.registry.put(Job(job_id=job_id, request=owned))
        try:
            self.pool.submit(job_id, owned, self.engine)
        except CapacityExceededError:
            self.registry.discard(job_id)
            raise
        logger.info("submitted job %s (%d segments)", job_id, len(owned.segments))
        return job_id

    def query_status(self, job_id: str) -> StatusReport:
        job = self._get_job(job_id)
        if job.state is JobState.DONE:
            return StatusReport(AsyncStatus.DONE)
        if job.state is JobState.FAILED:
            return StatusReport(AsyncStatus.FAILED, job.result.failure_detail)
        return StatusReport(AsyncStatus.RUNNING)

    def query_result(self, job_id: str) -> TranslationResponse:
        job = self._get_job(job_id)
        if not job.state.terminal:
            raise JobNotReadyError(job_id)
        if job.state is JobState.FAILED:
            raise JobFailedError(job.result.failure_detail, job_id=job_id)
        return job.result.response

    def _get_job(self, job_id: str) -> Job:
        job = self.registry.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    # --------- pass-throughs ----------
    def translate_sync(self, request: TranslationRequest) -> TranslationResponse:
        try:
            return self.engine(request)
        except Exception as e:
            logger.warning("synchronous translation failed: %s", describe_exception(e))
            raise EngineError(f"translation failed: {describe_exception(e)}") from e

    def language_pairs(self) -> List[LanguagePair]:
        return [LanguagePair(source_language=src, target_language=tgt) for src, tgt in self._language_pairs]

    def health(self) -> HealthStatus:
        if self._started and not self.pool.closed:
            return HealthStatus.OK
        return HealthStatus.NOT_OK
