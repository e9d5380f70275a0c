import time

import pytest
from conftest import wait_until

from mt_adapter.work.engine import LoopbackEngine
from mt_adapter.work.errors import (
    CapacityExceededError,
    EngineError,
    JobFailedError,
    JobNotFoundError,
    JobNotReadyError,
)
from mt_adapter.work.jobs import JobController
from mt_adapter.work.models import AsyncStatus, HealthStatus, Locale
from mt_adapter.work.pool import ExecutionPool
from mt_adapter.work.registry import JobRegistry


@pytest.fixture
def build_controller(fake_clock):
    controllers = []

    def _build(engine, max_concurrent_jobs=2, max_queued_jobs=2, **kwargs):
        registry = JobRegistry(60, clock=fake_clock)
        pool = ExecutionPool(
            registry,
            max_concurrent_jobs=max_concurrent_jobs,
            max_queued_jobs=max_queued_jobs,
            engine_call_timeout=5,
        )
        controller = JobController(registry, pool, engine, **kwargs)
        controller.start()
        controllers.append(controller)
        return controller

    yield _build
    for controller in controllers:
        controller.shutdown(wait=False)


def _finished(controller, job_id):
    return controller.query_status(job_id).status is not AsyncStatus.RUNNING


class TestAsyncLifecycle:
    def test_three_segment_job(self, build_controller, gated_engine, make_request):
        controller = build_controller(gated_engine)
        request = make_request(texts=("one", "two", "three"))

        started = time.monotonic()
        job_id = controller.submit_async(request)
        assert time.monotonic() - started < 1

        assert controller.query_status(job_id).status is AsyncStatus.RUNNING
        with pytest.raises(JobNotReadyError):
            controller.query_result(job_id)

        gated_engine.release()
        assert wait_until(lambda: _finished(controller, job_id))

        report = controller.query_status(job_id)
        assert report.status is AsyncStatus.DONE
        assert report.detail is None

        response = controller.query_result(job_id)
        assert [s.idx for s in response.segments] == ["0", "1", "2"]
        assert [s.text for s in response.segments] == ["one", "two", "three"]
        assert [s.translated_text for s in response.segments] == ["one [de]", "two [de]", "three [de]"]

    def test_result_is_stable_across_reads(self, build_controller, make_request):
        controller = build_controller(LoopbackEngine())
        job_id = controller.submit_async(make_request())
        assert wait_until(lambda: _finished(controller, job_id))

        first = controller.query_result(job_id)
        for _ in range(5):
            assert controller.query_status(job_id).status is AsyncStatus.DONE
            assert controller.query_result(job_id) == first

    def test_failed_job_reports_detail(self, build_controller, failing_engine, make_request):
        controller = build_controller(failing_engine)
        job_id = controller.submit_async(make_request())
        assert wait_until(lambda: _finished(controller, job_id))

        report = controller.query_status(job_id)
        assert report.status is AsyncStatus.FAILED
        assert "engine exploded" in report.detail

        with pytest.raises(JobFailedError) as excinfo:
            controller.query_result(job_id)
        assert excinfo.value.detail == report.detail

    def test_unknown_job(self, build_controller):
        controller = build_controller(LoopbackEngine())
        with pytest.raises(JobNotFoundError):
            controller.query_status("does-not-exist")
        with pytest.raises(JobNotFoundError):
            controller.query_result("does-not-exist")

    def test_job_gone_after_retention(self, build_controller, fake_clock, make_request):
        controller = build_controller(LoopbackEngine())
        job_id = controller.submit_async(make_request())
        assert wait_until(lambda: _finished(controller, job_id))

        fake_clock.advance(60)
        with pytest.raises(JobNotFoundError):
            controller.query_status(job_id)
        with pytest.raises(JobNotFoundError):
            controller.query_result(job_id)


class TestIsolation:
    def test_distinct_ids_and_results(self, build_controller, make_request):
        controller = build_controller(LoopbackEngine())
        first = controller.submit_async(make_request(texts=("apple",), target=Locale.DE))
        second = controller.submit_async(make_request(texts=("pear",), target=Locale.CS))
        assert first != second

        assert wait_until(lambda: _finished(controller, first) and _finished(controller, second))
        assert controller.query_result(first).segments[0].translated_text == "apple [de]"
        assert controller.query_result(second).segments[0].translated_text == "pear [cs]"

    def test_controller_keeps_its_own_copy_of_the_request(self, build_controller, gated_engine, make_request):
        controller = build_controller(gated_engine)
        request = make_request(texts=("keep",))
        job_id = controller.submit_async(request)
        request.segments[0].metadata["pos"] = 99

        gated_engine.release()
        assert wait_until(lambda: _finished(controller, job_id))
        assert controller.query_result(job_id).segments[0].metadata == {"pos": 0}


class TestBackpressure:
    def test_full_backlog_registers_nothing(self, build_controller, gated_engine, make_request):
        controller = build_controller(gated_engine, max_concurrent_jobs=1, max_queued_jobs=1)
        controller.submit_async(make_request())
        controller.submit_async(make_request())

        ids = iter(["rejected-id"])
        controller._id_factory = lambda: next(ids)
        with pytest.raises(CapacityExceededError):
            controller.submit_async(make_request())
        with pytest.raises(JobNotFoundError):
            controller.query_status("rejected-id")
        assert len(controller.registry) == 2


class TestPassThroughs:
    def test_translate_sync(self, build_controller, make_request):
        controller = build_controller(LoopbackEngine())
        response = controller.translate_sync(make_request(texts=("Hi",)))
        assert response.segments[0].translated_text == "Hi [de]"
        assert len(controller.registry) == 0

    def test_translate_sync_engine_failure(self, build_controller, failing_engine, make_request):
        controller = build_controller(failing_engine)
        with pytest.raises(EngineError) as excinfo:
            controller.translate_sync(make_request())
        assert "engine exploded" in excinfo.value.detail

    def test_language_pairs(self, build_controller):
        controller = build_controller(LoopbackEngine())
        pairs = [(p.source_language, p.target_language) for p in controller.language_pairs()]
        assert pairs == [(Locale.EN, Locale.DE), (Locale.EN, Locale.CS), (Locale.EN, Locale.ZH_TW)]

    def test_health_follows_lifecycle(self, build_controller):
        controller = build_controller(LoopbackEngine())
        assert controller.health() is HealthStatus.OK
        controller.shutdown(wait=False)
        assert controller.health() is HealthStatus.NOT_OK


def test_from_settings(settings):
    controller = JobController.from_settings(settings)
    assert controller.pool.max_concurrent_jobs == 2
    assert controller.pool.max_queued_jobs == 2
    assert controller.pool.max_abandoned_calls == 16
    assert controller.registry.retention_duration == 60
    assert isinstance(controller.engine, LoopbackEngine)
    assert controller.health() is HealthStatus.NOT_OK
    controller.shutdown()
