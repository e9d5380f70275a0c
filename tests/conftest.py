"""
Pytest fixtures shared by the test suite.

Provides:
- fake_clock: manually advanced monotonic clock for registry expiry
- gated_engine: loopback engine that blocks until released
- failing_engine: engine that always raises
- make_request: builder for translation requests
"""

import threading
import time

import pytest

from mt_adapter.config import Settings
from mt_adapter.work.engine import build_loopback_response
from mt_adapter.work.models import Locale, TranslationRequest


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class GatedEngine:
    """Loopback engine that waits for ``release()`` before answering."""

    def __init__(self):
        self.gate = threading.Event()
        self.started = threading.Event()
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, request):
        with self._lock:
            self.calls += 1
        self.started.set()
        if not self.gate.wait(timeout=10):
            raise RuntimeError("gate never released")
        return build_loopback_response(request)

    def release(self):
        self.gate.set()


class FailingEngine:
    def __init__(self, message="engine exploded"):
        self.message = message

    def __call__(self, request):
        raise RuntimeError(self.message)


def wait_until(predicate, timeout=5.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def gated_engine():
    engine = GatedEngine()
    yield engine
    # never leave worker threads blocked after a test
    engine.release()


@pytest.fixture
def failing_engine():
    return FailingEngine()


@pytest.fixture
def make_request():
    def _make(texts=("Hello", "World", "Bye"), target=Locale.DE, **kwargs):
        segments = [{"idx": str(i), "text": t, "metadata": {"pos": i}} for i, t in enumerate(texts)]
        return TranslationRequest(
            source_language=Locale.EN,
            target_language=target,
            segments=segments,
            **kwargs,
        )

    return _make


@pytest.fixture
def settings():
    return Settings(
        retention_duration=60,
        reap_interval=60,
        max_concurrent_jobs=2,
        max_queued_jobs=2,
        engine_call_timeout=5,
        engine_latency=0,
    )
