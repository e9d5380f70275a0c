"""Error kinds raised by the job lifecycle core."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    JOB_NOT_FOUND = "job_not_found"
    JOB_NOT_READY = "job_not_ready"
    JOB_FAILED = "job_failed"
    ENGINE_FAILURE = "engine_failure"
    INTERNAL_CONSISTENCY = "internal_consistency"


class AdapterError(Exception):
    """Base for every error the core raises on purpose.

    Callers branch on ``kind``; ``detail`` is the human readable text that is
    passed through to clients.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_CONSISTENCY

    def __init__(self, detail: str, *, job_id: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.job_id = job_id

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "kind": self.kind.value}


class CapacityExceededError(AdapterError):
    kind = ErrorKind.CAPACITY_EXCEEDED


class JobNotFoundError(AdapterError):
    kind = ErrorKind.JOB_NOT_FOUND

    def __init__(self, job_id: str):
        super().__init__(f"No translation job found with id '{job_id}'", job_id=job_id)


class JobNotReadyError(AdapterError):
    kind = ErrorKind.JOB_NOT_READY

    def __init__(self, job_id: str):
        super().__init__(f"Translation job '{job_id}' is still running", job_id=job_id)


class JobFailedError(AdapterError):
    kind = ErrorKind.JOB_FAILED


class EngineError(AdapterError):
    kind = ErrorKind.ENGINE_FAILURE


class InternalConsistencyError(AdapterError):
    kind = ErrorKind.INTERNAL_CONSISTENCY


def describe_exception(exc: BaseException) -> str:
    """Render ``exc`` as ``Type: message`` (just ``Type`` when the message is empty)."""
    message = str(exc).strip()
    name = type(exc).__name__
    return f"{name}: {message}" if message else name
