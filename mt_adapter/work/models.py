from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Locale(str, Enum):
    EN = "en"
    EN_US = "en_us"
    EN_GB = "en_gb"
    DE = "de"
    CS = "cs"
    FR = "fr"
    ES = "es"
    IT = "it"
    JA = "ja"
    ZH_CN = "zh_cn"
    ZH_TW = "zh_tw"


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Segment(_WireModel):
    idx: Optional[str] = None
    text: str
    metadata: Optional[Dict[str, Any]] = None


class GlossaryEntry(_WireModel):
    term: str
    translation: str


class TranslationRequest(_WireModel):
    source_language: Locale = Field(alias="sourceLanguage")
    target_language: Locale = Field(alias="targetLanguage")
    segments: List[Segment]
    glossary: Optional[List[GlossaryEntry]] = None
    metadata: Optional[Dict[str, Any]] = None


class TranslatedSegment(_WireModel):
    idx: Optional[str] = None
    text: str
    translated_text: str = Field(alias="translatedText")
    metadata: Optional[Dict[str, Any]] = None


class TranslationResponse(_WireModel):
    source_language: Locale = Field(alias="sourceLanguage")
    target_language: Locale = Field(alias="targetLanguage")
    segments: List[TranslatedSegment]
    metadata: Optional[Dict[str, Any]] = None


class MetadataRequest(_WireModel):
    metadata: Optional[Dict[str, Any]] = None


class LanguagePair(_WireModel):
    source_language: Locale = Field(alias="sourceLanguage")
    target_language: Locale = Field(alias="targetLanguage")


class LanguagesResponse(_WireModel):
    language_pairs: List[LanguagePair] = Field(alias="languagePairs")


class HealthStatus(str, Enum):
    OK = "ok"
    NOT_OK = "not_ok"


class HealthResponse(_WireModel):
    status: HealthStatus


class AsyncStatus(str, Enum):
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class TranslateAsyncResponse(_WireModel):
    job_id: str = Field(alias="jobId")


class TranslateAsyncStatusResponse(_WireModel):
    status: AsyncStatus
    detail: Optional[str] = None


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED)


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of one translation: a payload or a failure detail, never both."""

    response: Optional[TranslationResponse] = None
    failure_detail: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.response is None) == (self.failure_detail is None):
            raise ValueError("exactly one of response and failure_detail must be set")
        if self.failure_detail is not None and not self.failure_detail.strip():
            raise ValueError("failure_detail must not be empty")

    @classmethod
    def success(cls, response: TranslationResponse) -> "TranslationResult":
        return cls(response=response)

    @classmethod
    def failure(cls, detail: str) -> "TranslationResult":
        return cls(failure_detail=detail)

    @property
    def ok(self) -> bool:
        return self.response is not None


@dataclass
class Job:
    job_id: str
    request: Optional[TranslationRequest]
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: JobState = JobState.PENDING
    result: Optional[TranslationResult] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class StatusReport:
    status: AsyncStatus
    detail: Optional[str] = None
