from __future__ import annotations

import logging
import time
from typing import Callable

from mt_adapter.work.models import TranslatedSegment, TranslationRequest, TranslationResponse

logger = logging.getLogger(__name__)

# Anything with this shape can be plugged in as the translation engine.
TranslationEngine = Callable[[TranslationRequest], TranslationResponse]


class LoopbackEngine:
    """
    Stand-in engine used until a real MT backend is wired in.
    Echoes every segment with the target locale appended, e.g. ``Hello [de]``,
    after sleeping ``latency`` seconds to mimic a remote call.
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency

    def __call__(self, request: TranslationRequest) -> TranslationResponse:
        logger.info(
            "translating %d segments %s -> %s",
            len(request.segments),
            request.source_language.value,
            request.target_language.value,
        )
        if self.latency > 0:
            time.sleep(self.latency)
        return build_loopback_response(request)


def build_loopback_response(request: TranslationRequest) -> TranslationResponse:
    target = request.target_language.value
    segments = [
        TranslatedSegment(
            idx=seg.idx,
            text=seg.text,
            translated_text=f"{seg.text} [{target}]",
            metadata=seg.metadata,
        )
        for seg in request.segments
    ]
    return TranslationResponse(
        source_language=request.source_language,
        target_language=request.target_language,
        segments=segments,
        metadata=request.metadata,
    )
