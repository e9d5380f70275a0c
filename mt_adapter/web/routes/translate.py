from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from mt_adapter.web.deps import get_controller
from mt_adapter.work.jobs import JobController
from mt_adapter.work.models import TranslateAsyncResponse, TranslationRequest, TranslationResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/translate", response_model=TranslationResponse)
def translate(body: TranslationRequest, controller: JobController = Depends(get_controller)):
    logger.info("Translate request: %d segments", len(body.segments))
    return controller.translate_sync(body)


@router.post("/translateAsync", response_model=TranslateAsyncResponse)
def translate_async(body: TranslationRequest, controller: JobController = Depends(get_controller)):
    logger.info("Translate async request: %d segments", len(body.segments))
    job_id = controller.submit_async(body)
    return TranslateAsyncResponse(job_id=job_id)
