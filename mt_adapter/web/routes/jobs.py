from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from mt_adapter.web.deps import get_controller
from mt_adapter.work.jobs import JobController
from mt_adapter.work.models import TranslateAsyncStatusResponse, TranslationResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/translateAsyncStatus/{job_id}",
    response_model=TranslateAsyncStatusResponse,
    response_model_exclude_none=True,
)
def status(job_id: str, controller: JobController = Depends(get_controller)):
    logger.info("Translate async status request: %s", job_id)
    report = controller.query_status(job_id)
    return TranslateAsyncStatusResponse(status=report.status, detail=report.detail)


@router.get("/translateAsyncResult/{job_id}", response_model=TranslationResponse)
def result(job_id: str, controller: JobController = Depends(get_controller)):
    logger.info("Translate async result request: %s", job_id)
    return controller.query_result(job_id)
