from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from mt_adapter.web.deps import get_controller
from mt_adapter.work.jobs import JobController
from mt_adapter.work.models import HealthResponse, LanguagesResponse, MetadataRequest

router = APIRouter()


@router.post("/languages", response_model=LanguagesResponse)
def languages(body: Optional[MetadataRequest] = None, controller: JobController = Depends(get_controller)):
    return LanguagesResponse(language_pairs=controller.language_pairs())


@router.post("/status", response_model=HealthResponse)
def status(body: Optional[MetadataRequest] = None, controller: JobController = Depends(get_controller)):
    # NOT_OK until startup finished and after shutdown began
    return HealthResponse(status=controller.health())
