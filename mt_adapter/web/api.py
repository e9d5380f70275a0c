from fastapi import APIRouter

from mt_adapter.web.routes.jobs import router as jobs_router
from mt_adapter.web.routes.meta import router as meta_router
from mt_adapter.web.routes.translate import router as translate_router

api_router = APIRouter()
api_router.include_router(translate_router)
api_router.include_router(jobs_router)
api_router.include_router(meta_router)
