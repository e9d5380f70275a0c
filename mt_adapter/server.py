from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request

from mt_adapter.config import Settings, get_settings
from mt_adapter.logging_config import setup_logging
from mt_adapter.web.api import api_router
from mt_adapter.web.errors import register_error_handlers
from mt_adapter.work.engine import TranslationEngine
from mt_adapter.work.jobs import JobController

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine: Optional[TranslationEngine] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        controller = JobController.from_settings(settings, engine=engine)
        controller.start()
        app.state.controller = controller
        try:
            yield
        finally:
            controller.shutdown(wait=False)

    app = FastAPI(title="mt_adapter", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        if settings.log_headers:
            headers = ", ".join(f"{k}: {v}" for k, v in request.headers.items())
            logger.debug("Http headers: %s", headers)
        return await call_next(request)

    app.include_router(api_router)
    register_error_handlers(app)
    return app


def run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "mt_adapter.server:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
    )
