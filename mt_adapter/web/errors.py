from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mt_adapter.work.errors import AdapterError, ErrorKind, describe_exception

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 5

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.CAPACITY_EXCEEDED: 429,
    ErrorKind.JOB_NOT_FOUND: 404,
    ErrorKind.JOB_NOT_READY: 409,
    ErrorKind.JOB_FAILED: 409,
    ErrorKind.ENGINE_FAILURE: 502,
    ErrorKind.INTERNAL_CONSISTENCY: 500,
}


async def adapter_error_handler(request: Request, exc: AdapterError) -> JSONResponse:
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    if exc.kind is ErrorKind.INTERNAL_CONSISTENCY:
        logger.error("internal consistency error on %s %s: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=500, content={"detail": "Application error", "kind": exc.kind.value})

    headers = None
    if exc.kind is ErrorKind.CAPACITY_EXCEEDED:
        # back off and retry
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid value')}" for err in exc.errors()
    )
    logger.info("rejected %s %s: %s", request.method, request.url.path, problems)
    return JSONResponse(
        status_code=_STATUS_BY_KIND[ErrorKind.VALIDATION],
        content={"detail": problems or "invalid request", "kind": ErrorKind.VALIDATION.value},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Application error: {describe_exception(exc)}", "kind": ErrorKind.INTERNAL_CONSISTENCY.value},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AdapterError, adapter_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
