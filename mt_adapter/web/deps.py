from __future__ import annotations

from fastapi import Request

from mt_adapter.work.jobs import JobController


def get_controller(request: Request) -> JobController:
    return request.app.state.controller
