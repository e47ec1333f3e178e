"""FastAPI app for the age policy and structured messaging engines."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sprout_engines.age_policy.routes import router as age_policy_router
from sprout_engines.common.error_envelope import build_error_envelope, envelope_for
from sprout_engines.common.errors import SafetyError
from sprout_engines.messaging.routes import router as messaging_router
from sprout_engines.runtime import SafetyRuntime, build_runtime

logger = logging.getLogger(__name__)


async def _safety_error_handler(request: Request, exc: SafetyError):
    envelope = envelope_for(exc)
    return JSONResponse(content=envelope.model_dump(), status_code=exc.http_status)


async def _http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        return JSONResponse(content=detail, status_code=exc.status_code)
    envelope = build_error_envelope(
        code="http.exception",
        message=str(detail) if detail else "HTTP exception",
        status_code=exc.status_code,
    )
    return JSONResponse(content=envelope.model_dump(), status_code=exc.status_code)


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
    envelope = build_error_envelope(
        code="validation.error",
        message="Validation failed",
        status_code=400,
        details={"errors": errors},
    )
    return JSONResponse(content=envelope.model_dump(), status_code=400)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(SafetyError, _safety_error_handler)
    target_app.add_exception_handler(HTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)


def create_app(runtime: Optional[SafetyRuntime] = None) -> FastAPI:
    app = FastAPI(title="Sprout Safety Engines")
    app.state.runtime = runtime or build_runtime()
    register_error_handlers(app)
    app.include_router(age_policy_router)
    app.include_router(messaging_router)
    return app
