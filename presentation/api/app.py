from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from application import PipelineContext
from core.logging import get_logger
from domain.errors import PipelineError
from .routers import cron, enrichment, health, stats

logger = get_logger(__name__, service="api")


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        {"ok": False, "error": {"code": code, "message": message}},
        status_code=status_code,
        headers={"Cache-Control": "no-store"},
    )


def create_app(pipeline: Optional[PipelineContext] = None, *, cron_secret: Optional[str] = None) -> FastAPI:
    """Build the HTTP surface. A prebuilt ``pipeline`` is used as-is (tests inject one)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = pipeline or PipelineContext()
        app.state.pipeline = ctx
        async with ctx:
            yield

    app = FastAPI(title="ARAM Match Pipeline", version="1.0.0", lifespan=lifespan)
    app.state.cron_secret = cron_secret

    app.include_router(cron.router, prefix="/api/cron", tags=["cron"])
    app.include_router(enrichment.router, prefix="/api", tags=["enrichment"])
    app.include_router(stats.router, prefix="/api", tags=["stats"])
    app.include_router(health.router, prefix="/api", tags=["health"])

    @app.exception_handler(HTTPException)
    async def on_http_error(request: Request, exc: HTTPException):
        detail = exc.detail if isinstance(exc.detail, dict) else {"code": "HTTP_ERROR", "message": str(exc.detail)}
        return _error(exc.status_code, detail.get("code", "HTTP_ERROR"), detail.get("message", ""))

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        return _error(422, "INVALID_REQUEST", str(exc.errors()))

    @app.exception_handler(PipelineError)
    async def on_pipeline_error(request: Request, exc: PipelineError):
        logger.error(lambda: f"request-failed {request.url.path}", fields={"error": str(exc)})
        return _error(503, type(exc).__name__, str(exc))

    # Global error handler → uniform envelope
    @app.exception_handler(Exception)
    async def on_error(request: Request, exc: Exception):
        logger.exception(lambda: f"request-crashed {request.url.path}")
        return _error(500, "INTERNAL", str(exc))

    @app.middleware("http")
    async def no_store_middleware(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        return response

    return app
