from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request

from application import PipelineContext
from config import settings


def pipeline(request: Request) -> PipelineContext:
    return request.app.state.pipeline


def require_cron_secret(request: Request, authorization: Optional[str] = Header(None)) -> None:
    """Bearer check for the scheduled trigger; runs before any work starts."""
    secret = getattr(request.app.state, "cron_secret", None)
    if secret is None:
        secret = settings.CRON_SECRET
    if not secret:
        raise HTTPException(status_code=500, detail={"code": "CRON_SECRET_MISSING", "message": "CRON_SECRET is not configured"})
    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail={"code": "UNAUTHORIZED", "message": "Unauthorized"})
