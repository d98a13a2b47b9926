from __future__ import annotations

from fastapi import APIRouter, Depends

from application import PipelineContext
from ..deps import pipeline, require_cron_secret


router = APIRouter()


@router.get("/scrape-matches", dependencies=[Depends(require_cron_secret)])
async def scrape_matches(ctx: PipelineContext = Depends(pipeline)):
    summary = await ctx.scrape_invocation().execute()
    return {"ok": True, "data": summary}
