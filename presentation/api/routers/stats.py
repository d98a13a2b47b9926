from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from application import PipelineContext
from ..deps import pipeline


router = APIRouter()


@router.get("/champions")
async def champions(patch: Optional[str] = Query(None), ctx: PipelineContext = Depends(pipeline)):
    rows = await asyncio.to_thread(ctx.aggregates.list_champions, patch)
    return {"ok": True, "data": {"patch": rows[0]["patch"] if rows else patch, "champions": rows}}


@router.get("/champions/{champion}")
async def champion(champion: str, patch: Optional[str] = Query(None), ctx: PipelineContext = Depends(pipeline)):
    row = await asyncio.to_thread(ctx.aggregates.get_champion, champion, patch)
    if row is None:
        raise HTTPException(status_code=404, detail={"code": "NOT_FOUND", "message": f"no stats for {champion}"})
    return {"ok": True, "data": row}
