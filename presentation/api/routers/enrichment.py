from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from application import PipelineContext
from domain.enums import Region
from ..deps import pipeline


router = APIRouter()


class EnrichMatchBody(BaseModel):
    match_id: str = Field(alias="matchId", min_length=1)
    region: str


class AutoEnrichBody(BaseModel):
    match_ids: List[str] = Field(alias="matchIds")
    region: str


def _region(value: str) -> Region:
    try:
        return Region.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "BAD_REGION", "message": str(e)})


@router.post("/enrich-match")
async def enrich_match(body: EnrichMatchBody, ctx: PipelineContext = Depends(pipeline)):
    result = await ctx.enrichment.enrich(body.match_id, _region(body.region))
    payload = {"ok": result.success, **result.to_dict()}
    return JSONResponse(payload, status_code=result.http_status)


@router.post("/auto-enrich")
async def auto_enrich(body: AutoEnrichBody, ctx: PipelineContext = Depends(pipeline)):
    jobs = ctx.auto_enrich.execute(body.match_ids, _region(body.region))
    return {"ok": True, "data": {"jobs": [j.job_id for j in jobs], "queued": len(jobs)}}


@router.get("/enrich-jobs/{job_id}")
async def enrich_job(job_id: str, ctx: PipelineContext = Depends(pipeline)):
    job = ctx.queue.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail={"code": "JOB_NOT_FOUND", "message": f"no job {job_id}"})
    return {"ok": True, "data": job.to_dict()}
