from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from application import PipelineContext
from domain.enums import Region
from domain.errors import StoreError
from ..deps import pipeline


router = APIRouter()


@router.get("/health")
def health(ctx: PipelineContext = Depends(pipeline)):
    t0 = time.time()
    try:
        tables = ctx.db.list_tables()
        db_resp = {"ok": True, "tables": len(tables)}
    except StoreError as e:
        db_resp = {"ok": False, "error": str(e)}
    return {
        "ok": db_resp["ok"],
        "data": {
            "db": db_resp,
            "aggregator": {"pending": ctx.aggregator.pending_count()},
            "queue": {"running": ctx.queue.running, "pending": ctx.queue.pending_count()},
            "enrich_in_flight": len(ctx.enrichment.in_flight()),
            "rate_limits": {r.value: ctx.rate_limiter.get_status(r) for r in Region.all_regions()},
            "elapsed_ms": round((time.time() - t0) * 1000, 1),
        },
    }
