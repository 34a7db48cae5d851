# backend/routes/performance.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from schemas.common import Envelope
from schemas.performance import ClearRequest, ClearResult, HealthReport, PerformanceStats
from utils.errors import BadRequestError
from utils.performance import DEFAULT_WINDOW_MS, PerformanceMonitor, get_monitor, now
from utils.response import ok

router = APIRouter(prefix="/performance", tags=["Performance"])

MIN_WINDOW_MS = 60_000
MAX_WINDOW_MS = 86_400_000
MIN_CLEAR_AGE_MS = 3_600_000
HEALTH_WINDOW_MS = 300_000


@router.get("/stats", response_model=Envelope[PerformanceStats])
def performance_stats(
    time_window: int = Query(DEFAULT_WINDOW_MS, alias="timeWindow"),
    monitor: PerformanceMonitor = Depends(get_monitor),
):
    if not MIN_WINDOW_MS <= time_window <= MAX_WINDOW_MS:
        raise BadRequestError("Time window must be between 1 minute and 24 hours")

    return ok(PerformanceStats(
        time_window=time_window / 1000 / 60,
        api=monitor.api_stats(time_window),
        database=monitor.query_stats(time_window),
        timestamp=now(),
    ))


# 503 while any check is critical so load balancers can react
@router.get("/health", response_model=Envelope[HealthReport])
def performance_health(monitor: PerformanceMonitor = Depends(get_monitor)):
    report = HealthReport(**monitor.health(HEALTH_WINDOW_MS))
    if report.status == "critical":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=jsonable_encoder(ok(report.model_dump(by_alias=True))),
        )
    return ok(report)


@router.post("/clear", response_model=Envelope[ClearResult])
def clear_performance_data(
    payload: Optional[ClearRequest] = None,
    monitor: PerformanceMonitor = Depends(get_monitor),
):
    older_than = payload.older_than if payload else ClearRequest().older_than
    if older_than < MIN_CLEAR_AGE_MS:
        raise BadRequestError("Cannot clear data newer than 1 hour")

    monitor.clear_older_than(older_than)
    return ok(ClearResult(
        message="Performance data cleared successfully",
        cleared_data_older_than=older_than / 1000 / 60 / 60,
    ))
