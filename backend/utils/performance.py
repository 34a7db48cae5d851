# backend/utils/performance.py
"""In-process performance monitor.

One ``PerformanceMonitor`` is created when the application starts and is
handed to whoever needs it (``app.state.monitor`` / ``get_monitor``). It keeps
the most recent API and database samples in two bounded ring buffers and
derives statistics from them on demand with pandas.
"""
import logging
import time
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Deque, Optional

import pandas as pd
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 3_600_000


@dataclass
class ApiMetric:
    endpoint: str
    method: str
    response_time: float  # ms
    status_code: int
    timestamp: datetime
    user_agent: Optional[str] = None
    ip: Optional[str] = None


@dataclass
class QueryMetric:
    query: str
    duration: float  # ms
    timestamp: datetime
    success: bool
    error: Optional[str] = None


def now() -> datetime:
    return datetime.now(timezone.utc)


class PerformanceMonitor:
    def __init__(self, capacity: int = 1000, slow_request_ms: float = 1000, slow_query_ms: float = 500):
        self.capacity = capacity
        self.slow_request_ms = slow_request_ms
        self.slow_query_ms = slow_query_ms
        # deque(maxlen) drops the oldest sample once the buffer is full
        self._api: Deque[ApiMetric] = deque(maxlen=capacity)
        self._queries: Deque[QueryMetric] = deque(maxlen=capacity)

    # ---- recording ----

    def record_api_metric(self, metric: ApiMetric) -> None:
        self._api.append(metric)
        if metric.response_time > self.slow_request_ms:
            logger.warning(
                "Slow API request detected: %s %s - %.0fms",
                metric.method, metric.endpoint, metric.response_time,
            )

    def record_query_metric(self, metric: QueryMetric) -> None:
        self._queries.append(metric)
        if metric.duration > self.slow_query_ms:
            logger.warning(
                "Slow database query detected: %.0fms - %s...", metric.duration, metric.query[:100]
            )

    def instrument(self, engine: Engine) -> None:
        """Record every statement executed through ``engine``."""

        @event.listens_for(engine, "before_cursor_execute")
        def _before(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_start", []).append(time.perf_counter())

        @event.listens_for(engine, "after_cursor_execute")
        def _after(conn, cursor, statement, parameters, context, executemany):
            started = conn.info["query_start"].pop()
            self.record_query_metric(QueryMetric(
                query=statement,
                duration=(time.perf_counter() - started) * 1000,
                timestamp=now(),
                success=True,
            ))

        @event.listens_for(engine, "handle_error")
        def _error(exception_context):
            conn = exception_context.connection
            started = conn.info["query_start"].pop() if conn is not None and conn.info.get("query_start") else None
            self.record_query_metric(QueryMetric(
                query=exception_context.statement or "",
                duration=(time.perf_counter() - started) * 1000 if started else 0.0,
                timestamp=now(),
                success=False,
                error=str(exception_context.original_exception),
            ))

    # ---- statistics ----

    @staticmethod
    def _recent(samples, window_ms: int) -> pd.DataFrame:
        frame = pd.DataFrame([asdict(s) for s in samples])
        if frame.empty:
            return frame
        cutoff = now() - timedelta(milliseconds=window_ms)
        return frame[frame["timestamp"] > cutoff]

    def api_stats(self, window_ms: int = DEFAULT_WINDOW_MS) -> dict:
        recent = self._recent(self._api, window_ms)
        if recent.empty:
            return {
                "total_requests": 0,
                "average_response_time": 0,
                "slow_requests": 0,
                "error_rate": 0,
                "endpoint_stats": {},
            }

        total = len(recent)
        errors = recent["status_code"] >= 400
        recent = recent.assign(
            key=recent["method"] + " " + recent["endpoint"],
            is_error=errors,
        )
        grouped = recent.groupby("key").agg(
            count=("response_time", "size"),
            average_time=("response_time", "mean"),
            error_count=("is_error", "sum"),
        )
        endpoint_stats = {
            key: {
                "count": int(row["count"]),
                "average_time": float(row["average_time"]),
                "error_count": int(row["error_count"]),
            }
            for key, row in grouped.iterrows()
        }
        return {
            "total_requests": total,
            "average_response_time": round(float(recent["response_time"].mean())),
            "slow_requests": int((recent["response_time"] > self.slow_request_ms).sum()),
            "error_rate": round(float(errors.sum()) / total * 100, 2),
            "endpoint_stats": endpoint_stats,
        }

    def query_stats(self, window_ms: int = DEFAULT_WINDOW_MS) -> dict:
        recent = self._recent(self._queries, window_ms)
        if recent.empty:
            return {
                "total_queries": 0,
                "average_query_time": 0,
                "slow_queries": 0,
                "failed_queries": 0,
                "top_slow_queries": [],
            }

        # Group statements by their first 50 characters
        recent = recent.assign(key=recent["query"].str.slice(0, 50))
        grouped = (
            recent.groupby("key")
            .agg(average_time=("duration", "mean"), count=("duration", "size"))
            .sort_values("average_time", ascending=False)
            .head(5)
        )
        top_slow = [
            {"query": key, "average_time": round(float(row["average_time"])), "count": int(row["count"])}
            for key, row in grouped.iterrows()
        ]
        return {
            "total_queries": len(recent),
            "average_query_time": round(float(recent["duration"].mean())),
            "slow_queries": int((recent["duration"] > self.slow_query_ms).sum()),
            "failed_queries": int((~recent["success"].astype(bool)).sum()),
            "top_slow_queries": top_slow,
        }

    def health(self, window_ms: int = 300_000) -> dict:
        api = self.api_stats(window_ms)
        db = self.query_stats(window_ms)
        checks = {
            "responseTime": _grade(
                api["average_response_time"], threshold=1000, warning=1000, critical=2000,
                ok="Average response time is acceptable",
                warn="Average response time is elevated",
                bad="Average response time is too high",
            ),
            "errorRate": _grade(
                api["error_rate"], threshold=5, warning=5, critical=10,
                ok="Error rate is within acceptable limits",
                warn="Error rate is elevated",
                bad="Error rate is too high",
            ),
            "databasePerformance": _grade(
                db["average_query_time"], threshold=500, warning=500, critical=1000,
                ok="Database performance is good",
                warn="Database queries are slower than optimal",
                bad="Database queries are too slow",
            ),
        }
        levels = {c["status"] for c in checks.values()}
        overall = "critical" if "critical" in levels else "warning" if "warning" in levels else "healthy"
        return {"status": overall, "checks": checks, "timestamp": now()}

    # ---- lifecycle ----

    def clear_older_than(self, older_than_ms: int = 86_400_000) -> None:
        cutoff = now() - timedelta(milliseconds=older_than_ms)
        self._api = deque((m for m in self._api if m.timestamp > cutoff), maxlen=self.capacity)
        self._queries = deque((q for q in self._queries if q.timestamp > cutoff), maxlen=self.capacity)

    def reset(self) -> None:
        self._api.clear()
        self._queries.clear()

    def __len__(self) -> int:
        return len(self._api)


def _grade(value, *, threshold, warning, critical, ok, warn, bad) -> dict:
    if value > critical:
        status, message = "critical", bad
    elif value > warning:
        status, message = "warning", warn
    else:
        status, message = "healthy", ok
    return {"status": status, "value": value, "threshold": threshold, "message": message}


# Dependency: the monitor owned by the running application
def get_monitor(request: Request) -> PerformanceMonitor:
    return request.app.state.monitor
