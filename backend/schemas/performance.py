from datetime import datetime
from typing import Dict, List, Literal

from schemas.common import ORMBase

HealthLevel = Literal["healthy", "warning", "critical"]


class EndpointStats(ORMBase):
    count: int
    average_time: float
    error_count: int


class ApiStats(ORMBase):
    total_requests: int
    average_response_time: float
    slow_requests: int
    error_rate: float
    endpoint_stats: Dict[str, EndpointStats] = {}


class SlowQuery(ORMBase):
    query: str
    average_time: float
    count: int


class QueryStats(ORMBase):
    total_queries: int
    average_query_time: float
    slow_queries: int
    failed_queries: int
    top_slow_queries: List[SlowQuery] = []


class PerformanceStats(ORMBase):
    time_window: float  # minutes
    api: ApiStats
    database: QueryStats
    timestamp: datetime


class HealthCheck(ORMBase):
    status: HealthLevel
    value: float
    threshold: float
    message: str


class HealthReport(ORMBase):
    status: HealthLevel
    checks: Dict[str, HealthCheck]
    timestamp: datetime


class ClearRequest(ORMBase):
    older_than: int = 86400000  # ms


class ClearResult(ORMBase):
    message: str
    cleared_data_older_than: float  # hours
