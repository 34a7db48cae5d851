# backend/main.py
import logging
import time
import traceback

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from database import engine, init_db
from schemas.common import ErrorEnvelope
from utils.errors import ApiError, InternalError, code_for_status
from utils.performance import ApiMetric, PerformanceMonitor, now
from utils.response import error_response

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("furniture_api")

# Router imports
from routes.auth import router as auth_router
from routes.cart import router as cart_router
from routes.checkout import router as checkout_router
from routes.furniture import router as furniture_router
from routes.orders import router as orders_router
from routes.performance import router as performance_router
from routes.recommendations import router as recommendations_router
from routes.reviews import router as reviews_router

# Initialization
init_db()

app = FastAPI(title="Furniture Store API", version="1.0.0")

# One monitor per process; database samples come from engine events
monitor = PerformanceMonitor(
    capacity=settings.METRICS_CAPACITY,
    slow_request_ms=settings.SLOW_REQUEST_MS,
    slow_query_ms=settings.SLOW_QUERY_MS,
)
monitor.instrument(engine)
app.state.monitor = monitor

# CORS Configuration
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Times every request for the monitor; outside production also logs it.
# Unhandled exceptions propagate through call_next and are counted as 500s.
@app.middleware("http")
async def monitor_requests(request: Request, call_next):
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration = (time.perf_counter() - started) * 1000

        request.app.state.monitor.record_api_metric(ApiMetric(
            endpoint=request.url.path,
            method=request.method,
            response_time=duration,
            status_code=status_code,
            timestamp=now(),
            user_agent=request.headers.get("user-agent"),
            ip=request.client.host if request.client else None,
        ))

        if not settings.is_production:
            if status_code >= 400:
                logger.warning("%s %s - %s (%.0fms)", request.method, request.url.path, status_code, duration)
            else:
                logger.info("%s %s - %s (%.0fms)", request.method, request.url.path, status_code, duration)


# ---- Error handlers: every failure leaves as {success: false, error: {...}} ----

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.message, exc.code, exc.details, headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code, str(exc.detail), code_for_status(exc.status_code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    issues = [
        {
            # Drop the leading "body"/"query"/"path" location
            "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
            "code": err["type"],
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", "VALIDATION_ERROR", {"validationErrors": issues})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    text = str(exc.orig).lower()
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == "23505" or "unique" in text or "duplicate" in text:
        logger.info("Unique constraint violated on %s %s: %s", request.method, request.url.path, exc.orig)
        return error_response(409, "Record already exists", "DUPLICATE_ENTRY")
    if pgcode == "23503" or "foreign key" in text:
        return error_response(400, "Invalid reference to related record", "FOREIGN_KEY_VIOLATION")
    logger.error("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return error_response(500, "Database operation failed", "DATABASE_ERROR")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(500, "Database operation failed", "DATABASE_ERROR")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {} if settings.is_production else {"stack": traceback.format_exc()}
    err = InternalError()
    return error_response(err.status_code, err.message, err.code, **extra)


# Router registration
ERROR_RESPONSES = {code: {"model": ErrorEnvelope} for code in (400, 401, 403, 404, 409, 500)}

for router in (
    auth_router,
    furniture_router,
    cart_router,
    checkout_router,
    orders_router,
    reviews_router,
    recommendations_router,
    performance_router,
):
    app.include_router(router, prefix="/api", responses=ERROR_RESPONSES)


@app.get("/api/health")
def health():
    return {"ok": True}


@app.get("/")
def read_root():
    return {"message": "Furniture Store API is running"}
