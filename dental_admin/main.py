"""Main FastAPI application for the Dental Plan Administration API"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response as StarletteResponse

from dental_admin.config import settings
from dental_admin.database import engine, Base
from dental_admin.engine.cost_shares import CostShareValidationError
from dental_admin.engine.limits import LimitValidationError
from dental_admin.engine.session import SaveInFlightError
from dental_admin.middleware import LoggingMiddleware, SecurityMiddleware
from dental_admin.observability.metrics import REQUEST_COUNT, REQUEST_DURATION
from dental_admin.routers import catalog, class_structures, health, limit_structures, plans
from dental_admin.services.plan_configuration import DocumentNotFoundError, PersistenceError
from dental_admin.validation.types import ConstraintViolation

import dental_admin.models  # noqa: F401  registers tables on Base.metadata

logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Rate limiting
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"]
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Dental Plan Administration API", version=settings.app_version)

    Base.metadata.create_all(bind=engine)

    logger.info(
        "Dental Plan Administration API started successfully",
        cost_share_move_policy=settings.cost_share_move_policy,
    )

    yield

    logger.info("Shutting down Dental Plan Administration API")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Benefit class structures, limit structures and dental plan configuration",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SlowAPIMiddleware)
# Logging is outermost so rejected requests also carry a run id
app.add_middleware(SecurityMiddleware)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(catalog.router, prefix="/config", tags=["catalog"])
app.include_router(class_structures.router, prefix="/class-structures", tags=["class-structures"])
app.include_router(limit_structures.router, prefix="/limit-structures", tags=["limit-structures"])
app.include_router(plans.router, prefix="/plans", tags=["plans"])
app.include_router(health.router, prefix="", tags=["health"])


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Middleware to collect Prometheus metrics"""
    start_time = time.time()

    response = await call_next(request)

    # Label by route template so ids do not explode the label set
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    duration = time.time() - start_time
    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status_code=response.status_code
    ).inc()

    return response


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return StarletteResponse(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def _request_logger(request: Request):
    return getattr(request.state, "logger", logger)


def _error_response(request: Request, status_code: int, message: str, code: str) -> JSONResponse:
    run_id = getattr(request.state, 'run_id', str(uuid.uuid4()))
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "code": code,
            "trace_id": run_id
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Global HTTP exception handler"""
    logger.error(
        "HTTP exception",
        run_id=getattr(request.state, 'run_id', None),
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method
    )
    return _error_response(request, exc.status_code, exc.detail, f"HTTP_{exc.status_code}")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Request bodies and query parameters that fail validation"""
    messages = []
    for error in exc.errors():
        message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        # Messages from the shared constraints are already user facing
        if location and error.get("type") != "value_error":
            message = f"{location}: {message}"
        messages.append(message)
    _request_logger(request).info("Request validation failed", path=request.url.path, errors=messages)
    return _error_response(request, 422, "; ".join(messages), "HTTP_422")


@app.exception_handler(ConstraintViolation)
@app.exception_handler(CostShareValidationError)
@app.exception_handler(LimitValidationError)
async def constraint_violation_handler(request: Request, exc: ValueError):
    """Edits rejected by the plan engine; nothing was written"""
    _request_logger(request).info("Edit rejected", path=request.url.path, error=str(exc))
    return _error_response(request, 422, str(exc), "HTTP_422")


@app.exception_handler(DocumentNotFoundError)
async def not_found_handler(request: Request, exc: DocumentNotFoundError):
    return _error_response(request, 404, str(exc), "HTTP_404")


@app.exception_handler(SaveInFlightError)
async def save_in_flight_handler(request: Request, exc: SaveInFlightError):
    return _error_response(request, 409, str(exc), "HTTP_409")


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    """Store failures; the plan keeps its unsaved edits so the save can be retried"""
    _request_logger(request).error("Persistence error", path=request.url.path, error=str(exc))
    return _error_response(request, 500, str(exc), "PERSISTENCE_ERROR")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    run_id = getattr(request.state, 'run_id', str(uuid.uuid4()))

    logger.error(
        "Unhandled exception",
        run_id=run_id,
        exception=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
            "trace_id": run_id
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dental_admin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
