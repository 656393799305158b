"""Request logging and API key checks for the Dental Plan Administration API"""

import re
import time
import uuid
from typing import Callable, Optional, Tuple

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from dental_admin.config import settings

logger = structlog.get_logger()

PUBLIC_PATHS = frozenset({"/healthz", "/readyz", "/docs", "/redoc", "/openapi.json"})
WRITE_METHODS = frozenset({"POST", "PUT", "DELETE"})
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}

_DOCUMENT_PATH = re.compile(r"^/(plans|class-structures|limit-structures)/([^/]+)")


def document_from_path(path: str) -> Optional[Tuple[str, str]]:
    """(collection, document id) addressed by a request path, if any"""
    match = _DOCUMENT_PATH.match(path)
    if match is None or match.group(2) == "compatible":
        return None
    return match.group(1), match.group(2)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its run id, user and addressed document.

    The bound logger is left on ``request.state.logger`` so handlers further
    in can log with the same context. Successful writes are logged as
    document changes, which is the audit trail for structure and plan edits.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        run_id = str(uuid.uuid4())
        request.state.run_id = run_id

        log = logger.bind(run_id=run_id, user_id=request.headers.get("X-User-Id"))
        document = document_from_path(request.url.path)
        if document is not None:
            log = log.bind(collection=document[0], document_id=document[1])
        request.state.logger = log

        started = time.perf_counter()
        log.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params),
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error("Request failed", exception=str(exc), duration_ms=_elapsed_ms(started), exc_info=True)
            raise

        if request.method in WRITE_METHODS and response.status_code < 400:
            log.info("Document change", method=request.method, path=request.url.path,
                     status_code=response.status_code, duration_ms=_elapsed_ms(started))
        else:
            log.info("Request completed", status_code=response.status_code, duration_ms=_elapsed_ms(started))

        response.headers["X-Run-ID"] = run_id
        return response


def _unauthorized(request: Request, message: str, code: str) -> JSONResponse:
    log = getattr(request.state, "logger", logger)
    log.warning("Request rejected", code=code, path=request.url.path)
    return JSONResponse(
        status_code=401,
        content={"error": message, "code": code, "trace_id": getattr(request.state, "run_id", None)},
    )


class SecurityMiddleware(BaseHTTPMiddleware):
    """API key check; public paths and CORS preflight pass without a key"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in PUBLIC_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        api_key = request.headers.get("X-API-Key")
        if not api_key:
            return _unauthorized(request, "API key required", "MISSING_API_KEY")
        if api_key not in settings.get_api_keys():
            return _unauthorized(request, "Invalid API key", "INVALID_API_KEY")

        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response
