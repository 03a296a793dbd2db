"""
Request Logging Middleware

Captures all API calls with structured JSON logging:
- Request/response logging with timing
- Request ID tracking (X-Request-ID) and correlation ID propagation
- In-process request statistics exposed at /api/stats
"""

import time
from datetime import datetime
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from config import DEBUG
from structured_logging import (
    get_logger,
    LogContext,
    log_request,
    generate_request_id,
)

logger = get_logger("api.middleware")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every incoming request and outgoing response using structured
    JSON logging, and stamps tracing headers on the response.
    """

    # Paths to exclude from detailed logging (to reduce noise)
    EXCLUDE_PATHS = {"/health", "/favicon.ico", "/docs", "/redoc", "/openapi.json"}

    def __init__(self, app: ASGIApp, log_headers: bool = False):
        super().__init__(app)
        self.log_headers = log_headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        correlation_id = request.headers.get("X-Correlation-ID") or request_id

        method = request.method
        path = request.url.path
        query_params = str(request.query_params) if request.query_params else None
        client_ip = self._get_client_ip(request)

        if path in self.EXCLUDE_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        with LogContext(
            request_id=request_id,
            correlation_id=correlation_id,
            client_ip=client_ip,
            http_method=method,
            http_path=path
        ):
            start_time = time.time()

            request_log_data = {
                "event": "request_started",
                "query_params": query_params,
                "user_agent": request.headers.get("user-agent"),
                "content_type": request.headers.get("content-type"),
            }

            if self.log_headers and DEBUG:
                request_log_data["headers"] = self._get_safe_headers(request)

            logger.debug("Incoming request", extra=request_log_data)

            try:
                response = await call_next(request)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                logger.error(
                    "Request failed with exception",
                    extra={
                        "event": "request_error",
                        "duration_ms": round(duration_ms, 2),
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    },
                    exc_info=True
                )
                raise

            duration_ms = (time.time() - start_time) * 1000

            log_request(
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=duration_ms,
                request_id=request_id,
                client_ip=client_ip,
                query_params=query_params,
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Correlation-ID"] = correlation_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

            return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP, handling proxies."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    def _get_safe_headers(self, request: Request) -> dict:
        sensitive_headers = {"authorization", "cookie", "x-api-key", "x-auth-token"}
        return {
            k: v for k, v in request.headers.items()
            if k.lower() not in sensitive_headers
        }


class RequestStatsMiddleware(BaseHTTPMiddleware):
    """
    Tracks request counts, status codes and latency percentiles.
    """

    def __init__(self, app: ASGIApp, max_samples: int = 1000):
        super().__init__(app)
        self.stats = {
            "total_requests": 0,
            "total_errors": 0,
            "requests_by_method": {},
            "requests_by_status": {},
            "requests_by_path": {},
            "response_times": [],  # Last N response times for percentile calculation
            "total_response_time_ms": 0.0,
            "started_at": datetime.utcnow(),
        }
        self._max_samples = max_samples
        set_stats_middleware(self)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        self.stats["total_requests"] += 1

        method = request.method
        self.stats["requests_by_method"][method] = \
            self.stats["requests_by_method"].get(method, 0) + 1

        response = await call_next(request)

        process_time_ms = (time.time() - start_time) * 1000

        self.stats["response_times"].append(process_time_ms)
        if len(self.stats["response_times"]) > self._max_samples:
            self.stats["response_times"].pop(0)

        self.stats["total_response_time_ms"] += process_time_ms

        status = response.status_code
        self.stats["requests_by_status"][status] = \
            self.stats["requests_by_status"].get(status, 0) + 1

        if status >= 500:
            self.stats["total_errors"] += 1

        # Group by first path segment below /api (e.g. "appointments")
        segments = [s for s in request.url.path.split("/") if s]
        if segments and segments[0] == "api" and len(segments) > 1:
            key = segments[1]
        else:
            key = segments[0] if segments else "root"
        self.stats["requests_by_path"][key] = \
            self.stats["requests_by_path"].get(key, 0) + 1

        return response

    def get_stats(self) -> dict:
        response_times = sorted(self.stats["response_times"])
        total = self.stats["total_requests"]

        return {
            "total_requests": total,
            "total_errors": self.stats["total_errors"],
            "error_rate_percent": round(
                self.stats["total_errors"] / max(total, 1) * 100, 2
            ),
            "avg_response_time_ms": round(
                self.stats["total_response_time_ms"] / max(total, 1), 2
            ),
            "p50_response_time_ms": round(self._percentile(response_times, 50), 2),
            "p95_response_time_ms": round(self._percentile(response_times, 95), 2),
            "p99_response_time_ms": round(self._percentile(response_times, 99), 2),
            "requests_by_method": self.stats["requests_by_method"],
            "requests_by_status": self.stats["requests_by_status"],
            "top_paths": dict(
                sorted(
                    self.stats["requests_by_path"].items(),
                    key=lambda x: x[1],
                    reverse=True
                )[:10]
            ),
            "started_at": self.stats["started_at"].isoformat(),
            "uptime_seconds": (datetime.utcnow() - self.stats["started_at"]).total_seconds(),
        }

    def _percentile(self, data: list, percentile: int) -> float:
        """Linear-interpolated percentile of sorted data."""
        if not data:
            return 0.0
        index = (percentile / 100) * (len(data) - 1)
        lower = int(index)
        upper = min(lower + 1, len(data) - 1)
        weight = index - lower
        return data[lower] * (1 - weight) + data[upper] * weight


# Most recently constructed stats middleware (read by /api/stats)
_stats_middleware: Optional[RequestStatsMiddleware] = None


def get_stats_middleware() -> Optional[RequestStatsMiddleware]:
    return _stats_middleware


def set_stats_middleware(middleware: RequestStatsMiddleware):
    global _stats_middleware
    _stats_middleware = middleware
