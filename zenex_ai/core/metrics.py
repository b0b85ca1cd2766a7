"""Prometheus metrics for the application."""

import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# --- Application ---

APP_INFO = Info("zenex_ai", "Zenex AI generation core info")
APP_INFO.info({"version": "1.0.0", "name": "zenex_ai"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

FIREWALL_BLOCKS = Counter(
    "firewall_blocks_total",
    "Prompts rejected by the prompt firewall",
    ["risk_level"],
)

RATE_LIMIT_REJECTIONS = Counter(
    "rate_limit_rejections_total",
    "Requests denied by the per-caller fixed window limiter",
)

CACHE_LOOKUPS = Counter(
    "response_cache_lookups_total",
    "Response cache lookups",
    ["result"],  # hit | miss
)

PROVIDER_CALLS = Counter(
    "provider_calls_total",
    "Upstream provider calls",
    ["provider", "status"],  # success | error
)

PROVIDER_LATENCY = Histogram(
    "provider_call_duration_seconds",
    "Upstream provider call duration in seconds",
    ["provider"],
    buckets=[0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120],
)

PROVIDER_FAILOVERS = Counter(
    "provider_failovers_total",
    "Architect requests degraded to the engineer path",
)


# --- Middleware ---


def _route_label(request: Request) -> str:
    """Route template (``/api/v1/generate``) so path labels stay bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count and time every API request except the scrape itself."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            REQUEST_COUNT.labels(method=request.method, path=_route_label(request), status=500).inc()
            raise
        elapsed = time.perf_counter() - start

        path = _route_label(request)
        REQUEST_COUNT.labels(method=request.method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=request.method, path=path).observe(elapsed)
        return response


def metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
