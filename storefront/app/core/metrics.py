"""
Prometheus metrics: HTTP traffic plus delivery resolution, lookup failure
and checkout quote counters. Exposed at /metrics.
"""
import time

from fastapi import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.openmetrics.exposition import (
    CONTENT_TYPE_LATEST as OPENMETRICS_CONTENT_TYPE,
    generate_latest as generate_latest_openmetrics,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests by route template and status',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency by route template',
    ['method', 'endpoint'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# outcome: unavailable | single | multiple
delivery_resolutions_total = Counter(
    'delivery_resolutions_total',
    'Pincode resolutions by outcome',
    ['outcome']
)

# source: settings store | selection cache
delivery_lookup_failures_total = Counter(
    'delivery_lookup_failures_total',
    'Zone or selection lookups that could not be completed',
    ['source']
)

# result: ok | stale
delivery_quotes_total = Counter(
    'delivery_quotes_total',
    'Checkout delivery quotes by result',
    ['result']
)

SKIP_PATHS = {"/metrics", "/health"}


def _route_template(request: Request) -> str:
    """
    `/delivery/pincodes/{postal_code}/valid`, not the concrete pincode.

    Read after the request was routed: the matched route is in the scope.
    A route inside an included router may carry its path without the
    prefix, so that case is rebuilt from the path parameters.
    """
    route = request.scope.get("route")
    if route is None:
        return "unmatched"

    path = request.scope.get("path", request.url.path)
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if template and template.count("/") == path.count("/"):
        return template

    segments = path.split("/")
    for name, value in request.scope.get("path_params", {}).items():
        segments = [f"{{{name}}}" if segment == str(value) else segment for segment in segments]
    return "/".join(segments)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Counts requests and observes latency per route template."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            endpoint = _route_template(request)
            http_requests_total.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method,
                endpoint=endpoint
            ).observe(time.perf_counter() - started)

        return response


def get_metrics_response(openmetrics: bool = False) -> Response:
    if openmetrics:
        return Response(content=generate_latest_openmetrics(), media_type=OPENMETRICS_CONTENT_TYPE)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
