"""FastAPI middleware for Prometheus metrics instrumentation."""
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
)

# Path segments following these collections are identifiers
_ID_COLLECTIONS = {"libraries", "locations"}

# Fixed sub-resources that must not be collapsed into "{id}"
_STATIC_SEGMENTS = {"nearby", "course"}


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics for Prometheus."""

    EXCLUDE_PATHS = {"/metrics", "/health", "/ping"}

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and collect metrics."""
        path = request.url.path
        method = request.method

        if path in self.EXCLUDE_PATHS:
            return await call_next(request)

        endpoint = self._normalize_endpoint(path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration = time.perf_counter() - start_time
            HTTP_REQUEST_DURATION_SECONDS.labels(
                method=method, endpoint=endpoint
            ).observe(duration)
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()
            HTTP_REQUESTS_TOTAL.labels(
                method=method, endpoint=endpoint, status_code=str(status_code)
            ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize URL path to avoid high cardinality from slugs and keys.

        Converts paths like /v1/libraries/bu-sciences-talence/live to
        /v1/libraries/{id}/live
        """
        segments = path.strip("/").split("/")

        normalized = []
        for i, segment in enumerate(segments):
            previous = segments[i - 1] if i > 0 else ""
            if previous in _ID_COLLECTIONS and segment not in _STATIC_SEGMENTS:
                normalized.append("{id}")
                # Room codes span several segments (A22/103)
                if previous == "locations":
                    break
            else:
                normalized.append(segment)

        return "/" + "/".join(normalized) if normalized else "/"
