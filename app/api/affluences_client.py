"""Affluences API client with async HTTP support."""
import logging
import time
from typing import Any, Optional
from urllib.parse import quote

import httpx

from app.models import LiveDataResponse, TimetableResponse
from app.metrics import (
    AFFLUENCES_API_CALLS_TOTAL,
    AFFLUENCES_API_CALL_DURATION_SECONDS,
    AFFLUENCES_API_ERRORS_TOTAL,
)

logger = logging.getLogger(__name__)

# The provider rejects requests that do not look like its own website client
DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "fr",
    "x-service-name": "website",
    "Origin": "https://affluences.com",
    "Referer": "https://affluences.com/",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}


class AffluencesAPIClient:
    """Async HTTP client for the Affluences site catalog and live data API."""

    def __init__(
        self,
        catalog_base_url: str,
        site_base_url: str,
        timeout: float = 10.0,
    ):
        """Initialize Affluences API client.

        Args:
            catalog_base_url: Base URL for the catalog (e.g., "https://api.affluences.com/app/v3")
            site_base_url: Base URL for per-site endpoints (e.g., "https://api.affluences.com/app/v4")
            timeout: Request timeout in seconds
        """
        self.catalog_base_url = catalog_base_url.rstrip("/")
        self.site_base_url = site_base_url.rstrip("/")
        self.timeout = timeout

        # Create async HTTP client with connection pooling
        self.client = httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        )

    async def close(self):
        """Close the HTTP client and clean up resources."""
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> Any:
        """Make an HTTP request to the Affluences API.

        Args:
            method: HTTP method (GET, POST)
            url: Full request URL
            endpoint: Normalized endpoint label for metrics (no slugs)
            params: Query parameters
            json_body: JSON request body

        Returns:
            Decoded JSON response

        Raises:
            httpx.HTTPStatusError: If response status is not 2xx
            httpx.RequestError: If request fails
            ValueError: If the body is not valid JSON
        """
        logger.debug(f"[AffluencesAPIClient] {method} {url} params={params} body={json_body}")

        headers = dict(DEFAULT_HEADERS)
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        start_time = time.perf_counter()

        try:
            response = await self.client.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
            )

            logger.debug(f"[AffluencesAPIClient] Response status: {response.status_code}")

            response.raise_for_status()
            response_json = response.json()

            duration = time.perf_counter() - start_time
            AFFLUENCES_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            AFFLUENCES_API_CALLS_TOTAL.labels(endpoint=endpoint, status="success").inc()

            return response_json

        except httpx.HTTPStatusError as e:
            self._record_error(endpoint, "http_error", start_time)
            logger.error(f"[AffluencesAPIClient] HTTP error on {method} {url}: {e}")
            raise
        except httpx.TimeoutException as e:
            self._record_error(endpoint, "timeout", start_time)
            logger.error(f"[AffluencesAPIClient] Timeout on {method} {url}: {e}")
            raise
        except httpx.RequestError as e:
            self._record_error(endpoint, "connection_error", start_time)
            logger.error(f"[AffluencesAPIClient] Request error on {method} {url}: {e}")
            raise
        except ValueError as e:
            self._record_error(endpoint, "decode_error", start_time)
            logger.error(f"[AffluencesAPIClient] Invalid JSON on {method} {url}: {e}")
            raise

    @staticmethod
    def _record_error(endpoint: str, error_type: str, start_time: float) -> None:
        duration = time.perf_counter() - start_time
        AFFLUENCES_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
        AFFLUENCES_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
        AFFLUENCES_API_ERRORS_TOTAL.labels(endpoint=endpoint, error_type=error_type).inc()

    def _site_url(self, slug: str, resource: str) -> str:
        if not slug:
            raise ValueError("slug must be provided")
        return f"{self.site_base_url}/sites/{quote(slug, safe='')}/{resource}"

    async def search_sites(self, lat: float, lng: float) -> list[dict]:
        """Call POST /sites/map around a position.

        Records are returned undecoded so that one malformed record does not
        invalidate the whole page.

        Args:
            lat: Latitude
            lng: Longitude

        Returns:
            Raw result records in provider order
        """
        response_data = await self._request(
            "POST",
            f"{self.catalog_base_url}/sites/map",
            endpoint="/sites/map",
            json_body={"latitude": lat, "longitude": lng},
        )

        data = response_data.get("data") if isinstance(response_data, dict) else None
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            return []

        logger.info(f"[AffluencesAPIClient] search_sites success: results_n={len(results)}")
        return results

    async def get_live_data(self, slug: str) -> LiveDataResponse:
        """Retrieve live status and attendance for a site.

        Raises:
            ValueError: If slug is empty
        """
        response_data = await self._request(
            "GET",
            self._site_url(slug, "live-data"),
            endpoint="/sites/{slug}/live-data",
        )
        return LiveDataResponse.model_validate(response_data)

    async def get_timetables(self, slug: str, week_offset: int = 0) -> TimetableResponse:
        """Retrieve the opening-hours timetable of a site for one week.

        Args:
            slug: Site slug
            week_offset: 0 = current week, negative = past, positive = future

        Raises:
            ValueError: If slug is empty
        """
        response_data = await self._request(
            "GET",
            self._site_url(slug, "timetables"),
            endpoint="/sites/{slug}/timetables",
            params={"weekOffset": str(week_offset)},
        )
        return TimetableResponse.model_validate(response_data)
