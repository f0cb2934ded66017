"""Prometheus metrics definitions for the library finder service.

Exposes metrics for:
1. HTTP API metrics (requests, latency, errors)
2. Affluences API client metrics (calls, latency, errors)
3. Aggregation metrics (catalog filtering, live status fan-out)
4. Data quality metrics (occupancy anomalies)
5. Location metrics (geolocation fallbacks, room resolution)
"""
from prometheus_client import Counter, Histogram, Gauge

# =============================================================================
# HTTP API METRICS
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
)

# =============================================================================
# AFFLUENCES API CLIENT METRICS
# =============================================================================

AFFLUENCES_API_CALLS_TOTAL = Counter(
    "affluences_api_calls_total",
    "Total number of Affluences API calls",
    ["endpoint", "status"],  # status: success, error
)

AFFLUENCES_API_CALL_DURATION_SECONDS = Histogram(
    "affluences_api_call_duration_seconds",
    "Affluences API call latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

AFFLUENCES_API_ERRORS_TOTAL = Counter(
    "affluences_api_errors_total",
    "Total number of Affluences API errors",
    ["endpoint", "error_type"],  # error_type: http_error, timeout, connection_error, decode_error
)

# =============================================================================
# AGGREGATION METRICS
# =============================================================================

CATALOG_SITES_RETURNED = Gauge(
    "catalog_sites_returned",
    "Number of library sites returned by the last catalog fetch",
)

CATALOG_RECORDS_SKIPPED = Counter(
    "catalog_records_skipped_total",
    "Catalog records dropped during normalization",
    ["reason"],  # reason: malformed, not_library, empty_slug, no_coordinates, duplicate_id
)

LIVE_STATUS_FETCH_RESULTS = Counter(
    "live_status_fetch_results_total",
    "Results of per-site live status fetches",
    ["result"],  # result: ok, absent, error
)

NEARBY_SITES_LOAD_DURATION_SECONDS = Histogram(
    "nearby_sites_load_duration_seconds",
    "Duration of a full nearby-sites aggregation",
    buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TIMETABLE_FETCH_RESULTS = Counter(
    "timetable_fetch_results_total",
    "Results of timetable fetches",
    ["result"],  # result: ok, empty, error
)

# =============================================================================
# DATA QUALITY METRICS
# =============================================================================

OCCUPANCY_OUT_OF_RANGE_TOTAL = Counter(
    "occupancy_out_of_range_total",
    "Live occupancy values reported outside [0, 100]",
)

# =============================================================================
# LOCATION METRICS
# =============================================================================

LOCATION_FALLBACKS_TOTAL = Counter(
    "location_fallbacks_total",
    "Times the fixed fallback coordinate was used",
    ["reason"],  # reason: permission_denied, no_fix
)

LOCATION_RESOLUTION_RESULTS = Counter(
    "location_resolution_results_total",
    "Course room resolution outcomes",
    ["strategy"],  # strategy: exact, room_text, subject_text, none
)
