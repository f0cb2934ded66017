"""Unit tests for catalog, live status and timetable services."""
import logging
import math

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from app.models import (
    LiveData,
    LiveDataResponse,
    LiveDataStatus,
    Position,
    TimetableData,
    TimetableEntry,
    TimetableResponse,
)
from app.services import LiveStatusService, SiteCatalogService, TimetableService
from app.utils import FieldChain

TALENCE = Position(lat=44.8048, lng=-0.5954)


def make_record(
    site_id,
    categories=(1,),
    slug=None,
    city="Talence",
    distance=500.0,
    lat=44.80,
    lng=-0.60,
):
    """Build a raw catalog record as returned by POST /sites/map."""
    record = {
        "id": site_id,
        "primary_name": f"Site {site_id}",
        "secondary_name": None,
        "location": {
            "address": {"city": city},
            "coordinates": {"latitude": lat, "longitude": lng},
        },
        "categories": [{"id": c} for c in categories],
        "slug": slug if slug is not None else f"site-{site_id}",
    }
    if distance is not None:
        record["estimated_distance"] = distance
    return record


@pytest.fixture
def mock_affluences_api():
    """Create mock Affluences API client."""
    mock = Mock()
    mock.search_sites = AsyncMock()
    mock.get_live_data = AsyncMock()
    mock.get_timetables = AsyncMock()
    return mock


@pytest.fixture
def catalog_service(mock_affluences_api):
    return SiteCatalogService(mock_affluences_api)


@pytest.fixture
def live_status_service(mock_affluences_api):
    return LiveStatusService(mock_affluences_api)


@pytest.fixture
def timetable_service(mock_affluences_api):
    return TimetableService(mock_affluences_api)


class TestSiteCatalogService:
    """Test SiteCatalogService filtering and normalization."""

    @pytest.mark.asyncio
    async def test_mixed_categories_keep_only_libraries(self, catalog_service, mock_affluences_api):
        """Test that non-library records never appear in the output."""
        mock_affluences_api.search_sites.return_value = [
            make_record(1, categories=(1,)),
            make_record(2, categories=(7,)),
            make_record(3, categories=(20, 7)),
            make_record(4, categories=()),
            make_record(5, categories=(21,)),
        ]

        sites = await catalog_service.fetch_nearby(TALENCE, limit=15)

        assert [s.id for s in sites] == ["1", "3"]
        mock_affluences_api.search_sites.assert_called_once_with(44.8048, -0.5954)

    @pytest.mark.asyncio
    async def test_end_to_end_cap_and_order(self, catalog_service, mock_affluences_api):
        """Test 20 records (18 libraries, 2 others) produce 15 ordered libraries."""
        records = []
        for i in range(20):
            category = 7 if i in (3, 11) else (1 if i % 2 else 20)
            records.append(make_record(100 + i, categories=(category,), distance=100.0 * i))
        mock_affluences_api.search_sites.return_value = records

        sites = await catalog_service.fetch_nearby(TALENCE, limit=15)

        expected_ids = [str(100 + i) for i in range(20) if i not in (3, 11)][:15]
        assert len(sites) == 15
        assert [s.id for s in sites] == expected_ids
        for site in sites:
            assert site.distance_km is not None
            assert math.isfinite(site.distance_km)
            assert site.distance_km >= 0

    @pytest.mark.asyncio
    async def test_normalization(self, catalog_service, mock_affluences_api):
        """Test record fields are mapped to SiteInfo."""
        mock_affluences_api.search_sites.return_value = [
            make_record("abc", slug="bu-sciences", city="Pessac", distance=1250.0, lat=44.79, lng=-0.61)
        ]

        sites = await catalog_service.fetch_nearby(TALENCE, limit=15)

        site = sites[0]
        assert site.id == "abc"
        assert site.name == "Site abc"
        assert site.campus == "Pessac"
        assert site.slug == "bu-sciences"
        assert site.lat == 44.79
        assert site.lng == -0.61
        assert site.distance_km == pytest.approx(1.25)

    @pytest.mark.asyncio
    async def test_missing_city_uses_placeholder(self, mock_affluences_api):
        """Test campus defaults to the configured placeholder."""
        service = SiteCatalogService(mock_affluences_api, default_campus="Campus")
        record = make_record(1)
        record["location"]["address"] = None
        mock_affluences_api.search_sites.return_value = [record]

        sites = await service.fetch_nearby(TALENCE, limit=15)

        assert sites[0].campus == "Campus"

    @pytest.mark.asyncio
    async def test_missing_distance_computed_from_position(self, catalog_service, mock_affluences_api):
        """Test distance falls back to great-circle distance from the position."""
        mock_affluences_api.search_sites.return_value = [
            make_record(1, distance=None, lat=44.8048, lng=-0.5954),
            make_record(2, distance=-5.0, lat=44.8148, lng=-0.5954),
        ]

        sites = await catalog_service.fetch_nearby(TALENCE, limit=15)

        assert sites[0].distance_km == pytest.approx(0.0, abs=1e-9)
        # 0.01 degree of latitude is about 1.11 km
        assert sites[1].distance_km == pytest.approx(1.112, abs=0.01)

    def test_distance_absent_without_position(self, catalog_service):
        """Test distance is None only when no position exists."""
        sites = catalog_service.normalize([make_record(1, distance=None)], None, 15)

        assert sites[0].distance_km is None

    @pytest.mark.asyncio
    async def test_duplicate_ids_skipped(self, catalog_service, mock_affluences_api):
        """Test first occurrence wins for duplicate site ids."""
        first = make_record(1, slug="first")
        duplicate = make_record(1, slug="second")
        mock_affluences_api.search_sites.return_value = [first, duplicate, make_record(2)]

        sites = await catalog_service.fetch_nearby(TALENCE, limit=15)

        assert [s.slug for s in sites] == ["first", "site-2"]
        assert len({s.id for s in sites}) == len(sites)

    @pytest.mark.asyncio
    async def test_unusable_records_skipped(self, catalog_service, mock_affluences_api):
        """Test records without slug or coordinates are dropped."""
        no_coordinates = make_record(2)
        no_coordinates["location"]["coordinates"] = None
        mock_affluences_api.search_sites.return_value = [
            make_record(1, slug=""),
            no_coordinates,
            {"id": 3, "categories": "not-a-list"},
            make_record(4),
        ]

        sites = await catalog_service.fetch_nearby(TALENCE, limit=15)

        assert [s.id for s in sites] == ["4"]

    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self, catalog_service, mock_affluences_api):
        """Test non-success status degrades to an empty catalog."""
        mock_affluences_api.search_sites.side_effect = httpx.HTTPStatusError(
            "Bad Gateway", request=Mock(), response=Mock(status_code=502)
        )

        assert await catalog_service.fetch_nearby(TALENCE, limit=15) == []

    @pytest.mark.asyncio
    async def test_transport_error_returns_empty(self, catalog_service, mock_affluences_api):
        """Test transport failures degrade to an empty catalog."""
        mock_affluences_api.search_sites.side_effect = httpx.ConnectTimeout("timeout")

        assert await catalog_service.fetch_nearby(TALENCE, limit=15) == []

    @pytest.mark.asyncio
    async def test_zero_limit(self, catalog_service, mock_affluences_api):
        mock_affluences_api.search_sites.return_value = [make_record(1)]

        assert await catalog_service.fetch_nearby(TALENCE, limit=0) == []


class TestLiveStatusService:
    """Test LiveStatusService mapping and failure handling."""

    @staticmethod
    def _response(status=None, attendance=None):
        return LiveDataResponse(data=LiveData(status=status, liveAttendance=attendance))

    @pytest.mark.asyncio
    async def test_fetch_status(self, live_status_service, mock_affluences_api):
        mock_affluences_api.get_live_data.return_value = self._response(
            LiveDataStatus(isOpen=True, closingAt="2026-10-19T22:00:00+02:00"),
            {"percentage": 37},
        )

        status = await live_status_service.fetch_status("bu-sciences")

        assert status.is_open is True
        assert status.occupancy_rate == 37
        assert status.closing_time == "2026-10-19T22:00:00+02:00"
        assert status.known is True
        mock_affluences_api.get_live_data.assert_called_once_with("bu-sciences")

    def test_percentage_takes_precedence(self, live_status_service):
        status = live_status_service.to_live_status(
            "s", self._response(LiveDataStatus(isOpen=True), {"percentage": 10, "occupancy": 90})
        )
        assert status.occupancy_rate == 10

    def test_occupancy_used_when_percentage_absent_or_null(self, live_status_service):
        status = live_status_service.to_live_status(
            "s", self._response(LiveDataStatus(isOpen=True), {"percentage": None, "occupancy": 55})
        )
        assert status.occupancy_rate == 55

    def test_no_attendance_means_unknown_crowding(self, live_status_service):
        status = live_status_service.to_live_status(
            "s", self._response(LiveDataStatus(isOpen=False, openingText="Ouvre à 8h"), None)
        )
        assert status.is_open is False
        assert status.occupancy_rate is None
        assert status.opening_text == "Ouvre à 8h"

    def test_missing_status_block_defaults_to_closed(self, live_status_service):
        status = live_status_service.to_live_status("s", LiveDataResponse(data=None))
        assert status.is_open is False
        assert status.occupancy_rate is None

    def test_out_of_range_occupancy_passed_through_and_reported(self, live_status_service, caplog):
        """Test out-of-range occupancy is kept but logged loudly."""
        with caplog.at_level(logging.WARNING, logger="app.services.live_status_service"):
            status = live_status_service.to_live_status(
                "bu-sciences", self._response(LiveDataStatus(isOpen=True), {"percentage": 130})
            )

        assert status.occupancy_rate == 130
        assert "outside [0, 100]" in caplog.text
        assert "bu-sciences" in caplog.text

    def test_unreadable_occupancy_becomes_none(self, live_status_service):
        status = live_status_service.to_live_status(
            "s", self._response(LiveDataStatus(isOpen=True), {"percentage": "n/a"})
        )
        assert status.occupancy_rate is None

    def test_custom_field_chain(self, mock_affluences_api):
        service = LiveStatusService(mock_affluences_api, FieldChain(("occupancy",), ("percentage",)))
        status = service.to_live_status(
            "s", self._response(LiveDataStatus(isOpen=True), {"percentage": 10, "occupancy": 90})
        )
        assert status.occupancy_rate == 90

    @pytest.mark.asyncio
    async def test_failure_returns_none(self, live_status_service, mock_affluences_api):
        mock_affluences_api.get_live_data.side_effect = httpx.ReadTimeout("timeout")

        assert await live_status_service.fetch_status("bu-sciences") is None


class TestTimetableService:
    """Test TimetableService."""

    @pytest.mark.asyncio
    async def test_fetch_week(self, timetable_service, mock_affluences_api):
        entries = [
            TimetableEntry(day=f"2026-10-{19 + i:02d}", is_today=(i == 2)) for i in range(7)
        ]
        mock_affluences_api.get_timetables.return_value = TimetableResponse(
            data=TimetableData(entries=entries)
        )

        result = await timetable_service.fetch_week("bu-sciences", 1)

        assert [e.day for e in result] == [e.day for e in entries]
        mock_affluences_api.get_timetables.assert_called_once_with("bu-sciences", 1)

    @pytest.mark.asyncio
    async def test_missing_data_returns_empty(self, timetable_service, mock_affluences_api):
        mock_affluences_api.get_timetables.return_value = TimetableResponse(data=None)

        assert await timetable_service.fetch_week("bu-sciences") == []

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, timetable_service, mock_affluences_api):
        mock_affluences_api.get_timetables.side_effect = httpx.HTTPStatusError(
            "Not Found", request=Mock(), response=Mock(status_code=404)
        )

        assert await timetable_service.fetch_week("bu-sciences", -2) == []

    @pytest.mark.asyncio
    async def test_null_fields_in_one_day_keep_the_week(self, timetable_service, mock_affluences_api):
        days = [
            {
                "day": f"2026-10-{19 + i:02d}",
                "isToday": i == 0,
                "openingHours": [
                    {
                        "openingHour": f"2026-10-{19 + i:02d}T08:00:00+02:00",
                        "closingHour": f"2026-10-{19 + i:02d}T20:00:00+02:00",
                    }
                ],
            }
            for i in range(6)
        ]
        days.append({"day": "2026-10-25", "isToday": None, "openingHours": None})
        mock_affluences_api.get_timetables.return_value = TimetableResponse.model_validate(
            {"data": {"entries": days}}
        )

        result = await timetable_service.fetch_week("bu-sciences")

        assert len(result) == 7
        assert result[6].is_closed
        assert result[6].is_today is False
        assert not result[0].is_closed
