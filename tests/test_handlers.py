"""Unit tests for the library handler and its routes."""
import pytest
from unittest.mock import AsyncMock, Mock
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.handlers import LibraryHandler
from app.models import (
    CourseLocationRequest,
    LiveStatus,
    LocationMatch,
    NearbySitesResult,
    Position,
    SiteInfo,
    TimetableEntry,
    WeekView,
)
from app.routers import library_router, set_library_handler
from app.services import ClientPositionProvider, LocationResolver

A22 = LocationMatch(lat=44.80755, lng=-0.60210, title="Bâtiment A22")
B18 = LocationMatch(lat=44.81121, lng=-0.59729, title="Bâtiment B18")


@pytest.fixture
def mock_aggregation_service():
    mock = Mock()
    mock.load_nearby_sites = AsyncMock(return_value=NearbySitesResult())
    mock.load_week = AsyncMock()
    return mock


@pytest.fixture
def mock_live_status_service():
    mock = Mock()
    mock.fetch_status = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def library_handler(mock_aggregation_service, mock_live_status_service):
    resolver = LocationResolver({"A22": A22, "B18": B18})
    return LibraryHandler(mock_aggregation_service, mock_live_status_service, resolver)


@pytest.fixture
def client(library_handler):
    """Create a test client over the library routes."""
    app = FastAPI()
    app.include_router(library_router)
    set_library_handler(library_handler)
    yield TestClient(app)
    set_library_handler(None)


class TestLibraryHandler:
    """Test LibraryHandler delegation."""

    def test_ping(self, library_handler):
        assert library_handler.ping() == {"status": "pong"}

    @pytest.mark.asyncio
    async def test_nearby_without_fix_uses_default_provider(self, library_handler, mock_aggregation_service):
        await library_handler.get_nearby_libraries()

        mock_aggregation_service.load_nearby_sites.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_nearby_with_client_fix(self, library_handler, mock_aggregation_service):
        await library_handler.get_nearby_libraries(44.81, -0.60)

        provider = mock_aggregation_service.load_nearby_sites.await_args.args[0]
        assert isinstance(provider, ClientPositionProvider)
        assert provider.position == Position(lat=44.81, lng=-0.60)

    @pytest.mark.asyncio
    async def test_live_status_default_when_unavailable(self, library_handler):
        status = await library_handler.get_live_status("bu")

        assert status == LiveStatus.unknown()

    def test_course_location_from_description(self, library_handler):
        request = CourseLocationRequest(description="Groupe 2\nMme Martin\nA22/204", subject="TD B18")

        assert library_handler.resolve_course_location(request) == [A22]

    def test_course_location_explicit_room(self, library_handler):
        request = CourseLocationRequest(description="x\ny\nA22/204", room="Salle B18", subject="")

        assert library_handler.resolve_course_location(request) == [B18]


class TestLibraryRoutes:
    """Test HTTP routes."""

    def test_ping(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json() == {"status": "pong"}

    def test_service_not_ready(self):
        app = FastAPI()
        app.include_router(library_router)
        set_library_handler(None)

        response = TestClient(app).get("/v1/libraries/nearby")

        assert response.status_code == 503

    def test_nearby_libraries(self, client, mock_aggregation_service):
        site = SiteInfo(
            id="1", name="BU Sciences", campus="Talence", lat=44.80, lng=-0.60,
            slug="bu-sciences", distance_km=0.4,
        )
        mock_aggregation_service.load_nearby_sites.return_value = NearbySitesResult(
            sites=[site],
            status={"1": LiveStatus(is_open=True, occupancy_rate=64)},
            position=Position(lat=44.8048, lng=-0.5954),
            location_degraded=True,
        )

        response = client.get("/v1/libraries/nearby")

        assert response.status_code == 200
        body = response.json()
        assert body["sites"][0]["slug"] == "bu-sciences"
        assert body["status"]["1"]["occupancy_rate"] == 64
        assert body["location_degraded"] is True

    def test_nearby_requires_both_coordinates(self, client):
        response = client.get("/v1/libraries/nearby", params={"lat": 44.8})

        assert response.status_code == 400

    def test_nearby_rejects_invalid_latitude(self, client):
        response = client.get("/v1/libraries/nearby", params={"lat": 120, "lng": 0})

        assert response.status_code == 422

    def test_live_status(self, client, mock_live_status_service):
        mock_live_status_service.fetch_status.return_value = LiveStatus(
            is_open=False, occupancy_rate=None, opening_text="Ouvre demain à 8h"
        )

        response = client.get("/v1/libraries/bu-sciences/live")

        assert response.status_code == 200
        assert response.json()["is_open"] is False
        assert response.json()["known"] is True
        mock_live_status_service.fetch_status.assert_awaited_once_with("bu-sciences")

    def test_timetable(self, client, mock_aggregation_service):
        mock_aggregation_service.load_week.return_value = WeekView(
            slug="bu-sciences",
            week_offset=1,
            entries=[TimetableEntry(day="2026-10-26")],
            selected_index=0,
        )

        response = client.get("/v1/libraries/bu-sciences/timetable", params={"week_offset": 1})

        assert response.status_code == 200
        assert response.json()["week_offset"] == 1
        assert response.json()["entries"][0]["day"] == "2026-10-26"
        mock_aggregation_service.load_week.assert_awaited_once_with("bu-sciences", 1)

    def test_timetable_internal_error(self, client, mock_aggregation_service):
        mock_aggregation_service.load_week.side_effect = RuntimeError("boom")

        response = client.get("/v1/libraries/bu-sciences/timetable")

        assert response.status_code == 500

    def test_resolve_room_code(self, client):
        response = client.get("/v1/locations/A22/103")

        assert response.status_code == 200
        assert response.json()["lat"] == 44.80755

    def test_resolve_unknown_room(self, client):
        response = client.get("/v1/locations/Z9")

        assert response.status_code == 404

    def test_search_locations(self, client):
        response = client.get("/v1/locations", params={"text": "B18 puis A22"})

        assert response.status_code == 200
        assert [m["title"] for m in response.json()] == ["Bâtiment B18", "Bâtiment A22"]

    def test_locate_course(self, client):
        response = client.post(
            "/v1/locations/course",
            json={"description": "G1\nProf\nSalle 3", "subject": "Projet en A22"},
        )

        assert response.status_code == 200
        assert response.json() == [{"lat": 44.80755, "lng": -0.6021, "title": "Bâtiment A22"}]


class TestPrometheusMiddleware:
    """Test endpoint normalization."""

    def test_normalize_endpoint(self):
        from app.middleware import PrometheusMiddleware

        middleware = PrometheusMiddleware(app=FastAPI())

        assert middleware._normalize_endpoint("/v1/libraries/nearby") == "/v1/libraries/nearby"
        assert (
            middleware._normalize_endpoint("/v1/libraries/bu-sciences/timetable")
            == "/v1/libraries/{id}/timetable"
        )
        assert middleware._normalize_endpoint("/v1/locations/A22/103") == "/v1/locations/{id}"
        assert middleware._normalize_endpoint("/v1/locations/course") == "/v1/locations/course"
