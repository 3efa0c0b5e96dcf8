from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from georoute.api.v1.endpoints import locations as locations_endpoint
from georoute.api.v1.endpoints import routes as routes_endpoint
from georoute.core.exceptions import RoutingBackendError
from georoute.main import app
from georoute.models.locations import SearchResult

OSRM_ROUTE = {
    "distance": 14000.0,
    "duration": 840.0,
    "geometry": {"coordinates": [[-75.0, 40.0], [-75.1, 40.1]]},
    "legs": [
        {
            "distance": 14000.0,
            "duration": 840.0,
            "steps": [
                {"distance": 14000.0, "duration": 840.0, "name": "Main Street", "maneuver": {"type": "depart"}},
                {"distance": 0.0, "duration": 0.0, "name": "", "maneuver": {"type": "arrive"}},
            ],
        }
    ],
}

ROUTE_REQUEST = {
    "points": [{"lat": 40.0, "lng": -75.0}, {"lat": 40.1, "lng": -75.1}],
    "travel_mode": "driving",
    "conversation_id": "conv-1",
}


@pytest.fixture
def osrm(monkeypatch) -> AsyncMock:
    fake = AsyncMock()
    fake.route.return_value = OSRM_ROUTE
    service = routes_endpoint.route_service
    monkeypatch.setattr(service.engine, "osrm", fake)
    monkeypatch.setattr(service.geocoder, "reverse_geocode", AsyncMock(return_value=None))
    return fake


@pytest.fixture
def scanner(monkeypatch):
    scanner = locations_endpoint.conversation_scanner
    monkeypatch.setattr(scanner, "ephemeral", [])
    monkeypatch.setattr(scanner, "conversation_id", None)
    monkeypatch.setattr(
        scanner,
        "geocoder",
        SimpleNamespace(
            geocode_batch=AsyncMock(return_value=[]),
            reverse_geocode_batch=AsyncMock(side_effect=lambda coords: ["Ferry Building" for _ in coords]),
        ),
    )
    return scanner


@pytest_asyncio.fixture
async def client():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health_and_request_id(client: httpx.AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "abcdef12-3456"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-Id"] == "abcdef12-3456"

    generated = await client.get("/")
    assert len(generated.headers["X-Request-Id"]) == 32


@pytest.mark.asyncio
async def test_detect_endpoint(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/api/v1/locations/detect",
        json={"text": "Meet at 37.7749,-122.4194", "source_message_id": "m1"},
    )

    assert response.status_code == 200
    [location] = response.json()
    assert location["kind"] == "coordinates"
    assert location["coordinates"] == {"lat": 37.7749, "lng": -122.4194}
    assert location["source_message_id"] == "m1"


@pytest.mark.asyncio
async def test_scan_endpoint(client: httpx.AsyncClient, scanner) -> None:
    response = await client.post(
        "/api/v1/locations/scan",
        json={"conversation_id": "conv-9", "messages": [{"id": "m1", "content": "37.7955, -122.3937"}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["conversation_id"] == "conv-9"
    assert [loc["formatted_address"] for loc in body["locations"]] == ["Ferry Building"]


@pytest.mark.asyncio
async def test_search_endpoint(client: httpx.AsyncClient, monkeypatch) -> None:
    search = AsyncMock(return_value=[SearchResult(lat=48.8584, lon=2.2945, display_name="Eiffel Tower")])
    monkeypatch.setattr(locations_endpoint.geocoding_service, "search", search)

    response = await client.get("/api/v1/locations/search", params={"q": "eiffel"})

    assert response.status_code == 200
    assert response.json()[0]["display_name"] == "Eiffel Tower"
    search.assert_awaited_once_with("eiffel")
    assert (await client.get("/api/v1/locations/search", params={"q": ""})).status_code == 422


@pytest.mark.asyncio
async def test_pinned_location_lifecycle(client: httpx.AsyncClient) -> None:
    assert (await client.get("/api/v1/locations/pinned/export")).status_code == 404

    location = {"id": "p1", "lat": 48.8584, "lng": 2.2945, "display_name": "Location at 48.8584, 2.2945"}
    created = await client.post("/api/v1/locations/pinned", json=location)
    assert created.status_code == 201
    assert created.json()["pinned_at"] > 0
    assert (await client.post("/api/v1/locations/pinned", json=location)).status_code == 409

    updated = await client.patch("/api/v1/locations/pinned/p1", json={"address": "Champ de Mars"})
    assert updated.json()["display_name"] == "Champ de Mars"
    assert (await client.patch("/api/v1/locations/pinned/nope", json={"address": "x"})).status_code == 404

    exported = await client.get("/api/v1/locations/pinned/export")
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert exported.text.splitlines() == ["coord,name", '"48.8584,2.2945","Champ de Mars"']

    imported = await client.post(
        "/api/v1/locations/pinned/import",
        content='coord,name\n"51.5,-0.12","London"\n"48.8584,2.2945","Paris"\n',
    )
    assert imported.json() == {"imported": 1}
    assert (await client.post("/api/v1/locations/pinned/import", content="nothing here")).status_code == 400

    assert (await client.delete("/api/v1/locations/pinned/p1")).status_code == 204
    assert (await client.delete("/api/v1/locations/pinned/p1")).status_code == 404
    assert [p["display_name"] for p in (await client.get("/api/v1/locations/pinned")).json()] == ["London"]


@pytest.mark.asyncio
async def test_calculate_saves_route_and_exposes_it(client: httpx.AsyncClient, osrm: AsyncMock) -> None:
    response = await client.post("/api/v1/routes/calculate", json=ROUTE_REQUEST)

    assert response.status_code == 200
    body = response.json()
    assert (body["distance"], body["duration"], body["cost"]) == ("14.00 km", "14 min", "$2.10")
    assert [step["instruction"] for step in body["steps"]] == ["Head straight onto Main Street", "Arrive at destination"]
    route_id = response.headers["X-Saved-Route-Id"]

    again = await client.post("/api/v1/routes/calculate", json=ROUTE_REQUEST)
    assert "X-Saved-Route-Id" not in again.headers

    saved = (await client.get("/api/v1/routes/saved", params={"conversation_id": "conv-1"})).json()
    assert [route["id"] for route in saved] == [route_id]
    assert (await client.get("/api/v1/routes/saved", params={"conversation_id": "other"})).json() == []

    renamed = await client.patch(f"/api/v1/routes/saved/{route_id}", json={"name": "  Commute "})
    assert renamed.json()["name"] == "Commute"

    gpx = await client.get(f"/api/v1/routes/saved/{route_id}/gpx")
    assert gpx.headers["content-type"].startswith("application/gpx+xml")
    assert "<trkpt" in gpx.text

    conversations = (await client.get("/api/v1/routes/conversations")).json()
    assert conversations["conversations"][0] == {
        "id": "conv-1",
        "label": "Conversation conv-1...",
        "points_count": 2,
        "routes_count": 1,
    }

    assert (await client.delete(f"/api/v1/routes/saved/{route_id}")).status_code == 204
    assert (await client.get(f"/api/v1/routes/saved/{route_id}")).status_code == 404


@pytest.mark.asyncio
async def test_calculate_reports_backend_failure(client: httpx.AsyncClient, osrm: AsyncMock) -> None:
    osrm.route.side_effect = RoutingBackendError("Routing service request failed")

    response = await client.post("/api/v1/routes/calculate", json=ROUTE_REQUEST)

    assert response.status_code == 503
    assert response.json() == {"detail": "Routing service request failed"}


@pytest.mark.asyncio
async def test_calculate_needs_two_points(client: httpx.AsyncClient, osrm: AsyncMock) -> None:
    response = await client.post("/api/v1/routes/calculate", json={"points": [{"lat": 1, "lng": 2}]})

    assert response.status_code == 422
    osrm.route.assert_not_called()


@pytest.mark.asyncio
async def test_transport_settings_endpoints(client: httpx.AsyncClient) -> None:
    defaults = (await client.get("/api/v1/settings/transport")).json()
    assert defaults["speeds"]["driving"] == 60.0
    assert defaults["costs"]["walking"] == 0.0

    updated = await client.put("/api/v1/settings/transport", json={"speeds": {"cycling": 20}})
    assert updated.json()["speeds"]["cycling"] == 20.0
    assert updated.json()["speeds"]["driving"] == 60.0

    reset = await client.post("/api/v1/settings/transport/reset")
    assert reset.json() == defaults


@pytest.mark.asyncio
async def test_map_style_endpoints(client: httpx.AsyncClient) -> None:
    assert (await client.get("/api/v1/settings/map-style")).json() == {"style": "standard"}
    assert (await client.put("/api/v1/settings/map-style", json={"style": "terrain"})).json() == {"style": "terrain"}
    assert (await client.get("/api/v1/settings/map-style")).json() == {"style": "terrain"}
    assert (await client.put("/api/v1/settings/map-style", json={"style": "neon"})).status_code == 422
