import pytest
from fastapi.testclient import TestClient

from conftest import DAMAGED_TOWNSHIP, EMPTY_SECTION, SYNTHETIC_MERIDIAN
from api.endpoints import dls_endpoints
from main import app
from pipelines.mapping.dls.coordinate_service import DLSCoordinateService
from pipelines.mapping.dls.grid_reference import GridReference
from pipelines.mapping.dls.marker_store import MarkerStore
from services.cache.marker_cache import MarkerCache


@pytest.fixture
def client(shared_synthetic_store):
    service = DLSCoordinateService(MarkerCache(shared_synthetic_store))
    app.dependency_overrides[dls_endpoints.get_dls_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_to_coordinate_from_location(client, synthetic_converter) -> None:
    response = client.post("/api/dls/to-coordinate", json={"location": "07-11-002-01W5"})
    assert response.status_code == 200
    body = response.json()
    expected = synthetic_converter.to_coordinate(GridReference(7, 11, 2, 1, SYNTHETIC_MERIDIAN))
    assert body["success"]
    assert body["method"] == "markers"
    assert body["coordinates"] == {"lat": expected.latitude, "lon": expected.longitude}
    assert body["reference"]["location"] == "07-11-002-01W5"


def test_to_coordinate_from_fields(client) -> None:
    by_fields = client.post(
        "/api/dls/to-coordinate",
        json={"lsd": 7, "section": 11, "township": 2, "range": 1, "meridian": SYNTHETIC_MERIDIAN},
    )
    by_location = client.post("/api/dls/to-coordinate", json={"location": "7-11-2-1W5"})
    assert by_fields.status_code == 200
    assert by_fields.json()["coordinates"] == by_location.json()["coordinates"]


def test_to_coordinate_estimates_unsurveyed_section(client) -> None:
    township, range_number, meridian = DAMAGED_TOWNSHIP
    response = client.post(
        "/api/dls/to-coordinate",
        json={"lsd": 1, "section": EMPTY_SECTION, "township": township, "range": range_number, "meridian": meridian},
    )
    body = response.json()
    assert body["success"]
    assert body["method"] == "estimate"
    assert body["corners"] == {}


def test_to_coordinate_rejects_incomplete_fields(client) -> None:
    response = client.post("/api/dls/to-coordinate", json={"lsd": 7, "section": 11})
    assert response.status_code == 422


def test_to_coordinate_rejects_unparseable_location(client) -> None:
    response = client.post("/api/dls/to-coordinate", json={"location": "nonsense"})
    assert response.status_code == 400


def test_from_coordinate_finds_lsd(client, synthetic_converter) -> None:
    ref = GridReference(7, 11, 2, 1, SYNTHETIC_MERIDIAN)
    target = synthetic_converter.to_coordinate(ref)
    response = client.post(
        "/api/dls/from-coordinate", json={"latitude": target.latitude, "longitude": target.longitude}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"]
    assert body["status"] == "converged"
    assert body["reference"]["location"] == "07-11-002-01W5"
    assert body["coordinates"] == target.to_dict()
    assert body["offset"]["distance_meters"] == pytest.approx(0.0, abs=1e-6)


def test_from_coordinate_outside_the_survey(client) -> None:
    body = client.post("/api/dls/from-coordinate", json={"latitude": 40.0, "longitude": -80.0}).json()
    assert not body["success"]
    assert body["status"] == "out_of_region"
    assert body["error_type"] == "OutOfRegionError"
    assert body["reference"] is None


def test_from_coordinate_validates_ranges(client) -> None:
    response = client.post("/api/dls/from-coordinate", json={"latitude": 100.0, "longitude": -110.0})
    assert response.status_code == 422


def test_section_markers(client) -> None:
    response = client.get(f"/api/dls/markers/{SYNTHETIC_MERIDIAN}/1/2/11")
    assert response.status_code == 200
    body = response.json()
    assert sorted(body["known_corners"]) == ["NE", "NW", "SE", "SW"]
    assert body["corners"]["SE"]["lat"] < body["corners"]["NE"]["lat"]

    assert client.get(f"/api/dls/markers/{SYNTHETIC_MERIDIAN}/1/60/11").status_code == 404


def test_township_boundary(client, synthetic_store) -> None:
    response = client.get(f"/api/dls/township-boundary/{SYNTHETIC_MERIDIAN}/1/1")
    assert response.status_code == 200
    expected = synthetic_store.township_boundary(1, 1, SYNTHETIC_MERIDIAN)
    assert response.json()["boundary"] == expected.to_dict()

    assert client.get(f"/api/dls/township-boundary/{SYNTHETIC_MERIDIAN}/1/60").status_code == 404


def test_navigate(client) -> None:
    body = client.post("/api/dls/navigate", json={"location": "04-11-082-04W6", "direction": "E"}).json()
    assert body["success"]
    assert body["reference"]["legal_subdivision"] == 3
    assert body["reference"]["section"] == 11
    assert body["in_bounds"]

    body = client.post("/api/dls/navigate", json={"location": "07-11-082-04W6", "direction": "n", "count": 4}).json()
    assert body["reference"]["location"] == "07-14-082-04W6"


def test_navigate_rejects_bad_direction(client) -> None:
    response = client.post("/api/dls/navigate", json={"location": "04-11-082-04W6", "direction": "UP"})
    assert response.status_code == 400


def test_cache_statistics_and_clear(client) -> None:
    client.get(f"/api/dls/markers/{SYNTHETIC_MERIDIAN}/1/2/11")
    client.get(f"/api/dls/markers/{SYNTHETIC_MERIDIAN}/1/2/12")

    info = client.get("/api/dls/cache").json()
    assert info["townships_cached"] == 1
    assert info["statistics"] == {"hits": 1, "misses": 1}

    assert client.delete("/api/dls/cache").json()["success"]
    assert client.get("/api/dls/cache").json()["townships_cached"] == 0


def test_missing_dataset_is_service_unavailable(tmp_path) -> None:
    store = MarkerStore.from_file(tmp_path / "absent.bin")
    service = DLSCoordinateService(store)
    app.dependency_overrides[dls_endpoints.get_dls_service] = lambda: service
    try:
        with TestClient(app) as test_client:
            markers = test_client.get("/api/dls/markers/5/1/2/11")
            lookup = test_client.post("/api/dls/to-coordinate", json={"location": "07-11-002-01W5"})
    finally:
        app.dependency_overrides.clear()
    assert markers.status_code == 503
    assert lookup.status_code == 503


def test_health_and_logs(client) -> None:
    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["status"] in ("healthy", "degraded")

    logs = client.get("/api/logs", params={"limit": 10})
    assert logs.status_code == 200
    assert isinstance(logs.json()["logs"], list)
